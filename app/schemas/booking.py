from datetime import date
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Literal, Optional


class BookingCreate(BaseModel):
    # clients send either `tour` or `tourId`
    tour: Optional[str] = None
    tourId: Optional[str] = None
    packageType: Literal["umrah", "standard"] = "standard"
    customerName: str = Field(min_length=1)
    customerEmail: str  # plain str to allow .local and other dev domains
    customerPhone: str = Field(min_length=1)
    numberOfTravelers: int = Field(default=1, ge=1)
    totalAmount: float = Field(ge=0)
    bookingDate: date
    specialRequests: Optional[str] = None

    @field_validator("bookingDate", mode="before")
    @classmethod
    def parse_booking_date(cls, v):
        # accept full ISO datetimes from the web client
        if isinstance(v, str) and len(v) > 10:
            return date.fromisoformat(v[:10])
        return v

    @field_validator("customerEmail")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("A valid email is required")
        return v

    @model_validator(mode="after")
    def require_tour(self):
        if not (self.tour or self.tourId):
            raise ValueError("tour is required")
        return self

    @property
    def tour_ref(self) -> str:
        return self.tour or self.tourId


class AdminBookingUpdate(BaseModel):
    bookingStatus: Optional[str] = None
    paymentStatus: Optional[str] = None


class ConfirmPaymentRequest(BaseModel):
    paymentIntentId: str


class CreateIntentRequest(BaseModel):
    bookingId: str
