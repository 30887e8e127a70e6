from pydantic import BaseModel
from typing import List, Literal, Optional

TourStatus = Literal["draft", "published", "archived"]
PackageType = Literal["umrah", "standard"]


class ItineraryDay(BaseModel):
    day: int
    title: str = ""
    description: str = ""


class TourIn(BaseModel):
    title: str
    category: str
    image: str
    packageType: PackageType = "standard"
    departure: Optional[str] = None
    accommodation: str
    dates: str
    price: str
    isComing: bool = False
    description: Optional[str] = None
    itinerary: List[ItineraryDay] = []
    gallery: List[str] = []
    inclusions: List[str] = []
    exclusions: List[str] = []
    status: TourStatus = "draft"


class TourPatch(BaseModel):
    title: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None
    packageType: Optional[PackageType] = None
    departure: Optional[str] = None
    accommodation: Optional[str] = None
    dates: Optional[str] = None
    price: Optional[str] = None
    isComing: Optional[bool] = None
    description: Optional[str] = None
    itinerary: Optional[List[ItineraryDay]] = None
    gallery: Optional[List[str]] = None
    inclusions: Optional[List[str]] = None
    exclusions: Optional[List[str]] = None
    status: Optional[TourStatus] = None
