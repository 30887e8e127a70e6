from sqlalchemy import String, Integer, DateTime, Date, Boolean, Numeric, Text, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, date, timezone
from app.db.session import Base

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    tour_id: Mapped[str] = mapped_column(String(36), ForeignKey("tours.id"), index=True)
    user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True, index=True)  # null for guest checkout

    package_type: Mapped[str] = mapped_column(String(20), default="standard")  # umrah, standard
    customer_name: Mapped[str] = mapped_column(String(200))
    customer_email: Mapped[str] = mapped_column(String(320), index=True)
    customer_phone: Mapped[str] = mapped_column(String(50))
    number_of_travelers: Mapped[int] = mapped_column(Integer, default=1)
    total_amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0)

    payment_status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, paid, failed, refunded
    payment_intent_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    booking_status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, confirmed, cancelled
    booking_date: Mapped[date] = mapped_column(Date)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)

    # tagged attachment list, see app.services.document_service
    documents: Mapped[list] = mapped_column(JSON, default=list)

    application_closed: Mapped[bool] = mapped_column(Boolean, default=False)
    application_closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    application_closed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    # lead traveller's own application form
    user_application_number: Mapped[str | None] = mapped_column(String(20), nullable=True, unique=True)
    user_application_submitted: Mapped[bool] = mapped_column(Boolean, default=False)
    user_application_submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    user_application_form: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    user_application_status: Mapped[str] = mapped_column(String(20), default="pending")
    user_application_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    user_application_reviewed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
