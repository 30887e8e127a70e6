from sqlalchemy import String, DateTime, Boolean, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

class Dependant(Base):
    """A co-traveller on a booking, with their own application form and documents."""

    __tablename__ = "dependants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_id: Mapped[str] = mapped_column(String(36), ForeignKey("bookings.id"), index=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), index=True)

    name: Mapped[str] = mapped_column(String(200))
    relationship: Mapped[str] = mapped_column(String(100))
    date_of_birth: Mapped[str | None] = mapped_column(String(20), nullable=True)
    passport_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    application_number: Mapped[str | None] = mapped_column(String(20), nullable=True, unique=True)
    application_form: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    documents: Mapped[list] = mapped_column(JSON, default=list)

    application_submitted: Mapped[bool] = mapped_column(Boolean, default=False)
    application_submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    application_status: Mapped[str] = mapped_column(String(20), default="pending")
    application_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    application_reviewed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
