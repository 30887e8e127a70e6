from sqlalchemy import String, DateTime, Boolean, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

class Tour(Base):
    __tablename__ = "tours"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    category: Mapped[str] = mapped_column(String(100), index=True)
    image: Mapped[str] = mapped_column(String(1024))
    package_type: Mapped[str] = mapped_column(String(20), default="standard")  # umrah, standard
    departure: Mapped[str | None] = mapped_column(String(200), nullable=True)
    accommodation: Mapped[str] = mapped_column(String(200))
    # display strings, e.g. "12 - 26 March 2026" / "From $2,450"
    dates: Mapped[str] = mapped_column(String(200))
    price: Mapped[str] = mapped_column(String(100))
    is_coming: Mapped[bool] = mapped_column(Boolean, default=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    itinerary: Mapped[list] = mapped_column(JSON, default=list)  # [{day, title, description}]
    gallery: Mapped[list] = mapped_column(JSON, default=list)
    inclusions: Mapped[list] = mapped_column(JSON, default=list)
    exclusions: Mapped[list] = mapped_column(JSON, default=list)

    status: Mapped[str] = mapped_column(String(20), default="draft", index=True)  # draft, published, archived

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
