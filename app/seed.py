import logging
import uuid

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.core.config import settings
from app.core.security import hash_password
from app.models.user import User
from app.models.tour import Tour

logger = logging.getLogger(__name__)

SAMPLE_TOURS = [
    {
        "title": "Ramadan Umrah Package",
        "category": "Umrah",
        "image": "/images/umrah-ramadan.jpg",
        "package_type": "umrah",
        "departure": "London Heathrow",
        "accommodation": "5* hotels in Makkah and Madinah",
        "dates": "March 2026",
        "price": "From £1,995",
        "description": "Fifteen nights of Umrah during the last ten days of Ramadan.",
        "itinerary": [
            {"day": 1, "title": "Arrival in Jeddah", "description": "Transfer to Makkah and perform Umrah."},
            {"day": 8, "title": "Madinah", "description": "Transfer to Madinah by high-speed rail."},
        ],
        "inclusions": ["Return flights", "Visa processing", "Hotel accommodation", "Ground transfers"],
        "exclusions": ["Meals not stated", "Personal expenses"],
        "status": "published",
    },
    {
        "title": "Istanbul and Cappadocia",
        "category": "Turkey",
        "image": "/images/istanbul.jpg",
        "package_type": "standard",
        "departure": "Manchester",
        "accommodation": "4* hotels",
        "dates": "May 2026",
        "price": "From £1,250",
        "description": "Seven nights across Istanbul and Cappadocia.",
        "itinerary": [],
        "inclusions": ["Return flights", "Breakfast daily", "Guided tours"],
        "exclusions": ["Balloon flight"],
        "status": "published",
    },
]


def ensure_user(db: Session, email: str, password: str, role: str, name: str):
    u = db.query(User).filter(User.email == email).first()
    if u:
        return
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email,
            name=name,
            role=role,
            password_hash=hash_password(password),
        )
    )
    db.commit()
    logger.info("Seeded %s user %s", role, email)


def ensure_sample_tours(db: Session):
    if db.query(Tour.id).first():
        return
    for data in SAMPLE_TOURS:
        db.add(Tour(id=str(uuid.uuid4()), is_coming=False, gallery=[], **data))
    db.commit()
    logger.info("Seeded %d sample tours", len(SAMPLE_TOURS))


def run(db: Session):
    # If migrations haven't been applied yet, seeding must not crash the API.
    try:
        db.execute(text("SELECT 1 FROM users LIMIT 1"))
    except (ProgrammingError, OperationalError):
        db.rollback()
        logger.warning("users table not found yet. Skipping seeding (run alembic upgrade head).")
        return

    ensure_user(db, settings.SEED_ADMIN_EMAIL.lower(), settings.SEED_ADMIN_PASSWORD, "admin", "Admin")
    if settings.SEED_SAMPLE_TOURS:
        ensure_sample_tours(db)
