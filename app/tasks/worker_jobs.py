"""Plain functions behind the Celery tasks; importable without a broker."""
import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError, ProgrammingError
from app.core.config import settings
from app.db.session import Database
from app.services.email_service import Transport, deliver, process_pending_emails

logger = logging.getLogger(__name__)

_database: Database | None = None


def get_database() -> Database:
    """The worker process's own engine, built on first use from settings."""
    global _database
    if _database is None:
        _database = Database(settings.DATABASE_URL)
    return _database


def deliver_email(email_id: str, database: Database | None = None, transport: Transport | None = None) -> dict:
    db: Session = (database or get_database()).session()
    try:
        return {"id": email_id, "sent": deliver(db, email_id, transport)}
    finally:
        db.close()


def process_email_queue(limit: int = 50, database: Database | None = None,
                        transport: Transport | None = None) -> dict:
    """Process queued/failed emails (retry send). Run periodically via Celery beat."""
    db: Session = (database or get_database()).session()
    try:
        try:
            return process_pending_emails(db, limit=limit, transport=transport)
        except (ProgrammingError, OperationalError):
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            logger.warning("Email outbox table missing; skipping run")
            return {"skipped": True, "reason": "missing_tables"}
    finally:
        db.close()
