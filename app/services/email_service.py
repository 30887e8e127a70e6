from datetime import datetime, timezone
import logging
import smtplib
from email.message import EmailMessage
from typing import Callable
from sqlalchemy.orm import Session
import uuid
import requests

from app.core.config import settings
from app.models.email_log import EmailLog

logger = logging.getLogger(__name__)

# (to_email, subject, html) -> None; raises on failure
Transport = Callable[[str, str, str], None]


class EmailNotConfigured(RuntimeError):
    pass


def queue_email(db: Session, to_email: str, subject: str, html: str, kind: str = "", related_id: str = "") -> str:
    """Write an outbox row. Body is stored so the worker can retry on failure."""
    eid = str(uuid.uuid4())
    db.add(
        EmailLog(
            id=eid,
            to_email=to_email,
            subject=subject,
            body=html,
            kind=kind,
            related_id=related_id or "",
            status="queued",
        )
    )
    db.commit()
    return eid


def deliver(db: Session, email_id: str, transport: Transport | None = None) -> bool:
    """Send one outbox row and record the outcome on it. Never raises for send failures."""
    log = db.get(EmailLog, email_id)
    if not log:
        logger.warning("Email %s not found in outbox", email_id)
        return False
    if log.status == "sent":
        return True
    send = transport or send_email
    log.attempts = (log.attempts or 0) + 1
    try:
        send(log.to_email, log.subject, log.body or "")
    except Exception as e:
        # any transport error (smtplib, requests, not configured) leaves the row for process_pending_emails
        log.status = "failed"
        log.error = str(e)[:1000]
        db.commit()
        logger.warning("Email %s (%s) to %s failed: %s", log.id, log.kind, log.to_email, e)
        return False
    log.status = "sent"
    log.error = None
    log.sent_at = datetime.now(timezone.utc)
    db.commit()
    logger.info("Email %s (%s) sent to %s", log.id, log.kind, log.to_email)
    return True


def send_email(to_email: str, subject: str, html: str):
    """Send email via SendGrid if configured, otherwise SMTP (MailHog recommended for local)."""
    if not settings.EMAIL_ENABLED:
        raise EmailNotConfigured("Email not configured")

    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, html)
        return

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content("This message requires an HTML capable email client.")
    msg.add_alternative(html, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_STARTTLS:
            smtp.starttls()
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, html: str):
    from_email = settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": from_email, "name": settings.APP_NAME},
        "subject": subject,
        "content": [{"type": "text/html", "value": html}],
    }
    r = requests.post(
        "https://api.sendgrid.com/v3/mail/send",
        json=payload,
        headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"SendGrid error {r.status_code}: {r.text}")


def process_pending_emails(db: Session, limit: int = 50, transport: Transport | None = None) -> dict:
    """Process up to `limit` queued or failed emails; retry send and update status. Returns counts."""
    pending = (
        db.query(EmailLog)
        .filter(EmailLog.status.in_(["queued", "failed"]), EmailLog.body.isnot(None), EmailLog.body != "")
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent, failed = 0, 0
    for log in pending:
        if deliver(db, log.id, transport):
            sent += 1
        else:
            failed += 1
    return {"processed": len(pending), "sent": sent, "failed": failed}
