"""Customer and admin emails.

``Notifier.notify`` renders a fixed template, writes the outbox row in its own
session and hands it to delivery (inline or the Celery worker). It never raises:
callers have already committed their own work and only log a failed result.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from html import escape
from typing import Callable

from app.core.config import settings
from app.db.session import Database
from app.models.email_log import EmailLog
from app.services import email_service

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    BOOKING_CONFIRMATION = "booking_confirmation"
    PAYMENT_CONFIRMATION = "payment_confirmation"
    APPLICATION_STATUS = "application_status"
    PASSWORD_RESET = "password_reset"
    SIGNUP_WELCOME = "signup_welcome"
    ADMIN_ENQUIRY = "admin_enquiry"
    ENQUIRY_ACKNOWLEDGEMENT = "enquiry_acknowledgement"
    ADMIN_APPLICATION_SUBMITTED = "admin_application_submitted"


ADMIN_KINDS = frozenset({NotificationKind.ADMIN_ENQUIRY, NotificationKind.ADMIN_APPLICATION_SUBMITTED})

STATUS_MESSAGES = {
    "accepted": (
        "Application Accepted!",
        "Congratulations! Your application has been accepted. We will contact you with further details soon.",
    ),
    "rejected": (
        "Application Status Update",
        "Your application has been reviewed. Unfortunately, it was not accepted at this time. "
        "Please contact us for more information.",
    ),
    "under_review": (
        "Application Under Review",
        "Your application is currently under review by our team. We will notify you once a decision has been made.",
    ),
    "submitted": (
        "Application Submitted",
        "Your application has been successfully submitted and is awaiting review.",
    ),
}


@dataclass(frozen=True)
class NotifyResult:
    success: bool
    error: str | None = None
    email_id: str | None = None


def _money(value) -> str:
    try:
        return f"${float(value):,.2f}"
    except (TypeError, ValueError):
        return f"${value}"


def _layout(heading: str, body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color: #1e40af;">{escape(heading)}</h2>'
        f"{body}"
        "<p>Best regards,<br>Naasir Travel Team</p>"
        "</div>"
    )


def _details(title: str, rows: list[tuple[str, object]]) -> str:
    lines = "".join(f"<p><strong>{escape(k)}:</strong> {escape(str(v))}</p>" for k, v in rows)
    return (
        '<div style="background: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">'
        f'<h3 style="margin-top: 0;">{escape(title)}</h3>{lines}</div>'
    )


def _p(text: str) -> str:
    return f"<p>{escape(text)}</p>"


def _link(url: str, label: str) -> str:
    return f'<p><a href="{escape(url, quote=True)}" style="color: #1e40af;">{escape(label)}</a></p>'


def render(kind: NotificationKind, payload: dict) -> tuple[str, str]:
    """Return (subject, html) for a notification kind. Missing payload keys render as empty."""
    p = {k: ("" if v is None else v) for k, v in payload.items()}
    get = lambda key, default="": p.get(key, default)  # noqa: E731
    base = settings.CLIENT_BASE_URL.rstrip("/")

    if kind == NotificationKind.BOOKING_CONFIRMATION:
        body = _p(f"Dear {get('customerName')},") + _p(
            "Thank you for booking with Naasir Travel! Your booking has been received."
        ) + _details("Booking Details", [
            ("Booking ID", get("bookingId")),
            ("Tour", get("tourTitle")),
            ("Date", get("bookingDate")),
            ("Number of Travelers", get("numberOfTravelers")),
            ("Total Amount", _money(get("totalAmount", 0))),
        ]) + _p("We will send you more details about your tour closer to the departure date.")
        return "Booking Confirmation - Naasir Travel", _layout("Booking Confirmation", body)

    if kind == NotificationKind.PAYMENT_CONFIRMATION:
        body = _p(f"Dear {get('customerName')},") + _p("We have received your payment successfully.") + _details(
            "Payment Details", [("Booking ID", get("bookingId")), ("Amount Paid", _money(get("amount", 0)))]
        ) + _p("Thank you for your payment!")
        return "Payment Confirmation - Naasir Travel", _layout("Payment Confirmed", body)

    if kind == NotificationKind.APPLICATION_STATUS:
        status = str(get("status"))
        title, message = STATUS_MESSAGES.get(
            status, ("Application Status Update", f"Your application status has been updated to: {status}")
        )
        body = _p(f"Dear {get('customerName')},") + _p(message) + _details("Application Details", [
            ("Applicant", get("applicationName")),
            ("Tour", get("tourTitle")),
            ("Status", status.replace("_", " ").title()),
        ]) + _link(f"{base}/dashboard/bookings/{get('bookingId')}", "View your booking")
        return f"{title} - Naasir Travel", _layout(title, body)

    if kind == NotificationKind.PASSWORD_RESET:
        link = f"{base}/reset-password?token={get('resetToken')}"
        body = _p(f"Dear {get('userName')},") + _p(
            "We received a request to reset your password for your Naasir Travel account."
        ) + _link(link, "Reset Password") + _p(
            "This link will expire in 1 hour. If you did not request a password reset, please ignore this email."
        )
        return "Password Reset Request - Naasir Travel", _layout("Password Reset Request", body)

    if kind == NotificationKind.SIGNUP_WELCOME:
        body = _p(f"Dear {get('userName')},") + _p(
            "Thank you for creating an account with Naasir Travel. You can now book tours, "
            "manage your bookings and submit your travel applications online."
        ) + _link(f"{base}/packages", "Browse our packages")
        return "Welcome to Naasir Travel!", _layout("Welcome to Naasir Travel!", body)

    if kind == NotificationKind.ADMIN_APPLICATION_SUBMITTED:
        app_type = get("applicationType", "user")
        if app_type == "user":
            link = f"{base}/admin/applications?bookingId={get('bookingId')}"
        else:
            link = f"{base}/admin/applications/dependant/{get('applicationId')}"
        label = "User" if app_type == "user" else "Dependant"
        body = _p(f"A new {app_type} application has been submitted and requires your review.") + _details(
            "Application Details", [
                ("Customer", get("customerName")),
                ("Email", get("customerEmail")),
                ("Tour", get("tourTitle")),
                ("Booking ID", get("bookingId")),
                ("Application ID", get("applicationId")),
            ]
        ) + _link(link, "Review application")
        return (
            f"New {label} Application Submitted - {get('customerName')}",
            _layout("New Application Submitted", body),
        )

    if kind == NotificationKind.ADMIN_ENQUIRY:
        body = _details("Enquiry", [
            ("Name", get("name")),
            ("Email", get("email")),
            ("Phone", get("phone") or "Not provided"),
            ("Subject", get("subject")),
        ]) + _p(str(get("message")))
        return f"New Enquiry: {get('subject')}", _layout("New Enquiry Received", body)

    if kind == NotificationKind.ENQUIRY_ACKNOWLEDGEMENT:
        body = _p(f"Dear {get('name')},") + _p(
            "Thank you for contacting Naasir Travel. We have received your enquiry and will get back to you shortly."
        ) + _details("Your Enquiry", [("Subject", get("subject"))]) + _p(str(get("message")))
        return "Thank you for your enquiry - Naasir Travel", _layout("Thank You for Your Enquiry", body)

    raise ValueError(f"Unknown notification kind {kind!r}")


def _enqueue_worker_delivery(email_id: str) -> None:
    from app.tasks.jobs import deliver_email

    deliver_email.delay(email_id)


class Notifier:
    def __init__(self, database: Database, delivery_mode: str | None = None,
                 transport: email_service.Transport | None = None,
                 enqueue: Callable[[str], None] | None = None):
        self.database = database
        self.delivery_mode = (delivery_mode or settings.EMAIL_DELIVERY_MODE or "inline").lower()
        self.transport = transport
        self.enqueue = enqueue or _enqueue_worker_delivery

    def recipient_for(self, kind: NotificationKind, recipient: str | None) -> str | None:
        if kind in ADMIN_KINDS:
            return settings.ADMIN_EMAIL
        return recipient

    def notify(self, kind: NotificationKind, recipient: str | None, payload: dict,
               related_id: str = "") -> NotifyResult:
        to = self.recipient_for(kind, recipient)
        if not to:
            logger.warning("No recipient for %s notification", kind.value)
            return NotifyResult(False, "No recipient")
        try:
            subject, html = render(kind, payload)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Failed to render %s notification: %s", kind.value, e)
            return NotifyResult(False, str(e))

        db = self.database.session()
        try:
            email_id = email_service.queue_email(db, to, subject, html, kind=kind.value, related_id=related_id)
            if self.delivery_mode == "worker":
                try:
                    self.enqueue(email_id)
                except Exception as e:
                    # broker down; row stays queued for the beat job
                    logger.warning("Could not enqueue email %s: %s", email_id, e)
                    return NotifyResult(False, str(e), email_id)
                return NotifyResult(True, None, email_id)
            if email_service.deliver(db, email_id, self.transport):
                return NotifyResult(True, None, email_id)
            log = db.get(EmailLog, email_id)
            return NotifyResult(False, (log.error if log else None) or "Delivery failed", email_id)
        except Exception as e:
            logger.exception("Notification %s to %s failed", kind.value, to)
            db.rollback()
            return NotifyResult(False, str(e))
        finally:
            db.close()
