import logging
import uuid
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.core.security import Credential
from app.models.booking import Booking
from app.models.tour import Tour
from app.schemas.booking import BookingCreate
from app.services import lifecycle
from app.services.payment_service import PaymentGateway, PaymentIntent, to_minor_units

logger = logging.getLogger(__name__)


def get_booking(db: Session, booking_id: str) -> Booking:
    b = db.get(Booking, booking_id)
    if not b:
        raise NotFoundError("Booking not found")
    return b


def create_booking(db: Session, data: BookingCreate, credential: Credential | None = None) -> Booking:
    """Guest or signed-in checkout. Nothing is written unless the tour exists."""
    tour = db.get(Tour, data.tour_ref)
    if not tour:
        raise NotFoundError("Tour not found")

    b = Booking(
        id=str(uuid.uuid4()),
        tour_id=tour.id,
        user_id=credential.user_id if credential else None,
        package_type=data.packageType,
        customer_name=data.customerName.strip(),
        customer_email=data.customerEmail.strip().lower(),
        customer_phone=data.customerPhone.strip(),
        number_of_travelers=data.numberOfTravelers,
        total_amount=data.totalAmount,
        payment_status="pending",
        booking_status="pending",
        booking_date=data.bookingDate,
        special_requests=data.specialRequests,
        documents=[],
    )
    db.add(b)
    db.commit()
    logger.info("Booking %s created for tour %s (%s)", b.id, tour.id, "user " + b.user_id if b.user_id else "guest")
    return b


def start_payment(db: Session, gateway: PaymentGateway, booking: Booking) -> PaymentIntent:
    """Open a PaymentIntent for the booking's full total and remember it on the booking."""
    if booking.payment_status == "paid":
        raise ValidationError("Booking is already paid")
    if not booking.total_amount or booking.total_amount <= 0:
        raise ValidationError("Booking has no amount to pay")
    intent = gateway.create_intent(booking.total_amount, {"bookingId": booking.id})
    booking.payment_intent_id = intent.id
    db.commit()
    return intent


def confirm_payment(db: Session, gateway: PaymentGateway, booking: Booking, payment_intent_id: str) -> Booking:
    """Client-side confirmation after Stripe.js completes; re-checks the intent with Stripe.

    The intent must be the one opened for this booking and must cover its total.
    """
    intent = gateway.retrieve_intent(payment_intent_id)
    if intent.id != booking.payment_intent_id and intent.metadata.get("bookingId") != booking.id:
        raise ValidationError("Payment does not belong to this booking")
    if intent.status != "succeeded":
        raise ValidationError("Payment not completed")
    if intent.amount < to_minor_units(booking.total_amount):
        raise ValidationError("Payment does not cover the booking total")
    lifecycle.mark_booking_paid(booking, intent.id)
    db.commit()
    logger.info("Booking %s paid via intent %s", booking.id, intent.id)
    return booking


def apply_payment_event(db: Session, event: dict) -> Booking | None:
    """Apply a verified webhook event. Returns the booking that became paid, if any.

    Unknown event types and unknown bookings are acknowledged and ignored.
    """
    etype = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}
    booking_id = (obj.get("metadata") or {}).get("bookingId")
    if etype not in ("payment_intent.succeeded", "payment_intent.payment_failed"):
        logger.info("Ignoring webhook event %s", etype)
        return None
    booking = db.get(Booking, booking_id) if booking_id else None
    if not booking:
        logger.warning("Webhook %s references unknown booking %r", etype, booking_id)
        return None

    if etype == "payment_intent.succeeded":
        if booking.payment_status == "paid":
            # redelivered event
            logger.info("Booking %s already paid; ignoring %s", booking.id, event.get("id"))
            return None
        lifecycle.mark_booking_paid(booking, obj.get("id"))
        db.commit()
        logger.info("Booking %s marked paid by webhook", booking.id)
        return booking

    lifecycle.mark_booking_payment_failed(booking)
    db.commit()
    logger.info("Booking %s payment failed", booking.id)
    return None
