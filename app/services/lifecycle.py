"""Status transitions for applications, bookings, payments and reviews.

Every status write in the app goes through here so that membership (and, for
applications, the configured transition policy) is checked in one place.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ValidationError
from app.models.booking import Booking
from app.models.dependant import Dependant
from app.models.review import Review

logger = logging.getLogger(__name__)


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class TransitionPolicy(str, Enum):
    PERMISSIVE = "permissive"
    FORWARD_ONLY = "forward_only"


BOOKING_STATUSES = ("pending", "confirmed", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")
REVIEW_STATUSES = ("pending", "approved", "rejected")

FINAL_APPLICATION_STATUSES = frozenset({ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED})

_FORWARD = {
    ApplicationStatus.PENDING: {ApplicationStatus.SUBMITTED},
    ApplicationStatus.SUBMITTED: {ApplicationStatus.UNDER_REVIEW},
    ApplicationStatus.UNDER_REVIEW: {ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED},
    ApplicationStatus.ACCEPTED: set(),
    ApplicationStatus.REJECTED: set(),
}


@dataclass(frozen=True)
class _ApplicationFields:
    status: str
    reviewed_at: str
    reviewed_by: str


# Booking carries the lead traveller's application, Dependant its own.
_FIELDS = {
    Booking: _ApplicationFields(
        "user_application_status", "user_application_reviewed_at", "user_application_reviewed_by"
    ),
    Dependant: _ApplicationFields(
        "application_status", "application_reviewed_at", "application_reviewed_by"
    ),
}


@dataclass
class TransitionResult:
    entity: Any
    old_status: str
    new_status: str
    changed: bool


def _fields_for(entity) -> _ApplicationFields:
    try:
        return _FIELDS[type(entity)]
    except KeyError:
        raise TypeError(f"{type(entity).__name__} has no application status")


def application_status_of(entity) -> str:
    return getattr(entity, _fields_for(entity).status) or ApplicationStatus.PENDING.value


def parse_application_status(value) -> ApplicationStatus:
    try:
        return ApplicationStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ApplicationStatus)
        raise ValidationError(f"Valid status is required. Must be one of: {allowed}")


def current_policy() -> TransitionPolicy:
    try:
        return TransitionPolicy(settings.APPLICATION_TRANSITION_POLICY)
    except ValueError:
        logger.warning("Unknown APPLICATION_TRANSITION_POLICY %r, using permissive",
                       settings.APPLICATION_TRANSITION_POLICY)
        return TransitionPolicy.PERMISSIVE


def check_transition(old: ApplicationStatus, new: ApplicationStatus, policy: TransitionPolicy) -> None:
    if policy == TransitionPolicy.PERMISSIVE or old == new:
        return
    if new not in _FORWARD[old]:
        raise ValidationError(f"Cannot move application from {old.value} to {new.value}")


def set_application_status(db: Session, entity, new_status, reviewer_id: str | None,
                           policy: TransitionPolicy | None = None) -> TransitionResult:
    """Set the application status on a Booking (lead traveller) or Dependant.

    Raises ValidationError, leaving the entity untouched, when ``new_status`` is
    not a status or the policy forbids the move. ``changed`` is False for a
    same-status write; the reviewed fields are refreshed either way.
    """
    fields = _fields_for(entity)
    target = parse_application_status(new_status)
    old_value = application_status_of(entity)
    try:
        old = ApplicationStatus(old_value)
    except ValueError:
        # legacy rows; treat as pending so forward_only still has a starting point
        old = ApplicationStatus.PENDING
    check_transition(old, target, policy or current_policy())

    setattr(entity, fields.status, target.value)
    setattr(entity, fields.reviewed_at, datetime.now(timezone.utc))
    setattr(entity, fields.reviewed_by, reviewer_id)
    db.commit()

    changed = old_value != target.value
    if changed:
        logger.info("%s %s application %s -> %s by %s", type(entity).__name__, entity.id,
                    old_value, target.value, reviewer_id)
    return TransitionResult(entity=entity, old_status=old_value, new_status=target.value, changed=changed)


def is_application_final(entity) -> bool:
    return application_status_of(entity) in {s.value for s in FINAL_APPLICATION_STATUSES}


def _check_member(value: str, allowed: tuple[str, ...], label: str) -> None:
    if value not in allowed:
        raise ValidationError(f"Invalid {label}. Must be one of: {', '.join(allowed)}")


def set_booking_status(booking: Booking, status: str) -> None:
    _check_member(status, BOOKING_STATUSES, "booking status")
    booking.booking_status = status


def set_payment_status(booking: Booking, status: str) -> None:
    _check_member(status, PAYMENT_STATUSES, "payment status")
    booking.payment_status = status


def mark_booking_paid(booking: Booking, payment_intent_id: str | None = None) -> None:
    set_payment_status(booking, "paid")
    set_booking_status(booking, "confirmed")
    if payment_intent_id:
        booking.payment_intent_id = payment_intent_id


def mark_booking_payment_failed(booking: Booking) -> None:
    set_payment_status(booking, "failed")


def set_review_status(review: Review, status: str) -> None:
    _check_member(status, REVIEW_STATUSES, "review status")
    review.status = status
