"""Ownership / role checks.

Handlers compose their own checks: admin-only endpoints pass ``required_role``,
owner-or-admin endpoints pass the resource's ``ResourceOwner``.
"""
from dataclasses import dataclass
from typing import NamedTuple, Optional

from app.core.errors import AuthorizationError
from app.core.security import Credential

ADMIN = "admin"


class Decision(NamedTuple):
    allowed: bool
    reason: str = ""


ALLOW = Decision(True)


@dataclass(frozen=True)
class ResourceOwner:
    user_id: Optional[str] = None
    # only consulted when the resource has no user reference (guest bookings)
    customer_email: Optional[str] = None


def authorize(credential: Credential, required_role: str | None = None,
              owner: ResourceOwner | None = None) -> Decision:
    if required_role and credential.role != required_role:
        return Decision(False, f"{required_role} role required")
    if owner is None or credential.role == ADMIN:
        return ALLOW
    if owner.user_id and owner.user_id == credential.user_id:
        return ALLOW
    if (
        not owner.user_id
        and owner.customer_email
        and credential.email
        and owner.customer_email.strip().lower() == credential.email.strip().lower()
    ):
        return ALLOW
    return Decision(False, "Access denied")


def enforce(decision: Decision) -> None:
    if not decision.allowed:
        raise AuthorizationError(decision.reason or "Forbidden")


def booking_owner(booking) -> ResourceOwner:
    return ResourceOwner(user_id=booking.user_id, customer_email=booking.customer_email)


def user_owner(user_id: str) -> ResourceOwner:
    return ResourceOwner(user_id=user_id)
