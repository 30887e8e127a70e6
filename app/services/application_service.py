"""Application forms for the lead traveller (on the booking) and for dependants.

Submission rules shared by both:
- refused while the booking's application process is closed
- refused once the application is accepted or rejected
- the passport must stay valid for at least six months from today
"""
import logging
import random
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.core.security import Credential
from app.models.booking import Booking
from app.models.dependant import Dependant
from app.models.dependant_profile import UserDependantProfile
from app.schemas.application import ApplicationForm
from app.schemas.dependant import DependantCreate
from app.services import lifecycle

logger = logging.getLogger(__name__)

PASSPORT_MIN_VALID_MONTHS = 6


@dataclass
class SubmissionResult:
    entity: Booking | Dependant
    is_new_submission: bool


def generate_application_number(today: date | None = None) -> str:
    """YYMMDD followed by six random digits."""
    today = today or datetime.now(timezone.utc).date()
    return f"{today.strftime('%y%m%d')}{random.randint(100000, 999999)}"


def _unique_application_number(db: Session) -> str:
    for _ in range(10):
        number = generate_application_number()
        taken = (
            db.query(Booking.id).filter(Booking.user_application_number == number).first()
            or db.query(Dependant.id).filter(Dependant.application_number == number).first()
        )
        if not taken:
            return number
    raise RuntimeError("Could not allocate an application number")


def _add_months(d: date, months: int) -> date:
    month = d.month - 1 + months
    year = d.year + month // 12
    month = month % 12 + 1
    # clamp to the last day of the target month
    for day in (d.day, 30, 29, 28):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return date(year, month, 28)


def _parse_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"Invalid date for {field}")


def check_passport_expiry(expiry: str | None, today: date | None = None) -> None:
    if not expiry:
        return
    today = today or datetime.now(timezone.utc).date()
    if _parse_date(expiry, "passportExpiryDate") < _add_months(today, PASSPORT_MIN_VALID_MONTHS):
        raise ValidationError("Passport must be valid at least 6 months from the visa application submission date")


def _check_editable(booking: Booking, entity, check_closed: bool = True) -> None:
    if check_closed and booking.application_closed:
        raise ValidationError("Application process has been closed. Cannot submit application.")
    if lifecycle.is_application_final(entity):
        raise ValidationError("Application has already been reviewed. Cannot modify.")


def _form_dict(form: ApplicationForm, partial: bool) -> dict:
    return form.model_dump(exclude_unset=partial)


def submit_user_application(db: Session, booking: Booking, form: ApplicationForm) -> SubmissionResult:
    _check_editable(booking, booking)
    check_passport_expiry(form.passportExpiryDate)

    if not booking.user_application_number:
        booking.user_application_number = _unique_application_number(db)
    booking.user_application_form = _form_dict(form, partial=False)

    is_new = not booking.user_application_submitted
    if is_new:
        booking.user_application_submitted = True
        booking.user_application_submitted_at = datetime.now(timezone.utc)
        booking.user_application_status = lifecycle.ApplicationStatus.SUBMITTED.value
    db.commit()
    logger.info("User application for booking %s %s", booking.id, "submitted" if is_new else "resubmitted")
    return SubmissionResult(booking, is_new)


def update_user_application(db: Session, booking: Booking, form: ApplicationForm) -> Booking:
    """Merge only the fields present in the request."""
    _check_editable(booking, booking, check_closed=False)
    changes = _form_dict(form, partial=True)
    if "passportExpiryDate" in changes:
        check_passport_expiry(changes["passportExpiryDate"])
    booking.user_application_form = {**(booking.user_application_form or {}), **changes}
    db.commit()
    return booking


def submit_dependant_application(db: Session, dependant: Dependant, booking: Booking,
                                 form: ApplicationForm) -> SubmissionResult:
    _check_editable(booking, dependant)
    check_passport_expiry(form.passportExpiryDate)

    if not dependant.application_number:
        dependant.application_number = _unique_application_number(db)
    data = _form_dict(form, partial=False)
    dependant.application_form = data
    if data.get("passportNumber"):
        dependant.passport_number = data["passportNumber"]
    if data.get("dateOfBirth"):
        dependant.date_of_birth = data["dateOfBirth"]

    is_new = not dependant.application_submitted
    if is_new:
        dependant.application_submitted = True
        dependant.application_submitted_at = datetime.now(timezone.utc)
        dependant.application_status = lifecycle.ApplicationStatus.SUBMITTED.value
    db.commit()
    logger.info("Dependant %s application %s", dependant.id, "submitted" if is_new else "resubmitted")
    return SubmissionResult(dependant, is_new)


def update_dependant_application(db: Session, dependant: Dependant, booking: Booking,
                                 form: ApplicationForm) -> Dependant:
    _check_editable(booking, dependant, check_closed=False)
    changes = _form_dict(form, partial=True)
    if "passportExpiryDate" in changes:
        check_passport_expiry(changes["passportExpiryDate"])
    dependant.application_form = {**(dependant.application_form or {}), **changes}
    db.commit()
    return dependant


def set_applications_closed(db: Session, booking: Booking, closed: bool, admin_id: str | None) -> Booking:
    booking.application_closed = closed
    booking.application_closed_at = datetime.now(timezone.utc) if closed else None
    booking.application_closed_by = admin_id if closed else None
    db.commit()
    logger.info("Applications for booking %s %s by %s", booking.id, "closed" if closed else "reopened", admin_id)
    return booking


def create_dependant(db: Session, booking: Booking, data: DependantCreate, credential: Credential) -> Dependant:
    if booking.booking_status != "confirmed":
        raise ValidationError("Can only add dependants to confirmed bookings")

    name, relationship = data.name, data.relationship
    dob, passport = data.dateOfBirth, data.passportNumber
    form = None
    if data.profileId:
        profile = db.get(UserDependantProfile, data.profileId)
        if not profile or profile.user_id != credential.user_id:
            raise NotFoundError("Dependant profile not found")
        name = name or profile.name
        relationship = relationship or profile.relationship
        dob = dob or profile.date_of_birth
        passport = passport or profile.passport_number
        form = {
            k: v for k, v in {
                "countryOfNationality": profile.country_of_nationality,
                "firstName": profile.first_name,
                "fatherName": profile.father_name,
                "lastName": profile.last_name,
                "gender": profile.gender,
                "maritalStatus": profile.marital_status,
                "dateOfBirth": profile.date_of_birth,
                "countryOfBirth": profile.country_of_birth,
                "cityOfBirth": profile.city_of_birth,
                "profession": profile.profession,
                "passportNumber": profile.passport_number,
            }.items() if v
        }
    if not name or not relationship:
        raise ValidationError("Name and relationship are required")

    d = Dependant(
        id=str(uuid.uuid4()),
        booking_id=booking.id,
        user_id=credential.user_id,
        name=name,
        relationship=relationship,
        date_of_birth=dob,
        passport_number=passport,
        application_form=form,
        documents=[],
        application_status=lifecycle.ApplicationStatus.PENDING.value,
    )
    db.add(d)
    db.commit()
    logger.info("Dependant %s added to booking %s", d.id, booking.id)
    return d


def check_dependant_removable(booking: Booking | None, credential: Credential) -> None:
    if booking and booking.application_closed and not credential.is_admin:
        raise ValidationError("Application process has been closed. Cannot remove dependants.")
