import logging
import uuid
from datetime import timezone
from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_notifier, require_admin
from app.core.errors import NotFoundError, ValidationError
from app.core.security import Credential
from app.models.booking import Booking
from app.models.dependant import Dependant
from app.models.review import Review
from app.models.tour import Tour
from app.models.user import User
from app.schemas.application import ApplicationsAction, ApplicationStatusUpdate
from app.schemas.booking import AdminBookingUpdate
from app.schemas.contact import UserRoleUpdate
from app.schemas.review import ReviewStatusUpdate
from app.schemas.tour import TourIn, TourPatch
from app.services import application_service, lifecycle
from app.services.booking_service import get_booking
from app.services.notification_service import NotificationKind, Notifier
from app.services.payload_service import (
    booking_out,
    dependant_out,
    review_out,
    tour_out,
    user_application_out,
    user_out,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])

ROLES = ("user", "admin")

# request field -> column
_TOUR_FIELDS = {
    "title": "title",
    "category": "category",
    "image": "image",
    "packageType": "package_type",
    "departure": "departure",
    "accommodation": "accommodation",
    "dates": "dates",
    "price": "price",
    "isComing": "is_coming",
    "description": "description",
    "itinerary": "itinerary",
    "gallery": "gallery",
    "inclusions": "inclusions",
    "exclusions": "exclusions",
    "status": "status",
}


def _apply_tour(t: Tour, data: dict) -> None:
    for field, value in data.items():
        setattr(t, _TOUR_FIELDS[field], value)


def _get_tour(db: Session, tour_id: str) -> Tour:
    t = db.get(Tour, tour_id)
    if not t:
        raise NotFoundError("Tour not found")
    return t


def _notify_status_change(notifier: Notifier, db: Session, booking: Booking, applicant_name: str,
                          app_type: str, status: str, related_id: str) -> None:
    tour = db.get(Tour, booking.tour_id)
    result = notifier.notify(
        NotificationKind.APPLICATION_STATUS,
        booking.customer_email,
        {
            "customerName": booking.customer_name,
            "applicationType": app_type,
            "applicationName": applicant_name,
            "status": status,
            "tourTitle": tour.title if tour else "",
            "bookingId": booking.id,
        },
        related_id=related_id,
    )
    if not result.success:
        logger.warning("Status email for %s %s not delivered: %s", app_type, related_id, result.error)


@router.get("/admin/stats")
def stats(db: Session = Depends(get_db), admin: Credential = Depends(require_admin)):
    return {
        "success": True,
        "data": {
            "totalTours": db.query(func.count(Tour.id)).scalar(),
            "totalBookings": db.query(func.count(Booking.id)).scalar(),
            "pendingBookings": db.query(func.count(Booking.id)).filter(Booking.booking_status == "pending").scalar(),
            "totalUsers": db.query(func.count(User.id)).scalar(),
            "totalReviews": db.query(func.count(Review.id)).scalar(),
        },
    }


@router.get("/admin/users")
def list_users(role: str | None = None, q: str | None = None, db: Session = Depends(get_db),
               admin: Credential = Depends(require_admin)):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if q:
        ql = f"%{q.lower()}%"
        query = query.filter(func.lower(User.email).like(ql) | func.lower(User.name).like(ql))
    users = query.order_by(User.created_at.desc()).all()
    return {"success": True, "data": [user_out(u) for u in users]}


@router.patch("/admin/users/{user_id}")
def update_user(user_id: str, body: UserRoleUpdate, db: Session = Depends(get_db),
                admin: Credential = Depends(require_admin)):
    u = db.get(User, user_id)
    if not u:
        raise NotFoundError("User not found")
    if body.role not in ROLES:
        raise ValidationError("invalid role")
    u.role = body.role
    db.commit()
    logger.info("User %s role set to %s by %s", u.id, u.role, admin.user_id)
    return {"success": True, "data": user_out(u)}


@router.get("/admin/tours")
def list_tours(status: str | None = None, db: Session = Depends(get_db), admin: Credential = Depends(require_admin)):
    q = db.query(Tour)
    if status:
        q = q.filter(Tour.status == status)
    return {"success": True, "data": [tour_out(t) for t in q.order_by(Tour.created_at.desc()).all()]}


@router.post("/admin/tours", status_code=201)
def create_tour(body: TourIn, db: Session = Depends(get_db), admin: Credential = Depends(require_admin)):
    t = Tour(id=str(uuid.uuid4()))
    _apply_tour(t, body.model_dump())
    db.add(t)
    db.commit()
    return {"success": True, "data": tour_out(t)}


@router.get("/admin/tours/{tour_id}")
def get_tour(tour_id: str, db: Session = Depends(get_db), admin: Credential = Depends(require_admin)):
    return {"success": True, "data": tour_out(_get_tour(db, tour_id))}


@router.put("/admin/tours/{tour_id}")
def update_tour(tour_id: str, body: TourPatch, db: Session = Depends(get_db),
                admin: Credential = Depends(require_admin)):
    t = _get_tour(db, tour_id)
    _apply_tour(t, body.model_dump(exclude_unset=True))
    db.commit()
    return {"success": True, "data": tour_out(t)}


@router.delete("/admin/tours/{tour_id}")
def delete_tour(tour_id: str, db: Session = Depends(get_db), admin: Credential = Depends(require_admin)):
    t = _get_tour(db, tour_id)
    if db.query(Booking.id).filter(Booking.tour_id == t.id).first():
        raise ValidationError("Tour has bookings; archive it instead")
    db.query(Review).filter(Review.tour_id == t.id).delete()
    db.delete(t)
    db.commit()
    return {"success": True, "message": "Tour deleted"}


@router.get("/admin/bookings")
def list_bookings(bookingStatus: str | None = None, paymentStatus: str | None = None,
                  db: Session = Depends(get_db), admin: Credential = Depends(require_admin)):
    q = db.query(Booking)
    if bookingStatus:
        q = q.filter(Booking.booking_status == bookingStatus)
    if paymentStatus:
        q = q.filter(Booking.payment_status == paymentStatus)
    bookings = q.order_by(Booking.created_at.desc()).all()
    tours = {t.id: t for t in db.query(Tour).filter(Tour.id.in_({b.tour_id for b in bookings})).all()} if bookings else {}
    return {"success": True, "data": [booking_out(b, tours.get(b.tour_id), include_application=False) for b in bookings]}


@router.patch("/admin/bookings/{booking_id}")
def update_booking(booking_id: str, body: AdminBookingUpdate, db: Session = Depends(get_db),
                   admin: Credential = Depends(require_admin)):
    b = get_booking(db, booking_id)
    # an invalid value raises before commit, so nothing is persisted
    if body.bookingStatus is not None:
        lifecycle.set_booking_status(b, body.bookingStatus)
    if body.paymentStatus is not None:
        lifecycle.set_payment_status(b, body.paymentStatus)
    db.commit()
    return {"success": True, "data": booking_out(b, db.get(Tour, b.tour_id))}


@router.patch("/admin/bookings/{booking_id}/user-application-status")
def set_user_application_status(booking_id: str, body: ApplicationStatusUpdate, db: Session = Depends(get_db),
                                admin: Credential = Depends(require_admin),
                                notifier: Notifier = Depends(get_notifier)):
    b = get_booking(db, booking_id)
    result = lifecycle.set_application_status(db, b, body.status, admin.user_id)
    if result.changed:
        _notify_status_change(notifier, db, b, b.customer_name, "user", result.new_status, b.id)
    return {
        "success": True,
        "message": f"User application status updated to {result.new_status}",
        "data": booking_out(b, db.get(Tour, b.tour_id)),
    }


@router.get("/admin/bookings/{booking_id}/applications")
def booking_applications(booking_id: str, db: Session = Depends(get_db), admin: Credential = Depends(require_admin)):
    b = get_booking(db, booking_id)
    deps = db.query(Dependant).filter(Dependant.booking_id == b.id).order_by(Dependant.created_at.asc()).all()
    return {
        "success": True,
        "data": {
            "booking": {
                "id": b.id,
                "customerName": b.customer_name,
                "customerEmail": b.customer_email,
                "applicationClosed": bool(b.application_closed),
                "applicationClosedAt": b.application_closed_at.isoformat() if b.application_closed_at else None,
            },
            "userApplication": user_application_out(b),
            "dependantApplications": [dependant_out(d) for d in deps],
        },
    }


@router.patch("/admin/bookings/{booking_id}/applications")
def close_or_reopen(booking_id: str, body: ApplicationsAction, db: Session = Depends(get_db),
                    admin: Credential = Depends(require_admin)):
    b = get_booking(db, booking_id)
    if body.action not in ("close", "reopen"):
        raise ValidationError('Invalid action. Use "close" or "reopen"')
    application_service.set_applications_closed(db, b, body.action == "close", admin.user_id)
    return {
        "success": True,
        "message": f"Application process {'closed' if body.action == 'close' else 'reopened'} successfully",
        "data": booking_out(b, db.get(Tour, b.tour_id)),
    }


@router.patch("/admin/dependants/{dependant_id}/application-status")
def set_dependant_application_status(dependant_id: str, body: ApplicationStatusUpdate,
                                     db: Session = Depends(get_db),
                                     admin: Credential = Depends(require_admin),
                                     notifier: Notifier = Depends(get_notifier)):
    d = db.get(Dependant, dependant_id)
    if not d:
        raise NotFoundError("Dependant not found")
    result = lifecycle.set_application_status(db, d, body.status, admin.user_id)
    if result.changed:
        b = db.get(Booking, d.booking_id)
        if b:
            _notify_status_change(notifier, db, b, d.name, "dependant", result.new_status, d.id)
    return {
        "success": True,
        "message": f"Application status updated to {result.new_status}",
        "data": dependant_out(d),
    }


@router.get("/admin/applications")
def list_applications(db: Session = Depends(get_db), admin: Credential = Depends(require_admin)):
    bookings = (
        db.query(Booking)
        .filter(Booking.payment_status == "paid", Booking.user_application_submitted.is_(True))
        .all()
    )
    deps = db.query(Dependant).filter(Dependant.application_submitted.is_(True)).all()
    booking_ids = {b.id for b in bookings} | {d.booking_id for d in deps}
    by_id = {b.id: b for b in db.query(Booking).filter(Booking.id.in_(booking_ids)).all()} if booking_ids else {}
    tour_ids = {b.tour_id for b in by_id.values()}
    tours = {t.id: t for t in db.query(Tour).filter(Tour.id.in_(tour_ids)).all()} if tour_ids else {}

    def tour_title(b: Booking | None) -> str:
        t = tours.get(b.tour_id) if b else None
        return t.title if t else "Unknown Tour"

    apps = [{
        "id": b.id,
        "type": "user",
        "bookingId": b.id,
        "applicantName": b.customer_name,
        "customerEmail": b.customer_email,
        "packageType": b.package_type or "standard",
        "tourTitle": tour_title(b),
        "status": b.user_application_status or "pending",
        "submittedAt": b.user_application_submitted_at,
        "formData": dict(b.user_application_form or {}),
    } for b in bookings]
    for d in deps:
        b = by_id.get(d.booking_id)
        apps.append({
            "id": d.id,
            "type": "dependant",
            "bookingId": d.booking_id,
            "dependantId": d.id,
            "applicantName": d.name,
            "customerEmail": b.customer_email if b else "N/A",
            "packageType": (b.package_type if b else None) or "standard",
            "tourTitle": tour_title(b),
            "status": d.application_status or "pending",
            "submittedAt": d.application_submitted_at,
            "formData": dict(d.application_form or {}),
        })

    def sort_key(a: dict) -> float:
        ts = a["submittedAt"]
        if not ts:
            return 0.0
        return (ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)).timestamp()

    apps.sort(key=sort_key, reverse=True)
    for a in apps:
        a["submittedAt"] = a["submittedAt"].isoformat() if a["submittedAt"] else None
    return {
        "success": True,
        "data": apps,
        "total": len(apps),
        "userApplications": len(bookings),
        "dependantApplications": len(deps),
    }


@router.get("/admin/applications/dependants/{dependant_id}")
def get_dependant_application(dependant_id: str, db: Session = Depends(get_db),
                              admin: Credential = Depends(require_admin)):
    d = db.get(Dependant, dependant_id)
    if not d:
        raise NotFoundError("Dependant not found")
    b = db.get(Booking, d.booking_id)
    return {
        "success": True,
        "data": {
            "dependant": dependant_out(d),
            "booking": booking_out(b, db.get(Tour, b.tour_id), include_application=False) if b else None,
        },
    }


@router.get("/admin/reviews")
def list_reviews(status: str | None = None, db: Session = Depends(get_db), admin: Credential = Depends(require_admin)):
    q = db.query(Review)
    if status:
        q = q.filter(Review.status == status)
    return {"success": True, "data": [review_out(r) for r in q.order_by(Review.created_at.desc()).all()]}


@router.patch("/admin/reviews/{review_id}")
def set_review_status(review_id: str, body: ReviewStatusUpdate, db: Session = Depends(get_db),
                      admin: Credential = Depends(require_admin)):
    r = db.get(Review, review_id)
    if not r:
        raise NotFoundError("Review not found")
    lifecycle.set_review_status(r, body.status)
    db.commit()
    return {"success": True, "data": review_out(r)}


@router.delete("/admin/reviews/{review_id}")
def delete_review(review_id: str, db: Session = Depends(get_db), admin: Credential = Depends(require_admin)):
    r = db.get(Review, review_id)
    if not r:
        raise NotFoundError("Review not found")
    db.delete(r)
    db.commit()
    return {"success": True, "message": "Review deleted"}
