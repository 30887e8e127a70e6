from datetime import date, datetime

from app.models.booking import Booking
from app.models.dependant import Dependant
from app.models.dependant_profile import UserDependantProfile
from app.models.review import Review
from app.models.tour import Tour
from app.models.user import User
from app.services.document_service import documents_by_slot


def _iso(v: datetime | date | None) -> str | None:
    return v.isoformat() if v else None


def user_out(u: User) -> dict:
    return {
        "id": u.id,
        "name": u.name,
        "email": u.email,
        "phone": u.phone,
        "role": u.role,
        "createdAt": _iso(u.created_at),
    }


def tour_out(t: Tour) -> dict:
    return {
        "id": t.id,
        "title": t.title,
        "category": t.category,
        "image": t.image,
        "packageType": t.package_type,
        "departure": t.departure,
        "accommodation": t.accommodation,
        "dates": t.dates,
        "price": t.price,
        "isComing": bool(t.is_coming),
        "description": t.description,
        "itinerary": list(t.itinerary or []),
        "gallery": list(t.gallery or []),
        "inclusions": list(t.inclusions or []),
        "exclusions": list(t.exclusions or []),
        "status": t.status,
        "createdAt": _iso(t.created_at),
        "updatedAt": _iso(t.updated_at),
    }


def tour_summary(t: Tour | None) -> dict | None:
    if not t:
        return None
    return {"id": t.id, "title": t.title, "image": t.image, "dates": t.dates, "price": t.price}


def user_application_out(b: Booking) -> dict:
    return {
        "type": "user",
        "applicationNumber": b.user_application_number,
        "applicationFormData": dict(b.user_application_form or {}),
        "applicationFormSubmitted": bool(b.user_application_submitted),
        "applicationFormSubmittedAt": _iso(b.user_application_submitted_at),
        "applicationStatus": b.user_application_status or "pending",
        "applicationReviewedAt": _iso(b.user_application_reviewed_at),
        "applicationReviewedBy": b.user_application_reviewed_by,
        "documents": {k: v for k, v in documents_by_slot(b).items() if k != "general"},
    }


def booking_out(b: Booking, tour: Tour | None = None, include_application: bool = True) -> dict:
    out = {
        "id": b.id,
        "tour": tour_summary(tour) if tour else b.tour_id,
        "user": b.user_id,
        "packageType": b.package_type,
        "customerName": b.customer_name,
        "customerEmail": b.customer_email,
        "customerPhone": b.customer_phone,
        "numberOfTravelers": b.number_of_travelers,
        "totalAmount": float(b.total_amount or 0),
        "paymentStatus": b.payment_status,
        "paymentIntentId": b.payment_intent_id,
        "bookingStatus": b.booking_status,
        "bookingDate": _iso(b.booking_date),
        "specialRequests": b.special_requests,
        "documents": [d for d in (b.documents or []) if d.get("slot") == "general"],
        "applicationClosed": bool(b.application_closed),
        "applicationClosedAt": _iso(b.application_closed_at),
        "createdAt": _iso(b.created_at),
        "updatedAt": _iso(b.updated_at),
    }
    if include_application:
        out["userApplication"] = user_application_out(b)
    return out


def dependant_out(d: Dependant) -> dict:
    return {
        "id": d.id,
        "bookingId": d.booking_id,
        "user": d.user_id,
        "name": d.name,
        "relationship": d.relationship,
        "dateOfBirth": d.date_of_birth,
        "passportNumber": d.passport_number,
        "applicationNumber": d.application_number,
        "applicationFormData": dict(d.application_form or {}),
        "applicationFormSubmitted": bool(d.application_submitted),
        "applicationFormSubmittedAt": _iso(d.application_submitted_at),
        "applicationStatus": d.application_status or "pending",
        "applicationReviewedAt": _iso(d.application_reviewed_at),
        "applicationReviewedBy": d.application_reviewed_by,
        "documents": documents_by_slot(d),
        "createdAt": _iso(d.created_at),
    }


def profile_out(p: UserDependantProfile) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "relationship": p.relationship,
        "dateOfBirth": p.date_of_birth,
        "passportNumber": p.passport_number,
        "countryOfNationality": p.country_of_nationality,
        "firstName": p.first_name,
        "fatherName": p.father_name,
        "lastName": p.last_name,
        "gender": p.gender,
        "maritalStatus": p.marital_status,
        "countryOfBirth": p.country_of_birth,
        "cityOfBirth": p.city_of_birth,
        "profession": p.profession,
        "createdAt": _iso(p.created_at),
    }


def review_out(r: Review, tour: Tour | None = None) -> dict:
    return {
        "id": r.id,
        "tour": tour_summary(tour) if tour else r.tour_id,
        "user": r.user_id,
        "userName": r.user_name,
        "rating": r.rating,
        "comment": r.comment,
        "status": r.status,
        "createdAt": _iso(r.created_at),
    }
