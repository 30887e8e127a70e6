import logging
from typing import List
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy import or_, and_
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_credential, get_notifier, get_optional_credential, get_payments, get_storage
from app.core.access import authorize, booking_owner, enforce
from app.core.errors import ValidationError
from app.core.security import Credential
from app.models.booking import Booking
from app.models.dependant import Dependant
from app.models.tour import Tour
from app.schemas.application import ApplicationForm
from app.schemas.booking import BookingCreate, ConfirmPaymentRequest
from app.schemas.dependant import DependantCreate
from app.services import application_service, document_service
from app.services.booking_service import confirm_payment, create_booking, get_booking
from app.services.document_service import DocumentSlot
from app.services.notification_service import NotificationKind, Notifier
from app.services.payload_service import booking_out, dependant_out, user_application_out
from app.services.payment_service import PaymentGateway
from app.services.storage_service import ObjectStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings"])

USER_DOCUMENT_SLOTS = (
    DocumentSlot.PERSONAL_PASSPORT_PICTURE,
    DocumentSlot.INTERNATIONAL_PASSPORT,
    DocumentSlot.PASSPORT_PHOTO,
    DocumentSlot.SUPPORTING_DOCUMENT,
)


def owned_booking(db: Session, booking_id: str, credential: Credential) -> Booking:
    b = get_booking(db, booking_id)
    enforce(authorize(credential, owner=booking_owner(b)))
    return b


def _read_upload(f: UploadFile) -> bytes:
    return f.file.read()


@router.post("/bookings", status_code=201)
def create(body: BookingCreate, db: Session = Depends(get_db),
           credential: Credential | None = Depends(get_optional_credential),
           notifier: Notifier = Depends(get_notifier)):
    b = create_booking(db, body, credential)
    tour = db.get(Tour, b.tour_id)
    result = notifier.notify(
        NotificationKind.BOOKING_CONFIRMATION,
        b.customer_email,
        {
            "customerName": b.customer_name,
            "tourTitle": tour.title if tour else "",
            "bookingDate": b.booking_date.isoformat(),
            "numberOfTravelers": b.number_of_travelers,
            "totalAmount": b.total_amount,
            "bookingId": b.id,
        },
        related_id=b.id,
    )
    if not result.success:
        logger.warning("Booking confirmation for %s not delivered: %s", b.id, result.error)
    return {"success": True, "data": booking_out(b, tour)}


@router.get("/bookings")
def list_bookings(userId: str | None = None, db: Session = Depends(get_db),
                  credential: Credential = Depends(get_credential)):
    q = db.query(Booking)
    if credential.is_admin:
        if userId:
            q = q.filter(Booking.user_id == userId)
    else:
        # own bookings, plus guest bookings made with the same email
        q = q.filter(or_(
            Booking.user_id == credential.user_id,
            and_(Booking.user_id.is_(None), Booking.customer_email == credential.email),
        ))
    bookings = q.order_by(Booking.created_at.desc()).all()
    tours = {t.id: t for t in db.query(Tour).filter(Tour.id.in_({b.tour_id for b in bookings})).all()} if bookings else {}
    return {"success": True, "data": [booking_out(b, tours.get(b.tour_id), include_application=False) for b in bookings]}


@router.get("/bookings/{booking_id}")
def get_one(booking_id: str, db: Session = Depends(get_db), credential: Credential = Depends(get_credential)):
    b = owned_booking(db, booking_id, credential)
    return {"success": True, "data": booking_out(b, db.get(Tour, b.tour_id))}


@router.post("/bookings/{booking_id}/confirm")
def confirm(booking_id: str, body: ConfirmPaymentRequest, db: Session = Depends(get_db),
            payments: PaymentGateway = Depends(get_payments)):
    b = get_booking(db, booking_id)
    confirm_payment(db, payments, b, body.paymentIntentId)
    return {"success": True, "data": booking_out(b, db.get(Tour, b.tour_id))}


@router.post("/bookings/{booking_id}/documents")
def upload_documents(booking_id: str, files: List[UploadFile] = File(...),
                     db: Session = Depends(get_db),
                     credential: Credential = Depends(get_credential),
                     storage: ObjectStorage = Depends(get_storage)):
    b = owned_booking(db, booking_id, credential)
    if not files:
        raise ValidationError("No files provided")
    records = [
        document_service.attach(db, storage, b, _read_upload(f), f.filename or "document",
                                f.content_type, DocumentSlot.GENERAL)
        for f in files
    ]
    return {"success": True, "data": {"documents": [r.to_dict() for r in records]}}


@router.delete("/bookings/{booking_id}/documents/{doc_id}")
def delete_document(booking_id: str, doc_id: str, db: Session = Depends(get_db),
                    credential: Credential = Depends(get_credential),
                    storage: ObjectStorage = Depends(get_storage)):
    b = owned_booking(db, booking_id, credential)
    document_service.detach(db, storage, b, doc_id)
    return {"success": True, "message": "Document deleted"}


@router.post("/bookings/{booking_id}/user-documents")
def upload_user_document(booking_id: str, file: UploadFile = File(...),
                         documentType: str = Form(...), name: str | None = Form(None),
                         db: Session = Depends(get_db),
                         credential: Credential = Depends(get_credential),
                         storage: ObjectStorage = Depends(get_storage)):
    b = owned_booking(db, booking_id, credential)
    slot = document_service.parse_slot(documentType)
    if slot not in USER_DOCUMENT_SLOTS:
        raise ValidationError("Valid documentType is required (personal_passport_picture, "
                              "international_passport, passport_photo or supporting_document)")
    record = document_service.attach(db, storage, b, _read_upload(file), file.filename or "document",
                                     file.content_type, slot, name)
    return {"success": True, "data": {"document": record.to_dict()}}


@router.delete("/bookings/{booking_id}/user-documents/{doc_id}")
def delete_user_document(booking_id: str, doc_id: str, db: Session = Depends(get_db),
                         credential: Credential = Depends(get_credential),
                         storage: ObjectStorage = Depends(get_storage)):
    b = owned_booking(db, booking_id, credential)
    document_service.detach(db, storage, b, doc_id)
    return {"success": True, "message": "Document deleted"}


@router.get("/bookings/{booking_id}/user-application")
def get_user_application(booking_id: str, db: Session = Depends(get_db),
                         credential: Credential = Depends(get_credential)):
    b = owned_booking(db, booking_id, credential)
    return {"success": True, "data": user_application_out(b)}


@router.post("/bookings/{booking_id}/user-application")
def submit_user_application(booking_id: str, body: ApplicationForm, db: Session = Depends(get_db),
                            credential: Credential = Depends(get_credential),
                            notifier: Notifier = Depends(get_notifier)):
    b = owned_booking(db, booking_id, credential)
    result = application_service.submit_user_application(db, b, body)
    if result.is_new_submission:
        tour = db.get(Tour, b.tour_id)
        notifier.notify(
            NotificationKind.ADMIN_APPLICATION_SUBMITTED,
            None,
            {
                "applicationType": "user",
                "bookingId": b.id,
                "applicationId": b.id,
                "customerName": b.customer_name,
                "customerEmail": b.customer_email,
                "tourTitle": tour.title if tour else "Unknown Tour",
            },
            related_id=b.id,
        )
    return {"success": True, "message": "Application form submitted successfully", "data": user_application_out(b)}


@router.patch("/bookings/{booking_id}/user-application")
def update_user_application(booking_id: str, body: ApplicationForm, db: Session = Depends(get_db),
                            credential: Credential = Depends(get_credential)):
    b = owned_booking(db, booking_id, credential)
    application_service.update_user_application(db, b, body)
    return {"success": True, "message": "Application form updated successfully", "data": user_application_out(b)}


@router.get("/bookings/{booking_id}/dependants")
def list_dependants(booking_id: str, db: Session = Depends(get_db),
                    credential: Credential = Depends(get_credential)):
    b = owned_booking(db, booking_id, credential)
    deps = db.query(Dependant).filter(Dependant.booking_id == b.id).order_by(Dependant.created_at.asc()).all()
    return {"success": True, "data": [dependant_out(d) for d in deps]}


@router.post("/bookings/{booking_id}/dependants", status_code=201)
def add_dependant(booking_id: str, body: DependantCreate, db: Session = Depends(get_db),
                  credential: Credential = Depends(get_credential)):
    b = owned_booking(db, booking_id, credential)
    d = application_service.create_dependant(db, b, body, credential)
    return {"success": True, "data": dependant_out(d)}
