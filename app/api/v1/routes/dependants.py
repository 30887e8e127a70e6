import logging
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_credential, get_notifier, get_storage
from app.core.access import authorize, enforce, user_owner
from app.core.errors import NotFoundError
from app.core.security import Credential
from app.models.booking import Booking
from app.models.dependant import Dependant
from app.models.tour import Tour
from app.schemas.application import ApplicationForm
from app.services import application_service, document_service
from app.services.booking_service import get_booking
from app.services.document_service import DocumentSlot
from app.services.notification_service import NotificationKind, Notifier
from app.services.payload_service import dependant_out
from app.services.storage_service import ObjectStorage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dependants"])


def get_dependant(db: Session, dependant_id: str) -> Dependant:
    d = db.get(Dependant, dependant_id)
    if not d:
        raise NotFoundError("Dependant not found")
    return d


def owned_dependant(db: Session, dependant_id: str, credential: Credential) -> Dependant:
    d = get_dependant(db, dependant_id)
    enforce(authorize(credential, owner=user_owner(d.user_id)))
    return d


@router.get("/dependants/{dependant_id}")
def get_one(dependant_id: str, db: Session = Depends(get_db), credential: Credential = Depends(get_credential)):
    d = owned_dependant(db, dependant_id, credential)
    return {"success": True, "data": dependant_out(d)}


@router.delete("/dependants/{dependant_id}")
def delete(dependant_id: str, db: Session = Depends(get_db),
           credential: Credential = Depends(get_credential),
           storage: ObjectStorage = Depends(get_storage)):
    d = owned_dependant(db, dependant_id, credential)
    application_service.check_dependant_removable(db.get(Booking, d.booking_id), credential)
    document_service.purge(storage, d)
    db.delete(d)
    db.commit()
    logger.info("Dependant %s removed by %s", dependant_id, credential.user_id)
    return {"success": True, "message": "Dependant deleted successfully"}


@router.get("/dependants/{dependant_id}/application")
def get_application(dependant_id: str, db: Session = Depends(get_db),
                    credential: Credential = Depends(get_credential)):
    d = owned_dependant(db, dependant_id, credential)
    return {"success": True, "data": dependant_out(d)}


@router.post("/dependants/{dependant_id}/application")
def submit_application(dependant_id: str, body: ApplicationForm, db: Session = Depends(get_db),
                       credential: Credential = Depends(get_credential),
                       notifier: Notifier = Depends(get_notifier)):
    d = owned_dependant(db, dependant_id, credential)
    b = get_booking(db, d.booking_id)
    result = application_service.submit_dependant_application(db, d, b, body)
    if result.is_new_submission:
        tour = db.get(Tour, b.tour_id)
        notifier.notify(
            NotificationKind.ADMIN_APPLICATION_SUBMITTED,
            None,
            {
                "applicationType": "dependant",
                "bookingId": b.id,
                "applicationId": d.id,
                "customerName": d.name,
                "customerEmail": b.customer_email,
                "tourTitle": tour.title if tour else "Unknown Tour",
            },
            related_id=d.id,
        )
    return {"success": True, "message": "Application form submitted successfully", "data": dependant_out(d)}


@router.patch("/dependants/{dependant_id}/application")
def update_application(dependant_id: str, body: ApplicationForm, db: Session = Depends(get_db),
                       credential: Credential = Depends(get_credential)):
    d = owned_dependant(db, dependant_id, credential)
    b = get_booking(db, d.booking_id)
    application_service.update_dependant_application(db, d, b, body)
    return {"success": True, "message": "Application form updated successfully", "data": dependant_out(d)}


@router.post("/dependants/{dependant_id}/documents")
def upload_document(dependant_id: str, file: UploadFile = File(...),
                    documentType: str = Form("supporting_document"), name: str | None = Form(None),
                    db: Session = Depends(get_db),
                    credential: Credential = Depends(get_credential),
                    storage: ObjectStorage = Depends(get_storage)):
    d = owned_dependant(db, dependant_id, credential)
    slot = document_service.parse_slot(documentType)
    if slot == DocumentSlot.SUPPORTING_DOCUMENT and not name:
        name = file.filename
    record = document_service.attach(db, storage, d, file.file.read(), file.filename or "document",
                                     file.content_type, slot, name)
    return {"success": True, "data": {"document": record.to_dict()}}


@router.delete("/dependants/{dependant_id}/documents/{doc_id}")
def delete_document(dependant_id: str, doc_id: str, db: Session = Depends(get_db),
                    credential: Credential = Depends(get_credential),
                    storage: ObjectStorage = Depends(get_storage)):
    d = owned_dependant(db, dependant_id, credential)
    document_service.detach(db, storage, d, doc_id)
    return {"success": True, "message": "Document deleted"}
