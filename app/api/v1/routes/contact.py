import logging
from fastapi import APIRouter, Depends
from app.api.deps import get_notifier
from app.schemas.contact import ContactRequest
from app.services.notification_service import NotificationKind, Notifier

logger = logging.getLogger(__name__)

router = APIRouter(tags=["contact"])


@router.post("/contact")
def contact(body: ContactRequest, notifier: Notifier = Depends(get_notifier)):
    payload = body.model_dump()
    admin = notifier.notify(NotificationKind.ADMIN_ENQUIRY, None, payload)
    if not admin.success:
        logger.warning("Enquiry from %s not forwarded: %s", body.email, admin.error)
    notifier.notify(NotificationKind.ENQUIRY_ACKNOWLEDGEMENT, body.email.strip(), payload)
    return {"success": True, "message": "Thank you for your enquiry. We will get back to you soon."}
