import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_notifier, get_payments
from app.schemas.booking import CreateIntentRequest
from app.services.booking_service import apply_payment_event, get_booking, start_payment
from app.services.notification_service import NotificationKind, Notifier
from app.services.payment_service import PaymentGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments"])


@router.post("/payment/create-intent")
def create_intent(body: CreateIntentRequest, db: Session = Depends(get_db),
                  payments: PaymentGateway = Depends(get_payments)):
    intent = start_payment(db, payments, get_booking(db, body.bookingId))
    return {"success": True, "data": {"clientSecret": intent.client_secret, "paymentIntentId": intent.id}}


@router.post("/payment/webhook")
async def webhook(request: Request, db: Session = Depends(get_db),
                  payments: PaymentGateway = Depends(get_payments),
                  notifier: Notifier = Depends(get_notifier)):
    payload = await request.body()
    event = payments.construct_event(payload, request.headers.get("stripe-signature"))
    paid = apply_payment_event(db, event)
    if paid:
        notifier.notify(
            NotificationKind.PAYMENT_CONFIRMATION,
            paid.customer_email,
            {"customerName": paid.customer_name, "amount": paid.total_amount, "bookingId": paid.id},
            related_id=paid.id,
        )
    return {"received": True}
