import json
import logging
from dataclasses import dataclass, field

import stripe

from app.core.errors import UpstreamServiceError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str | None
    status: str
    amount: int = 0
    metadata: dict = field(default_factory=dict)


def to_minor_units(amount) -> int:
    """Stripe amounts are integers in the smallest currency unit."""
    return int(round(float(amount) * 100))


class PaymentGateway:
    """Stripe PaymentIntents and signed webhooks."""

    def __init__(self, secret_key: str, webhook_secret: str = "", currency: str = "usd"):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.currency = currency

    def _require_key(self):
        if not self.secret_key:
            raise UpstreamServiceError("Payment provider not configured")

    @staticmethod
    def _to_intent(obj) -> PaymentIntent:
        return PaymentIntent(
            id=obj.id,
            client_secret=getattr(obj, "client_secret", None),
            status=getattr(obj, "status", "") or "",
            amount=getattr(obj, "amount", 0) or 0,
            metadata=dict(getattr(obj, "metadata", None) or {}),
        )

    def create_intent(self, amount, metadata: dict | None = None) -> PaymentIntent:
        self._require_key()
        if amount is None or float(amount) <= 0:
            raise ValidationError("Invalid amount")
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(amount),
                currency=self.currency,
                metadata={k: str(v) for k, v in (metadata or {}).items()},
                automatic_payment_methods={"enabled": True},
                api_key=self.secret_key,
            )
        except stripe.StripeError as e:
            logger.warning("Stripe create intent failed: %s", e)
            raise UpstreamServiceError(getattr(e, "user_message", None) or "Failed to create payment intent") from e
        return self._to_intent(intent)

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        self._require_key()
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=self.secret_key)
        except stripe.StripeError as e:
            logger.warning("Stripe retrieve intent %s failed: %s", intent_id, e)
            raise UpstreamServiceError("Failed to confirm payment") from e
        return self._to_intent(intent)

    def construct_event(self, payload: bytes, signature: str | None) -> dict:
        if not signature:
            raise ValidationError("No signature")
        if not self.webhook_secret:
            raise UpstreamServiceError("Webhook secret not configured")
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("Webhook signature verification failed: %s", e)
            raise ValidationError(f"Webhook Error: {e}") from e
        # signature checked; hand back plain dicts rather than StripeObjects
        return json.loads(payload)
