import hashlib
import hmac
import json
import time
from dataclasses import replace

from app.models.booking import Booking

from tests.support import ApiTestCase


def _signed(payload: bytes, secret: str) -> str:
    ts = int(time.time())
    digest = hmac.new(secret.encode(), f"{ts}.{payload.decode()}".encode(), hashlib.sha256).hexdigest()
    return f"t={ts},v1={digest}"


class PaymentTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user()
        self.booking_tour = self.make_tour()
        self.booking = self.make_booking(self.booking_tour, self.user)

    def _event(self, etype="payment_intent.succeeded", booking_id=None):
        return json.dumps({
            "id": "evt_1",
            "object": "event",
            "type": etype,
            "data": {"object": {
                "id": "pi_webhook",
                "object": "payment_intent",
                "metadata": {"bookingId": booking_id or self.booking.id},
            }},
        }).encode()

    def _intent(self, booking=None):
        r = self.client.post("/api/v1/payment/create-intent", json={"bookingId": (booking or self.booking).id})
        return r.json()["data"]["paymentIntentId"]

    def test_create_intent_stores_intent_on_booking(self):
        r = self.client.post("/api/v1/payment/create-intent", json={"bookingId": self.booking.id})
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertEqual(data["clientSecret"], "secret_123")
        self.assertEqual(self.reload(Booking, self.booking.id).payment_intent_id, data["paymentIntentId"])
        self.assertEqual(self.gateway.intents[data["paymentIntentId"]].amount, 490000)

    def test_create_intent_for_unknown_booking(self):
        r = self.client.post("/api/v1/payment/create-intent", json={"bookingId": "nope"})
        self.assertEqual(r.status_code, 404)

    def test_intent_charges_the_booking_total_not_the_request_amount(self):
        r = self.client.post("/api/v1/payment/create-intent", json={"amount": 0.5, "bookingId": self.booking.id})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.gateway.intents[r.json()["data"]["paymentIntentId"]].amount, 490000)

    def test_intent_needs_a_positive_unpaid_total(self):
        free = self.make_booking(self.make_tour(title="Free walk"), self.user)
        free.total_amount = 0
        paid = self.make_booking(self.booking_tour, self.user, payment_status="paid")
        self.db.commit()
        for b, error in ((free, "Booking has no amount to pay"), (paid, "Booking is already paid")):
            r = self.client.post("/api/v1/payment/create-intent", json={"bookingId": b.id})
            self.assertEqual(r.status_code, 400)
            self.assertEqual(r.json()["error"], error)
        self.assertEqual(self.gateway.intents, {})

    def test_confirm_rejects_another_bookings_intent(self):
        other = self.make_booking(self.booking_tour, self.user)
        intent_id = self._intent(other)
        self.gateway.succeed(intent_id)

        r = self.client.post(f"/api/v1/bookings/{self.booking.id}/confirm", json={"paymentIntentId": intent_id})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "Payment does not belong to this booking")
        self.assertEqual(self.reload(Booking, self.booking.id).payment_status, "pending")

    def test_confirm_rejects_an_underpaying_intent(self):
        intent_id = self._intent()
        self.gateway.intents[intent_id] = replace(self.gateway.intents[intent_id], amount=50)
        self.gateway.succeed(intent_id)

        r = self.client.post(f"/api/v1/bookings/{self.booking.id}/confirm", json={"paymentIntentId": intent_id})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(self.reload(Booking, self.booking.id).payment_status, "pending")

    def test_confirm_requires_succeeded_intent(self):
        intent_id = self._intent()
        url = f"/api/v1/bookings/{self.booking.id}/confirm"

        r = self.client.post(url, json={"paymentIntentId": intent_id})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "Payment not completed")
        self.assertEqual(self.reload(Booking, self.booking.id).payment_status, "pending")

        self.gateway.succeed(intent_id)
        r = self.client.post(url, json={"paymentIntentId": intent_id})
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertEqual((data["paymentStatus"], data["bookingStatus"]), ("paid", "confirmed"))

    def test_signed_webhook_marks_booking_paid_and_emails_customer(self):
        payload = self._event()
        r = self.client.post("/api/v1/payment/webhook", content=payload,
                             headers={"stripe-signature": _signed(payload, "whsec_test")})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"received": True})

        b = self.reload(Booking, self.booking.id)
        self.assertEqual((b.payment_status, b.booking_status, b.payment_intent_id), ("paid", "confirmed", "pi_webhook"))
        self.assertEqual(self.transport.subjects(), ["Payment Confirmation - Naasir Travel"])

    def test_redelivered_success_event_sends_one_email(self):
        payload = self._event()
        for _ in range(2):
            r = self.client.post("/api/v1/payment/webhook", content=payload,
                                 headers={"stripe-signature": _signed(payload, "whsec_test")})
            self.assertEqual(r.status_code, 200)
        self.assertEqual(self.reload(Booking, self.booking.id).payment_status, "paid")
        self.assertEqual(self.transport.subjects(), ["Payment Confirmation - Naasir Travel"])

    def test_failed_payment_event(self):
        payload = self._event("payment_intent.payment_failed")
        r = self.client.post("/api/v1/payment/webhook", content=payload,
                             headers={"stripe-signature": _signed(payload, "whsec_test")})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.reload(Booking, self.booking.id).payment_status, "failed")
        self.assertEqual(self.transport.sent, [])

    def test_unknown_events_and_bookings_are_acknowledged(self):
        for payload in (self._event("charge.refunded"), self._event(booking_id="missing")):
            r = self.client.post("/api/v1/payment/webhook", content=payload,
                                 headers={"stripe-signature": _signed(payload, "whsec_test")})
            self.assertEqual(r.status_code, 200)
        self.assertEqual(self.reload(Booking, self.booking.id).payment_status, "pending")

    def test_bad_or_missing_signature(self):
        payload = self._event()
        r = self.client.post("/api/v1/payment/webhook", content=payload,
                             headers={"stripe-signature": _signed(payload, "whsec_other")})
        self.assertEqual(r.status_code, 400)
        self.assertTrue(r.json()["error"].startswith("Webhook Error"))

        r = self.client.post("/api/v1/payment/webhook", content=payload)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "No signature")
        self.assertEqual(self.reload(Booking, self.booking.id).payment_status, "pending")
