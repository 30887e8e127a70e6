"""Shared fixtures for the API tests: in-memory db, fake storage, fake Stripe, recorded emails."""
import unittest
import uuid
from dataclasses import replace
from datetime import date, timedelta

from fastapi.testclient import TestClient

from app.core.errors import UpstreamServiceError
from app.core.security import create_access_token, hash_password
from app.db.session import Database
from app.main import create_app
from app.models.booking import Booking
from app.models.dependant import Dependant
from app.models.tour import Tour
from app.models.user import User
from app.services.notification_service import Notifier
from app.services.payment_service import PaymentGateway, PaymentIntent, to_minor_units
from app.services.storage_service import ObjectStorage, StoredObject, decode_payload


class MemoryStorage(ObjectStorage):
    def __init__(self, fail_deletes: bool = False):
        super().__init__("test")
        self.objects = {}
        self.deleted = []
        self.fail_deletes = fail_deletes

    def upload(self, data, folder, filename, content_type=None):
        raw, _ = decode_payload(data, content_type)
        key = self.object_key(folder, filename)
        self.objects[key] = raw
        return StoredObject(url=f"https://cdn.test/{key}", public_id=key)

    def delete(self, public_id):
        if self.fail_deletes:
            raise UpstreamServiceError("storage unavailable")
        self.deleted.append(public_id)
        self.objects.pop(public_id, None)


class FakeGateway(PaymentGateway):
    """Stripe stand-in for intents; webhook verification stays the real one."""

    def __init__(self, webhook_secret: str = "whsec_test"):
        super().__init__("sk_test_fake", webhook_secret)
        self.intents = {}

    def create_intent(self, amount, metadata=None):
        intent = PaymentIntent(id=f"pi_{uuid.uuid4().hex[:10]}", client_secret="secret_123",
                               status="requires_payment_method", amount=to_minor_units(amount),
                               metadata={k: str(v) for k, v in (metadata or {}).items()})
        self.intents[intent.id] = intent
        return intent

    def retrieve_intent(self, intent_id):
        return self.intents.get(intent_id) or PaymentIntent(intent_id, None, "requires_payment_method")

    def succeed(self, intent_id):
        self.intents[intent_id] = replace(self.intents[intent_id], status="succeeded")


class RecordingTransport:
    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    def __call__(self, to_email, subject, html):
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append((to_email, subject, html))

    def subjects(self):
        return [s for _, s, _ in self.sent]


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.database = Database("sqlite://")
        self.database.create_all()
        self.storage = MemoryStorage()
        self.gateway = FakeGateway()
        self.transport = RecordingTransport()
        self.notifier = Notifier(self.database, delivery_mode="inline", transport=self.transport)
        self.app = create_app(database=self.database, storage=self.storage,
                              payments=self.gateway, notifier=self.notifier)
        self.client = TestClient(self.app)
        self.db = self.database.session()

    def tearDown(self):
        self.db.close()
        self.database.dispose()

    # data helpers

    def make_user(self, email="amina@example.com", role="user", name="Amina Yusuf", password="secret123"):
        u = User(id=str(uuid.uuid4()), email=email, name=name, role=role,
                 password_hash=hash_password(password))
        self.db.add(u)
        self.db.commit()
        return u

    def make_tour(self, status="published", title="Ramadan Umrah", category="Umrah"):
        t = Tour(id=str(uuid.uuid4()), title=title, category=category, image="/img.jpg",
                 accommodation="5* hotels", dates="March 2026", price="From $2,450", status=status)
        self.db.add(t)
        self.db.commit()
        return t

    def make_booking(self, tour, user=None, email=None, booking_status="pending", payment_status="pending"):
        b = Booking(
            id=str(uuid.uuid4()),
            tour_id=tour.id,
            user_id=user.id if user else None,
            customer_name=user.name if user else "Guest Traveller",
            customer_email=email or (user.email if user else "guest@example.com"),
            customer_phone="+44 7700 900000",
            number_of_travelers=2,
            total_amount=4900.0,
            booking_status=booking_status,
            payment_status=payment_status,
            booking_date=date.today() + timedelta(days=60),
            documents=[],
        )
        self.db.add(b)
        self.db.commit()
        return b

    def make_dependant(self, booking, user, name="Yusuf Ali", relationship="son"):
        d = Dependant(id=str(uuid.uuid4()), booking_id=booking.id, user_id=user.id,
                      name=name, relationship=relationship, documents=[])
        self.db.add(d)
        self.db.commit()
        return d

    def auth(self, user):
        token = create_access_token(user.id, user.email, user.role)
        return {"Authorization": f"Bearer {token}"}

    def reload(self, model, id_):
        self.db.expire_all()
        return self.db.get(model, id_)
