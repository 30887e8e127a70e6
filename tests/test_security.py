import unittest
from datetime import datetime, timezone

from app.core.access import ResourceOwner, authorize, booking_owner, enforce, user_owner
from app.core.errors import AuthenticationError, AuthorizationError
from app.core.security import (
    Credential,
    create_access_token,
    create_reset_token,
    decode_credential,
    extract_bearer,
    hash_password,
    verify_password,
    verify_reset_token,
)


def _cred(user_id="u1", email="amina@example.com", role="user"):
    return Credential(user_id=user_id, email=email, role=role, exp=datetime.now(timezone.utc))


class PasswordAndTokenTests(unittest.TestCase):
    def test_password_hash_round_trip(self):
        h = hash_password("secret123")
        self.assertNotEqual(h, "secret123")
        self.assertTrue(verify_password("secret123", h))
        self.assertFalse(verify_password("wrong", h))

    def test_access_token_decodes_to_credential(self):
        token = create_access_token("u1", "Amina@Example.com", "admin")
        cred = decode_credential(token)
        self.assertEqual(cred.user_id, "u1")
        self.assertEqual(cred.email, "amina@example.com")
        self.assertTrue(cred.is_admin)
        self.assertGreater(cred.exp, datetime.now(timezone.utc))

    def test_expired_token_is_rejected(self):
        token = create_access_token("u1", "a@example.com", "user", expires_minutes=-1)
        with self.assertRaises(AuthenticationError):
            decode_credential(token)

    def test_garbage_token_is_rejected(self):
        with self.assertRaises(AuthenticationError):
            decode_credential("not-a-jwt")

    def test_reset_token_is_not_an_access_token(self):
        reset = create_reset_token()
        self.assertTrue(verify_reset_token(reset))
        with self.assertRaises(AuthenticationError):
            decode_credential(reset)

    def test_access_token_is_not_a_reset_token(self):
        self.assertFalse(verify_reset_token(create_access_token("u1", "a@example.com", "user")))

    def test_reset_tokens_are_unique(self):
        self.assertNotEqual(create_reset_token(), create_reset_token())

    def test_extract_bearer(self):
        self.assertEqual(extract_bearer("Bearer abc"), "abc")
        self.assertIsNone(extract_bearer("Basic abc"))
        self.assertIsNone(extract_bearer("Bearer "))
        self.assertIsNone(extract_bearer(None))


class AuthorizeTests(unittest.TestCase):
    def test_role_mismatch_is_denied(self):
        decision = authorize(_cred(), required_role="admin")
        self.assertFalse(decision.allowed)
        with self.assertRaises(AuthorizationError):
            enforce(decision)

    def test_admin_passes_role_and_ownership(self):
        admin = _cred(user_id="a1", role="admin")
        self.assertTrue(authorize(admin, required_role="admin").allowed)
        self.assertTrue(authorize(admin, owner=user_owner("someone-else")).allowed)

    def test_owner_by_user_id(self):
        self.assertTrue(authorize(_cred(), owner=user_owner("u1")).allowed)
        self.assertFalse(authorize(_cred(), owner=user_owner("u2")).allowed)

    def test_email_fallback_only_without_user_reference(self):
        guest = ResourceOwner(user_id=None, customer_email="Amina@Example.com ")
        self.assertTrue(authorize(_cred(), owner=guest).allowed)

        # a booking linked to another account is not opened up by a matching email
        linked = ResourceOwner(user_id="u2", customer_email="amina@example.com")
        decision = authorize(_cred(), owner=linked)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, "Access denied")

    def test_booking_owner_reads_booking_fields(self):
        class B:
            user_id = None
            customer_email = "amina@example.com"

        self.assertEqual(booking_owner(B()), ResourceOwner(None, "amina@example.com"))

    def test_no_owner_means_authenticated_is_enough(self):
        self.assertTrue(authorize(_cred()).allowed)
