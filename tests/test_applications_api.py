from datetime import date, timedelta

from app.models.booking import Booking
from app.models.dependant import Dependant
from app.models.dependant_profile import UserDependantProfile
from app.services.application_service import _add_months, check_passport_expiry, generate_application_number
from app.core.config import settings
from app.core.errors import ValidationError

from tests.support import ApiTestCase

FAR_EXPIRY = (date.today() + timedelta(days=800)).isoformat()


def _form(**overrides):
    form = {
        "firstName": "Amina",
        "lastName": "Yusuf",
        "gender": "female",
        "dateOfBirth": "1990-04-02",
        "passportNumber": "P1234567",
        "passportExpiryDate": FAR_EXPIRY,
    }
    form.update(overrides)
    return form


class PassportRuleTests(ApiTestCase):
    def test_add_months_clamps_to_month_end(self):
        self.assertEqual(_add_months(date(2026, 8, 31), 6), date(2027, 2, 28))
        self.assertEqual(_add_months(date(2026, 1, 15), 6), date(2026, 7, 15))

    def test_expiry_window(self):
        today = date(2026, 1, 10)
        check_passport_expiry("2026-07-10", today=today)
        with self.assertRaises(ValidationError):
            check_passport_expiry("2026-07-09", today=today)
        with self.assertRaises(ValidationError):
            check_passport_expiry("not a date", today=today)
        check_passport_expiry(None, today=today)

    def test_application_number_format(self):
        number = generate_application_number(date(2026, 3, 5))
        self.assertEqual(len(number), 12)
        self.assertTrue(number.startswith("260305"))


class UserApplicationTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user()
        self.admin = self.make_user(email="admin@example.com", role="admin", name="Admin")
        self.booking = self.make_booking(self.make_tour(), self.user, booking_status="confirmed",
                                         payment_status="paid")
        self.url = f"/api/v1/bookings/{self.booking.id}/user-application"
        self.status_url = f"/api/v1/admin/bookings/{self.booking.id}/user-application-status"

    def test_first_submission_notifies_admin_once(self):
        r = self.client.post(self.url, json=_form(), headers=self.auth(self.user))
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertTrue(data["applicationFormSubmitted"])
        self.assertEqual(data["applicationStatus"], "submitted")
        self.assertEqual(len(data["applicationNumber"]), 12)
        self.assertEqual(self.transport.sent[0][0], settings.ADMIN_EMAIL)
        self.assertTrue(self.transport.subjects()[0].startswith("New User Application Submitted"))

        again = self.client.post(self.url, json=_form(firstName="Aminah"), headers=self.auth(self.user))
        self.assertEqual(again.json()["data"]["applicationNumber"], data["applicationNumber"])
        self.assertEqual(again.json()["data"]["applicationFormData"]["firstName"], "Aminah")
        self.assertEqual(len(self.transport.sent), 1)

    def test_short_passport_validity_is_refused(self):
        soon = (date.today() + timedelta(days=60)).isoformat()
        r = self.client.post(self.url, json=_form(passportExpiryDate=soon), headers=self.auth(self.user))
        self.assertEqual(r.status_code, 400)
        self.assertIn("6 months", r.json()["error"])
        self.assertFalse(self.reload(Booking, self.booking.id).user_application_submitted)

    def test_patch_merges_fields(self):
        self.client.post(self.url, json=_form(), headers=self.auth(self.user))
        r = self.client.patch(self.url, json={"profession": "Engineer"}, headers=self.auth(self.user))
        form = r.json()["data"]["applicationFormData"]
        self.assertEqual((form["profession"], form["firstName"]), ("Engineer", "Amina"))

    def test_closed_process_blocks_submission(self):
        r = self.client.patch(f"/api/v1/admin/bookings/{self.booking.id}/applications",
                              json={"action": "close"}, headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.json()["data"]["applicationClosed"])

        r = self.client.post(self.url, json=_form(), headers=self.auth(self.user))
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "Application process has been closed. Cannot submit application.")

        self.client.patch(f"/api/v1/admin/bookings/{self.booking.id}/applications",
                          json={"action": "reopen"}, headers=self.auth(self.admin))
        self.assertEqual(self.client.post(self.url, json=_form(), headers=self.auth(self.user)).status_code, 200)

    def test_invalid_close_action(self):
        r = self.client.patch(f"/api/v1/admin/bookings/{self.booking.id}/applications",
                              json={"action": "pause"}, headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 400)

    def test_status_change_emails_customer_only_when_changed(self):
        self.client.post(self.url, json=_form(), headers=self.auth(self.user))
        sent_before = len(self.transport.sent)

        r = self.client.patch(self.status_url, json={"status": "accepted"}, headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["data"]["userApplication"]["applicationStatus"], "accepted")
        self.assertEqual(self.transport.sent[-1][:2], (self.user.email, "Application Accepted! - Naasir Travel"))

        self.client.patch(self.status_url, json={"status": "accepted"}, headers=self.auth(self.admin))
        self.assertEqual(len(self.transport.sent), sent_before + 1)

    def test_invalid_status_is_rejected_without_side_effects(self):
        r = self.client.patch(self.status_url, json={"status": "approved"}, headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 400)
        self.assertEqual(self.reload(Booking, self.booking.id).user_application_status, "pending")
        self.assertEqual(self.transport.sent, [])

    def test_reviewed_application_cannot_be_modified(self):
        self.client.post(self.url, json=_form(), headers=self.auth(self.user))
        self.client.patch(self.status_url, json={"status": "rejected"}, headers=self.auth(self.admin))
        r = self.client.patch(self.url, json={"profession": "Nurse"}, headers=self.auth(self.user))
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "Application has already been reviewed. Cannot modify.")

    def test_status_endpoint_is_admin_only(self):
        r = self.client.patch(self.status_url, json={"status": "accepted"}, headers=self.auth(self.user))
        self.assertEqual(r.status_code, 403)


class DependantTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user()
        self.admin = self.make_user(email="admin@example.com", role="admin", name="Admin")
        self.tour = self.make_tour()
        self.booking = self.make_booking(self.tour, self.user, booking_status="confirmed", payment_status="paid")

    def _add(self, booking=None, **body):
        booking = booking or self.booking
        body = body or {"name": "Yusuf Ali", "relationship": "son"}
        return self.client.post(f"/api/v1/bookings/{booking.id}/dependants", json=body, headers=self.auth(self.user))

    def test_only_confirmed_bookings_take_dependants(self):
        pending = self.make_booking(self.tour, self.user)
        r = self._add(pending)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "Can only add dependants to confirmed bookings")

    def test_name_and_relationship_required(self):
        r = self._add(name="Yusuf")
        self.assertEqual(r.status_code, 400)

    def test_prefill_from_saved_profile(self):
        r = self.client.post("/api/v1/user/dependants", headers=self.auth(self.user), json={
            "name": "Maryam Ali", "relationship": "daughter", "passportNumber": "P999", "firstName": "Maryam",
        })
        self.assertEqual(r.status_code, 201)
        profile_id = r.json()["data"]["id"]

        r = self._add(profileId=profile_id)
        self.assertEqual(r.status_code, 201)
        data = r.json()["data"]
        self.assertEqual((data["name"], data["passportNumber"]), ("Maryam Ali", "P999"))
        self.assertEqual(data["applicationFormData"]["firstName"], "Maryam")

    def test_someone_elses_profile_is_not_found(self):
        other = self.make_user(email="other@example.com")
        p = UserDependantProfile(id="p-other", user_id=other.id, name="X", relationship="wife")
        self.db.add(p)
        self.db.commit()
        self.assertEqual(self._add(profileId="p-other").status_code, 404)

    def test_dependant_application_review_flow(self):
        dep_id = self._add().json()["data"]["id"]
        r = self.client.post(f"/api/v1/dependants/{dep_id}/application", json=_form(firstName="Yusuf"),
                             headers=self.auth(self.user))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["data"]["applicationStatus"], "submitted")
        self.assertEqual(self.transport.subjects(), ["New Dependant Application Submitted - Yusuf Ali"])

        r = self.client.patch(f"/api/v1/admin/dependants/{dep_id}/application-status",
                              json={"status": "under_review"}, headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.transport.sent[-1][:2], (self.user.email, "Application Under Review - Naasir Travel"))

        r = self.client.patch(f"/api/v1/admin/dependants/{dep_id}/application-status",
                              json={"status": "under_review"}, headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 200)
        self.assertEqual(len(self.transport.sent), 2)

        apps = self.client.get("/api/v1/admin/applications", headers=self.auth(self.admin)).json()
        self.assertEqual(apps["dependantApplications"], 1)
        self.assertEqual(apps["data"][0]["applicantName"], "Yusuf Ali")

    def test_dependant_documents(self):
        dep_id = self._add().json()["data"]["id"]
        r = self.client.post(f"/api/v1/dependants/{dep_id}/documents", headers=self.auth(self.user),
                             data={"documentType": "international_passport"},
                             files={"file": ("passport.pdf", b"%PDF", "application/pdf")})
        self.assertEqual(r.status_code, 200)
        doc = r.json()["data"]["document"]
        self.assertEqual(doc["name"], "International Passport")

        dep = self.client.get(f"/api/v1/dependants/{dep_id}", headers=self.auth(self.user)).json()["data"]
        self.assertEqual(dep["documents"]["international_passport"]["id"], doc["id"])

        r = self.client.delete(f"/api/v1/dependants/{dep_id}/documents/{doc['id']}", headers=self.auth(self.user))
        self.assertEqual(r.status_code, 200)
        self.assertIn(doc["publicId"], self.storage.deleted)

    def test_removal_blocked_while_closed_except_for_admin(self):
        dep_id = self._add().json()["data"]["id"]
        self.client.patch(f"/api/v1/admin/bookings/{self.booking.id}/applications",
                          json={"action": "close"}, headers=self.auth(self.admin))

        r = self.client.delete(f"/api/v1/dependants/{dep_id}", headers=self.auth(self.user))
        self.assertEqual(r.status_code, 400)
        r = self.client.delete(f"/api/v1/dependants/{dep_id}", headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 200)
        self.assertIsNone(self.reload(Dependant, dep_id))

    def test_other_user_cannot_see_dependant(self):
        dep_id = self._add().json()["data"]["id"]
        other = self.make_user(email="other@example.com")
        self.assertEqual(self.client.get(f"/api/v1/dependants/{dep_id}", headers=self.auth(other)).status_code, 403)
