from app.models.review import Review
from app.models.tour import Tour

from tests.support import ApiTestCase

TOUR_BODY = {
    "title": "Hajj 2027",
    "category": "Hajj",
    "image": "https://cdn.test/hajj.jpg",
    "packageType": "umrah",
    "accommodation": "Aziziyah apartments",
    "dates": "May 2027",
    "price": "From $8,900",
    "itinerary": [{"day": 1, "title": "Arrival", "description": "Meet and greet"}],
    "inclusions": ["Visa"],
    "status": "published",
}


class TourTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.admin = self.make_user(email="admin@example.com", role="admin", name="Admin")

    def test_public_list_shows_published_only(self):
        self.make_tour(title="Live")
        self.make_tour(status="draft", title="Draft")
        self.make_tour(title="Istanbul", category="Turkey")

        titles = {t["title"] for t in self.client.get("/api/v1/tours").json()["data"]}
        self.assertEqual(titles, {"Live", "Istanbul"})
        r = self.client.get("/api/v1/tours?category=Turkey")
        self.assertEqual([t["title"] for t in r.json()["data"]], ["Istanbul"])
        r = self.client.get("/api/v1/tours?category=All")
        self.assertEqual(len(r.json()["data"]), 2)
        self.assertEqual(self.client.get("/api/v1/tours/nope").status_code, 404)

    def test_admin_crud(self):
        headers = self.auth(self.admin)
        r = self.client.post("/api/v1/admin/tours", json=TOUR_BODY, headers=headers)
        self.assertEqual(r.status_code, 201)
        tour = r.json()["data"]
        self.assertEqual(tour["itinerary"][0]["title"], "Arrival")

        r = self.client.put(f"/api/v1/admin/tours/{tour['id']}", json={"isComing": True}, headers=headers)
        self.assertTrue(r.json()["data"]["isComing"])
        self.assertEqual(r.json()["data"]["title"], "Hajj 2027")

        r = self.client.delete(f"/api/v1/admin/tours/{tour['id']}", headers=headers)
        self.assertEqual(r.status_code, 200)
        self.assertIsNone(self.reload(Tour, tour["id"]))

    def test_tour_with_bookings_cannot_be_deleted(self):
        t = self.make_tour()
        self.make_booking(t)
        r = self.client.delete(f"/api/v1/admin/tours/{t.id}", headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 400)

    def test_admin_routes_need_admin(self):
        user = self.make_user()
        self.assertEqual(self.client.post("/api/v1/admin/tours", json=TOUR_BODY,
                                          headers=self.auth(user)).status_code, 403)
        self.assertEqual(self.client.get("/api/v1/admin/stats").status_code, 401)

    def test_stats(self):
        t = self.make_tour()
        self.make_booking(t)
        data = self.client.get("/api/v1/admin/stats", headers=self.auth(self.admin)).json()["data"]
        self.assertEqual((data["totalTours"], data["totalBookings"], data["pendingBookings"]), (1, 1, 1))

    def test_admin_booking_update_validates_statuses(self):
        b = self.make_booking(self.make_tour())
        url = f"/api/v1/admin/bookings/{b.id}"
        r = self.client.patch(url, json={"bookingStatus": "confirmed", "paymentStatus": "bogus"},
                              headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 400)
        self.assertEqual(self.reload(type(b), b.id).booking_status, "pending")

        r = self.client.patch(url, json={"bookingStatus": "cancelled"}, headers=self.auth(self.admin))
        self.assertEqual(r.json()["data"]["bookingStatus"], "cancelled")

    def test_role_change(self):
        user = self.make_user()
        r = self.client.patch(f"/api/v1/admin/users/{user.id}", json={"role": "admin"}, headers=self.auth(self.admin))
        self.assertEqual(r.json()["data"]["role"], "admin")
        r = self.client.patch(f"/api/v1/admin/users/{user.id}", json={"role": "owner"}, headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 400)


class ReviewTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.tour = self.make_tour()
        self.user = self.make_user()
        self.admin = self.make_user(email="admin@example.com", role="admin", name="Admin")

    def _create(self, user=None, **body):
        body = {"tour": self.tour.id, "rating": 5, "comment": "Wonderful trip", **body}
        return self.client.post("/api/v1/reviews", json=body, headers=self.auth(user or self.user))

    def test_new_reviews_wait_for_approval(self):
        r = self._create()
        self.assertEqual(r.status_code, 201)
        review = r.json()["data"]
        self.assertEqual((review["status"], review["userName"]), ("pending", "Amina Yusuf"))
        self.assertEqual(self.client.get("/api/v1/reviews").json()["data"], [])

        r = self.client.patch(f"/api/v1/admin/reviews/{review['id']}", json={"status": "approved"},
                              headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 200)
        public = self.client.get(f"/api/v1/reviews?tourId={self.tour.id}").json()["data"]
        self.assertEqual([p["id"] for p in public], [review["id"]])
        self.assertEqual(public[0]["tour"]["title"], self.tour.title)

    def test_rating_bounds_and_unknown_tour(self):
        self.assertEqual(self._create(rating=6).status_code, 400)
        self.assertEqual(self._create(tour="missing").status_code, 404)
        self.assertEqual(self.client.post("/api/v1/reviews", json={"tour": self.tour.id, "rating": 4,
                                                                   "comment": "x"}).status_code, 401)

    def test_only_owner_or_admin_may_edit(self):
        review_id = self._create().json()["data"]["id"]
        other = self.make_user(email="other@example.com")
        r = self.client.put(f"/api/v1/reviews/{review_id}", json={"rating": 1}, headers=self.auth(other))
        self.assertEqual(r.status_code, 403)

        r = self.client.put(f"/api/v1/reviews/{review_id}", json={"rating": 4}, headers=self.auth(self.user))
        self.assertEqual(r.json()["data"]["rating"], 4)

        self.assertEqual(self.client.get("/api/v1/reviews/mine", headers=self.auth(self.user)).json()["data"][0]["id"],
                         review_id)
        r = self.client.delete(f"/api/v1/reviews/{review_id}", headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 200)
        self.assertIsNone(self.reload(Review, review_id))

    def test_invalid_review_status(self):
        review_id = self._create().json()["data"]["id"]
        r = self.client.patch(f"/api/v1/admin/reviews/{review_id}", json={"status": "published"},
                              headers=self.auth(self.admin))
        self.assertEqual(r.status_code, 400)


class ContactTests(ApiTestCase):
    def test_enquiry_goes_to_admin_and_is_acknowledged(self):
        r = self.client.post("/api/v1/contact", json={
            "name": "Amina", "email": "amina@example.com", "subject": "Group booking", "message": "Ten people",
        })
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.transport.subjects(), [
            "New Enquiry: Group booking",
            "Thank you for your enquiry - Naasir Travel",
        ])
        self.assertEqual(self.transport.sent[1][0], "amina@example.com")


class HealthTests(ApiTestCase):
    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})
