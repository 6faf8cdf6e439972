import unittest
from datetime import date, timedelta
from decimal import Decimal

from fastapi.testclient import TestClient

from tests.support import DatabaseTestCase, train_request

from src.database import get_db
from src.main import app
from src.realtime.query_log import query_log


class ApiTestCase(DatabaseTestCase):
    def setUp(self):
        super().setUp()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        super().tearDown()

    def create_train(self, **overrides):
        payload = train_request(**overrides).model_dump(mode="json")
        response = self.client.post("/api/v1/admin/trains", json=payload)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def book(self, train_id, passengers=1, fare_class="AC First Class", **extra):
        payload = {
            "passengers": [
                {"name": f"Passenger {i + 1}", "age": 30 + i, "gender": "other", "contact": "9123456780"}
                for i in range(passengers)
            ],
            "train_id": train_id,
            "fare_class": fare_class,
            "payment_method": "upi",
        }
        payload.update(extra)
        return self.client.post("/api/v1/bookings/", json=payload)


class RootApiTests(ApiTestCase):
    def test_health(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})

    def test_root(self):
        self.assertEqual(self.client.get("/").json()["message"], "RailBooker API")


class TrainApiTests(ApiTestCase):
    def test_admin_creates_train_with_fares(self):
        created = self.create_train(price="2000")
        amounts = {f["fare_class"]: Decimal(f["fare_amount"]) for f in created["fares"]}
        self.assertEqual(amounts["AC First Class"], Decimal("2000"))
        self.assertEqual(amounts["Sleeper"], Decimal("800"))

    def test_admin_rejects_invalid_train(self):
        payload = train_request().model_dump(mode="json")
        payload["seats"] = 0
        response = self.client.post("/api/v1/admin/trains", json=payload)
        self.assertEqual(response.status_code, 422)

    def test_search_by_origin_and_date(self):
        train = self.create_train()
        tomorrow = (date.today() + timedelta(days=1)).isoformat()

        response = self.client.get("/api/v1/trains/", params={"origin": "mumbai", "date": tomorrow})
        self.assertEqual(response.status_code, 200)
        results = response.json()
        self.assertEqual([t["id"] for t in results], [train["id"]])
        self.assertEqual(results[0]["duration"], "15h 35m")
        self.assertEqual(results[0]["available_seats"], 100)

        response = self.client.get("/api/v1/trains/", params={"origin": "chennai"})
        self.assertEqual(response.json(), [])

    def test_get_train_and_fares(self):
        train = self.create_train()

        response = self.client.get(f"/api/v1/trains/{train['id']}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["number"], "12951")

        response = self.client.get(f"/api/v1/trains/{train['id']}/fares")
        self.assertEqual(len(response.json()), 4)

    def test_unknown_train(self):
        self.assertEqual(self.client.get("/api/v1/trains/9999").status_code, 404)
        self.assertEqual(self.client.get("/api/v1/trains/9999/fares").status_code, 404)
        self.assertEqual(self.client.get("/api/v1/trains/9999/quote").status_code, 404)

    def test_quote(self):
        train = self.create_train()
        response = self.client.get(
            f"/api/v1/trains/{train['id']}/quote",
            params={"fare_class": "AC 2 Tier", "passengers": 2}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Decimal(response.json()["total_amount"]), Decimal("1650"))


class BookingApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.train = self.create_train()

    def test_book_and_fetch(self):
        response = self.book(self.train["id"], passengers=2, fare_class="AC 2 Tier")
        self.assertEqual(response.status_code, 201, response.text)
        pnr = response.json()["pnr"]

        response = self.client.get(f"/api/v1/bookings/{pnr}")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["booking_status"], "Confirmed")
        self.assertEqual(body["payment_status"], "Successful")
        self.assertEqual(body["train"]["train_number"], "12951")

        self.assertEqual(len(self.client.get("/api/v1/bookings/").json()), 2)
        self.assertEqual(self.client.get(f"/api/v1/trains/{self.train['id']}").json()["available_seats"], 98)

    def test_validation_errors(self):
        self.assertEqual(self.book(self.train["id"], passengers=0).status_code, 422)
        self.assertEqual(self.book(self.train["id"], passengers=7).status_code, 422)

    def test_unknown_train(self):
        response = self.book(9999)
        self.assertEqual(response.status_code, 404)
        self.assertIn("9999", response.json()["detail"])

    def test_unknown_pnr(self):
        self.assertEqual(self.client.get("/api/v1/bookings/0000000000").status_code, 404)
        response = self.client.post("/api/v1/bookings/0000000000/cancel", json={})
        self.assertEqual(response.status_code, 404)

    def test_cancel(self):
        pnr = self.book(self.train["id"]).json()["pnr"]

        response = self.client.post(f"/api/v1/bookings/{pnr}/cancel", json={"amount_paid": "1000"})
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(Decimal(body["refund_amount"]), Decimal("900"))
        self.assertEqual(body["cancellation"]["status"], "Processed")
        self.assertIn("900.00", body["message"])

        response = self.client.post(f"/api/v1/bookings/{pnr}/cancel", json={})
        self.assertEqual(response.status_code, 409)

        cancellations = self.client.get("/api/v1/admin/cancellations").json()
        self.assertEqual([c["pnr"] for c in cancellations], [pnr])

    def test_patch_to_cancelled_is_rejected(self):
        pnr = self.book(self.train["id"]).json()["pnr"]
        response = self.client.patch(f"/api/v1/bookings/{pnr}", json={"booking_status": "Cancelled"})
        self.assertEqual(response.status_code, 400)

    def test_cancelled_booking_stays_cancelled(self):
        pnr = self.book(self.train["id"]).json()["pnr"]
        self.assertEqual(self.client.post(f"/api/v1/bookings/{pnr}/cancel", json={}).status_code, 200)

        response = self.client.patch(f"/api/v1/bookings/{pnr}", json={"booking_status": "Confirmed"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("cannot be reinstated", response.json()["detail"])

        body = self.client.get(f"/api/v1/bookings/{pnr}").json()
        self.assertEqual(body["booking_status"], "Cancelled")
        self.assertEqual(self.client.get(f"/api/v1/trains/{self.train['id']}").json()["available_seats"], 100)

        response = self.client.post(f"/api/v1/bookings/{pnr}/cancel", json={})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(len(self.client.get("/api/v1/admin/cancellations").json()), 1)


class AdminApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.train = self.create_train()

    def revenue(self):
        return Decimal(self.client.get("/api/v1/admin/revenue").json()["total_revenue"])

    def test_revenue_follows_payment_status(self):
        self.book(self.train["id"], total_amount="1000")
        self.book(self.train["id"], total_amount="500")
        self.assertEqual(self.revenue(), Decimal("1500"))

        payments = self.client.get("/api/v1/admin/payments").json()
        first = next(p for p in payments if Decimal(p["amount"]) == Decimal("1000"))

        response = self.client.patch(f"/api/v1/admin/payments/{first['id']}", json={"status": "Failed"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "Failed")
        self.assertEqual(self.revenue(), Decimal("500"))

    def test_unknown_payment(self):
        response = self.client.patch("/api/v1/admin/payments/9999", json={"status": "Failed"})
        self.assertEqual(response.status_code, 404)

    def test_dashboard(self):
        self.book(self.train["id"], passengers=3)
        body = self.client.get("/api/v1/admin/dashboard").json()
        self.assertEqual(body["confirmed_bookings"], 3)
        self.assertEqual(body["trains"][0]["booked_seats"], 3)

    def test_query_log(self):
        self.client.get(f"/api/v1/trains/{self.train['id']}")

        body = self.client.get("/api/v1/admin/query-log", params={"limit": 5}).json()
        self.assertLessEqual(body["total"], 5)
        self.assertIn("SELECT", {q["operation"] for q in body["queries"]})

        self.assertEqual(self.client.delete("/api/v1/admin/query-log").status_code, 204)
        self.assertEqual(query_log.entries(), [])

    def test_change_stream(self):
        with self.client.websocket_connect("/api/v1/admin/changes") as websocket:
            websocket.send_json({"type": "ping"})
            self.assertEqual(websocket.receive_json()["type"], "pong")

            websocket.send_json({"type": "subscribe", "tables": ["trains", "unknown"]})
            confirmed = websocket.receive_json()
            self.assertEqual(confirmed["type"], "subscription_confirmed")
            self.assertEqual(confirmed["tables"], ["trains"])

            self.create_train(number="22439", origin="New Delhi", destination="Katra")
            change = websocket.receive_json()
            self.assertEqual(change["type"], "change")
            self.assertEqual(change["table"], "trains")
            self.assertEqual(change["event"], "INSERT")
            self.assertEqual(change["new"]["train_number"], "22439")


if __name__ == "__main__":
    unittest.main()
