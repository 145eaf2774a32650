from datetime import timedelta
from decimal import Decimal

from tests.factories import ADMIN, CUSTOMER, OTHER_CUSTOMER, START, booking_payload, fail_once_with_lock, submit


class TestSubmitBooking:
    def test_creates_pending_booking(self, client):
        booking = submit(client, with_driver=True)

        assert booking["status"] == "pending"
        assert booking["customer_id"] == "cust-1"
        assert Decimal(booking["base_price"]) == Decimal("2000")
        assert Decimal(booking["driver_charge"]) == Decimal("800")
        assert Decimal(booking["total_price"]) == Decimal("2800")
        assert booking["verification"]["email"] == "asha@example.com"

    def test_retries_after_transient_lock(self, client, api_bundle):
        calls = fail_once_with_lock(api_bundle["booking_store"], "create")

        booking = submit(client)

        assert booking["status"] == "pending"
        assert len(calls) == 2
        assert len(client.get("/api/v1/bookings/mine", headers=CUSTOMER).json()["bookings"]) == 1

    def test_requires_caller_identity(self, client):
        response = client.post("/api/v1/bookings", json=booking_payload())

        assert response.status_code == 403
        assert response.json()["code"] == "ACCESS_DENIED"

    def test_malformed_body_is_unprocessable(self, client):
        payload = booking_payload()
        payload["verification"]["email"] = "not-an-email"

        response = client.post("/api/v1/bookings", json=payload, headers=CUSTOMER)

        assert response.status_code == 422

    def test_unknown_fields_are_rejected(self, client):
        response = client.post("/api/v1/bookings", json=booking_payload(total_price="1"), headers=CUSTOMER)
        assert response.status_code == 422

    def test_invalid_duration(self, client):
        response = client.post("/api/v1/bookings", json=booking_payload(duration_hours=30), headers=CUSTOMER)

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_missing_document(self, client):
        payload = booking_payload()
        payload["documents"]["live_photo"] = None

        response = client.post("/api/v1/bookings", json=payload, headers=CUSTOMER)

        assert response.status_code == 400

    def test_unknown_car(self, client):
        response = client.post("/api/v1/bookings", json=booking_payload(car_id="car-404"), headers=CUSTOMER)

        assert response.status_code == 404
        assert response.json()["code"] == "CAR_NOT_FOUND"


class TestReadBookings:
    def test_owner_and_admin_can_read(self, client):
        booking = submit(client)

        assert client.get(f"/api/v1/bookings/{booking['id']}", headers=CUSTOMER).status_code == 200
        assert client.get(f"/api/v1/bookings/{booking['id']}", headers=ADMIN).status_code == 200
        assert client.get(f"/api/v1/bookings/{booking['id']}", headers=OTHER_CUSTOMER).status_code == 403
        assert client.get("/api/v1/bookings/bk-404", headers=ADMIN).status_code == 404

    def test_list_mine(self, client):
        booking = submit(client)

        mine = client.get("/api/v1/bookings/mine", headers=CUSTOMER).json()["bookings"]
        others = client.get("/api/v1/bookings/mine", headers=OTHER_CUSTOMER).json()["bookings"]

        assert [b["id"] for b in mine] == [booking["id"]]
        assert others == []

    def test_admin_listing_with_status_filter(self, client):
        booking = submit(client)

        assert client.get("/api/v1/bookings", headers=CUSTOMER).status_code == 403
        pending = client.get("/api/v1/bookings", params={"status": "pending"}, headers=ADMIN).json()
        paid = client.get("/api/v1/bookings", params={"status": "paid"}, headers=ADMIN).json()

        assert [b["id"] for b in pending["bookings"]] == [booking["id"]]
        assert paid["bookings"] == []


class TestAdminTransitions:
    def test_accept_then_accept_again_conflicts(self, client):
        booking = submit(client)

        accepted = client.put(
            f"/api/v1/bookings/{booking['id']}/review",
            json={"action": "accept", "admin_notes": "ok"},
            headers=ADMIN,
        )
        again = client.put(
            f"/api/v1/bookings/{booking['id']}/review", json={"action": "accept"}, headers=ADMIN
        )

        assert accepted.status_code == 200
        assert accepted.json()["status"] == "payment_pending"
        assert again.status_code == 409
        assert again.json()["code"] == "INVALID_TRANSITION"

    def test_review_requires_admin(self, client):
        booking = submit(client)

        response = client.put(
            f"/api/v1/bookings/{booking['id']}/review", json={"action": "accept"}, headers=CUSTOMER
        )

        assert response.status_code == 403

    def test_unknown_review_action(self, client):
        booking = submit(client)

        response = client.put(
            f"/api/v1/bookings/{booking['id']}/review", json={"action": "maybe"}, headers=ADMIN
        )

        assert response.status_code == 400

    def test_start_before_payment_conflicts(self, client):
        booking = submit(client)

        response = client.put(
            f"/api/v1/bookings/{booking['id']}/start",
            json={"vehicle_name": "Swift Dzire", "vehicle_number": "KA01AB1234", "start_odometer": 1000},
            headers=ADMIN,
        )

        assert response.status_code == 409

    def test_cancel(self, client):
        booking = submit(client)

        response = client.put(
            f"/api/v1/bookings/{booking['id']}/cancel", json={"reason": "duplicate"}, headers=ADMIN
        )

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"


class TestAvailability:
    def test_pending_request_blocks_window(self, client):
        before = client.get(
            "/api/v1/cars/car-1/availability",
            params={"start": START.isoformat(), "end": (START + timedelta(hours=12)).isoformat()},
        ).json()
        submit(client)
        after = client.get(
            "/api/v1/cars/car-1/availability",
            params={"start": START.isoformat(), "end": (START + timedelta(hours=12)).isoformat()},
        ).json()
        adjacent = client.get(
            "/api/v1/cars/car-1/availability",
            params={
                "start": (START + timedelta(hours=24)).isoformat(),
                "end": (START + timedelta(hours=36)).isoformat(),
            },
        ).json()

        assert before["available"] is True
        assert after["available"] is False
        assert len(after["conflicts"]) == 1
        assert adjacent["available"] is True

    def test_inverted_window(self, client):
        response = client.get(
            "/api/v1/cars/car-1/availability",
            params={"start": START.isoformat(), "end": START.isoformat()},
        )
        assert response.status_code == 400


class TestNotificationEndpoints:
    def test_list_and_mark_read(self, client):
        submit(client)

        listed = client.get("/api/v1/notifications", headers=CUSTOMER).json()["notifications"]
        read = client.put(f"/api/v1/notifications/{listed[0]['id']}/read", headers=CUSTOMER)
        missing = client.put(f"/api/v1/notifications/{listed[0]['id']}/read", headers=OTHER_CUSTOMER)

        assert listed[0]["message"] == "New booking request submitted for Swift Dzire"
        assert read.status_code == 200
        assert read.json()["read"] is True
        assert missing.status_code == 404


class TestHealth:
    def test_liveness(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_readiness_reports_breaker_state(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"]["payment_gateway"] == "closed"
