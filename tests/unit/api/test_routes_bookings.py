"""Unit tests for the booking endpoints."""

import pytest
from fastapi.testclient import TestClient

from conftest import GUIDE_A_HEADERS, GUIDE_B_HEADERS, REQUEST_BODY, TOURIST_HEADERS


def book(client: TestClient, **overrides: str) -> dict:
    """Post a request, apply as guide A and accept; returns the booking."""
    request_id = client.post(
        "/api/requests", json={**REQUEST_BODY, **overrides}, headers=TOURIST_HEADERS
    ).json()["request_id"]
    client.post(
        f"/api/requests/{request_id}/applications",
        json={"proposed_price": 450, "cover_letter": "Local historian"},
        headers=GUIDE_A_HEADERS,
    )
    response = client.post(
        f"/api/requests/{request_id}/applications/guide-a/accept", headers=TOURIST_HEADERS
    )
    assert response.status_code == 201, response.text
    return response.json()["booking"]


@pytest.fixture
def future_booking(client: TestClient) -> dict:
    return book(client, start_date="2099-01-10", end_date="2099-01-12")


class TestGuideResponse:
    def test_guide_confirms(self, client: TestClient, future_booking: dict) -> None:
        response = client.post(
            f"/api/bookings/{future_booking['booking_id']}/respond",
            json={"decision": "upcoming"},
            headers=GUIDE_A_HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "upcoming"

    def test_guide_declines_then_cannot_respond_again(
        self, client: TestClient, future_booking: dict
    ) -> None:
        url = f"/api/bookings/{future_booking['booking_id']}/respond"

        declined = client.post(url, json={"decision": "cancelled"}, headers=GUIDE_A_HEADERS)
        again = client.post(url, json={"decision": "upcoming"}, headers=GUIDE_A_HEADERS)

        assert declined.json()["cancelled_by"] == "guide"
        assert again.status_code == 409

    def test_other_guide_is_403(self, client: TestClient, future_booking: dict) -> None:
        response = client.post(
            f"/api/bookings/{future_booking['booking_id']}/respond",
            json={"decision": "upcoming"},
            headers=GUIDE_B_HEADERS,
        )

        assert response.status_code == 403

    def test_unknown_decision_is_422(self, client: TestClient, future_booking: dict) -> None:
        response = client.post(
            f"/api/bookings/{future_booking['booking_id']}/respond",
            json={"decision": "maybe"},
            headers=GUIDE_A_HEADERS,
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "ERR_VALIDATION"


class TestTouristCancel:
    def test_cancel_well_ahead(self, client: TestClient, future_booking: dict) -> None:
        response = client.post(
            f"/api/bookings/{future_booking['booking_id']}/cancel", headers=TOURIST_HEADERS
        )

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["cancelled_by"] == "tourist"

    def test_cancel_after_start_is_422(self, client: TestClient) -> None:
        booking = book(client)  # starts 2025-06-01

        response = client.post(f"/api/bookings/{booking['booking_id']}/cancel", headers=TOURIST_HEADERS)

        assert response.status_code == 422
        data = response.json()
        assert data["error_code"] == "ERR_007"
        assert data["kind"] == "policy_violation"

    def test_guide_cannot_cancel_as_tourist(self, client: TestClient, future_booking: dict) -> None:
        response = client.post(
            f"/api/bookings/{future_booking['booking_id']}/cancel", headers=GUIDE_A_HEADERS
        )

        assert response.status_code == 403


class TestReadBookings:
    def test_get_and_list(self, client: TestClient, future_booking: dict) -> None:
        by_id = client.get(f"/api/bookings/{future_booking['booking_id']}")
        by_guide = client.get("/api/bookings", params={"guide_id": "guide-a"}).json()
        by_tourist = client.get("/api/bookings", params={"tourist_id": "tourist-1"}).json()

        assert by_id.status_code == 200
        assert by_id.json()["agreed_price"] == 450
        assert [b["booking_id"] for b in by_guide["items"]] == [future_booking["booking_id"]]
        assert by_tourist["pagination"]["total"] == 1

    def test_unknown_booking_is_404(self, client: TestClient) -> None:
        assert client.get("/api/bookings/BKG-NOPE").status_code == 404

    def test_request_without_booking_is_404(self, client: TestClient) -> None:
        request_id = client.post(
            "/api/requests", json=REQUEST_BODY, headers=TOURIST_HEADERS
        ).json()["request_id"]

        assert client.get(f"/api/requests/{request_id}/booking").status_code == 404

    def test_cancellation_policy(self, client: TestClient) -> None:
        response = client.get("/api/bookings/cancellation-policy")

        assert response.status_code == 200
        assert response.json()["minimum_notice_hours"] == 24
        assert "24 hours" in response.json()["description"]
