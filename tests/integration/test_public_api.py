# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Integration tests for the guest-facing API."""

from datetime import timedelta
from decimal import Decimal

import pytest
from hotel_pms.models.booking import BOOKING_STATUS_CHECKED_IN


def _stay(arrival, nights=2):
    return {
        "checkIn": arrival.isoformat(),
        "checkOut": (arrival + timedelta(days=nights)).isoformat(),
    }


class TestHealth:
    """Tests for GET /health."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        """Test the health endpoint needs no identity."""
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestAvailability:
    """Tests for GET /api/public/availability."""

    @pytest.mark.asyncio
    async def test_search(self, client, inventory, guest, make_booking, arrival):
        """Test free rooms are counted per type."""
        await make_booking(
            inventory.rooms["101"], guest, arrival, arrival + timedelta(days=2)
        )

        response = await client.get(
            "/api/public/availability", params={**_stay(arrival), "guests": "2"}
        )

        assert response.status_code == 200
        data = {item["name"]: item for item in response.json()["data"]}
        assert data["Deluxe"]["available_count"] == 1
        assert data["Deluxe"]["room_ids"] == [inventory.rooms["102"].id]
        assert Decimal(data["Deluxe"]["price"]) == Decimal("500.00")
        assert data["Deluxe"]["images"] == ["https://example.com/deluxe.jpg"]
        assert data["Suite"]["available_count"] == 1

    @pytest.mark.asyncio
    async def test_large_party(self, client, inventory, arrival):
        """Test types too small for the party show nothing free."""
        response = await client.get(
            "/api/public/availability", params={**_stay(arrival), "guests": "3"}
        )
        data = {item["name"]: item for item in response.json()["data"]}
        assert data["Deluxe"]["available_count"] == 0
        assert data["Suite"]["available_count"] == 1

    @pytest.mark.asyncio
    async def test_missing_dates(self, client, inventory):
        """Test both dates are required."""
        response = await client.get("/api/public/availability")
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing checkIn or checkOut parameters"

    @pytest.mark.asyncio
    async def test_inverted_dates(self, client, inventory, arrival):
        """Test departure must follow arrival."""
        response = await client.get(
            "/api/public/availability",
            params={"checkIn": arrival.isoformat(), "checkOut": arrival.isoformat()},
        )
        assert response.status_code == 400
        assert "must be after" in response.json()["detail"]


class TestPublicBooking:
    """Tests for POST /api/public/bookings."""

    @pytest.mark.asyncio
    async def test_book_online(self, client, inventory, arrival):
        """Test a website booking allocates a room."""
        response = await client.post(
            "/api/public/bookings",
            json={
                "check_in": arrival.isoformat(),
                "check_out": (arrival + timedelta(days=3)).isoformat(),
                "room_type_id": inventory.suite.id,
                "guest_name": "Kofi Boateng",
                "guest_email": "kofi@example.com",
                "guest_phone": "0241234567",
                "num_guests": 2,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["room_number"] == "201"
        assert Decimal(body["data"]["total_price"]) == Decimal("2700.00")
        assert body["data"]["status"] == "confirmed"
        assert body["message"].startswith("Booking created successfully")

    @pytest.mark.asyncio
    async def test_room_type_by_name(self, client, inventory, arrival):
        """Test the voice agent may name the room type."""
        response = await client.post(
            "/api/public/bookings",
            json={
                "check_in": arrival.isoformat(),
                "check_out": (arrival + timedelta(days=1)).isoformat(),
                "room_type_id": "deluxe",
                "guest_name": "Kofi Boateng",
                "guest_email": "kofi@example.com",
                "source": "voice_agent",
            },
        )
        assert response.status_code == 200
        assert response.json()["data"]["room_number"] in {"101", "102"}

    @pytest.mark.asyncio
    async def test_sold_out(self, client, inventory, guest, make_booking, arrival):
        """Test a full type answers 409."""
        end = arrival + timedelta(days=2)
        await make_booking(inventory.rooms["201"], guest, arrival, end)

        response = await client.post(
            "/api/public/bookings",
            json={
                "check_in": arrival.isoformat(),
                "check_out": end.isoformat(),
                "room_type_id": inventory.suite.id,
                "guest_name": "Kofi Boateng",
                "guest_email": "kofi@example.com",
            },
        )
        assert response.status_code == 409
        assert response.json()["detail"] == "No rooms available for these dates"

    @pytest.mark.asyncio
    async def test_missing_fields(self, client, inventory, arrival):
        """Test guest details are required."""
        response = await client.post(
            "/api/public/bookings",
            json={
                "check_in": arrival.isoformat(),
                "check_out": (arrival + timedelta(days=1)).isoformat(),
                "room_type_id": inventory.suite.id,
            },
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Missing required fields"

    @pytest.mark.asyncio
    async def test_unknown_room_type(self, client, inventory, arrival):
        """Test unknown room types answer 404."""
        response = await client.post(
            "/api/public/bookings",
            json={
                "check_in": arrival.isoformat(),
                "check_out": (arrival + timedelta(days=1)).isoformat(),
                "room_type_id": 999,
                "guest_name": "Kofi Boateng",
                "guest_email": "kofi@example.com",
            },
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_staff_source_refused(self, client, inventory, arrival):
        """Test the public endpoint cannot create front desk bookings."""
        response = await client.post(
            "/api/public/bookings",
            json={
                "check_in": arrival.isoformat(),
                "check_out": (arrival + timedelta(days=1)).isoformat(),
                "room_type_id": inventory.suite.id,
                "guest_name": "Kofi Boateng",
                "guest_email": "kofi@example.com",
                "source": "front_desk",
            },
        )
        assert response.status_code == 400


class TestGuestPortal:
    """Tests for the guest portal endpoints."""

    @pytest.fixture
    async def in_house(self, inventory, guest, make_booking, today):
        """Guest checked in to room 101."""
        return await make_booking(
            inventory.rooms["101"],
            guest,
            today - timedelta(days=1),
            today + timedelta(days=1),
            BOOKING_STATUS_CHECKED_IN,
            guest_token="portal-token",
        )

    @pytest.mark.asyncio
    async def test_login_and_requests(self, client, in_house):
        """Test a guest logs in, then files and lists requests."""
        login = await client.post(
            "/api/public/guest/login",
            json={"room_number": "101", "first_name": "Ama"},
        )
        assert login.status_code == 200
        token = login.json()["token"]
        assert token == "portal-token"

        verify = await client.get("/api/public/guest/verify", params={"token": token})
        assert verify.json()["guest"] == {"name": "Ama Mensah", "room": "101"}

        created = await client.post(
            "/api/public/guest/requests",
            json={"token": token, "request_type": "housekeeping", "details": "Towels"},
        )
        assert created.status_code == 200
        assert created.json()["request"]["status"] == "pending"

        listed = await client.get("/api/public/guest/requests", params={"token": token})
        assert [r["request_type"] for r in listed.json()["requests"]] == [
            "housekeeping"
        ]

    @pytest.mark.asyncio
    async def test_login_wrong_name(self, client, in_house):
        """Test a mismatched name answers 401."""
        response = await client.post(
            "/api/public/guest/login",
            json={"room_number": "101", "first_name": "Kofi"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_missing_fields(self, client, in_house):
        """Test missing fields answer 400."""
        response = await client.post("/api/public/guest/login", json={})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_token(self, client, in_house):
        """Test unknown tokens answer 404."""
        response = await client.get(
            "/api/public/guest/verify", params={"token": "nope"}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_review_once(self, client, in_house):
        """Test a stay is reviewed once."""
        payload = {"booking_id": in_house.id, "rating": 5, "comment": "Great"}
        first = await client.post("/api/public/reviews", json=payload)
        assert first.status_code == 200
        assert first.json()["review"]["status"] == "pending"

        second = await client.post("/api/public/reviews", json=payload)
        assert second.status_code == 409

    @pytest.mark.asyncio
    async def test_review_bad_rating(self, client, in_house):
        """Test ratings outside 1 to 5 answer 400."""
        response = await client.post(
            "/api/public/reviews", json={"booking_id": in_house.id, "rating": 9}
        )
        assert response.status_code == 400
