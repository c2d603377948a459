# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for GuestPortalService."""

from datetime import timedelta

import pytest
from hotel_pms.models.booking import (
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_CHECKED_IN,
)
from hotel_pms.services.guest_portal_service import (
    GuestAuthError,
    GuestPortalService,
    GuestTokenError,
    GuestValidationError,
    ReviewExistsError,
)


@pytest.fixture
async def in_house(inventory, guest, make_booking, today):
    """Guest staying in room 101 right now."""
    return await make_booking(
        inventory.rooms["101"],
        guest,
        today - timedelta(days=1),
        today + timedelta(days=2),
        BOOKING_STATUS_CHECKED_IN,
        guest_token="portal-token-101",
    )


class TestLogin:
    """Tests for guest portal login."""

    @pytest.mark.asyncio
    async def test_login(self, async_session, in_house):
        """Test room number and first name return the booking token."""
        result = await GuestPortalService(async_session).login("101", "ama")
        assert result == {"token": "portal-token-101", "guest_name": "Ama Mensah"}

    @pytest.mark.asyncio
    async def test_login_issues_missing_token(
        self, async_session, inventory, guest, make_booking, today
    ):
        """Test a booking without token gets one at login."""
        booking = await make_booking(
            inventory.rooms["102"], guest, today, today + timedelta(days=1)
        )

        result = await GuestPortalService(async_session).login(" 102 ", "Ama")
        assert result["token"]
        assert booking.guest_token == result["token"]

    @pytest.mark.asyncio
    async def test_login_missing_fields(self, async_session):
        """Test both fields are required."""
        with pytest.raises(GuestValidationError, match="Room number and First Name"):
            await GuestPortalService(async_session).login("101", "  ")

    @pytest.mark.asyncio
    async def test_login_unknown_room(self, async_session, inventory):
        """Test unknown rooms are refused."""
        with pytest.raises(GuestAuthError, match="Invalid Room Number"):
            await GuestPortalService(async_session).login("999", "Ama")

    @pytest.mark.asyncio
    async def test_login_room_without_bookings(self, async_session, inventory):
        """Test rooms that never had a booking are refused."""
        with pytest.raises(GuestAuthError, match="No bookings found"):
            await GuestPortalService(async_session).login("201", "Ama")

    @pytest.mark.asyncio
    async def test_login_no_active_booking(
        self, async_session, inventory, guest, make_booking, today
    ):
        """Test cancelled and past stays do not open the portal."""
        await make_booking(
            inventory.rooms["102"],
            guest,
            today,
            today + timedelta(days=1),
            BOOKING_STATUS_CANCELLED,
        )
        with pytest.raises(
            GuestAuthError, match="Existing booking statuses: cancelled"
        ):
            await GuestPortalService(async_session).login("102", "Ama")

    @pytest.mark.asyncio
    async def test_login_wrong_name(self, async_session, in_house):
        """Test a mismatched name shows the guest's first name."""
        with pytest.raises(GuestAuthError, match='Guest on booking: "Ama"'):
            await GuestPortalService(async_session).login("101", "Kofi")


class TestTokenCalls:
    """Tests for calls authenticated by guest token."""

    @pytest.mark.asyncio
    async def test_verify(self, async_session, in_house):
        """Test a token resolves to its stay."""
        result = await GuestPortalService(async_session).verify("portal-token-101")
        assert result["valid"] is True
        assert result["guest"] == {"name": "Ama Mensah", "room": "101"}
        assert result["booking"]["id"] == in_house.id
        assert result["booking"]["status"] == BOOKING_STATUS_CHECKED_IN

    @pytest.mark.asyncio
    async def test_verify_unknown_token(self, async_session, in_house):
        """Test unknown tokens are refused."""
        with pytest.raises(GuestTokenError, match="Invalid or Expired Token"):
            await GuestPortalService(async_session).verify("nope")

    @pytest.mark.asyncio
    async def test_verify_missing_token(self, async_session):
        """Test a token is required."""
        with pytest.raises(GuestValidationError, match="Missing token"):
            await GuestPortalService(async_session).verify("")

    @pytest.mark.asyncio
    async def test_requests(self, async_session, in_house):
        """Test service requests are stored and listed per booking."""
        service = GuestPortalService(async_session)
        request = await service.submit_request(
            "portal-token-101", "towels", "Two extra towels"
        )
        assert request.booking_id == in_house.id
        assert request.status == "pending"

        requests = await service.list_requests("portal-token-101")
        assert [r.request_type for r in requests] == ["towels"]

    @pytest.mark.asyncio
    async def test_request_needs_type(self, async_session, in_house):
        """Test a request type is required."""
        with pytest.raises(GuestValidationError, match="Missing required fields"):
            await GuestPortalService(async_session).submit_request(
                "portal-token-101", ""
            )


class TestReviews:
    """Tests for guest reviews."""

    @pytest.mark.asyncio
    async def test_submit_review(self, async_session, in_house):
        """Test a review is stored pending moderation."""
        review = await GuestPortalService(async_session).submit_review(
            in_house.id, 5, "Lovely stay"
        )
        assert review.rating == 5
        assert review.guest_name == "Ama Mensah"
        assert review.status == "pending"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating", [0, 6])
    async def test_rating_range(self, async_session, in_house, rating):
        """Test ratings outside 1 to 5 are refused."""
        with pytest.raises(GuestValidationError, match="between 1 and 5"):
            await GuestPortalService(async_session).submit_review(in_house.id, rating)

    @pytest.mark.asyncio
    async def test_one_review_per_booking(self, async_session, in_house):
        """Test a booking is reviewed once."""
        service = GuestPortalService(async_session)
        await service.submit_review(in_house.id, 4)
        with pytest.raises(ReviewExistsError, match="already submitted"):
            await service.submit_review(in_house.id, 5)

    @pytest.mark.asyncio
    async def test_review_unknown_booking(self, async_session):
        """Test reviews need an existing booking."""
        with pytest.raises(GuestTokenError, match="Booking not found"):
            await GuestPortalService(async_session).submit_review(123, 4)

    @pytest.mark.asyncio
    async def test_review_missing_fields(self, async_session):
        """Test booking and rating are required."""
        with pytest.raises(GuestValidationError, match="Missing bookingId or rating"):
            await GuestPortalService(async_session).submit_review(None, 4)
