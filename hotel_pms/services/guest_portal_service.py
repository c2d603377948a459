# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Guest portal: room login, token verification, requests and reviews."""

import logging
from collections.abc import Sequence
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.booking import (
    BOOKING_STATUS_CHECKED_IN,
    BOOKING_STATUS_CONFIRMED,
    Booking,
)
from hotel_pms.models.guest_portal import GuestRequest, Review
from hotel_pms.repositories.booking_repository import BookingRepository
from hotel_pms.repositories.guest_portal_repository import (
    GuestRequestRepository,
    ReviewRepository,
)
from hotel_pms.repositories.room_repository import RoomRepository
from hotel_pms.services.booking_service import generate_guest_token

logger = logging.getLogger(__name__)

PORTAL_STATUSES = frozenset({BOOKING_STATUS_CONFIRMED, BOOKING_STATUS_CHECKED_IN})
MIN_RATING = 1
MAX_RATING = 5


class GuestPortalError(Exception):
    """Exception raised for guest portal errors."""

    pass


class GuestValidationError(GuestPortalError):
    """Exception raised when a guest request is incomplete."""

    pass


class GuestAuthError(GuestPortalError):
    """Exception raised when room login fails."""

    pass


class GuestTokenError(GuestPortalError):
    """Exception raised for unknown guest tokens or bookings."""

    pass


class ReviewExistsError(GuestPortalError):
    """Exception raised when a booking already has a review."""

    pass


class GuestPortalService:
    """Service backing the guest self-service portal.

    Guests identify with their room number and first name and then use the
    booking's guest token for every call.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize GuestPortalService.

        Args:
            session: Async database session.
        """
        self._room_repo = RoomRepository(session)
        self._booking_repo = BookingRepository(session)
        self._request_repo = GuestRequestRepository(session)
        self._review_repo = ReviewRepository(session)

    async def login(
        self, room_number: str, first_name: str, today: date | None = None
    ) -> dict[str, str]:
        """Log a guest in with room number and first name.

        Args:
            room_number: Room the guest stays in.
            first_name: Guest first name, matched case-insensitively.
            today: Current hotel date.

        Returns:
            Dict with ``token`` and ``guest_name``.

        Raises:
            GuestValidationError: If either field is missing.
            GuestAuthError: If the room, booking or name does not match.
        """
        room_number = (room_number or "").strip()
        first_name = (first_name or "").strip()
        if not room_number or not first_name:
            msg = "Room number and First Name are required"
            raise GuestValidationError(msg)

        room = await self._room_repo.get_by_number(room_number)
        if room is None:
            msg = "Invalid Room Number"
            raise GuestAuthError(msg)

        bookings = await self._booking_repo.get_for_room_latest_first(room.id)
        if not bookings:
            msg = "No bookings found for this room."
            raise GuestAuthError(msg)

        today = today or datetime.now(UTC).date()
        active = next(
            (
                booking
                for booking in bookings
                if booking.status in PORTAL_STATUSES and booking.check_out >= today
            ),
            None,
        )
        if active is None:
            statuses = ", ".join(booking.status for booking in bookings)
            msg = f"No active booking found. Existing booking statuses: {statuses}"
            raise GuestAuthError(msg)

        guest_name = active.guest.name if active.guest else ""
        if not guest_name.lower().startswith(first_name.lower()):
            shown = active.guest.first_name if active.guest else ""
            msg = f'Name does not match. Guest on booking: "{shown or "Unknown"}"'
            raise GuestAuthError(msg)

        if not active.guest_token:
            active.guest_token = generate_guest_token()
            await self._booking_repo.update(active)

        logger.info("Guest portal login for room %s", room_number)
        return {"token": active.guest_token, "guest_name": guest_name}

    async def verify(self, token: str) -> dict[str, Any]:
        """Resolve a guest token to the stay it belongs to.

        Raises:
            GuestValidationError: If the token is missing.
            GuestTokenError: If no booking uses the token.
        """
        booking = await self._get_by_token(token)
        return {
            "valid": True,
            "guest": {
                "name": booking.guest.name if booking.guest else "Guest",
                "room": booking.room.room_number if booking.room else "Unassigned",
            },
            "booking": {
                "id": booking.id,
                "check_in": booking.check_in,
                "check_out": booking.check_out,
                "status": booking.status,
            },
        }

    async def submit_request(
        self, token: str, request_type: str, details: str | None = None
    ) -> GuestRequest:
        """Record a service request from a guest.

        Raises:
            GuestValidationError: If the request type is missing.
            GuestTokenError: If the token is unknown.
        """
        if not request_type:
            msg = "Missing required fields"
            raise GuestValidationError(msg)
        booking = await self._get_by_token(token)
        request = await self._request_repo.create(
            GuestRequest(
                booking_id=booking.id, request_type=request_type, details=details
            )
        )
        logger.info("Guest request %s for booking %d", request_type, booking.id)
        return request

    async def list_requests(self, token: str) -> Sequence[GuestRequest]:
        """List the requests made under a guest token."""
        booking = await self._get_by_token(token)
        return await self._request_repo.get_for_booking(booking.id)

    async def submit_review(
        self,
        booking_id: int | None,
        rating: int | None,
        comment: str | None = None,
        guest_name: str | None = None,
    ) -> Review:
        """Store a guest review for moderation.

        Raises:
            GuestValidationError: If booking or rating is missing or out of range.
            GuestTokenError: If the booking does not exist.
            ReviewExistsError: If the booking was already reviewed.
        """
        if booking_id is None or rating is None:
            msg = "Missing bookingId or rating"
            raise GuestValidationError(msg)
        if not MIN_RATING <= rating <= MAX_RATING:
            msg = f"Rating must be between {MIN_RATING} and {MAX_RATING}"
            raise GuestValidationError(msg)

        booking = await self._booking_repo.get_by_id(booking_id)
        if booking is None:
            msg = "Booking not found"
            raise GuestTokenError(msg)
        if await self._review_repo.get_for_booking(booking_id) is not None:
            msg = "Review already submitted for this booking."
            raise ReviewExistsError(msg)

        review = await self._review_repo.create(
            Review(
                booking_id=booking_id,
                guest_name=guest_name or (booking.guest.name if booking.guest else ""),
                rating=rating,
                comment=comment,
            )
        )
        logger.info("Review (%d stars) submitted for booking %d", rating, booking_id)
        return review

    async def _get_by_token(self, token: str) -> Booking:
        """Get the booking of a guest token."""
        if not token:
            msg = "Missing token"
            raise GuestValidationError(msg)
        booking = await self._booking_repo.get_by_guest_token(token)
        if booking is None:
            msg = "Invalid or Expired Token"
            raise GuestTokenError(msg)
        return booking
