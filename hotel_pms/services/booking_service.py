# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Booking engine: room allocation, group bookings and cancellation."""

import logging
import secrets
import string
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.config import get_settings
from hotel_pms.models.booking import (
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_CONFIRMED,
    SOURCE_FRONT_DESK,
    SOURCE_ONLINE,
    SOURCE_VOICE_AGENT,
    Booking,
)
from hotel_pms.models.room import Room, RoomType
from hotel_pms.repositories.booking_repository import BookingRepository
from hotel_pms.repositories.guest_repository import GuestRepository
from hotel_pms.repositories.room_repository import RoomRepository, RoomTypeRepository
from hotel_pms.repositories.staff_repository import StaffRepository
from hotel_pms.services.activity_log_service import ActivityLogService
from hotel_pms.services.availability_service import AvailabilityService
from hotel_pms.services.calendar_service import CalendarCache, get_calendar_cache
from hotel_pms.services.notification_service import BookingNotice, NotificationService

logger = logging.getLogger(__name__)

SOURCE_LABELS = {
    SOURCE_ONLINE: "Online Booking",
    SOURCE_VOICE_AGENT: "Voice Agent Booking",
}

GROUP_REFERENCE_LENGTH = 4


class BookingError(Exception):
    """Exception raised for booking errors."""

    pass


class BookingValidationError(BookingError):
    """Exception raised when a booking request is incomplete or inconsistent."""

    pass


class RoomTypeNotFoundError(BookingError):
    """Exception raised when the requested room type cannot be resolved."""

    pass


class NoRoomsOfTypeError(BookingError):
    """Exception raised when a room type has no bookable rooms at all."""

    pass


class NoAvailabilityError(BookingError):
    """Exception raised when every room of the type is taken for the dates."""

    pass


class BookingNotFoundError(BookingError):
    """Exception raised when a booking does not exist."""

    pass


@dataclass
class StayRequest:
    """One room requested within a booking."""

    check_in: str | date | None
    check_out: str | date | None
    room_type_id: str | int | None
    num_guests: int = 1
    room_id: int | None = None


def generate_guest_token() -> str:
    """Generate an unguessable guest portal token."""
    return secrets.token_urlsafe(24)


def generate_group_reference(year: int | None = None) -> str:
    """Generate a short group reference such as ``GRP-2026-K3QZ``."""
    alphabet = string.ascii_uppercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(GROUP_REFERENCE_LENGTH))
    return f"GRP-{year or datetime.now(UTC).year}-{suffix}"


def format_special_requests(source: str, special_requests: str | None) -> str | None:
    """Prefix guest requests with the channel the booking came through."""
    label = SOURCE_LABELS.get(source)
    if label is None:
        return special_requests or None
    prefix = f"[{label}]"
    return f"{prefix}\n{special_requests}" if special_requests else prefix


def _parse_date(value: str | date, field_name: str) -> date:
    """Parse a ``YYYY-MM-DD`` string unless it already is a date."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value[:10])
    except ValueError as e:
        msg = f"Invalid {field_name} date: {value}"
        raise BookingValidationError(msg) from e


def validate_stay(
    check_in: str | date | None,
    check_out: str | date | None,
    today: date,
) -> tuple[date, date]:
    """Validate the dates of a new stay.

    Args:
        check_in: Arrival date.
        check_out: Departure date.
        today: Current hotel date.

    Returns:
        Tuple of (check_in, check_out).

    Raises:
        BookingValidationError: If a date is missing, in the past or inverted.
    """
    if not check_in or not check_out:
        msg = "Missing required fields"
        raise BookingValidationError(msg)
    start = _parse_date(check_in, "check-in")
    end = _parse_date(check_out, "check-out")
    if start < today:
        msg = (
            f"Check-in date ({start.isoformat()}) cannot be in the past. "
            f"Today is {today.isoformat()}."
        )
        raise BookingValidationError(msg)
    if end <= start:
        msg = (
            f"Check-out date ({end.isoformat()}) must be after "
            f"check-in date ({start.isoformat()})."
        )
        raise BookingValidationError(msg)
    return start, end


class BookingService:
    """Service creating, listing and cancelling bookings.

    Rooms are allocated at write time: a booking is only stored after the
    availability check found its room free, so a room never holds two
    occupying bookings for the same night.
    """

    def __init__(
        self,
        session: AsyncSession,
        calendar_cache: CalendarCache | None = None,
        notifications: NotificationService | None = None,
    ) -> None:
        """Initialize BookingService.

        Args:
            session: Async database session.
            calendar_cache: Feed cache cleared on booking writes.
            notifications: Notification sender, a default one when omitted.
        """
        self._session = session
        self._calendar_cache = calendar_cache or get_calendar_cache()
        self._notifications = notifications
        self._booking_repo = BookingRepository(session)
        self._guest_repo = GuestRepository(session)
        self._room_repo = RoomRepository(session)
        self._room_type_repo = RoomTypeRepository(session)
        self._staff_repo = StaffRepository(session)
        self._availability = AvailabilityService(session)
        self._activity = ActivityLogService(session)

    async def create_booking(
        self,
        stay: StayRequest,
        guest_name: str | None,
        guest_email: str | None,
        guest_phone: str | None = None,
        special_requests: str | None = None,
        source: str = SOURCE_ONLINE,
        user_id: str | None = None,
        notify: bool = True,
        today: date | None = None,
    ) -> Booking:
        """Book one room and notify the guest.

        Args:
            stay: Requested dates, room type and party size.
            guest_name: Guest full name.
            guest_email: Guest email, used to find returning guests.
            guest_phone: Optional phone number for SMS confirmation.
            special_requests: Free text from the guest.
            source: Booking channel (online, voice_agent, front_desk).
            user_id: Acting staff user, if any.
            notify: Whether to send guest and hotel notifications.
            today: Current hotel date, defaults to the UTC date.

        Returns:
            The confirmed booking.

        Raises:
            BookingValidationError: If required data is missing or invalid.
            RoomTypeNotFoundError: If the room type cannot be resolved.
            NoRoomsOfTypeError: If the type has no bookable rooms.
            NoAvailabilityError: If every room is taken for the dates.
        """
        has_room = bool(stay.room_type_id) or stay.room_id is not None
        if not has_room or not guest_name or not guest_email:
            msg = "Missing required fields"
            raise BookingValidationError(msg)

        booking = await self._create_single(
            stay,
            guest_name,
            guest_email,
            guest_phone,
            special_requests,
            source,
            user_id,
            today or datetime.now(UTC).date(),
        )
        await self._session.commit()
        self._calendar_cache.clear()

        if notify:
            await self._notify(booking, source)
        return booking

    async def create_group_booking(
        self,
        stays: Sequence[StayRequest],
        guest_name: str | None,
        guest_email: str | None,
        guest_phone: str | None = None,
        special_requests: str | None = None,
        source: str = SOURCE_FRONT_DESK,
        user_id: str | None = None,
        notify: bool = True,
        today: date | None = None,
    ) -> list[Booking]:
        """Book several rooms under one group reference.

        The first booking is the primary one and carries the billing
        contact. Either every room is booked or none is.

        Args:
            stays: Rooms requested, in order.
            guest_name: Billing contact name.
            guest_email: Billing contact email.
            guest_phone: Billing contact phone.
            special_requests: Free text from the guest.
            source: Booking channel.
            user_id: Acting staff user, if any.
            notify: Whether to notify the billing contact.
            today: Current hotel date.

        Returns:
            Created bookings, primary first.

        Raises:
            BookingError: If any room cannot be booked.
        """
        if not stays:
            msg = "A group booking needs at least one room"
            raise BookingValidationError(msg)
        if not guest_name or not guest_email:
            msg = "Missing required fields"
            raise BookingValidationError(msg)

        today = today or datetime.now(UTC).date()
        group_id = str(uuid.uuid4())
        group_reference = generate_group_reference(today.year)
        logger.info(
            "Starting group booking %s with %d rooms", group_reference, len(stays)
        )

        bookings: list[Booking] = []
        try:
            for index, stay in enumerate(stays):
                if not stay.room_type_id and stay.room_id is None:
                    msg = "Missing required fields"
                    raise BookingValidationError(msg)
                booking = await self._create_single(
                    stay,
                    guest_name,
                    guest_email,
                    guest_phone,
                    special_requests,
                    source,
                    user_id,
                    today,
                    group_id=group_id,
                    group_reference=group_reference,
                    is_primary=index == 0,
                )
                bookings.append(booking)
        except BookingError:
            await self._session.rollback()
            logger.warning(
                "Group booking %s failed after %d rooms", group_reference, len(bookings)
            )
            raise

        await self._session.commit()
        self._calendar_cache.clear()

        if notify:
            for booking in bookings:
                await self._notify(booking, source)
        return bookings

    async def add_to_group(
        self,
        group_id: str,
        stay: StayRequest,
        user_id: str | None = None,
        today: date | None = None,
    ) -> Booking:
        """Add a room to an existing group, billed to its primary contact.

        Raises:
            BookingNotFoundError: If the group does not exist.
        """
        members = await self._booking_repo.get_group(group_id)
        if not members:
            msg = f"No bookings found for group {group_id}"
            raise BookingNotFoundError(msg)
        primary = members[0]

        booking = await self._create_single(
            stay,
            primary.guest.name,
            primary.guest.email,
            primary.guest.phone,
            None,
            primary.source,
            user_id,
            today or datetime.now(UTC).date(),
            group_id=group_id,
            group_reference=primary.group_reference,
            is_primary=False,
        )
        await self._session.commit()
        self._calendar_cache.clear()
        return booking

    async def remove_from_group(
        self, booking_id: int, user_id: str | None = None
    ) -> dict[str, Any]:
        """Detach a booking from its group, promoting a new primary if needed.

        Returns:
            Dict with ``remaining_count`` and ``new_primary_id``.

        Raises:
            BookingNotFoundError: If the booking does not exist.
            BookingValidationError: If it is not grouped or is the last member.
        """
        booking = await self.get_booking(booking_id)
        if not booking.group_id:
            msg = "This booking is not part of a group"
            raise BookingValidationError(msg)

        others = [
            member
            for member in await self._booking_repo.get_group(booking.group_id)
            if member.id != booking.id
        ]
        if not others:
            msg = (
                "Cannot remove the last member from a group. "
                "Delete the entire group booking instead."
            )
            raise BookingValidationError(msg)

        new_primary_id = None
        if booking.is_primary_booking:
            others[0].is_primary_booking = True
            new_primary_id = others[0].id

        group_id = booking.group_id
        booking.group_id = None
        booking.group_reference = None
        booking.is_primary_booking = True
        await self._booking_repo.update(booking)
        await self._activity.log(
            "updated",
            "booking",
            booking.id,
            {"removed_from_group": group_id},
            user_id,
        )
        return {"remaining_count": len(others), "new_primary_id": new_primary_id}

    async def get_booking(self, booking_id: int) -> Booking:
        """Get a booking.

        Raises:
            BookingNotFoundError: If it does not exist.
        """
        booking = await self._booking_repo.get_by_id(booking_id)
        if booking is None:
            msg = f"Booking {booking_id} not found"
            raise BookingNotFoundError(msg)
        return booking

    async def list_bookings(
        self, status: str | None = None, limit: int = 100, offset: int = 0
    ) -> Sequence[Booking]:
        """List bookings, optionally filtered by status."""
        return await self._booking_repo.get_all(
            status=status, limit=limit, offset=offset
        )

    async def cancel_booking(
        self, booking_id: int, user_id: str | None = None
    ) -> Booking:
        """Cancel a booking, releasing its room for the nights it held.

        Args:
            booking_id: Booking to cancel.
            user_id: Acting staff user.

        Returns:
            The cancelled booking.

        Raises:
            BookingNotFoundError: If it does not exist.
        """
        booking = await self.get_booking(booking_id)
        if booking.status == BOOKING_STATUS_CANCELLED:
            return booking

        previous_status = booking.status
        await self._booking_repo.mark_cancelled(booking)
        await self._activity.log(
            "cancelled",
            "booking",
            booking.id,
            {
                "guest_name": booking.guest.name if booking.guest else None,
                "room_number": booking.room.room_number if booking.room else None,
                "previous_status": previous_status,
            },
            user_id,
        )
        await self._session.commit()
        self._calendar_cache.clear()
        logger.info("Cancelled booking %d (was %s)", booking.id, previous_status)
        return booking

    async def get_guest_token(self, booking_id: int) -> str:
        """Get the guest portal token of a booking, issuing one when missing."""
        booking = await self.get_booking(booking_id)
        if not booking.guest_token:
            booking.guest_token = generate_guest_token()
            await self._booking_repo.update(booking)
        return booking.guest_token

    async def backfill_guest_tokens(self) -> int:
        """Issue guest portal tokens to every booking that lacks one.

        Returns:
            Number of bookings updated.
        """
        bookings = await self._booking_repo.get_without_guest_token()
        for booking in bookings:
            booking.guest_token = generate_guest_token()
        if bookings:
            await self._session.flush()
        logger.info("Backfilled guest tokens for %d bookings", len(bookings))
        return len(bookings)

    async def _create_single(
        self,
        stay: StayRequest,
        guest_name: str,
        guest_email: str,
        guest_phone: str | None,
        special_requests: str | None,
        source: str,
        user_id: str | None,
        today: date,
        group_id: str | None = None,
        group_reference: str | None = None,
        is_primary: bool = True,
    ) -> Booking:
        """Validate, allocate a room and store one booking (flush only)."""
        check_in, check_out = validate_stay(stay.check_in, stay.check_out, today)
        guest, _ = await self._guest_repo.upsert_by_email(
            guest_name, guest_email, guest_phone
        )

        room, room_type = await self._allocate_room(stay, check_in, check_out)
        nights = (check_out - check_in).days
        nightly = room_type.base_price or room.price or Decimal("0.00")
        if not room_type.base_price:
            logger.warning("Room type %d has no base price", room_type.id)

        booking = Booking(
            guest_id=guest.id,
            room_id=room.id,
            created_by_staff_id=await self._owner_staff_id(user_id),
            check_in=check_in,
            check_out=check_out,
            status=BOOKING_STATUS_CONFIRMED,
            total_price=Decimal(nightly) * nights,
            num_guests=max(1, stay.num_guests),
            special_requests=format_special_requests(source, special_requests),
            source=source,
            guest_token=generate_guest_token(),
            group_id=group_id,
            group_reference=group_reference,
            is_primary_booking=is_primary,
        )
        booking = await self._booking_repo.create(booking)
        await self._activity.log(
            "created",
            "booking",
            booking.id,
            {
                "guest_name": guest.name,
                "room_number": room.room_number,
                "check_in": check_in.isoformat(),
                "check_out": check_out.isoformat(),
                "source": source,
                "group_reference": group_reference,
            },
            user_id,
        )
        logger.info(
            "Booked room %s for %s..%s (booking %d)",
            room.room_number,
            check_in,
            check_out,
            booking.id,
        )
        return booking

    async def _allocate_room(
        self, stay: StayRequest, check_in: date, check_out: date
    ) -> tuple[Room, RoomType]:
        """Pick the room a new stay goes into."""
        if stay.room_id is not None:
            room = await self._room_repo.get_by_id(stay.room_id)
            if room is None or not room.is_bookable:
                msg = f"Room {stay.room_id} cannot be booked"
                raise NoRoomsOfTypeError(msg)
            result = await self._availability.check_room(room.id, check_in, check_out)
            if not result["available"]:
                msg = f"Room {room.room_number} is not available for these dates"
                raise NoAvailabilityError(msg)
            return room, room.room_type

        room_type = await self._room_type_repo.resolve(str(stay.room_type_id))
        if room_type is None:
            msg = f"Room type {stay.room_type_id} not found"
            raise RoomTypeNotFoundError(msg)

        rooms = await self._room_repo.get_bookable_for_type(room_type.id)
        if not rooms:
            msg = f"No rooms of this type found (ID: {room_type.id})"
            raise NoRoomsOfTypeError(msg)

        room = await self._availability.first_free(rooms, check_in, check_out)
        if room is None:
            msg = "No rooms available for these dates"
            raise NoAvailabilityError(msg)
        return room, room_type

    async def _owner_staff_id(self, user_id: str | None) -> int | None:
        """Staff member owning a booking: the actor, else the admin account."""
        if user_id:
            staff = await self._staff_repo.get_by_user_id(user_id)
            if staff is not None:
                return staff.id
        admin_email = get_settings().admin_email
        if admin_email:
            staff = await self._staff_repo.get_by_email(admin_email)
            if staff is not None:
                return staff.id
            logger.warning("Admin email %s not found in staff table", admin_email)
        return None

    async def _notify(self, booking: Booking, source: str) -> None:
        """Send booking notifications; failures are only logged."""
        if self._notifications is None:
            self._notifications = NotificationService()
        notice = BookingNotice(
            booking_id=booking.id,
            guest_name=booking.guest.name,
            guest_email=booking.guest.email,
            guest_phone=booking.guest.phone,
            room_number=booking.room.room_number,
            room_type_name=booking.room.room_type.name,
            check_in=booking.check_in,
            check_out=booking.check_out,
            nights=booking.nights,
            num_guests=booking.num_guests,
            total_price=booking.total_price,
            currency=get_settings().currency,
            source=source,
            special_requests=booking.special_requests,
        )
        await self._notifications.booking_confirmed(notice)
