# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Room availability and occupancy computation.

Every stay is a half-open interval of nights ``[start, end)``. Two stays
overlap when each starts before the other ends, so a departure and an
arrival on the same day never conflict.
"""

import logging
from collections.abc import Iterable, Iterator, Sequence
from datetime import date, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.config import get_settings
from hotel_pms.models.room import Room
from hotel_pms.repositories.booking_repository import BookingRepository
from hotel_pms.repositories.channel_repository import ExternalBookingRepository
from hotel_pms.repositories.room_repository import RoomRepository, RoomTypeRepository

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


class AvailabilityError(Exception):
    """Exception raised for availability lookups."""

    pass


class InvalidDatesError(AvailabilityError):
    """Exception raised when a requested stay has unusable dates."""

    pass


def stays_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Check whether two half-open stays share at least one night.

    Args:
        a_start: First night of stay A.
        a_end: Departure date of stay A.
        b_start: First night of stay B.
        b_end: Departure date of stay B.

    Returns:
        True if the stays overlap.
    """
    return a_start < b_end and a_end > b_start


def iter_nights(start: date, end: date) -> Iterator[date]:
    """Yield every night in ``[start, end)``."""
    day = start
    while day < end:
        yield day
        day += timedelta(days=1)


def build_occupancy_map(
    stays: Iterable[tuple[date, date]],
    window_start: date,
    window_end: date,
) -> dict[date, int]:
    """Count how many stays cover each night of a window.

    Args:
        stays: ``(start, end)`` pairs; inverted or empty stays are ignored.
        window_start: First night of the window.
        window_end: Exclusive end of the window.

    Returns:
        Mapping of night to number of stays covering it. Nights with no
        stay are absent.
    """
    occupancy: dict[date, int] = {}
    for start, end in stays:
        if end <= start:
            continue
        for night in iter_nights(max(start, window_start), min(end, window_end)):
            occupancy[night] = occupancy.get(night, 0) + 1
    return occupancy


def busy_blocks(
    occupancy: dict[date, int],
    inventory: int,
    window_start: date,
    window_end: date,
) -> list[tuple[date, date]]:
    """Merge fully booked nights into contiguous blocks.

    A night is fully booked when its occupancy reaches the inventory, so a
    room type without bookable rooms is busy for the whole window.

    Args:
        occupancy: Night to occupancy count, as built by build_occupancy_map.
        inventory: Number of rooms that can be sold.
        window_start: First night of the window.
        window_end: Exclusive end of the window.

    Returns:
        List of ``(first_night, exclusive_end)`` blocks in date order.
    """
    blocks: list[tuple[date, date]] = []
    block_start: date | None = None

    for night in iter_nights(window_start, window_end):
        if occupancy.get(night, 0) >= inventory:
            if block_start is None:
                block_start = night
        elif block_start is not None:
            blocks.append((block_start, night))
            block_start = None

    if block_start is not None:
        blocks.append((block_start, window_end))

    return blocks


def peak_occupancy(stays: Iterable[tuple[date, date]], start: date, end: date) -> int:
    """Get the highest number of stays sharing any single night of a range.

    Args:
        stays: ``(start, end)`` pairs.
        start: First night of the range.
        end: Exclusive end of the range.

    Returns:
        Maximum nightly occupancy, 0 when nothing overlaps.
    """
    occupancy = build_occupancy_map(stays, start, end)
    return max(occupancy.values(), default=0)


def parse_stay_dates(check_in: str | None, check_out: str | None) -> tuple[date, date]:
    """Parse and validate a requested stay.

    Args:
        check_in: Arrival date as ``YYYY-MM-DD``.
        check_out: Departure date as ``YYYY-MM-DD``.

    Returns:
        Tuple of (check_in, check_out) dates.

    Raises:
        InvalidDatesError: If a date is missing, malformed or the stay is empty.
    """
    if not check_in or not check_out:
        msg = "Missing checkIn or checkOut parameters"
        raise InvalidDatesError(msg)
    try:
        start = date.fromisoformat(check_in[:10])
        end = date.fromisoformat(check_out[:10])
    except ValueError as e:
        msg = f"Invalid date format, expected {DATE_FORMAT}"
        raise InvalidDatesError(msg) from e
    if end <= start:
        msg = "Check-out date must be after check-in date"
        raise InvalidDatesError(msg)
    return start, end


def parse_guest_count(guests: str | int | None) -> int:
    """Parse a guest count, defaulting to 1 for missing or bad input."""
    try:
        count = int(guests) if guests is not None else 1
    except (TypeError, ValueError):
        return 1
    return count if count > 0 else 1


class AvailabilityService:
    """Service answering "which rooms are free for these nights"."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize AvailabilityService.

        Args:
            session: Async database session.
        """
        self._session = session
        self._room_type_repo = RoomTypeRepository(session)
        self._room_repo = RoomRepository(session)
        self._booking_repo = BookingRepository(session)
        self._external_repo = ExternalBookingRepository(session)

    async def search(
        self, check_in: date, check_out: date, guests: int = 1
    ) -> list[dict[str, Any]]:
        """Summarize availability of every room type for a stay.

        Every room type appears in the result, with ``available_count`` 0
        when nothing can be sold.

        Args:
            check_in: First night.
            check_out: Departure date.
            guests: Number of guests that must fit in one room.

        Returns:
            One dictionary per room type.
        """
        currency = get_settings().currency
        room_types = await self._room_type_repo.get_all()

        availability: dict[int, dict[str, Any]] = {
            room_type.id: {
                "room_type_id": room_type.id,
                "name": room_type.name,
                "description": room_type.description,
                "currency": currency,
                "price": room_type.base_price,
                "max_occupancy": room_type.max_occupancy,
                "images": list(room_type.images or []),
                "available_count": 0,
                "room_ids": [],
            }
            for room_type in room_types
        }

        rooms = await self._room_repo.get_bookable()
        busy = await self._booking_repo.get_overlapping_for_rooms(
            [room.id for room in rooms], check_in, check_out
        )
        busy_room_ids = {booking.room_id for booking in busy}

        for room in rooms:
            entry = availability.get(room.room_type_id)
            if entry is None:
                continue
            if entry["max_occupancy"] < guests:
                continue
            if room.id in busy_room_ids:
                continue
            entry["available_count"] += 1
            entry["room_ids"].append(room.id)
            if room.image_urls:
                entry["images"] = list(room.image_urls)

        for room_type_id, entry in availability.items():
            if entry["available_count"] == 0:
                continue
            external = await self._external_occupancy(room_type_id, check_in, check_out)
            if external:
                entry["available_count"] = max(0, entry["available_count"] - external)
                entry["room_ids"] = entry["room_ids"][: entry["available_count"]]

        logger.debug(
            "Availability for %s..%s (%d guests) across %d room types",
            check_in,
            check_out,
            guests,
            len(availability),
        )
        return list(availability.values())

    async def check_room(
        self,
        room_id: int,
        start: date,
        end: date,
        exclude_booking_id: int | None = None,
    ) -> dict[str, Any]:
        """Check whether one room is free for a range.

        Args:
            room_id: Room primary key.
            start: First night.
            end: Departure date.
            exclude_booking_id: Booking ignored in the check.

        Returns:
            Dictionary with ``available`` and the list of ``conflicts``.
        """
        conflicts = await self._booking_repo.get_overlapping_for_rooms(
            [room_id], start, end, exclude_booking_id=exclude_booking_id
        )
        return {
            "available": not conflicts,
            "conflicts": [
                {
                    "booking_id": booking.id,
                    "guest_name": booking.guest.name if booking.guest else None,
                    "check_in": booking.check_in,
                    "check_out": booking.check_out,
                }
                for booking in conflicts
            ],
        }

    async def find_free_room(
        self, room_type_id: int, check_in: date, check_out: date
    ) -> Room | None:
        """Pick the first bookable room of a type that is free for a stay.

        Args:
            room_type_id: RoomType primary key.
            check_in: First night.
            check_out: Departure date.

        Returns:
            A free Room, or None when the type is sold out.
        """
        rooms = await self._room_repo.get_bookable_for_type(room_type_id)
        return await self.first_free(rooms, check_in, check_out)

    async def first_free(
        self, rooms: Sequence[Room], check_in: date, check_out: date
    ) -> Room | None:
        """Pick the first of the given rooms that is free for a stay.

        Stays sold through OTA channels hold rooms of their type without
        naming one, so they reduce how many of the free rooms can be used.

        Args:
            rooms: Candidate rooms, all of one room type, in preference order.
            check_in: First night.
            check_out: Departure date.

        Returns:
            A free Room, or None.
        """
        if not rooms:
            return None

        busy = await self._booking_repo.get_overlapping_for_rooms(
            [room.id for room in rooms], check_in, check_out
        )
        busy_room_ids = {booking.room_id for booking in busy}
        free = [room for room in rooms if room.id not in busy_room_ids]
        if not free:
            return None

        external = await self._external_occupancy(
            rooms[0].room_type_id, check_in, check_out
        )
        if external >= len(free):
            logger.info(
                "Room type %d sold out for %s..%s by channel bookings",
                rooms[0].room_type_id,
                check_in,
                check_out,
            )
            return None
        return free[0]

    async def _external_occupancy(
        self, room_type_id: int, check_in: date, check_out: date
    ) -> int:
        """Peak number of OTA stays of a room type on any night of a range."""
        external = await self._external_repo.get_overlapping_for_room_type(
            room_type_id, check_in, check_out
        )
        return peak_occupancy(
            ((stay.start_date, stay.end_date) for stay in external),
            check_in,
            check_out,
        )
