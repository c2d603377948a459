# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Calendar service for iCal availability feed generation."""

import hashlib
import logging
from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta
from typing import cast

from icalendar import Calendar, Event
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.config import get_settings
from hotel_pms.models.channel import ChannelRoomMapping
from hotel_pms.repositories.booking_repository import BookingRepository
from hotel_pms.repositories.channel_repository import (
    ChannelMappingRepository,
    ExternalBookingRepository,
)
from hotel_pms.repositories.room_repository import RoomRepository
from hotel_pms.services.availability_service import build_occupancy_map, busy_blocks

logger = logging.getLogger(__name__)

# Cache TTL in seconds (5 minutes)
CACHE_TTL_SECONDS = 300

PRODID = "-//Hotel PMS//hotel-pms//EN"
UID_DOMAIN = "hotel-pms"
CLOSED_SUMMARY = "Closed"


class CalendarNotFoundError(Exception):
    """Exception raised when no mapping publishes the requested feed."""

    pass


class CalendarCache:
    """Simple in-memory cache for generated iCal strings."""

    def __init__(self, ttl_seconds: int = CACHE_TTL_SECONDS) -> None:
        """Initialize cache with TTL.

        Args:
            ttl_seconds: Time-to-live for cache entries.
        """
        self._cache: dict[str, tuple[str, datetime]] = {}
        self._ttl = timedelta(seconds=ttl_seconds)

    def get(self, key: str) -> str | None:
        """Get cached value if not expired.

        Args:
            key: Cache key (the feed export token).

        Returns:
            Cached iCal string or None if expired/missing.
        """
        if key not in self._cache:
            return None

        value, timestamp = self._cache[key]
        if datetime.now(UTC) - timestamp > self._ttl:
            del self._cache[key]
            return None

        return value

    def set(self, key: str, value: str) -> None:
        """Store value in cache.

        Args:
            key: Cache key.
            value: iCal string to cache.
        """
        self._cache[key] = (value, datetime.now(UTC))

    def invalidate(self, key: str) -> None:
        """Remove entry from cache.

        Args:
            key: Cache key to invalidate.
        """
        self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cache entries."""
        self._cache.clear()


# Global cache instance
_calendar_cache = CalendarCache()


def get_calendar_cache() -> CalendarCache:
    """Get the global calendar cache instance.

    Returns:
        CalendarCache singleton.
    """
    return _calendar_cache


def export_window(today: date | None = None) -> tuple[date, date]:
    """Get the date window covered by exported feeds.

    Args:
        today: Reference day, defaults to the current UTC date.

    Returns:
        Tuple of (first_night, exclusive_end).
    """
    settings = get_settings()
    today = today or datetime.now(UTC).date()
    return (
        today - timedelta(days=settings.ical_export_past_days),
        today + timedelta(days=settings.ical_export_future_days),
    )


class CalendarService:
    """Service publishing room type availability as iCal busy blocks.

    OTA channels only need to know when a room type is sold out, so the
    feed carries one all-day ``Closed`` event per run of fully booked
    nights and no guest data. Stays imported from other channels count
    towards occupancy; stays imported from the channel reading the feed
    are left out so it never receives its own bookings back.
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: CalendarCache | None = None,
    ) -> None:
        """Initialize calendar service.

        Args:
            session: Async database session.
            cache: Optional cache instance. Uses global cache if not provided.
        """
        self._cache = cache or get_calendar_cache()
        self._mapping_repo = ChannelMappingRepository(session)
        self._room_repo = RoomRepository(session)
        self._booking_repo = BookingRepository(session)
        self._external_repo = ExternalBookingRepository(session)

    async def export_for_token(self, token: str, today: date | None = None) -> str:
        """Build (or serve from cache) the feed published under a token.

        Args:
            token: Export token of a channel room mapping.
            today: Reference day, defaults to the current UTC date.

        Returns:
            iCal string (text/calendar format).

        Raises:
            CalendarNotFoundError: If no mapping uses the token.
        """
        cached = self._cache.get(token)
        if cached is not None:
            logger.debug("Cache hit for feed %s", token)
            return cached

        mapping = await self._mapping_repo.get_by_export_token(token)
        if mapping is None:
            msg = "Calendar not found"
            raise CalendarNotFoundError(msg)

        window_start, window_end = export_window(today)
        rooms = await self._room_repo.get_bookable_for_type(mapping.room_type_id)
        bookings = await self._booking_repo.get_overlapping_for_room_type(
            mapping.room_type_id, window_start, window_end
        )
        external = await self._external_repo.get_overlapping_for_room_type(
            mapping.room_type_id,
            window_start,
            window_end,
            exclude_mapping_id=mapping.id,
        )
        stays = [(booking.check_in, booking.check_out) for booking in bookings]
        stays.extend((stay.start_date, stay.end_date) for stay in external)

        ical_string = self.generate_ical(
            mapping, len(rooms), stays, window_start, window_end
        )
        self._cache.set(token, ical_string)
        logger.debug(
            "Generated feed for room type %d: %d rooms, %d stays",
            mapping.room_type_id,
            len(rooms),
            len(stays),
        )
        return ical_string

    def generate_ical(
        self,
        mapping: ChannelRoomMapping,
        inventory: int,
        stays: Iterable[tuple[date, date]],
        window_start: date,
        window_end: date,
    ) -> str:
        """Render the busy-block calendar for a mapping.

        Args:
            mapping: Mapping whose room type is exported.
            inventory: Number of bookable rooms of the type.
            stays: ``(start, end)`` of every stay holding a room of the type.
            window_start: First exported night.
            window_end: Exclusive end of the export.

        Returns:
            iCal string.
        """
        occupancy = build_occupancy_map(stays, window_start, window_end)
        cal = self._create_calendar(mapping)
        for block_start, block_end in busy_blocks(
            occupancy, inventory, window_start, window_end
        ):
            cal.add_component(
                self._create_closed_event(mapping.export_token, block_start, block_end)
            )

        return cast("bytes", cal.to_ical()).decode("utf-8")

    def _create_calendar(self, mapping: ChannelRoomMapping) -> Calendar:
        """Create iCal calendar object with metadata.

        Args:
            mapping: Mapping for calendar naming.

        Returns:
            Configured Calendar object.
        """
        hotel_name = get_settings().hotel_name
        room_type_name = (
            mapping.room_type.name if mapping.room_type else str(mapping.room_type_id)
        )
        cal = Calendar()
        cal.add("prodid", PRODID)
        cal.add("version", "2.0")
        cal.add("calscale", "GREGORIAN")
        cal.add("method", "PUBLISH")
        cal.add("x-wr-calname", f"{hotel_name} - {room_type_name}")
        cal.add("x-wr-timezone", "UTC")
        return cal

    def _create_closed_event(self, token: str, start: date, end: date) -> Event:
        """Create an all-day busy event.

        Args:
            token: Feed token, used for stable UIDs.
            start: First closed night.
            end: Exclusive end date.

        Returns:
            Configured Event object.
        """
        event = Event()
        event.add("uid", self._generate_uid(token, start))
        event.add("summary", CLOSED_SUMMARY)
        event.add("dtstart", start)
        event.add("dtend", end)
        event.add("dtstamp", datetime.now(UTC))
        event.add("status", "CONFIRMED")
        event.add("transp", "OPAQUE")
        return event

    @staticmethod
    def _generate_uid(token: str, start: date) -> str:
        """Generate a UID that stays the same across feed refreshes.

        Args:
            token: Feed token.
            start: First night of the block.

        Returns:
            Unique identifier string.
        """
        unique_str = f"{token}-{start.isoformat()}"
        hash_hex = hashlib.sha256(unique_str.encode()).hexdigest()[:16]
        return f"{hash_hex}@{UID_DOMAIN}"
