# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Channel manager sync: import OTA iCal feeds as external bookings."""

import asyncio
import hashlib
import logging
from datetime import UTC, date, datetime, timedelta
from http import HTTPStatus
from typing import Any

import httpx
from icalendar import Calendar
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.channel import (
    SYNC_STATUS_ERROR,
    SYNC_STATUS_SUCCESS,
    ChannelRoomMapping,
)
from hotel_pms.repositories.channel_repository import (
    ChannelMappingRepository,
    ExternalBookingRepository,
)
from hotel_pms.services.calendar_service import CalendarCache, get_calendar_cache

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
BASE_DELAY_SECONDS = 1.0
MAX_DELAY_SECONDS = 30.0
FETCH_TIMEOUT_SECONDS = 30.0

DEFAULT_SUMMARY = "External Booking"
MAX_SUMMARY_LENGTH = 255


class ChannelSyncError(Exception):
    """Exception raised for channel sync errors."""

    pass


class FeedFetchError(ChannelSyncError):
    """Exception raised when an OTA feed cannot be downloaded."""

    pass


class RetryableFeedError(FeedFetchError):
    """Exception raised for rate limiting and transient feed failures."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        """Initialize RetryableFeedError.

        Args:
            message: Error message.
            retry_after: Seconds to wait before retry, if provided by the server.
        """
        super().__init__(message)
        self.retry_after = retry_after


class FeedParseError(ChannelSyncError):
    """Exception raised when a feed is not valid iCalendar data."""

    pass


class ICalFeedClient:
    """Downloads OTA iCal feeds with exponential backoff retry."""

    def __init__(self, timeout: float = FETCH_TIMEOUT_SECONDS) -> None:
        """Initialize ICalFeedClient.

        Args:
            timeout: Request timeout in seconds.
        """
        self._timeout = timeout

    async def fetch(self, url: str) -> str:
        """Fetch a feed.

        Args:
            url: Feed URL.

        Returns:
            Feed body as text.

        Raises:
            FeedFetchError: If the feed cannot be downloaded.
        """

        async def fetch_feed() -> str:
            """Fetch the feed once."""
            async with httpx.AsyncClient(follow_redirects=True) as client:
                try:
                    response = await client.get(
                        url,
                        headers={"Accept": "text/calendar, */*"},
                        timeout=self._timeout,
                    )
                except httpx.TransportError as e:
                    msg = f"Network error: {e}"
                    raise RetryableFeedError(msg) from e

                if response.status_code == HTTPStatus.TOO_MANY_REQUESTS:
                    retry_after = response.headers.get("Retry-After")
                    raise RetryableFeedError(
                        "Rate limited",
                        retry_after=float(retry_after)
                        if retry_after and retry_after.isdigit()
                        else None,
                    )

                if response.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
                    msg = f"Feed server error: {response.status_code}"
                    raise RetryableFeedError(msg)

                if response.status_code != HTTPStatus.OK:
                    msg = f"Feed request failed: {response.status_code}"
                    raise FeedFetchError(msg)

                return response.text

        return await self._with_retry("fetch_feed", fetch_feed)

    async def _with_retry(self, operation: str, func: Any) -> str:
        """Execute a fetch with exponential backoff retry.

        Args:
            operation: Description of operation for logging.
            func: Async function to call.

        Returns:
            Result from func.

        Raises:
            FeedFetchError: If all retries fail.
        """
        last_error: Exception | None = None
        delay = BASE_DELAY_SECONDS

        for attempt in range(MAX_RETRIES + 1):
            try:
                result: str = await func()
                return result
            except RetryableFeedError as e:
                last_error = e
                if attempt == MAX_RETRIES:
                    break

                wait_time = e.retry_after if e.retry_after else delay
                wait_time = min(wait_time, MAX_DELAY_SECONDS)

                logger.warning(
                    "%s failed (%s), retrying in %.1fs (attempt %d/%d)",
                    operation,
                    e,
                    wait_time,
                    attempt + 1,
                    MAX_RETRIES,
                )
                await asyncio.sleep(wait_time)
                delay *= 2

        msg = f"{operation} failed after {MAX_RETRIES} retries: {last_error}"
        raise FeedFetchError(msg) from last_error


def _to_date(value: date | datetime) -> date:
    """Reduce an iCal date or date-time to a calendar date (UTC for aware)."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()
    return value


def _fallback_uid(start: date, end: date, summary: str) -> str:
    """Build a stable id for events published without a UID."""
    unique_str = f"{start.isoformat()}-{end.isoformat()}-{summary}"
    return "generated-" + hashlib.sha256(unique_str.encode()).hexdigest()[:16]


def parse_feed(text: str) -> list[dict[str, Any]]:
    """Parse an OTA feed into external booking records.

    Events need a start and either an end or a duration. An all-day event
    with only a start lasts one night. Events whose end does not fall
    after their start are stretched to cover their first night. When a
    UID repeats, the last event wins.

    Args:
        text: iCalendar text.

    Returns:
        List of dicts with external_id, start_date, end_date, summary and
        raw_data.

    Raises:
        FeedParseError: If the text is not an iCalendar document.
    """
    try:
        calendar = Calendar.from_ical(text)
    except ValueError as e:
        msg = f"Invalid iCal feed: {e}"
        raise FeedParseError(msg) from e

    events: dict[str, dict[str, Any]] = {}
    for component in calendar.walk("VEVENT"):
        dtstart = component.get("dtstart")
        if dtstart is None:
            continue
        start_value = dtstart.dt

        dtend = component.get("dtend")
        duration = component.get("duration")
        if dtend is not None:
            end_value = dtend.dt
        elif duration is not None:
            end_value = start_value + duration.dt
        elif not isinstance(start_value, datetime):
            end_value = start_value + timedelta(days=1)
        else:
            continue

        start = _to_date(start_value)
        end = _to_date(end_value)
        if end <= start:
            end = start + timedelta(days=1)

        summary = str(component.get("summary") or "").strip() or DEFAULT_SUMMARY
        summary = summary[:MAX_SUMMARY_LENGTH]
        uid = str(component.get("uid") or "").strip() or _fallback_uid(
            start, end, summary
        )

        events[uid] = {
            "external_id": uid,
            "start_date": start,
            "end_date": end,
            "summary": summary,
            "raw_data": component.to_ical().decode("utf-8"),
        }

    return list(events.values())


class ChannelSyncService:
    """Service reconciling OTA calendar feeds with stored external bookings.

    Each mapping is processed on its own: stays present in the feed are
    inserted or updated by UID and stored stays missing from the feed are
    deleted. A feed without events leaves stored stays untouched, because
    OTAs serve empty calendars during outages. One mapping failing never
    stops the others.
    """

    def __init__(
        self,
        session: AsyncSession,
        calendar_cache: CalendarCache | None = None,
        feed_client: ICalFeedClient | None = None,
    ) -> None:
        """Initialize ChannelSyncService.

        Args:
            session: Async database session.
            calendar_cache: Calendar cache to invalidate on changes, the shared
                cache when omitted.
            feed_client: Feed downloader, a default client when omitted.
        """
        self._session = session
        self._calendar_cache = calendar_cache or get_calendar_cache()
        self._feed_client = feed_client or ICalFeedClient()
        self._mapping_repo = ChannelMappingRepository(session)
        self._external_repo = ExternalBookingRepository(session)

    async def sync_all(self) -> list[dict[str, Any]]:
        """Sync every mapping with an import URL on an active connection.

        Returns:
            One result per mapping: mapping_id, status, events and error.
        """
        mappings = await self._mapping_repo.get_syncable()
        logger.info("Found %d active mappings to sync", len(mappings))

        # A failed mapping rolls the session back and expires loaded objects
        mapping_ids = [mapping.id for mapping in mappings]
        results: list[dict[str, Any]] = []
        for mapping_id in mapping_ids:
            mapping = await self._mapping_repo.get_by_id(mapping_id)
            if mapping is not None:
                results.append(await self.sync_mapping(mapping))
        return results

    async def sync_mapping(self, mapping: ChannelRoomMapping) -> dict[str, Any]:
        """Sync one mapping and record the outcome on it.

        Args:
            mapping: Mapping to sync.

        Returns:
            Result dict with mapping_id, status, events and error.
        """
        mapping_id = mapping.id
        result: dict[str, Any] = {
            "mapping_id": mapping_id,
            "status": SYNC_STATUS_SUCCESS,
            "events": 0,
            "error": None,
        }

        try:
            counts = await self._import_feed(mapping)
        except Exception as e:
            logger.exception("Channel sync failed for mapping %d", mapping_id)
            await self._session.rollback()
            refreshed = await self._mapping_repo.get_by_id(mapping_id)
            if refreshed is not None:
                await self._record_status(refreshed, SYNC_STATUS_ERROR, str(e))
            result["status"] = SYNC_STATUS_ERROR
            result["error"] = str(e) or type(e).__name__
            return result

        result["events"] = counts["events"]
        await self._record_status(
            mapping, SYNC_STATUS_SUCCESS, f"Synced {counts['events']} events"
        )

        if counts["inserted"] or counts["moved"] or counts["deleted"]:
            self._calendar_cache.clear()

        logger.info(
            "Mapping %d synced: %d events, %d inserted, %d updated, %d moved, "
            "%d deleted",
            mapping_id,
            counts["events"],
            counts["inserted"],
            counts["updated"],
            counts["moved"],
            counts["deleted"],
        )
        return result

    async def _import_feed(self, mapping: ChannelRoomMapping) -> dict[str, int]:
        """Download, parse and reconcile one mapping's feed.

        Args:
            mapping: Mapping to import.

        Returns:
            Counts: events, inserted, updated, moved, deleted. Moved counts
            updated stays whose dates changed.

        Raises:
            ChannelSyncError: If the feed cannot be fetched or parsed.
        """
        url = mapping.import_url
        if not url:
            msg = "Mapping has no import URL"
            raise ChannelSyncError(msg)

        text = await self._feed_client.fetch(url)
        events = parse_feed(text)
        counts = {
            "events": len(events),
            "inserted": 0,
            "updated": 0,
            "moved": 0,
            "deleted": 0,
        }

        if not events:
            logger.warning(
                "Feed for mapping %d has no events, keeping stored stays", mapping.id
            )
            return counts

        stored_dates = {
            stay.external_id: (stay.start_date, stay.end_date)
            for stay in await self._external_repo.get_for_mapping(mapping.id)
        }
        feed_ids = {event["external_id"] for event in events}

        for event in events:
            _, was_created = await self._external_repo.upsert(mapping.id, **event)
            if was_created:
                counts["inserted"] += 1
                continue
            counts["updated"] += 1
            new_dates = (event["start_date"], event["end_date"])
            if stored_dates[event["external_id"]] != new_dates:
                counts["moved"] += 1

        counts["deleted"] = await self._external_repo.delete_by_external_ids(
            mapping.id, set(stored_dates) - feed_ids
        )
        return counts

    async def _record_status(
        self, mapping: ChannelRoomMapping, status: str, message: str
    ) -> None:
        """Store the sync outcome on a mapping and its connection, then commit."""
        now = datetime.now(UTC)
        mapping.last_synced_at = now
        mapping.sync_status = status
        mapping.sync_message = message or "Unknown error"
        if mapping.connection is not None:
            mapping.connection.last_sync_at = now
        await self._session.commit()
