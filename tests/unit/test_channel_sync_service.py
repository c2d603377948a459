# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for channel feed import."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from hotel_pms.models.channel import (
    SYNC_STATUS_ERROR,
    SYNC_STATUS_SUCCESS,
    ExternalBooking,
)
from hotel_pms.repositories.channel_repository import (
    ChannelMappingRepository,
    ExternalBookingRepository,
)
from hotel_pms.services.calendar_service import CalendarCache, get_calendar_cache
from hotel_pms.services.channel_sync_service import (
    ChannelSyncService,
    FeedFetchError,
    FeedParseError,
    ICalFeedClient,
    parse_feed,
)

FEED_URL = "https://www.airbnb.com/calendar/ical/123.ics?s=secret"


def _feed(*events: str) -> str:
    body = "".join(events)
    return (
        "BEGIN:VCALENDAR\r\nVERSION:2.0\r\n"
        "PRODID:-//Airbnb Inc//Hosting Calendar//EN\r\n"
        f"{body}END:VCALENDAR\r\n"
    )


def _event(uid: str | None, start: str, end: str | None = None, **props) -> str:
    lines = ["BEGIN:VEVENT"]
    if uid is not None:
        lines.append(f"UID:{uid}")
    lines.append(f"DTSTART;VALUE=DATE:{start}")
    if end is not None:
        lines.append(f"DTEND;VALUE=DATE:{end}")
    lines.extend(f"{key.upper()}:{value}" for key, value in props.items())
    lines.append("END:VEVENT")
    return "\r\n".join(lines) + "\r\n"


def _feed_client(*bodies) -> MagicMock:
    """Feed client returning the given bodies, raising exceptions among them."""
    client = MagicMock(spec=ICalFeedClient)
    client.fetch = AsyncMock(side_effect=list(bodies))
    return client


class TestParseFeed:
    """Tests for parse_feed."""

    def test_all_day_events(self):
        """Test date events become half-open stays."""
        events = parse_feed(
            _feed(_event("a@airbnb", "20260510", "20260513", summary="Reserved"))
        )
        assert len(events) == 1
        assert events[0]["external_id"] == "a@airbnb"
        assert events[0]["start_date"] == date(2026, 5, 10)
        assert events[0]["end_date"] == date(2026, 5, 13)
        assert events[0]["summary"] == "Reserved"
        assert "BEGIN:VEVENT" in events[0]["raw_data"]

    def test_missing_end_lasts_one_night(self):
        """Test an all-day event without end or duration covers one night."""
        events = parse_feed(_feed(_event("a", "20260510")))
        assert events[0]["end_date"] == date(2026, 5, 11)

    def test_duration(self):
        """Test a duration stands in for the end."""
        events = parse_feed(_feed(_event("a", "20260510", duration="P3D")))
        assert events[0]["end_date"] == date(2026, 5, 13)

    def test_zero_length_event_is_stretched(self):
        """Test an event ending on its start day covers its first night."""
        events = parse_feed(_feed(_event("a", "20260510", "20260510")))
        assert events[0]["end_date"] == date(2026, 5, 11)

    def test_timed_events_use_utc_dates(self):
        """Test timed events are reduced to UTC dates."""
        event = (
            "BEGIN:VEVENT\r\nUID:timed\r\n"
            "DTSTART:20260510T230000Z\r\nDTEND:20260512T100000Z\r\n"
            "END:VEVENT\r\n"
        )
        events = parse_feed(_feed(event))
        assert events[0]["start_date"] == date(2026, 5, 10)
        assert events[0]["end_date"] == date(2026, 5, 12)

    def test_missing_uid_gets_stable_id(self):
        """Test events without UID get the same generated id every time."""
        feed = _feed(_event(None, "20260510", "20260512", summary="Blocked"))
        first = parse_feed(feed)[0]["external_id"]
        assert first.startswith("generated-")
        assert parse_feed(feed)[0]["external_id"] == first

    def test_default_summary(self):
        """Test events without summary get the default label."""
        events = parse_feed(_feed(_event("a", "20260510", "20260512")))
        assert events[0]["summary"] == "External Booking"

    def test_repeated_uid_last_wins(self):
        """Test a repeated UID keeps the last event."""
        events = parse_feed(
            _feed(
                _event("dup", "20260510", "20260512"),
                _event("dup", "20260601", "20260603"),
            )
        )
        assert len(events) == 1
        assert events[0]["start_date"] == date(2026, 6, 1)

    def test_event_without_start_is_skipped(self):
        """Test events need a start."""
        event = "BEGIN:VEVENT\r\nUID:nostart\r\nEND:VEVENT\r\n"
        assert parse_feed(_feed(event)) == []

    def test_invalid_feed(self):
        """Test garbage is rejected."""
        with pytest.raises(FeedParseError, match="Invalid iCal feed"):
            parse_feed("<html>Not found</html>")


class TestSyncMapping:
    """Tests for reconciling one mapping."""

    @pytest.mark.asyncio
    async def test_first_import(self, async_session, inventory, make_mapping):
        """Test a first sync stores every event and records success."""
        mapping = await make_mapping(inventory.deluxe, import_url=FEED_URL)
        client = _feed_client(
            _feed(
                _event("a", "20260510", "20260512"),
                _event("b", "20260520", "20260525"),
            )
        )
        cache = CalendarCache()
        cache.set("stale", "old feed")

        result = await ChannelSyncService(
            async_session, cache, feed_client=client
        ).sync_mapping(mapping)

        assert result == {
            "mapping_id": mapping.id,
            "status": SYNC_STATUS_SUCCESS,
            "events": 2,
            "error": None,
        }
        client.fetch.assert_awaited_once_with(FEED_URL)
        stays = await ExternalBookingRepository(async_session).get_for_mapping(
            mapping.id
        )
        assert [s.external_id for s in stays] == ["a", "b"]
        assert mapping.sync_status == SYNC_STATUS_SUCCESS
        assert mapping.sync_message == "Synced 2 events"
        assert mapping.last_synced_at is not None
        assert mapping.connection.last_sync_at is not None
        assert cache.get("stale") is None

    @pytest.mark.asyncio
    async def test_reconcile_updates_and_deletes(
        self, async_session, inventory, make_mapping
    ):
        """Test changed stays are updated and vanished stays deleted."""
        mapping = await make_mapping(inventory.deluxe, import_url=FEED_URL)
        client = _feed_client(
            _feed(
                _event("a", "20260510", "20260512"),
                _event("b", "20260520", "20260525"),
            ),
            _feed(_event("a", "20260510", "20260514")),
        )
        service = ChannelSyncService(async_session, feed_client=client)

        await service.sync_mapping(mapping)
        await service.sync_mapping(mapping)

        stays = await ExternalBookingRepository(async_session).get_for_mapping(
            mapping.id
        )
        assert len(stays) == 1
        assert stays[0].external_id == "a"
        assert stays[0].end_date == date(2026, 5, 14)

    @pytest.mark.asyncio
    async def test_moved_stay_clears_cache(
        self, async_session, inventory, make_mapping
    ):
        """Test a stay moved to new dates invalidates cached feeds."""
        mapping = await make_mapping(inventory.deluxe, import_url=FEED_URL)
        client = _feed_client(
            _feed(_event("x1", "20260510", "20260512")),
            _feed(_event("x1", "20260601", "20260603")),
        )
        cache = CalendarCache()
        service = ChannelSyncService(async_session, cache, feed_client=client)

        await service.sync_mapping(mapping)
        cache.set("feed", "old feed")
        await service.sync_mapping(mapping)

        assert cache.get("feed") is None

    @pytest.mark.asyncio
    async def test_unchanged_stays_keep_cache(
        self, async_session, inventory, make_mapping
    ):
        """Test a feed repeating the stored stays leaves cached feeds alone."""
        mapping = await make_mapping(inventory.deluxe, import_url=FEED_URL)
        feed = _feed(_event("x1", "20260510", "20260512", summary="Reserved"))
        client = _feed_client(feed, feed)
        cache = CalendarCache()
        service = ChannelSyncService(async_session, cache, feed_client=client)

        await service.sync_mapping(mapping)
        cache.set("feed", "current feed")
        await service.sync_mapping(mapping)

        assert cache.get("feed") == "current feed"

    @pytest.mark.asyncio
    async def test_shared_cache_by_default(
        self, async_session, inventory, make_mapping
    ):
        """Test syncing without an explicit cache clears the shared one."""
        mapping = await make_mapping(inventory.deluxe, import_url=FEED_URL)
        client = _feed_client(_feed(_event("a", "20260510", "20260512")))
        get_calendar_cache().set("feed", "old feed")

        await ChannelSyncService(async_session, feed_client=client).sync_mapping(
            mapping
        )

        assert get_calendar_cache().get("feed") is None

    @pytest.mark.asyncio
    async def test_empty_feed_keeps_stored_stays(
        self, async_session, inventory, make_mapping
    ):
        """Test an empty calendar does not wipe imported stays."""
        mapping = await make_mapping(inventory.deluxe, import_url=FEED_URL)
        client = _feed_client(_feed(_event("a", "20260510", "20260512")), _feed())
        service = ChannelSyncService(async_session, feed_client=client)

        await service.sync_mapping(mapping)
        result = await service.sync_mapping(mapping)

        assert result["status"] == SYNC_STATUS_SUCCESS
        assert result["events"] == 0
        stays = await ExternalBookingRepository(async_session).get_for_mapping(
            mapping.id
        )
        assert [s.external_id for s in stays] == ["a"]

    @pytest.mark.asyncio
    async def test_fetch_failure_is_recorded(
        self, async_session, inventory, make_mapping
    ):
        """Test a failing feed marks the mapping as errored."""
        mapping = await make_mapping(inventory.deluxe, import_url=FEED_URL)
        mapping_id = mapping.id
        client = _feed_client(FeedFetchError("Feed request failed: 404"))

        result = await ChannelSyncService(
            async_session, feed_client=client
        ).sync_mapping(mapping)

        assert result["status"] == SYNC_STATUS_ERROR
        assert result["error"] == "Feed request failed: 404"
        stored = await ChannelMappingRepository(async_session).get_by_id(mapping_id)
        assert stored.sync_status == SYNC_STATUS_ERROR
        assert stored.sync_message == "Feed request failed: 404"

    @pytest.mark.asyncio
    async def test_mapping_without_url(self, async_session, inventory, make_mapping):
        """Test a mapping without feed fails cleanly."""
        mapping = await make_mapping(inventory.deluxe)
        client = _feed_client()

        result = await ChannelSyncService(
            async_session, feed_client=client
        ).sync_mapping(mapping)

        assert result["status"] == SYNC_STATUS_ERROR
        assert result["error"] == "Mapping has no import URL"
        client.fetch.assert_not_awaited()


class TestSyncAll:
    """Tests for syncing every mapping."""

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_others(
        self, async_session, inventory, make_mapping
    ):
        """Test every mapping is processed even when one fails."""
        failing = await make_mapping(inventory.deluxe, "airbnb", import_url=FEED_URL)
        working = await make_mapping(
            inventory.suite, "booking", import_url="https://booking.example/ical"
        )
        failing_id, working_id = failing.id, working.id
        client = _feed_client(
            FeedFetchError("Feed server error: 503"),
            _feed(_event("x", "20260601", "20260603")),
        )

        results = await ChannelSyncService(async_session, feed_client=client).sync_all()

        by_id = {r["mapping_id"]: r for r in results}
        assert by_id[failing_id]["status"] == SYNC_STATUS_ERROR
        assert by_id[working_id]["status"] == SYNC_STATUS_SUCCESS
        assert by_id[working_id]["events"] == 1

    @pytest.mark.asyncio
    async def test_inactive_connections_are_skipped(
        self, async_session, inventory, make_mapping
    ):
        """Test mappings of disabled channels and without feeds are not synced."""
        mapping = await make_mapping(inventory.deluxe, import_url=FEED_URL)
        await make_mapping(inventory.suite, "booking")
        mapping.connection.is_active = False
        await async_session.commit()
        client = _feed_client()

        results = await ChannelSyncService(async_session, feed_client=client).sync_all()

        assert results == []
        client.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_own_stays_only_touch_own_mapping(
        self, async_session, inventory, make_mapping
    ):
        """Test reconciling one mapping leaves other mappings' stays alone."""
        airbnb = await make_mapping(inventory.deluxe, "airbnb", import_url=FEED_URL)
        other = await make_mapping(inventory.deluxe, "booking")
        async_session.add(
            ExternalBooking(
                mapping_id=other.id,
                external_id="keep-me",
                start_date=date(2026, 5, 1),
                end_date=date(2026, 5, 3),
                summary="Reserved",
            )
        )
        await async_session.commit()
        client = _feed_client(_feed(_event("a", "20260510", "20260512")))

        await ChannelSyncService(async_session, feed_client=client).sync_mapping(
            airbnb
        )

        kept = await ExternalBookingRepository(async_session).get_for_mapping(other.id)
        assert [s.external_id for s in kept] == ["keep-me"]


class TestICalFeedClient:
    """Tests for feed downloads."""

    @pytest.fixture
    def mock_transport(self):
        """Route httpx clients created by the feed client to a handler."""
        real_client = httpx.AsyncClient

        def install(handler):
            def factory(**kwargs):
                return real_client(transport=httpx.MockTransport(handler), **kwargs)

            return patch("httpx.AsyncClient", side_effect=factory)

        return install

    @pytest.mark.asyncio
    async def test_fetch(self, mock_transport):
        """Test a feed body is returned."""
        with mock_transport(lambda request: httpx.Response(200, text=_feed())):
            body = await ICalFeedClient().fetch(FEED_URL)
        assert body.startswith("BEGIN:VCALENDAR")

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, mock_transport):
        """Test 4xx responses fail at once."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        with mock_transport(handler), pytest.raises(FeedFetchError, match="404"):
            await ICalFeedClient().fetch(FEED_URL)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_server_errors_are_retried(self, mock_transport):
        """Test 5xx responses are retried until the feed loads."""
        responses = iter([httpx.Response(503), httpx.Response(200, text=_feed())])

        with (
            mock_transport(lambda request: next(responses)),
            patch(
                "hotel_pms.services.channel_sync_service.asyncio.sleep",
                new=AsyncMock(),
            ) as sleep,
        ):
            body = await ICalFeedClient().fetch(FEED_URL)

        assert body.startswith("BEGIN:VCALENDAR")
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, mock_transport):
        """Test persistent rate limiting gives up after the retries."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(429, headers={"Retry-After": "1"})

        with (
            mock_transport(handler),
            patch(
                "hotel_pms.services.channel_sync_service.asyncio.sleep",
                new=AsyncMock(),
            ),
            pytest.raises(FeedFetchError, match="failed after 3 retries"),
        ):
            await ICalFeedClient().fetch(FEED_URL)
        assert len(calls) == 4
