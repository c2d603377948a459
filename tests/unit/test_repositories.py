# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for repository queries."""

from datetime import timedelta

import pytest
from hotel_pms.models.booking import BOOKING_STATUS_CANCELLED
from hotel_pms.models.room import ROOM_STATUS_MAINTENANCE
from hotel_pms.repositories.booking_repository import BookingRepository
from hotel_pms.repositories.channel_repository import ExternalBookingRepository
from hotel_pms.repositories.room_repository import RoomRepository, RoomTypeRepository


class TestRoomTypeResolve:
    """Tests for resolving room types from client identifiers."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("identifier", "expected"),
        [
            ("deluxe", "Deluxe"),
            ("SUITE", "Suite"),
            ("delu", "Deluxe"),
            ("nothing", None),
            ("", None),
            ("%", None),
            ("_uite", None),
        ],
    )
    async def test_resolve_by_name(
        self, async_session, inventory, identifier, expected
    ):
        """Test names match case-insensitively or by their first characters."""
        room_type = await RoomTypeRepository(async_session).resolve(identifier)
        assert (room_type.name if room_type else None) == expected

    @pytest.mark.asyncio
    async def test_resolve_by_id(self, async_session, inventory):
        """Test a numeric identifier matches the id first."""
        repo = RoomTypeRepository(async_session)
        assert await repo.resolve(inventory.suite.id) is inventory.suite
        assert await repo.resolve(str(inventory.deluxe.id)) is inventory.deluxe


class TestRoomRepository:
    """Tests for RoomRepository."""

    @pytest.mark.asyncio
    async def test_bookable_for_type(self, async_session, inventory):
        """Test rooms under maintenance are left out of the inventory."""
        repo = RoomRepository(async_session)
        await repo.set_status(inventory.rooms["102"], ROOM_STATUS_MAINTENANCE)

        rooms = await repo.get_bookable_for_type(inventory.deluxe.id)
        assert [r.room_number for r in rooms] == ["101"]

    @pytest.mark.asyncio
    async def test_get_by_number(self, async_session, inventory):
        """Test rooms are found by their number."""
        room = await RoomRepository(async_session).get_by_number("201")
        assert room is not None
        assert room.room_type.name == "Suite"


class TestBookingOverlap:
    """Tests for overlapping booking queries."""

    @pytest.mark.asyncio
    async def test_back_to_back_not_overlapping(
        self, async_session, inventory, guest, make_booking, arrival
    ):
        """Test a departure day is free for the next arrival."""
        room = inventory.rooms["101"]
        await make_booking(room, guest, arrival, arrival + timedelta(days=2))
        repo = BookingRepository(async_session)

        after = await repo.get_overlapping_for_rooms(
            [room.id], arrival + timedelta(days=2), arrival + timedelta(days=4)
        )
        inside = await repo.get_overlapping_for_rooms(
            [room.id], arrival + timedelta(days=1), arrival + timedelta(days=3)
        )
        assert after == []
        assert len(inside) == 1

    @pytest.mark.asyncio
    async def test_cancelled_ignored(
        self, async_session, inventory, guest, make_booking, arrival
    ):
        """Test cancelled bookings release the room."""
        end = arrival + timedelta(days=2)
        booking = await make_booking(
            inventory.rooms["101"], guest, arrival, end, BOOKING_STATUS_CANCELLED
        )
        repo = BookingRepository(async_session)

        assert await repo.get_overlapping_for_room_type(
            inventory.deluxe.id, arrival, end
        ) == []
        assert booking.is_occupying is False

    @pytest.mark.asyncio
    async def test_exclude_booking(
        self, async_session, inventory, guest, make_booking, arrival
    ):
        """Test a booking can be left out of its own conflict check."""
        room = inventory.rooms["101"]
        end = arrival + timedelta(days=2)
        booking = await make_booking(room, guest, arrival, end)

        conflicts = await BookingRepository(async_session).get_overlapping_for_rooms(
            [room.id], arrival, end, exclude_booking_id=booking.id
        )
        assert conflicts == []


class TestExternalBookingRepository:
    """Tests for imported channel stays."""

    @pytest.mark.asyncio
    async def test_upsert_and_delete(
        self, async_session, inventory, make_mapping, arrival
    ):
        """Test stays are keyed by feed UID within a mapping."""
        mapping = await make_mapping(inventory.deluxe)
        repo = ExternalBookingRepository(async_session)
        end = arrival + timedelta(days=2)

        _, created = await repo.upsert(mapping.id, "uid-1", arrival, end, "Reserved")
        stay, created_again = await repo.upsert(
            mapping.id, "uid-1", arrival, end + timedelta(days=1), "Reserved"
        )
        assert created is True
        assert created_again is False
        assert stay.end_date == end + timedelta(days=1)
        stored = await repo.get_for_mapping(mapping.id)
        assert [s.external_id for s in stored] == ["uid-1"]

        assert await repo.delete_by_external_ids(mapping.id, ["uid-1"]) == 1
        assert await repo.delete_by_external_ids(mapping.id, []) == 0
        assert await repo.get_for_mapping(mapping.id) == []

    @pytest.mark.asyncio
    async def test_overlapping_excludes_own_mapping(
        self, async_session, inventory, make_mapping, arrival
    ):
        """Test stays of the exported mapping can be left out."""
        airbnb = await make_mapping(inventory.deluxe, "airbnb")
        booking_com = await make_mapping(inventory.deluxe, "booking")
        repo = ExternalBookingRepository(async_session)
        end = arrival + timedelta(days=2)
        await repo.upsert(airbnb.id, "a", arrival, end, "Reserved")
        await repo.upsert(booking_com.id, "b", arrival, end, "Reserved")
        await async_session.commit()

        every = await repo.get_overlapping_for_room_type(
            inventory.deluxe.id, arrival, end
        )
        others = await repo.get_overlapping_for_room_type(
            inventory.deluxe.id, arrival, end, exclude_mapping_id=airbnb.id
        )
        assert {s.external_id for s in every} == {"a", "b"}
        assert [s.external_id for s in others] == ["b"]
