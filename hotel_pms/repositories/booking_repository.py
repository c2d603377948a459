# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for Booking and BookingCharge database operations."""

from collections.abc import Collection, Sequence
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.booking import (
    BOOKING_STATUS_CANCELLED,
    OCCUPYING_STATUSES,
    Booking,
    BookingCharge,
)
from hotel_pms.models.room import Room


class BookingRepository:
    """Repository for Booking CRUD operations.

    Overlap queries use half-open stays: a booking conflicts with the range
    ``[start, end)`` when ``check_in < end`` and ``check_out > start``.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, booking_id: int) -> Booking | None:
        """Get booking by ID.

        Args:
            booking_id: Booking primary key.

        Returns:
            Booking if found, None otherwise.
        """
        result = await self._session.execute(
            select(Booking).where(Booking.id == booking_id)
        )
        return result.scalar_one_or_none()

    async def get_by_guest_token(self, token: str) -> Booking | None:
        """Get booking by its guest portal token.

        Args:
            token: Guest portal token.

        Returns:
            Booking if found, None otherwise.
        """
        result = await self._session.execute(
            select(Booking).where(Booking.guest_token == token)
        )
        return result.scalar_one_or_none()

    async def get_all(
        self,
        status: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[Booking]:
        """List bookings, newest check-in first.

        Args:
            status: Optional status filter.
            limit: Maximum rows returned.
            offset: Rows skipped.

        Returns:
            Sequence of bookings.
        """
        query = select(Booking).order_by(Booking.check_in.desc(), Booking.id.desc())
        if status is not None:
            query = query.where(Booking.status == status)
        result = await self._session.execute(query.limit(limit).offset(offset))
        return result.scalars().all()

    async def get_for_room_latest_first(self, room_id: int) -> Sequence[Booking]:
        """Get all bookings for a room, most recent check-in first.

        Args:
            room_id: Room primary key.

        Returns:
            Sequence of bookings.
        """
        result = await self._session.execute(
            select(Booking)
            .where(Booking.room_id == room_id)
            .order_by(Booking.check_in.desc(), Booking.id.desc())
        )
        return result.scalars().all()

    async def get_overlapping_for_rooms(
        self,
        room_ids: Collection[int],
        start: date,
        end: date,
        exclude_booking_id: int | None = None,
        statuses: Collection[str] = OCCUPYING_STATUSES,
    ) -> Sequence[Booking]:
        """Get bookings of the given rooms overlapping a date range.

        Args:
            room_ids: Rooms to check.
            start: First night of the range.
            end: Exclusive end of the range.
            exclude_booking_id: Booking ignored in the check (e.g. when extending).
            statuses: Booking statuses that count as holding the room.

        Returns:
            Sequence of overlapping bookings.
        """
        if not room_ids:
            return []
        query = select(Booking).where(
            Booking.room_id.in_(list(room_ids)),
            Booking.status.in_(list(statuses)),
            Booking.check_in < end,
            Booking.check_out > start,
        )
        if exclude_booking_id is not None:
            query = query.where(Booking.id != exclude_booking_id)
        result = await self._session.execute(query.order_by(Booking.check_in))
        return result.scalars().all()

    async def get_overlapping_for_room_type(
        self,
        room_type_id: int,
        start: date,
        end: date,
        statuses: Collection[str] = OCCUPYING_STATUSES,
    ) -> Sequence[Booking]:
        """Get bookings in rooms of a type overlapping a date range.

        Args:
            room_type_id: RoomType primary key.
            start: First night of the range.
            end: Exclusive end of the range.
            statuses: Booking statuses that count as holding a room.

        Returns:
            Sequence of overlapping bookings.
        """
        result = await self._session.execute(
            select(Booking)
            .join(Room, Booking.room_id == Room.id)
            .where(
                Room.room_type_id == room_type_id,
                Booking.status.in_(list(statuses)),
                Booking.check_in < end,
                Booking.check_out > start,
            )
            .order_by(Booking.check_in)
        )
        return result.scalars().all()

    async def get_group(self, group_id: str) -> Sequence[Booking]:
        """Get all bookings sharing a group id, primary first.

        Args:
            group_id: Group identifier.

        Returns:
            Sequence of bookings in the group.
        """
        result = await self._session.execute(
            select(Booking)
            .where(Booking.group_id == group_id)
            .order_by(Booking.is_primary_booking.desc(), Booking.id)
        )
        return result.scalars().all()

    async def get_created_between(
        self, start: datetime, end: datetime
    ) -> Sequence[Booking]:
        """Get bookings created in ``[start, end)``.

        Args:
            start: Inclusive lower bound.
            end: Exclusive upper bound.

        Returns:
            Sequence of bookings.
        """
        result = await self._session.execute(
            select(Booking)
            .where(Booking.created_at >= start, Booking.created_at < end)
            .order_by(Booking.created_at)
        )
        return result.scalars().all()

    async def get_checked_in_between(
        self, start: datetime, end: datetime
    ) -> Sequence[Booking]:
        """Get bookings whose guests arrived in ``[start, end)``.

        Args:
            start: Inclusive lower bound.
            end: Exclusive upper bound.

        Returns:
            Sequence of bookings.
        """
        result = await self._session.execute(
            select(Booking).where(
                Booking.actual_check_in >= start,
                Booking.actual_check_in < end,
            )
        )
        return result.scalars().all()

    async def get_without_guest_token(self) -> Sequence[Booking]:
        """Get bookings that have no guest portal token yet."""
        result = await self._session.execute(
            select(Booking).where(Booking.guest_token.is_(None))
        )
        return result.scalars().all()

    async def create(self, booking: Booking) -> Booking:
        """Create a new booking.

        Args:
            booking: Booking entity to create.

        Returns:
            Created booking with ID.
        """
        self._session.add(booking)
        await self._session.flush()
        await self._session.refresh(booking)
        return booking

    async def update(self, booking: Booking) -> Booking:
        """Update an existing booking.

        Args:
            booking: Booking entity with updates.

        Returns:
            Updated booking.
        """
        await self._session.flush()
        await self._session.refresh(booking)
        return booking

    async def mark_cancelled(self, booking: Booking) -> Booking:
        """Mark a booking as cancelled.

        Args:
            booking: Booking to mark as cancelled.

        Returns:
            Updated booking with cancelled status.
        """
        booking.status = BOOKING_STATUS_CANCELLED
        return await self.update(booking)


class ChargeRepository:
    """Repository for BookingCharge CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, charge_id: int) -> BookingCharge | None:
        """Get charge by ID."""
        result = await self._session.execute(
            select(BookingCharge).where(BookingCharge.id == charge_id)
        )
        return result.scalar_one_or_none()

    async def get_for_booking(self, booking_id: int) -> Sequence[BookingCharge]:
        """Get all charges posted to a booking, oldest first."""
        result = await self._session.execute(
            select(BookingCharge)
            .where(BookingCharge.booking_id == booking_id)
            .order_by(BookingCharge.created_at, BookingCharge.id)
        )
        return result.scalars().all()

    async def create(self, charge: BookingCharge) -> BookingCharge:
        """Create a new charge."""
        self._session.add(charge)
        await self._session.flush()
        await self._session.refresh(charge)
        return charge

    async def update(self, charge: BookingCharge) -> BookingCharge:
        """Flush pending changes to a charge."""
        await self._session.flush()
        await self._session.refresh(charge)
        return charge

    async def delete(self, charge: BookingCharge) -> None:
        """Delete a charge."""
        await self._session.delete(charge)
        await self._session.flush()
