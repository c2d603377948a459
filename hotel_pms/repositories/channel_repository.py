# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repositories for channel connections, room mappings and external stays."""

from collections.abc import Collection, Sequence
from datetime import date
from typing import cast

from sqlalchemy import CursorResult, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.channel import (
    ChannelConnection,
    ChannelRoomMapping,
    ExternalBooking,
)


class ChannelConnectionRepository:
    """Repository for ChannelConnection CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_all(self) -> Sequence[ChannelConnection]:
        """Get all channel connections ordered by channel id."""
        result = await self._session.execute(
            select(ChannelConnection).order_by(ChannelConnection.channel_id)
        )
        return result.scalars().all()

    async def get_by_id(self, connection_id: int) -> ChannelConnection | None:
        """Get connection by primary key."""
        result = await self._session.execute(
            select(ChannelConnection).where(ChannelConnection.id == connection_id)
        )
        return result.scalar_one_or_none()

    async def get_by_channel_id(self, channel_id: str) -> ChannelConnection | None:
        """Get connection by channel identifier such as ``airbnb``.

        Args:
            channel_id: Channel identifier.

        Returns:
            ChannelConnection if found, None otherwise.
        """
        result = await self._session.execute(
            select(ChannelConnection).where(ChannelConnection.channel_id == channel_id)
        )
        return result.scalar_one_or_none()

    async def create(self, connection: ChannelConnection) -> ChannelConnection:
        """Create a new connection."""
        self._session.add(connection)
        await self._session.flush()
        await self._session.refresh(connection)
        return connection

    async def update(self, connection: ChannelConnection) -> ChannelConnection:
        """Flush pending changes to a connection."""
        await self._session.flush()
        await self._session.refresh(connection)
        return connection


class ChannelMappingRepository:
    """Repository for ChannelRoomMapping CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, mapping_id: int) -> ChannelRoomMapping | None:
        """Get mapping by primary key."""
        result = await self._session.execute(
            select(ChannelRoomMapping).where(ChannelRoomMapping.id == mapping_id)
        )
        return result.scalar_one_or_none()

    async def get_by_export_token(self, token: str) -> ChannelRoomMapping | None:
        """Get mapping by its published iCal export token.

        Args:
            token: Export token from the feed URL.

        Returns:
            ChannelRoomMapping if found, None otherwise.
        """
        result = await self._session.execute(
            select(ChannelRoomMapping).where(ChannelRoomMapping.export_token == token)
        )
        return result.scalar_one_or_none()

    async def get_all(
        self, connection_id: int | None = None
    ) -> Sequence[ChannelRoomMapping]:
        """Get mappings, optionally for one connection.

        Args:
            connection_id: Optional connection filter.

        Returns:
            Sequence of mappings.
        """
        query = select(ChannelRoomMapping).order_by(ChannelRoomMapping.id)
        if connection_id is not None:
            query = query.where(ChannelRoomMapping.connection_id == connection_id)
        result = await self._session.execute(query)
        return result.scalars().all()

    async def get_syncable(self) -> Sequence[ChannelRoomMapping]:
        """Get mappings with an import feed whose connection is active."""
        result = await self._session.execute(
            select(ChannelRoomMapping)
            .join(
                ChannelConnection,
                ChannelRoomMapping.connection_id == ChannelConnection.id,
            )
            .where(
                ChannelConnection.is_active.is_(True),
                ChannelRoomMapping._import_url.is_not(None),
            )
            .order_by(ChannelRoomMapping.id)
        )
        return result.scalars().all()

    async def create(self, mapping: ChannelRoomMapping) -> ChannelRoomMapping:
        """Create a new mapping."""
        self._session.add(mapping)
        await self._session.flush()
        await self._session.refresh(mapping)
        return mapping

    async def update(self, mapping: ChannelRoomMapping) -> ChannelRoomMapping:
        """Flush pending changes to a mapping."""
        await self._session.flush()
        await self._session.refresh(mapping)
        return mapping

    async def delete(self, mapping: ChannelRoomMapping) -> None:
        """Delete a mapping; its external bookings go with it."""
        await self._session.execute(
            delete(ExternalBooking).where(ExternalBooking.mapping_id == mapping.id)
        )
        await self._session.delete(mapping)
        await self._session.flush()


class ExternalBookingRepository:
    """Repository for stays imported from OTA calendar feeds."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_for_mapping(self, mapping_id: int) -> Sequence[ExternalBooking]:
        """Get all external bookings of a mapping ordered by start date."""
        result = await self._session.execute(
            select(ExternalBooking)
            .where(ExternalBooking.mapping_id == mapping_id)
            .order_by(ExternalBooking.start_date)
        )
        return result.scalars().all()

    async def get_overlapping_for_room_type(
        self,
        room_type_id: int,
        start: date,
        end: date,
        exclude_mapping_id: int | None = None,
    ) -> Sequence[ExternalBooking]:
        """Get external stays on any mapping of a room type overlapping a range.

        Args:
            room_type_id: RoomType primary key.
            start: First night of the range.
            end: Exclusive end of the range.
            exclude_mapping_id: Mapping whose own stays are left out.

        Returns:
            Sequence of overlapping external bookings.
        """
        query = (
            select(ExternalBooking)
            .join(
                ChannelRoomMapping,
                ExternalBooking.mapping_id == ChannelRoomMapping.id,
            )
            .where(
                ChannelRoomMapping.room_type_id == room_type_id,
                ExternalBooking.start_date < end,
                ExternalBooking.end_date > start,
            )
        )
        if exclude_mapping_id is not None:
            query = query.where(ExternalBooking.mapping_id != exclude_mapping_id)
        result = await self._session.execute(query.order_by(ExternalBooking.start_date))
        return result.scalars().all()

    async def upsert(
        self,
        mapping_id: int,
        external_id: str,
        start_date: date,
        end_date: date,
        summary: str,
        raw_data: str | None = None,
    ) -> tuple[ExternalBooking, bool]:
        """Insert or update an external booking keyed by feed UID.

        Args:
            mapping_id: Mapping the feed belongs to.
            external_id: Event UID from the feed.
            start_date: First night.
            end_date: Exclusive end date.
            summary: Event summary.
            raw_data: Raw event text for troubleshooting.

        Returns:
            Tuple of (external_booking, was_created).
        """
        result = await self._session.execute(
            select(ExternalBooking).where(
                ExternalBooking.mapping_id == mapping_id,
                ExternalBooking.external_id == external_id,
            )
        )
        existing = result.scalar_one_or_none()

        if existing is None:
            booking = ExternalBooking(
                mapping_id=mapping_id,
                external_id=external_id,
                start_date=start_date,
                end_date=end_date,
                summary=summary,
                raw_data=raw_data,
            )
            self._session.add(booking)
            await self._session.flush()
            return (booking, True)

        existing.start_date = start_date
        existing.end_date = end_date
        existing.summary = summary
        existing.raw_data = raw_data
        await self._session.flush()
        return (existing, False)

    async def delete_by_external_ids(
        self, mapping_id: int, external_ids: Collection[str]
    ) -> int:
        """Delete external bookings of a mapping by feed UID.

        Args:
            mapping_id: Mapping primary key.
            external_ids: UIDs to remove.

        Returns:
            Number of rows deleted.
        """
        if not external_ids:
            return 0
        result = cast(
            "CursorResult[tuple[()]]",
            await self._session.execute(
                delete(ExternalBooking).where(
                    ExternalBooking.mapping_id == mapping_id,
                    ExternalBooking.external_id.in_(list(external_ids)),
                )
            ),
        )
        await self._session.flush()
        return result.rowcount or 0

    async def purge_ended_before(self, cutoff: date) -> int:
        """Purge external stays that ended before a date.

        Args:
            cutoff: Stays ending before this date are removed.

        Returns:
            Number of rows deleted.
        """
        result = cast(
            "CursorResult[tuple[()]]",
            await self._session.execute(
                delete(ExternalBooking).where(ExternalBooking.end_date < cutoff)
            ),
        )
        await self._session.flush()
        return result.rowcount or 0
