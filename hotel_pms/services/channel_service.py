# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Channel connection and room mapping management."""

import logging
import secrets
from collections.abc import Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.channel import (
    CHANNEL_NAMES,
    SYNC_STATUS_PENDING,
    ChannelConnection,
    ChannelRoomMapping,
    ExternalBooking,
)
from hotel_pms.repositories.channel_repository import (
    ChannelConnectionRepository,
    ChannelMappingRepository,
    ExternalBookingRepository,
)
from hotel_pms.repositories.room_repository import RoomTypeRepository
from hotel_pms.services.calendar_service import CalendarCache, get_calendar_cache

logger = logging.getLogger(__name__)

EXPORT_TOKEN_BYTES = 24


class ChannelError(Exception):
    """Exception raised for channel management errors."""

    pass


class ChannelNotFoundError(ChannelError):
    """Exception raised when a connection, mapping or room type is missing."""

    pass


def generate_export_token() -> str:
    """Generate the unguessable token naming a published feed."""
    return secrets.token_urlsafe(EXPORT_TOKEN_BYTES)


def export_path(token: str) -> str:
    """Path of the feed published for a mapping."""
    return f"/ical/{token}.ics"


class ChannelService:
    """Manages OTA connections and the room types they sell."""

    def __init__(
        self, session: AsyncSession, calendar_cache: CalendarCache | None = None
    ) -> None:
        """Initialize ChannelService.

        Args:
            session: Async database session.
            calendar_cache: Feed cache cleared when mappings change.
        """
        self._session = session
        self._calendar_cache = calendar_cache or get_calendar_cache()
        self._connection_repo = ChannelConnectionRepository(session)
        self._mapping_repo = ChannelMappingRepository(session)
        self._external_repo = ExternalBookingRepository(session)
        self._room_type_repo = RoomTypeRepository(session)

    async def list_connections(self) -> Sequence[ChannelConnection]:
        """List every configured connection."""
        return await self._connection_repo.get_all()

    async def toggle_connection(
        self, channel_id: str, is_active: bool
    ) -> ChannelConnection:
        """Turn a channel on or off, creating its connection on first use.

        Raises:
            ChannelError: If the channel is not supported.
        """
        connection = await self._connection_repo.get_by_channel_id(channel_id)
        if connection is None:
            channel_name = CHANNEL_NAMES.get(channel_id)
            if channel_name is None:
                msg = f"Unsupported channel: {channel_id}"
                raise ChannelError(msg)
            connection = await self._connection_repo.create(
                ChannelConnection(
                    channel_id=channel_id,
                    channel_name=channel_name,
                    is_active=is_active,
                )
            )
            logger.info("Created %s connection", channel_name)
            return connection

        connection.is_active = is_active
        logger.info(
            "%s connection %s",
            connection.channel_name,
            "enabled" if is_active else "disabled",
        )
        return await self._connection_repo.update(connection)

    async def update_connection(
        self,
        connection_id: int,
        is_active: bool | None = None,
        settings: dict[str, Any] | None = None,
    ) -> ChannelConnection:
        """Update a connection's flag or settings.

        Raises:
            ChannelNotFoundError: If the connection does not exist.
        """
        connection = await self._connection_repo.get_by_id(connection_id)
        if connection is None:
            msg = "Connection not found"
            raise ChannelNotFoundError(msg)
        if is_active is not None:
            connection.is_active = is_active
        if settings is not None:
            connection.settings = settings
        return await self._connection_repo.update(connection)

    async def list_mappings(
        self, connection_id: int | None = None
    ) -> Sequence[ChannelRoomMapping]:
        """List mappings, optionally of one connection."""
        return await self._mapping_repo.get_all(connection_id)

    async def get_mapping(self, mapping_id: int) -> ChannelRoomMapping:
        """Get a mapping.

        Raises:
            ChannelNotFoundError: If it does not exist.
        """
        mapping = await self._mapping_repo.get_by_id(mapping_id)
        if mapping is None:
            msg = "Mapping not found"
            raise ChannelNotFoundError(msg)
        return mapping

    async def create_mapping(
        self,
        connection_id: int,
        room_type_id: int,
        external_listing_name: str | None = None,
        import_url: str | None = None,
        export_token: str | None = None,
    ) -> ChannelRoomMapping:
        """Map a room type to an OTA listing.

        Args:
            connection_id: Connection the listing belongs to.
            room_type_id: Local room type sold on the listing.
            external_listing_name: Listing name on the OTA.
            import_url: OTA calendar feed to import.
            export_token: Feed token; generated when omitted.

        Returns:
            The new mapping, pending its first sync.

        Raises:
            ChannelNotFoundError: If the connection or room type is missing.
        """
        if await self._connection_repo.get_by_id(connection_id) is None:
            msg = "Connection not found"
            raise ChannelNotFoundError(msg)
        if await self._room_type_repo.get_by_id(room_type_id) is None:
            msg = f"Room type {room_type_id} not found"
            raise ChannelNotFoundError(msg)

        mapping = ChannelRoomMapping(
            connection_id=connection_id,
            room_type_id=room_type_id,
            external_listing_name=external_listing_name,
            export_token=export_token or generate_export_token(),
            sync_status=SYNC_STATUS_PENDING,
        )
        mapping.import_url = import_url
        mapping = await self._mapping_repo.create(mapping)
        await self._session.commit()
        self._calendar_cache.clear()
        logger.info(
            "Mapped room type %d to connection %d (mapping %d)",
            room_type_id,
            connection_id,
            mapping.id,
        )
        return mapping

    async def update_mapping(
        self,
        mapping_id: int,
        external_listing_name: str | None = None,
        import_url: str | None = None,
        room_type_id: int | None = None,
    ) -> ChannelRoomMapping:
        """Update a mapping's listing name, feed or room type.

        An empty import URL clears the feed.

        Raises:
            ChannelNotFoundError: If the mapping or room type is missing.
        """
        mapping = await self.get_mapping(mapping_id)
        if external_listing_name is not None:
            mapping.external_listing_name = external_listing_name
        if import_url is not None:
            mapping.import_url = import_url
        if room_type_id is not None and room_type_id != mapping.room_type_id:
            if await self._room_type_repo.get_by_id(room_type_id) is None:
                msg = f"Room type {room_type_id} not found"
                raise ChannelNotFoundError(msg)
            mapping.room_type_id = room_type_id
        mapping = await self._mapping_repo.update(mapping)
        await self._session.commit()
        self._calendar_cache.clear()
        return mapping

    async def delete_mapping(self, mapping_id: int) -> None:
        """Delete a mapping together with its imported stays.

        Raises:
            ChannelNotFoundError: If the mapping does not exist.
        """
        mapping = await self.get_mapping(mapping_id)
        await self._mapping_repo.delete(mapping)
        await self._session.commit()
        self._calendar_cache.clear()
        logger.info("Deleted channel mapping %d", mapping_id)

    async def list_external_bookings(
        self, mapping_id: int
    ) -> Sequence[ExternalBooking]:
        """List the stays imported through a mapping.

        Raises:
            ChannelNotFoundError: If the mapping does not exist.
        """
        await self.get_mapping(mapping_id)
        return await self._external_repo.get_for_mapping(mapping_id)
