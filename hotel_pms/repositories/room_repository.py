# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repositories for room types and rooms."""

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.room import ROOM_STATUS_MAINTENANCE, Room, RoomType

# Leading characters compared when matching a room type name loosely
ROOM_TYPE_PREFIX_LENGTH = 8


class RoomTypeRepository:
    """Repository for RoomType CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, room_type_id: int) -> RoomType | None:
        """Get room type by ID.

        Args:
            room_type_id: RoomType primary key.

        Returns:
            RoomType if found, None otherwise.
        """
        result = await self._session.execute(
            select(RoomType).where(RoomType.id == room_type_id)
        )
        return result.scalar_one_or_none()

    async def get_all(self) -> Sequence[RoomType]:
        """Get all room types ordered by name."""
        result = await self._session.execute(select(RoomType).order_by(RoomType.name))
        return result.scalars().all()

    async def resolve(self, identifier: str | int) -> RoomType | None:
        """Resolve a room type from a possibly truncated identifier.

        Booking widgets and the voice agent sometimes send a room type name
        or a shortened one instead of the id. An exact id match wins, then a
        case-insensitive name match, then the first room type whose name
        starts with the first characters of the identifier.

        Args:
            identifier: Room type id as sent by the client.

        Returns:
            Matching RoomType or None.
        """
        text = str(identifier).strip()
        if not text:
            return None

        if text.isdigit():
            exact = await self.get_by_id(int(text))
            if exact is not None:
                return exact

        result = await self._session.execute(
            select(RoomType).where(func.lower(RoomType.name) == text.lower())
        )
        by_name = result.scalars().first()
        if by_name is not None:
            return by_name

        prefix = text[:ROOM_TYPE_PREFIX_LENGTH].lower()
        result = await self._session.execute(
            select(RoomType)
            .where(func.lower(RoomType.name).startswith(prefix, autoescape=True))
            .order_by(RoomType.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create(self, room_type: RoomType) -> RoomType:
        """Create a new room type.

        Args:
            room_type: RoomType entity to create.

        Returns:
            Created room type with ID.
        """
        self._session.add(room_type)
        await self._session.flush()
        await self._session.refresh(room_type)
        return room_type

    async def update(self, room_type: RoomType) -> RoomType:
        """Flush pending changes to a room type."""
        await self._session.flush()
        await self._session.refresh(room_type)
        return room_type

    async def delete(self, room_type: RoomType) -> None:
        """Delete a room type."""
        await self._session.delete(room_type)
        await self._session.flush()


class RoomRepository:
    """Repository for Room CRUD operations and inventory queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, room_id: int) -> Room | None:
        """Get room by ID.

        Args:
            room_id: Room primary key.

        Returns:
            Room if found, None otherwise.
        """
        result = await self._session.execute(select(Room).where(Room.id == room_id))
        return result.scalar_one_or_none()

    async def get_by_number(self, room_number: str) -> Room | None:
        """Get room by its door number.

        Args:
            room_number: Room number as printed on the door.

        Returns:
            Room if found, None otherwise.
        """
        result = await self._session.execute(
            select(Room).where(Room.room_number == room_number.strip())
        )
        return result.scalar_one_or_none()

    async def get_all(self, status: str | None = None) -> Sequence[Room]:
        """Get all rooms, optionally filtered by status.

        Args:
            status: Optional room status filter.

        Returns:
            Sequence of rooms ordered by room number.
        """
        query = select(Room).order_by(Room.room_number)
        if status is not None:
            query = query.where(Room.status == status)
        result = await self._session.execute(query)
        return result.scalars().all()

    async def get_for_type(self, room_type_id: int) -> Sequence[Room]:
        """Get all rooms of a room type.

        Args:
            room_type_id: RoomType primary key.

        Returns:
            Sequence of rooms ordered by room number.
        """
        result = await self._session.execute(
            select(Room)
            .where(Room.room_type_id == room_type_id)
            .order_by(Room.room_number)
        )
        return result.scalars().all()

    async def get_bookable_for_type(self, room_type_id: int) -> Sequence[Room]:
        """Get rooms of a type that are not under maintenance.

        Args:
            room_type_id: RoomType primary key.

        Returns:
            Sequence of rooms counting towards inventory.
        """
        result = await self._session.execute(
            select(Room)
            .where(
                Room.room_type_id == room_type_id,
                Room.status != ROOM_STATUS_MAINTENANCE,
            )
            .order_by(Room.room_number)
        )
        return result.scalars().all()

    async def get_bookable(self) -> Sequence[Room]:
        """Get every room not under maintenance."""
        result = await self._session.execute(
            select(Room)
            .where(Room.status != ROOM_STATUS_MAINTENANCE)
            .order_by(Room.room_number)
        )
        return result.scalars().all()

    async def create(self, room: Room) -> Room:
        """Create a new room.

        Args:
            room: Room entity to create.

        Returns:
            Created room with ID.
        """
        self._session.add(room)
        await self._session.flush()
        await self._session.refresh(room)
        return room

    async def update(self, room: Room) -> Room:
        """Flush pending changes to a room."""
        await self._session.flush()
        await self._session.refresh(room)
        return room

    async def set_status(self, room: Room, status: str) -> Room:
        """Set a room's status.

        Args:
            room: Room to update.
            status: New room status.

        Returns:
            Updated room.
        """
        room.status = status
        return await self.update(room)

    async def delete(self, room: Room) -> None:
        """Delete a room."""
        await self._session.delete(room)
        await self._session.flush()
