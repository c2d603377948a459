# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Room type and physical room models."""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hotel_pms.database import Base

# Room housekeeping / occupancy states
ROOM_STATUS_AVAILABLE = "available"
ROOM_STATUS_OCCUPIED = "occupied"
ROOM_STATUS_CLEANING = "cleaning"
ROOM_STATUS_MAINTENANCE = "maintenance"

ROOM_STATUSES = frozenset(
    {
        ROOM_STATUS_AVAILABLE,
        ROOM_STATUS_OCCUPIED,
        ROOM_STATUS_CLEANING,
        ROOM_STATUS_MAINTENANCE,
    }
)


def _utc_now() -> datetime:
    """Get current UTC datetime for SQLAlchemy defaults."""
    return datetime.now(UTC)


class RoomType(Base):
    """Sellable category of rooms sharing a price and capacity.

    Availability, channel mappings and iCal exports all work at the
    room type level; rooms are the inventory units behind it.
    """

    __tablename__ = "room_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    base_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    max_occupancy: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    amenities: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    images: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now, onupdate=_utc_now
    )

    rooms: Mapped[list["Room"]] = relationship(
        "Room",
        back_populates="room_type",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<RoomType(id={self.id}, name={self.name})>"


class Room(Base):
    """Physical room that can hold one booking per night."""

    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_number: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True, index=True
    )
    room_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("room_types.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ROOM_STATUS_AVAILABLE
    )
    # Nightly rate used when the room type has no base price
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    image_urls: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now, onupdate=_utc_now
    )

    room_type: Mapped[RoomType] = relationship(
        "RoomType",
        back_populates="rooms",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_room_type", "room_type_id"),
        Index("idx_room_status", "status"),
    )

    @property
    def is_bookable(self) -> bool:
        """Rooms under maintenance are taken out of inventory."""
        return self.status != ROOM_STATUS_MAINTENANCE

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Room(id={self.id}, number={self.room_number}, status={self.status})>"
