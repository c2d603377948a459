# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Channel manager models: OTA connections, room mappings, external stays."""

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from cryptography.fernet import Fernet
from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hotel_pms.config import get_settings
from hotel_pms.database import Base

if TYPE_CHECKING:
    from hotel_pms.models.room import RoomType

SYNC_STATUS_PENDING = "pending"
SYNC_STATUS_SUCCESS = "success"
SYNC_STATUS_ERROR = "error"

# Supported OTA channels and their display names
CHANNEL_NAMES = {
    "airbnb": "Airbnb",
    "booking": "Booking.com",
    "expedia": "Expedia",
    "vrbo": "VRBO",
    "tripadvisor": "TripAdvisor",
    "hotels": "Hotels.com",
}


def _utc_now() -> datetime:
    """Get current UTC datetime for SQLAlchemy defaults."""
    return datetime.now(UTC)


def get_cipher() -> Fernet:
    """Get Fernet cipher for import URL encryption.

    Returns:
        Fernet cipher instance.

    Raises:
        ValueError: If encryption key is not configured.
    """
    settings = get_settings()
    if not settings.encryption_key:
        msg = "ENCRYPTION_KEY environment variable is required"
        raise ValueError(msg)
    return Fernet(settings.encryption_key.encode())


def encrypt_value(value: str | None) -> str | None:
    """Encrypt a value using Fernet.

    Args:
        value: Plain text value to encrypt.

    Returns:
        Encrypted value as string, or None if input is None.
    """
    if value is None:
        return None
    return get_cipher().encrypt(value.encode()).decode()


def decrypt_value(value: str | None) -> str | None:
    """Decrypt a value using Fernet.

    Args:
        value: Encrypted value to decrypt.

    Returns:
        Decrypted plain text value, or None if input is None.
    """
    if value is None:
        return None
    return get_cipher().decrypt(value.encode()).decode()


class ChannelConnection(Base):
    """Connection to one OTA channel such as Airbnb or Booking.com."""

    __tablename__ = "channel_connections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    channel_id: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, index=True
    )
    channel_name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    settings: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now, onupdate=_utc_now
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<ChannelConnection(channel={self.channel_id}, active={self.is_active})>"
        )


class ChannelRoomMapping(Base):
    """Links a local room type to one OTA listing.

    The import URL is the OTA's iCal feed for the listing and embeds a
    secret, so it is stored encrypted. The export token names the feed
    this hotel publishes back to the OTA.
    """

    __tablename__ = "channel_room_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    connection_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("channel_connections.id", ondelete="CASCADE"),
        nullable=False,
    )
    room_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("room_types.id", ondelete="CASCADE"), nullable=False
    )
    external_listing_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    _import_url: Mapped[str | None] = mapped_column("import_url", Text, nullable=True)
    export_token: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    sync_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SYNC_STATUS_PENDING
    )
    sync_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now, onupdate=_utc_now
    )

    connection: Mapped[ChannelConnection] = relationship(
        "ChannelConnection", lazy="selectin"
    )
    room_type: Mapped["RoomType"] = relationship("RoomType", lazy="selectin")

    __table_args__ = (Index("idx_mapping_room_type", "room_type_id"),)

    @property
    def import_url(self) -> str | None:
        """Get decrypted import URL."""
        return decrypt_value(self._import_url)

    @import_url.setter
    def import_url(self, value: str | None) -> None:
        """Set encrypted import URL."""
        self._import_url = encrypt_value(value or None)

    @property
    def has_import_url(self) -> bool:
        """Check if a feed is imported, without decrypting it."""
        return self._import_url is not None

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<ChannelRoomMapping(id={self.id}, room_type_id={self.room_type_id}, "
            f"status={self.sync_status})>"
        )


class ExternalBooking(Base):
    """Stay imported from an OTA calendar feed."""

    __tablename__ = "external_bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mapping_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("channel_room_mappings.id", ondelete="CASCADE"),
        nullable=False,
    )
    external_id: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    summary: Mapped[str] = mapped_column(
        String(255), nullable=False, default="External Booking"
    )
    raw_data: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now, onupdate=_utc_now
    )

    __table_args__ = (
        UniqueConstraint("mapping_id", "external_id", name="uq_external_booking"),
        Index("idx_external_booking_dates", "mapping_id", "start_date", "end_date"),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<ExternalBooking(mapping_id={self.mapping_id}, "
            f"external_id={self.external_id})>"
        )
