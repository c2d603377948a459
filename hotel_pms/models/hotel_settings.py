# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Hotel settings model for runtime configuration stored in database."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hotel_pms.database import Base

DEFAULT_SETTINGS_KEY = "default"


class HotelSettings(Base):
    """Hotel identity and runtime options stored in the database.

    This is a single-row table holding values staff can change without
    restarting the service. Empty fields fall back to environment settings.
    """

    __tablename__ = "hotel_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    settings_key: Mapped[str] = mapped_column(
        String(50),
        default=DEFAULT_SETTINGS_KEY,
        unique=True,
        nullable=False,
    )
    hotel_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    website: Mapped[str | None] = mapped_column(String(255), nullable=True)
    channel_sync_interval_minutes: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<HotelSettings name={self.hotel_name!r}>"
