# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for the single-row hotel settings table."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.hotel_settings import DEFAULT_SETTINGS_KEY, HotelSettings


class SettingsRepository:
    """Repository for HotelSettings."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get(self) -> HotelSettings | None:
        """Get the settings row if it exists."""
        result = await self._session.execute(
            select(HotelSettings).where(
                HotelSettings.settings_key == DEFAULT_SETTINGS_KEY
            )
        )
        return result.scalar_one_or_none()

    async def get_or_create(self) -> HotelSettings:
        """Get the settings row, creating an empty one when missing."""
        settings = await self.get()
        if settings is None:
            settings = HotelSettings(id=1, settings_key=DEFAULT_SETTINGS_KEY)
            self._session.add(settings)
            await self._session.flush()
        return settings

    async def update(self, settings: HotelSettings) -> HotelSettings:
        """Flush pending changes to the settings row."""
        await self._session.flush()
        await self._session.refresh(settings)
        return settings
