# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for Guest database operations."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.guest import Guest


class GuestRepository:
    """Repository for Guest lookups and upserts."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, guest_id: int) -> Guest | None:
        """Get guest by ID."""
        result = await self._session.execute(select(Guest).where(Guest.id == guest_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Guest | None:
        """Get guest by email, ignoring case.

        Args:
            email: Guest email address.

        Returns:
            Guest if found, None otherwise.
        """
        result = await self._session.execute(
            select(Guest).where(func.lower(Guest.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def upsert_by_email(
        self, name: str, email: str, phone: str | None = None
    ) -> tuple[Guest, bool]:
        """Find a guest by email and refresh their details, or create one.

        Args:
            name: Guest full name.
            email: Guest email address.
            phone: Optional phone number; kept unchanged when not supplied.

        Returns:
            Tuple of (guest, was_created).
        """
        existing = await self.get_by_email(email)
        if existing is None:
            guest = Guest(name=name.strip(), email=email.strip().lower(), phone=phone)
            self._session.add(guest)
            await self._session.flush()
            await self._session.refresh(guest)
            return (guest, True)

        existing.name = name.strip()
        if phone:
            existing.phone = phone
        await self._session.flush()
        await self._session.refresh(existing)
        return (existing, False)
