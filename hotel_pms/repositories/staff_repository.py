# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for Staff database operations."""

from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.staff import Staff


class StaffRepository:
    """Repository for Staff CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, staff_id: int) -> Staff | None:
        """Get staff member by ID."""
        result = await self._session.execute(select(Staff).where(Staff.id == staff_id))
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: str) -> Staff | None:
        """Get staff member by auth provider user id.

        Args:
            user_id: Identity forwarded by the auth proxy.

        Returns:
            Staff if found, None otherwise.
        """
        result = await self._session.execute(
            select(Staff).where(Staff.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Staff | None:
        """Get staff member by email, ignoring case."""
        result = await self._session.execute(
            select(Staff).where(func.lower(Staff.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_all(self, role: str | None = None) -> Sequence[Staff]:
        """Get all staff, optionally filtered by role."""
        query = select(Staff).order_by(Staff.name)
        if role is not None:
            query = query.where(Staff.role == role)
        result = await self._session.execute(query)
        return result.scalars().all()

    async def create(self, staff: Staff) -> Staff:
        """Create a new staff member."""
        self._session.add(staff)
        await self._session.flush()
        await self._session.refresh(staff)
        return staff

    async def update(self, staff: Staff) -> Staff:
        """Flush pending changes to a staff member."""
        await self._session.flush()
        await self._session.refresh(staff)
        return staff

    async def delete(self, staff: Staff) -> None:
        """Delete a staff member."""
        await self._session.delete(staff)
        await self._session.flush()
