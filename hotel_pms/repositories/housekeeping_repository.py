# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for HousekeepingTask database operations."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.housekeeping import HousekeepingTask


class HousekeepingRepository:
    """Repository for HousekeepingTask CRUD operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_id(self, task_id: int) -> HousekeepingTask | None:
        """Get task by ID."""
        result = await self._session.execute(
            select(HousekeepingTask).where(HousekeepingTask.id == task_id)
        )
        return result.scalar_one_or_none()

    async def get_all(self, status: str | None = None) -> Sequence[HousekeepingTask]:
        """Get tasks, oldest first, optionally filtered by status.

        Args:
            status: Optional status filter.

        Returns:
            Sequence of tasks.
        """
        query = select(HousekeepingTask).order_by(
            HousekeepingTask.created_at, HousekeepingTask.id
        )
        if status is not None:
            query = query.where(HousekeepingTask.status == status)
        result = await self._session.execute(query)
        return result.scalars().all()

    async def create(self, task: HousekeepingTask) -> HousekeepingTask:
        """Create a new task."""
        self._session.add(task)
        await self._session.flush()
        await self._session.refresh(task)
        return task

    async def update(self, task: HousekeepingTask) -> HousekeepingTask:
        """Flush pending changes to a task."""
        await self._session.flush()
        await self._session.refresh(task)
        return task
