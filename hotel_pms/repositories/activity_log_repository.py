# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for ActivityLog database operations."""

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import cast

from sqlalchemy import CursorResult, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.activity_log import ActivityLog


class ActivityLogRepository:
    """Repository for the staff audit trail."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def create(self, entry: ActivityLog) -> ActivityLog:
        """Append an entry."""
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def get_recent(
        self,
        entity_type: str | None = None,
        entity_id: str | None = None,
        user_id: str | None = None,
        limit: int = 100,
    ) -> Sequence[ActivityLog]:
        """Get the most recent entries matching optional filters.

        Args:
            entity_type: Optional entity type filter.
            entity_id: Optional entity id filter.
            user_id: Optional acting user filter.
            limit: Maximum rows returned.

        Returns:
            Sequence of entries, newest first.
        """
        query = select(ActivityLog).order_by(
            ActivityLog.created_at.desc(), ActivityLog.id.desc()
        )
        if entity_type is not None:
            query = query.where(ActivityLog.entity_type == entity_type)
        if entity_id is not None:
            query = query.where(ActivityLog.entity_id == entity_id)
        if user_id is not None:
            query = query.where(ActivityLog.user_id == user_id)
        result = await self._session.execute(query.limit(limit))
        return result.scalars().all()

    async def purge_older_than(self, days: int = 365) -> int:
        """Purge entries older than the given number of days.

        Args:
            days: Retention period in days.

        Returns:
            Number of entries deleted.
        """
        cutoff = datetime.now(UTC) - timedelta(days=days)
        result = cast(
            "CursorResult[tuple[()]]",
            await self._session.execute(
                delete(ActivityLog).where(ActivityLog.created_at < cutoff)
            ),
        )
        await self._session.flush()
        return result.rowcount or 0
