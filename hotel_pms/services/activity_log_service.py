# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Audit trail of staff actions."""

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.activity_log import ActivityLog
from hotel_pms.repositories.activity_log_repository import ActivityLogRepository

logger = logging.getLogger(__name__)

ACTIVITY_LOG_RETENTION_DAYS = 365


def describe_activity(action: str, entity_type: str, details: dict[str, Any]) -> str:
    """Build a readable heading such as ``Checked In Booking - Ama (Room 101)``.

    Args:
        action: Action name, e.g. ``checked_in``.
        entity_type: Entity type, e.g. ``booking``.
        details: Entry details.

    Returns:
        Heading string.
    """
    action_text = action.replace("_", " ").title()
    entity_text = entity_type.replace("_", " ").title()

    if entity_type == "booking":
        guest_name = details.get("guest_name")
        room_number = details.get("room_number")
        if guest_name and room_number:
            return f"{action_text} Booking - {guest_name} (Room {room_number})"
        if room_number:
            return f"{action_text} Booking - Room {room_number}"
    elif entity_type == "invoice" and details.get("invoice_number"):
        return f"{action_text} Invoice - {details['invoice_number']}"
    elif entity_type == "room" and details.get("room_number"):
        return f"{action_text} Room - {details['room_number']}"
    elif entity_type in ("employee", "guest"):
        label = details.get("name") or details.get("email")
        if label:
            return f"{action_text} {entity_text} - {label}"

    return f"{action_text} {entity_text}"


class ActivityLogService:
    """Records and lists activity log entries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ActivityLogService.

        Args:
            session: Async database session.
        """
        self._session = session
        self._repo = ActivityLogRepository(session)

    async def log(
        self,
        action: str,
        entity_type: str,
        entity_id: int | str,
        details: dict[str, Any] | None = None,
        user_id: str | None = None,
    ) -> ActivityLog | None:
        """Record an entry without ever failing the calling operation.

        The insert runs in a savepoint so a failure leaves the caller's
        transaction usable.

        Args:
            action: Action name.
            entity_type: Entity type.
            entity_id: Entity identifier.
            details: Extra JSON details.
            user_id: Acting user.

        Returns:
            The stored entry, or None if it could not be written.
        """
        entry = ActivityLog(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            details=details or {},
            user_id=user_id,
        )
        try:
            async with self._session.begin_nested():
                await self._repo.create(entry)
        except SQLAlchemyError:
            logger.exception(
                "Failed to record activity %s on %s %s", action, entity_type, entity_id
            )
            return None

        logger.debug(
            "Activity: %s", describe_activity(action, entity_type, details or {})
        )
        return entry

    async def get_recent(
        self,
        entity_type: str | None = None,
        entity_id: str | None = None,
        user_id: str | None = None,
        limit: int = 100,
    ) -> Sequence[ActivityLog]:
        """List recent entries, newest first."""
        return await self._repo.get_recent(
            entity_type=entity_type, entity_id=entity_id, user_id=user_id, limit=limit
        )

    async def purge(self, days: int = ACTIVITY_LOG_RETENTION_DAYS) -> int:
        """Delete entries older than the retention period.

        Args:
            days: Retention period in days.

        Returns:
            Number of entries deleted.
        """
        deleted = await self._repo.purge_older_than(days)
        if deleted:
            logger.info(
                "Purged %d activity log entries older than %d days", deleted, days
            )
        return deleted
