# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Housekeeping task workflow."""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.housekeeping import (
    TASK_STATUS_COMPLETED,
    TASK_STATUS_IN_PROGRESS,
    TASK_STATUS_PENDING,
    TASK_STATUSES,
    HousekeepingTask,
)
from hotel_pms.models.room import ROOM_STATUS_AVAILABLE, ROOM_STATUS_CLEANING, Room
from hotel_pms.repositories.housekeeping_repository import HousekeepingRepository
from hotel_pms.repositories.room_repository import RoomRepository
from hotel_pms.repositories.staff_repository import StaffRepository
from hotel_pms.services.activity_log_service import ActivityLogService

logger = logging.getLogger(__name__)


class HousekeepingError(Exception):
    """Exception raised for housekeeping errors."""

    pass


class TaskNotFoundError(HousekeepingError):
    """Exception raised when a task or its assignee does not exist."""

    pass


class HousekeepingService:
    """Creates cleaning tasks and returns rooms to service when done."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize HousekeepingService.

        Args:
            session: Async database session.
        """
        self._repo = HousekeepingRepository(session)
        self._room_repo = RoomRepository(session)
        self._staff_repo = StaffRepository(session)
        self._activity = ActivityLogService(session)

    async def create_checkout_task(
        self, room: Room, guest_name: str, user_id: str | None = None
    ) -> HousekeepingTask:
        """Queue cleaning of a room after its guest left.

        Args:
            room: Room to clean.
            guest_name: Departing guest.
            user_id: Acting staff user.

        Returns:
            Pending task.
        """
        task = await self._repo.create(
            HousekeepingTask(
                room_id=room.id,
                room_number=room.room_number,
                status=TASK_STATUS_PENDING,
                notes=f"Checkout cleaning for {guest_name}",
            )
        )
        await self._activity.log(
            "created",
            "task",
            task.id,
            {"room_number": room.room_number, "task_type": task.task_type},
            user_id,
        )
        logger.info("Created checkout cleaning task for room %s", room.room_number)
        return task

    async def list_tasks(self, status: str | None = None) -> Sequence[HousekeepingTask]:
        """List tasks, optionally by status.

        Raises:
            HousekeepingError: If the status is unknown.
        """
        if status is not None and status not in TASK_STATUSES:
            msg = f"Unknown task status: {status}"
            raise HousekeepingError(msg)
        return await self._repo.get_all(status)

    async def assign_task(
        self, task_id: int, staff_id: int, user_id: str | None = None
    ) -> HousekeepingTask:
        """Assign a task to a staff member and mark it in progress.

        Raises:
            TaskNotFoundError: If the task or staff member does not exist.
        """
        task = await self._get_task(task_id)
        staff = await self._staff_repo.get_by_id(staff_id)
        if staff is None:
            msg = f"Staff member {staff_id} not found"
            raise TaskNotFoundError(msg)

        task.assigned_to = staff.id
        if task.status == TASK_STATUS_PENDING:
            task.status = TASK_STATUS_IN_PROGRESS
        task = await self._repo.update(task)
        await self._activity.log(
            "assigned",
            "task",
            task.id,
            {"room_number": task.room_number, "assigned_to": staff.name},
            user_id,
        )
        return task

    async def complete_task(
        self, task_id: int, notes: str | None = None, user_id: str | None = None
    ) -> HousekeepingTask:
        """Complete a task and make its room available again.

        The room only changes when it is still waiting for cleaning, so a
        room sent to maintenance meanwhile stays there.

        Raises:
            TaskNotFoundError: If the task does not exist.
        """
        task = await self._get_task(task_id)
        task.status = TASK_STATUS_COMPLETED
        task.completed_at = datetime.now(UTC)
        if notes:
            task.notes = notes
        task = await self._repo.update(task)

        room = await self._room_repo.get_by_number(task.room_number)
        if room is not None and room.status == ROOM_STATUS_CLEANING:
            await self._room_repo.set_status(room, ROOM_STATUS_AVAILABLE)
            logger.info("Room %s is available after cleaning", room.room_number)

        await self._activity.log(
            "completed",
            "task",
            task.id,
            {"room_number": task.room_number},
            user_id,
        )
        return task

    async def _get_task(self, task_id: int) -> HousekeepingTask:
        """Get a task or raise TaskNotFoundError."""
        task = await self._repo.get_by_id(task_id)
        if task is None:
            msg = f"Task {task_id} not found"
            raise TaskNotFoundError(msg)
        return task
