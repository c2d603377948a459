# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for HousekeepingService."""

import pytest
from hotel_pms.models.housekeeping import (
    TASK_STATUS_COMPLETED,
    TASK_STATUS_IN_PROGRESS,
    TASK_STATUS_PENDING,
)
from hotel_pms.models.room import (
    ROOM_STATUS_AVAILABLE,
    ROOM_STATUS_CLEANING,
    ROOM_STATUS_MAINTENANCE,
)
from hotel_pms.services.housekeeping_service import (
    HousekeepingError,
    HousekeepingService,
    TaskNotFoundError,
)


@pytest.fixture
async def dirty_room(async_session, inventory):
    """Room 102 waiting for cleaning."""
    room = inventory.rooms["102"]
    room.status = ROOM_STATUS_CLEANING
    await async_session.commit()
    return room


class TestHousekeeping:
    """Tests for the cleaning task lifecycle."""

    @pytest.mark.asyncio
    async def test_create_checkout_task(self, async_session, dirty_room):
        """Test a checkout creates a pending task for the room."""
        task = await HousekeepingService(async_session).create_checkout_task(
            dirty_room, "Kofi Boateng"
        )

        assert task.id is not None
        assert task.room_id == dirty_room.id
        assert task.room_number == "102"
        assert task.status == TASK_STATUS_PENDING
        assert task.notes == "Checkout cleaning for Kofi Boateng"

    @pytest.mark.asyncio
    async def test_list_tasks_by_status(self, async_session, dirty_room, make_staff):
        """Test tasks can be filtered by status."""
        service = HousekeepingService(async_session)
        first = await service.create_checkout_task(dirty_room, "Guest A")
        await service.create_checkout_task(dirty_room, "Guest B")
        cleaner = await make_staff("staff", "cleaner-1")
        await service.assign_task(first.id, cleaner.id)

        pending = await service.list_tasks(TASK_STATUS_PENDING)
        in_progress = await service.list_tasks(TASK_STATUS_IN_PROGRESS)
        assert len(pending) == 1
        assert [task.id for task in in_progress] == [first.id]
        assert len(await service.list_tasks()) == 2

    @pytest.mark.asyncio
    async def test_list_tasks_unknown_status(self, async_session):
        """Test unknown statuses are rejected."""
        with pytest.raises(HousekeepingError, match="Unknown task status: dusty"):
            await HousekeepingService(async_session).list_tasks("dusty")

    @pytest.mark.asyncio
    async def test_assign_task(self, async_session, dirty_room, make_staff):
        """Test assignment starts the task."""
        service = HousekeepingService(async_session)
        task = await service.create_checkout_task(dirty_room, "Guest A")
        cleaner = await make_staff("staff", "cleaner-1")

        task = await service.assign_task(task.id, cleaner.id, "manager-1")
        assert task.assigned_to == cleaner.id
        assert task.status == TASK_STATUS_IN_PROGRESS

    @pytest.mark.asyncio
    async def test_assign_to_unknown_staff(self, async_session, dirty_room):
        """Test tasks need an existing staff member."""
        service = HousekeepingService(async_session)
        task = await service.create_checkout_task(dirty_room, "Guest A")

        with pytest.raises(TaskNotFoundError, match="Staff member 42 not found"):
            await service.assign_task(task.id, 42)

    @pytest.mark.asyncio
    async def test_complete_task_frees_room(self, async_session, dirty_room):
        """Test completing cleaning puts the room back on sale."""
        service = HousekeepingService(async_session)
        task = await service.create_checkout_task(dirty_room, "Guest A")

        task = await service.complete_task(task.id, notes="Replaced towels")
        assert task.status == TASK_STATUS_COMPLETED
        assert task.completed_at is not None
        assert task.notes == "Replaced towels"
        assert dirty_room.status == ROOM_STATUS_AVAILABLE

    @pytest.mark.asyncio
    async def test_complete_task_keeps_maintenance(self, async_session, dirty_room):
        """Test a room sent to maintenance meanwhile stays out of service."""
        service = HousekeepingService(async_session)
        task = await service.create_checkout_task(dirty_room, "Guest A")
        dirty_room.status = ROOM_STATUS_MAINTENANCE
        await async_session.commit()

        await service.complete_task(task.id)
        assert dirty_room.status == ROOM_STATUS_MAINTENANCE

    @pytest.mark.asyncio
    async def test_complete_unknown_task(self, async_session):
        """Test completing a missing task fails."""
        with pytest.raises(TaskNotFoundError, match="Task 3 not found"):
            await HousekeepingService(async_session).complete_task(3)
