# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Housekeeping task API endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.api.dependencies import StaffContext, require_permission
from hotel_pms.database import get_db
from hotel_pms.services.housekeeping_service import (
    HousekeepingError,
    HousekeepingService,
    TaskNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/housekeeping", tags=["Housekeeping"])


class TaskResponse(BaseModel):
    """Response model for a housekeeping task."""

    id: int = Field(description="Task ID")
    room_id: int | None = Field(default=None, description="Room ID")
    room_number: str = Field(description="Room number")
    task_type: str = Field(description="Task type")
    status: str = Field(description="pending, in_progress or completed")
    assigned_to: int | None = Field(default=None, description="Assigned staff ID")
    notes: str | None = Field(default=None, description="Notes")
    completed_at: str | None = Field(default=None, description="Completion time")
    created_at: str | None = Field(default=None, description="Creation time")


class AssignRequest(BaseModel):
    """Request model for assigning a task."""

    staff_id: int = Field(description="Staff member to assign")


class CompleteRequest(BaseModel):
    """Request model for completing a task."""

    notes: str | None = Field(default=None, description="Completion notes")


def _task_http_error(error: HousekeepingError) -> HTTPException:
    """Map a housekeeping error to its HTTP response."""
    if isinstance(error, TaskNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def _task_to_response(task: Any) -> dict[str, Any]:
    """Convert task model to response dict."""
    return {
        "id": task.id,
        "room_id": task.room_id,
        "room_number": task.room_number,
        "task_type": task.task_type,
        "status": task.status,
        "assigned_to": task.assigned_to,
        "notes": task.notes,
        "completed_at": task.completed_at.isoformat() if task.completed_at else None,
        "created_at": task.created_at.isoformat() if task.created_at else None,
    }


@router.get("/tasks", response_model=list[TaskResponse])
async def list_tasks(
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("housekeeping", "read"))
    ],
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[dict[str, Any]]:
    """List housekeeping tasks.

    Raises:
        HTTPException: 400 for an unknown status.
    """
    try:
        tasks = await HousekeepingService(db).list_tasks(status_filter)
    except HousekeepingError as e:
        raise _task_http_error(e) from e
    return [_task_to_response(task) for task in tasks]


@router.post("/tasks/{task_id}/assign", response_model=TaskResponse)
async def assign_task(
    task_id: int,
    request: AssignRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[
        StaffContext, Depends(require_permission("housekeeping", "update"))
    ],
) -> dict[str, Any]:
    """Assign a task to a staff member.

    Raises:
        HTTPException: 404 if the task or staff member does not exist.
    """
    try:
        task = await HousekeepingService(db).assign_task(
            task_id, request.staff_id, staff.user_id
        )
    except HousekeepingError as e:
        raise _task_http_error(e) from e
    await db.commit()
    return _task_to_response(task)


@router.post("/tasks/{task_id}/complete", response_model=TaskResponse)
async def complete_task(
    task_id: int,
    request: CompleteRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[
        StaffContext, Depends(require_permission("housekeeping", "update"))
    ],
) -> dict[str, Any]:
    """Complete a task and return its room to service.

    Raises:
        HTTPException: 404 if the task does not exist.
    """
    try:
        task = await HousekeepingService(db).complete_task(
            task_id, request.notes, staff.user_id
        )
    except HousekeepingError as e:
        raise _task_http_error(e) from e
    await db.commit()
    return _task_to_response(task)
