# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Activity log API endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.api.dependencies import StaffContext, require_permission
from hotel_pms.database import get_db
from hotel_pms.services.activity_log_service import (
    ActivityLogService,
    describe_activity,
)

router = APIRouter(prefix="/api/activity-logs", tags=["Activity Logs"])


@router.get("")
async def list_activity(
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("activity-logs", "read"))
    ],
    entity_type: Annotated[str | None, Query()] = None,
    entity_id: Annotated[str | None, Query()] = None,
    user_id: Annotated[str | None, Query()] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[dict[str, Any]]:
    """List recent activity, newest first."""
    entries = await ActivityLogService(db).get_recent(
        entity_type=entity_type, entity_id=entity_id, user_id=user_id, limit=limit
    )
    return [
        {
            "id": entry.id,
            "action": entry.action,
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "details": entry.details,
            "description": describe_activity(
                entry.action, entry.entity_type, entry.details or {}
            ),
            "user_id": entry.user_id,
            "created_at": entry.created_at,
        }
        for entry in entries
    ]
