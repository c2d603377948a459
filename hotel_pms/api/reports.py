# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Reporting API endpoints."""

from datetime import UTC, date, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.api.dependencies import StaffContext, require_permission
from hotel_pms.database import get_db
from hotel_pms.services.report_service import ReportService

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.get("/end-of-day")
async def end_of_day_report(
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("reports", "read"))],
    day: Annotated[date | None, Query(alias="date")] = None,
) -> dict[str, Any]:
    """Bookings and takings of a day, today (UTC) by default."""
    report_day = day or datetime.now(UTC).date()
    return await ReportService(db).end_of_day(report_day)
