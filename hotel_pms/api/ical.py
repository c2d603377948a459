# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""iCal feed API endpoint published to OTA channels."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.database import get_db
from hotel_pms.services.calendar_service import (
    CalendarNotFoundError,
    CalendarService,
    get_calendar_cache,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["iCal"])


@router.get(
    "/ical/{token}.ics",
    response_class=Response,
    responses={
        200: {
            "content": {"text/calendar": {}},
            "description": "iCal availability feed",
        },
        404: {"description": "Calendar not found"},
    },
)
async def get_ical_feed(
    token: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Response:
    """Get the busy-block feed of a channel room mapping.

    Args:
        token: Export token of the mapping.
        db: Database session.

    Returns:
        iCal calendar as text/calendar response.

    Raises:
        HTTPException: 404 if no mapping uses the token.
    """
    service = CalendarService(db, cache=get_calendar_cache())
    try:
        ical_content = await service.export_for_token(token)
    except CalendarNotFoundError as e:
        logger.warning("iCal request for unknown token")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Calendar not found",
        ) from e

    return Response(
        content=ical_content,
        media_type="text/calendar",
        headers={
            "Content-Disposition": f'attachment; filename="{token}.ics"',
        },
    )
