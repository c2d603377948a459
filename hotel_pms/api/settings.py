# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Settings API endpoints for runtime configuration."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.api.dependencies import StaffContext, require_permission
from hotel_pms.config import get_settings as get_app_settings
from hotel_pms.database import get_db
from hotel_pms.models.hotel_settings import HotelSettings
from hotel_pms.repositories.settings_repository import SettingsRepository
from hotel_pms.services.scheduler import (
    MAX_SYNC_INTERVAL_MINUTES,
    MIN_SYNC_INTERVAL_MINUTES,
    get_scheduler,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["Settings"])


class SettingsResponse(BaseModel):
    """Response model for hotel settings."""

    hotel_name: str = Field(description="Hotel name")
    address: str | None = Field(default=None, description="Postal address")
    phone: str | None = Field(default=None, description="Front desk phone")
    email: str | None = Field(default=None, description="Contact email")
    website: str | None = Field(default=None, description="Website")
    currency: str = Field(description="Currency of all prices")
    sync_interval_minutes: int = Field(description="Channel sync interval")
    ical_base_url: str = Field(description="Base URL of published feeds")


class SettingsUpdateRequest(BaseModel):
    """Request model for updating hotel identity."""

    hotel_name: str | None = Field(default=None, max_length=255)
    address: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    website: str | None = Field(default=None, max_length=255)


class SyncIntervalRequest(BaseModel):
    """Request model for updating sync interval."""

    interval_minutes: int = Field(
        ge=MIN_SYNC_INTERVAL_MINUTES,
        le=MAX_SYNC_INTERVAL_MINUTES,
        description="Sync interval in minutes (1-1440)",
    )


class SyncIntervalResponse(BaseModel):
    """Response model for sync interval."""

    interval_minutes: int = Field(description="Current sync interval in minutes")
    message: str = Field(description="Status message")


def _settings_response(
    request: Request, stored: HotelSettings | None
) -> SettingsResponse:
    """Merge stored settings over environment defaults."""
    app_settings = get_app_settings()
    sync_interval = app_settings.channel_sync_interval_minutes
    if stored is not None and stored.channel_sync_interval_minutes is not None:
        sync_interval = stored.channel_sync_interval_minutes
    return SettingsResponse(
        hotel_name=(stored.hotel_name if stored else None) or app_settings.hotel_name,
        address=stored.address if stored else None,
        phone=stored.phone if stored else None,
        email=(stored.email if stored else None) or app_settings.admin_email,
        website=stored.website if stored else None,
        currency=app_settings.currency,
        sync_interval_minutes=sync_interval,
        ical_base_url=(
            app_settings.public_base_url or str(request.base_url).rstrip("/")
        ),
    )


@router.get("", response_model=SettingsResponse)
async def get_settings(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("settings", "read"))],
) -> SettingsResponse:
    """Get current hotel settings.

    Returns:
        Hotel settings, falling back to environment values.
    """
    stored = await SettingsRepository(db).get()
    return _settings_response(request, stored)


@router.put("", response_model=SettingsResponse)
async def update_settings(
    request: Request,
    body: SettingsUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("settings", "update"))
    ],
) -> SettingsResponse:
    """Update hotel identity fields; omitted fields are left unchanged."""
    repo = SettingsRepository(db)
    stored = await repo.get_or_create()
    for field, value in body.model_dump(exclude_none=True).items():
        setattr(stored, field, value)
    stored = await repo.update(stored)
    await db.commit()
    logger.info("Hotel settings updated")
    return _settings_response(request, stored)


@router.put("/sync-interval", response_model=SyncIntervalResponse)
async def update_sync_interval(
    request: SyncIntervalRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("settings", "update"))
    ],
) -> SyncIntervalResponse:
    """Update the channel sync interval.

    Updates both the database and the running scheduler dynamically.

    Args:
        request: New sync interval settings.
        db: Database session.

    Returns:
        Updated sync interval confirmation.
    """
    repo = SettingsRepository(db)
    stored = await repo.get_or_create()
    stored.channel_sync_interval_minutes = request.interval_minutes
    await repo.update(stored)
    await db.commit()

    scheduler = get_scheduler()
    if scheduler and scheduler.is_running:
        scheduler.update_sync_interval(request.interval_minutes)
        logger.info("Sync interval updated to %d minutes", request.interval_minutes)
        message = f"Sync interval updated to {request.interval_minutes} minutes"
    else:
        logger.warning("Scheduler not running, interval will apply on next start")
        message = (
            f"Sync interval saved as {request.interval_minutes} minutes "
            "(will apply on next scheduler start)"
        )

    return SyncIntervalResponse(
        interval_minutes=request.interval_minutes,
        message=message,
    )
