# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Channel manager API endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.api.dependencies import StaffContext, require_permission
from hotel_pms.config import get_settings
from hotel_pms.database import get_db
from hotel_pms.services.calendar_service import get_calendar_cache
from hotel_pms.services.channel_service import (
    ChannelError,
    ChannelNotFoundError,
    ChannelService,
    export_path,
)
from hotel_pms.services.channel_sync_service import ChannelSyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/channels", tags=["Channels"])


class ConnectionResponse(BaseModel):
    """Response model for a channel connection."""

    id: int = Field(description="Connection ID")
    channel_id: str = Field(description="Channel key such as airbnb")
    channel_name: str = Field(description="Display name")
    is_active: bool = Field(description="Whether the channel is synced")
    settings: dict[str, Any] | None = Field(default=None, description="Settings")
    last_sync_at: str | None = Field(default=None, description="Last sync time")


class ToggleRequest(BaseModel):
    """Request model for turning a channel on or off."""

    is_active: bool = Field(description="Enable the channel")


class ConnectionUpdateRequest(BaseModel):
    """Request model for updating a connection."""

    is_active: bool | None = Field(default=None, description="Enable the channel")
    settings: dict[str, Any] | None = Field(default=None, description="Settings")


class MappingResponse(BaseModel):
    """Response model for a channel room mapping."""

    id: int = Field(description="Mapping ID")
    connection_id: int = Field(description="Connection ID")
    room_type_id: int = Field(description="Room type ID")
    room_type_name: str | None = Field(default=None, description="Room type name")
    external_listing_name: str | None = Field(
        default=None, description="Listing name on the channel"
    )
    has_import_url: bool = Field(description="Whether a feed is imported")
    export_url: str = Field(description="Feed URL to give the channel")
    sync_status: str = Field(description="pending, success or error")
    sync_message: str | None = Field(default=None, description="Last sync result")
    last_synced_at: str | None = Field(default=None, description="Last sync time")


class MappingCreateRequest(BaseModel):
    """Request model for a new mapping."""

    connection_id: int = Field(description="Connection ID")
    room_type_id: int = Field(description="Room type ID")
    external_listing_name: str | None = Field(default=None, description="Listing")
    import_url: str | None = Field(default=None, description="Channel iCal URL")
    export_token: str | None = Field(
        default=None, min_length=8, max_length=64, description="Feed token"
    )


class MappingUpdateRequest(BaseModel):
    """Request model for updating a mapping."""

    room_type_id: int | None = Field(default=None, description="Room type ID")
    external_listing_name: str | None = Field(default=None, description="Listing")
    import_url: str | None = Field(
        default=None, description="Channel iCal URL, empty to remove"
    )


def _channel_http_error(error: ChannelError) -> HTTPException:
    """Map a channel error to its HTTP response."""
    if isinstance(error, ChannelNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def _base_url(request: Request) -> str:
    """Base URL of published feeds."""
    return get_settings().public_base_url or str(request.base_url).rstrip("/")


def _connection_to_response(connection: Any) -> dict[str, Any]:
    """Convert connection model to response dict."""
    return {
        "id": connection.id,
        "channel_id": connection.channel_id,
        "channel_name": connection.channel_name,
        "is_active": connection.is_active,
        "settings": connection.settings,
        "last_sync_at": (
            connection.last_sync_at.isoformat() if connection.last_sync_at else None
        ),
    }


def _mapping_to_response(mapping: Any, base_url: str) -> dict[str, Any]:
    """Convert mapping model to response dict; the import URL stays secret."""
    return {
        "id": mapping.id,
        "connection_id": mapping.connection_id,
        "room_type_id": mapping.room_type_id,
        "room_type_name": mapping.room_type.name if mapping.room_type else None,
        "external_listing_name": mapping.external_listing_name,
        "has_import_url": mapping.has_import_url,
        "export_url": f"{base_url}{export_path(mapping.export_token)}",
        "sync_status": mapping.sync_status,
        "sync_message": mapping.sync_message,
        "last_synced_at": (
            mapping.last_synced_at.isoformat() if mapping.last_synced_at else None
        ),
    }


@router.get("/connections", response_model=list[ConnectionResponse])
async def list_connections(
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("properties", "read"))],
) -> list[dict[str, Any]]:
    """List channel connections."""
    connections = await ChannelService(db).list_connections()
    return [_connection_to_response(c) for c in connections]


@router.put("/connections/{channel_id}/toggle", response_model=ConnectionResponse)
async def toggle_connection(
    channel_id: str,
    request: ToggleRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("properties", "update"))
    ],
) -> dict[str, Any]:
    """Turn a channel on or off, creating it on first use.

    Raises:
        HTTPException: 400 for unsupported channels.
    """
    try:
        connection = await ChannelService(db).toggle_connection(
            channel_id, request.is_active
        )
    except ChannelError as e:
        raise _channel_http_error(e) from e
    await db.commit()
    return _connection_to_response(connection)


@router.patch("/connections/{connection_id}", response_model=ConnectionResponse)
async def update_connection(
    connection_id: int,
    request: ConnectionUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("properties", "update"))
    ],
) -> dict[str, Any]:
    """Update a connection.

    Raises:
        HTTPException: 404 if the connection does not exist.
    """
    try:
        connection = await ChannelService(db).update_connection(
            connection_id, request.is_active, request.settings
        )
    except ChannelError as e:
        raise _channel_http_error(e) from e
    await db.commit()
    return _connection_to_response(connection)


@router.get("/mappings", response_model=list[MappingResponse])
async def list_mappings(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("properties", "read"))],
    connection_id: Annotated[int | None, Query()] = None,
) -> list[dict[str, Any]]:
    """List room mappings, optionally of one connection."""
    mappings = await ChannelService(db).list_mappings(connection_id)
    base_url = _base_url(request)
    return [_mapping_to_response(m, base_url) for m in mappings]


@router.post(
    "/mappings", response_model=MappingResponse, status_code=status.HTTP_201_CREATED
)
async def create_mapping(
    request: Request,
    body: MappingCreateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("properties", "create"))
    ],
) -> dict[str, Any]:
    """Map a room type to a channel listing.

    Raises:
        HTTPException: 404 if the connection or room type does not exist.
    """
    try:
        mapping = await ChannelService(db).create_mapping(
            connection_id=body.connection_id,
            room_type_id=body.room_type_id,
            external_listing_name=body.external_listing_name,
            import_url=body.import_url,
            export_token=body.export_token,
        )
    except ChannelError as e:
        raise _channel_http_error(e) from e
    await db.commit()
    return _mapping_to_response(mapping, _base_url(request))


@router.patch("/mappings/{mapping_id}", response_model=MappingResponse)
async def update_mapping(
    request: Request,
    mapping_id: int,
    body: MappingUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("properties", "update"))
    ],
) -> dict[str, Any]:
    """Update a mapping.

    Raises:
        HTTPException: 404 if the mapping or room type does not exist.
    """
    try:
        mapping = await ChannelService(db).update_mapping(
            mapping_id,
            external_listing_name=body.external_listing_name,
            import_url=body.import_url,
            room_type_id=body.room_type_id,
        )
    except ChannelError as e:
        raise _channel_http_error(e) from e
    await db.commit()
    return _mapping_to_response(mapping, _base_url(request))


@router.delete("/mappings/{mapping_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_mapping(
    mapping_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("properties", "delete"))
    ],
) -> None:
    """Delete a mapping and its imported stays.

    Raises:
        HTTPException: 404 if the mapping does not exist.
    """
    try:
        await ChannelService(db).delete_mapping(mapping_id)
    except ChannelError as e:
        raise _channel_http_error(e) from e
    await db.commit()


@router.get("/mappings/{mapping_id}/external-bookings")
async def list_external_bookings(
    mapping_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("properties", "read"))],
) -> list[dict[str, Any]]:
    """List stays imported through a mapping.

    Raises:
        HTTPException: 404 if the mapping does not exist.
    """
    try:
        stays = await ChannelService(db).list_external_bookings(mapping_id)
    except ChannelError as e:
        raise _channel_http_error(e) from e
    return [
        {
            "id": stay.id,
            "external_id": stay.external_id,
            "start_date": stay.start_date,
            "end_date": stay.end_date,
            "summary": stay.summary,
        }
        for stay in stays
    ]


@router.post("/sync")
async def sync_channels(
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("properties", "update"))
    ],
) -> dict[str, Any]:
    """Import every active channel feed now.

    Returns:
        Per-mapping results; one failing feed never aborts the others.
    """
    service = ChannelSyncService(db, calendar_cache=get_calendar_cache())
    results = await service.sync_all()
    logger.info("Manual channel sync processed %d mappings", len(results))
    return {"success": True, "results": results}
