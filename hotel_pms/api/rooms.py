# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Room type and room management API endpoints."""

import logging
from datetime import UTC
from decimal import Decimal
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.api.dependencies import StaffContext, require_permission
from hotel_pms.database import get_db
from hotel_pms.models.room import ROOM_STATUSES, Room, RoomType
from hotel_pms.repositories.room_repository import RoomRepository, RoomTypeRepository
from hotel_pms.services.calendar_service import get_calendar_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Rooms"])


def _validate_status(v: str | None) -> str | None:
    """Reject unknown room statuses."""
    if v is not None and v not in ROOM_STATUSES:
        msg = f"Status must be one of: {', '.join(sorted(ROOM_STATUSES))}"
        raise ValueError(msg)
    return v


class RoomTypeResponse(BaseModel):
    """Response model for a room type."""

    id: int = Field(description="Room type ID")
    name: str = Field(description="Room type name")
    description: str | None = Field(default=None, description="Description")
    base_price: Decimal = Field(description="Nightly base price")
    max_occupancy: int = Field(description="Guests per room")
    amenities: list[str] = Field(description="Amenities")
    images: list[str] = Field(description="Image URLs")
    room_count: int = Field(description="Rooms of this type")


class RoomTypeRequest(BaseModel):
    """Request model for creating or updating a room type."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None)
    base_price: Decimal | None = Field(default=None, ge=0)
    max_occupancy: int | None = Field(default=None, ge=1)
    amenities: list[str] | None = Field(default=None)
    images: list[str] | None = Field(default=None)


class RoomResponse(BaseModel):
    """Response model for a room."""

    id: int = Field(description="Room ID")
    room_number: str = Field(description="Room number")
    room_type_id: int = Field(description="Room type ID")
    room_type_name: str | None = Field(default=None, description="Room type name")
    status: str = Field(description="Room status")
    price: Decimal | None = Field(default=None, description="Room rate override")
    notes: str | None = Field(default=None, description="Notes")
    updated_at: str | None = Field(default=None, description="Last update timestamp")


class RoomCreateRequest(BaseModel):
    """Request model for adding a room."""

    room_number: str = Field(min_length=1, max_length=20)
    room_type_id: int = Field(description="Room type ID")
    status: str = Field(default="available")
    price: Decimal | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None)

    _check_status = field_validator("status")(_validate_status)


class RoomUpdateRequest(BaseModel):
    """Request model for updating a room."""

    room_number: str | None = Field(default=None, min_length=1, max_length=20)
    room_type_id: int | None = Field(default=None)
    status: str | None = Field(default=None)
    price: Decimal | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None)

    _check_status = field_validator("status")(_validate_status)


class RoomStatusRequest(BaseModel):
    """Request model for a room status change."""

    status: str = Field(description="New room status")

    _check_status = field_validator("status")(_validate_status)


def _format_datetime(dt: Any) -> str | None:
    """Format datetime to ISO string with UTC timezone."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return str(dt.isoformat())


def _room_type_to_response(room_type: Any) -> dict[str, Any]:
    """Convert room type model to response dict."""
    return {
        "id": room_type.id,
        "name": room_type.name,
        "description": room_type.description,
        "base_price": room_type.base_price,
        "max_occupancy": room_type.max_occupancy,
        "amenities": room_type.amenities or [],
        "images": room_type.images or [],
        "room_count": len(room_type.rooms),
    }


def _room_to_response(room: Any) -> dict[str, Any]:
    """Convert room model to response dict."""
    return {
        "id": room.id,
        "room_number": room.room_number,
        "room_type_id": room.room_type_id,
        "room_type_name": room.room_type.name if room.room_type else None,
        "status": room.status,
        "price": room.price,
        "notes": room.notes,
        "updated_at": _format_datetime(room.updated_at),
    }


async def _commit_or_conflict(db: AsyncSession, detail: str) -> None:
    """Commit, turning constraint violations into 409 responses."""
    try:
        await db.commit()
    except IntegrityError as err:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=detail
        ) from err


async def _get_room_type(repo: RoomTypeRepository, room_type_id: int) -> RoomType:
    room_type = await repo.get_by_id(room_type_id)
    if room_type is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Room type not found",
        )
    return room_type


async def _get_room(repo: RoomRepository, room_id: int) -> Room:
    room = await repo.get_by_id(room_id)
    if room is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Room not found",
        )
    return room


@router.get("/room-types", response_model=list[RoomTypeResponse])
async def list_room_types(
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("properties", "read"))],
) -> list[dict[str, Any]]:
    """List room types."""
    room_types = await RoomTypeRepository(db).get_all()
    return [_room_type_to_response(rt) for rt in room_types]


@router.post(
    "/room-types",
    response_model=RoomTypeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_room_type(
    request: RoomTypeRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("properties", "create"))
    ],
) -> dict[str, Any]:
    """Create a room type.

    Raises:
        HTTPException: 400 without a name, 409 if the name is taken.
    """
    if not request.name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Room type name is required",
        )
    repo = RoomTypeRepository(db)
    try:
        room_type = await repo.create(
            RoomType(
                name=request.name,
                description=request.description,
                base_price=request.base_price or Decimal("0.00"),
                max_occupancy=request.max_occupancy or 2,
                amenities=request.amenities,
                images=request.images,
            )
        )
    except IntegrityError as err:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Room type name already in use",
        ) from err
    await db.commit()
    logger.info("Created room type %s", room_type.name)
    return _room_type_to_response(room_type)


@router.patch("/room-types/{room_type_id}", response_model=RoomTypeResponse)
async def update_room_type(
    room_type_id: int,
    request: RoomTypeRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("properties", "update"))
    ],
) -> dict[str, Any]:
    """Update a room type.

    Raises:
        HTTPException: 404 if not found, 409 if the name is taken.
    """
    repo = RoomTypeRepository(db)
    room_type = await _get_room_type(repo, room_type_id)
    for field, value in request.model_dump(exclude_none=True).items():
        setattr(room_type, field, value)
    await _commit_or_conflict(db, "Room type name already in use")
    await db.refresh(room_type)
    get_calendar_cache().clear()
    return _room_type_to_response(room_type)


@router.delete("/room-types/{room_type_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room_type(
    room_type_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("properties", "delete"))
    ],
) -> None:
    """Delete a room type without rooms.

    Raises:
        HTTPException: 400 if rooms still use it, 404 if not found,
            409 if channel mappings or bookings reference it.
    """
    repo = RoomTypeRepository(db)
    room_type = await _get_room_type(repo, room_type_id)
    if room_type.rooms:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Room type still has rooms",
        )
    try:
        await repo.delete(room_type)
    except IntegrityError as err:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Room type is still referenced",
        ) from err
    await db.commit()


@router.get("/rooms", response_model=list[RoomResponse])
async def list_rooms(
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("properties", "read"))],
    room_status: Annotated[str | None, Query(alias="status")] = None,
) -> list[dict[str, Any]]:
    """List rooms, optionally filtered by status."""
    rooms = await RoomRepository(db).get_all(room_status)
    return [_room_to_response(room) for room in rooms]


@router.post("/rooms", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    request: RoomCreateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("properties", "create"))
    ],
) -> dict[str, Any]:
    """Add a room.

    Raises:
        HTTPException: 404 for unknown room types, 409 if the number is taken.
    """
    await _get_room_type(RoomTypeRepository(db), request.room_type_id)
    repo = RoomRepository(db)
    try:
        room = await repo.create(
            Room(
                room_number=request.room_number.strip(),
                room_type_id=request.room_type_id,
                status=request.status,
                price=request.price,
                notes=request.notes,
            )
        )
    except IntegrityError as err:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Room number already in use",
        ) from err
    await db.commit()
    get_calendar_cache().clear()
    logger.info("Added room %s", room.room_number)
    return _room_to_response(room)


@router.get("/rooms/{room_id}", response_model=RoomResponse)
async def get_room(
    room_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("properties", "read"))],
) -> dict[str, Any]:
    """Get a specific room.

    Raises:
        HTTPException: 404 if room not found.
    """
    return _room_to_response(await _get_room(RoomRepository(db), room_id))


@router.patch("/rooms/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: int,
    request: RoomUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("properties", "update"))
    ],
) -> dict[str, Any]:
    """Update a room.

    Raises:
        HTTPException: 404 if the room or room type is not found,
            409 if the number is taken.
    """
    repo = RoomRepository(db)
    room = await _get_room(repo, room_id)
    if request.room_type_id is not None:
        await _get_room_type(RoomTypeRepository(db), request.room_type_id)
    for field, value in request.model_dump(exclude_none=True).items():
        setattr(room, field, value)
    await _commit_or_conflict(db, "Room number already in use")
    await db.refresh(room)
    get_calendar_cache().clear()
    logger.info("Updated room %s", room.room_number)
    return _room_to_response(room)


@router.patch("/rooms/{room_id}/status", response_model=RoomResponse)
async def update_room_status(
    room_id: int,
    request: RoomStatusRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("housekeeping", "update"))
    ],
) -> dict[str, Any]:
    """Set a room's status; maintenance takes it out of inventory.

    Raises:
        HTTPException: 404 if room not found.
    """
    repo = RoomRepository(db)
    room = await repo.set_status(await _get_room(repo, room_id), request.status)
    await db.commit()
    get_calendar_cache().clear()
    logger.info("Room %s is now %s", room.room_number, room.status)
    return _room_to_response(room)


@router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[
        StaffContext, Depends(require_permission("properties", "delete"))
    ],
) -> None:
    """Delete a room.

    Raises:
        HTTPException: 404 if not found, 409 if bookings reference it.
    """
    repo = RoomRepository(db)
    room = await _get_room(repo, room_id)
    try:
        await repo.delete(room)
    except IntegrityError as err:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Room has bookings and cannot be deleted",
        ) from err
    await db.commit()
    get_calendar_cache().clear()
