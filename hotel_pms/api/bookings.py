# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Staff booking management API endpoints."""

import logging
from datetime import date
from decimal import Decimal
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.api.dependencies import StaffContext, require_permission
from hotel_pms.database import get_db
from hotel_pms.models.booking import BOOKING_STATUSES, SOURCE_FRONT_DESK
from hotel_pms.services.booking_service import (
    BookingError,
    BookingNotFoundError,
    BookingService,
    BookingValidationError,
    NoAvailabilityError,
    NoRoomsOfTypeError,
    RoomTypeNotFoundError,
    StayRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])

_BOOKING_ERROR_STATUS = {
    BookingValidationError: status.HTTP_400_BAD_REQUEST,
    RoomTypeNotFoundError: status.HTTP_404_NOT_FOUND,
    NoRoomsOfTypeError: status.HTTP_404_NOT_FOUND,
    BookingNotFoundError: status.HTTP_404_NOT_FOUND,
    NoAvailabilityError: status.HTTP_409_CONFLICT,
}


class BookingResponse(BaseModel):
    """Response model for a booking."""

    id: int = Field(description="Booking ID")
    guest_name: str | None = Field(default=None, description="Guest name")
    guest_email: str | None = Field(default=None, description="Guest email")
    room_id: int = Field(description="Room ID")
    room_number: str | None = Field(default=None, description="Room number")
    check_in: date = Field(description="Arrival date")
    check_out: date = Field(description="Departure date")
    status: str = Field(description="Booking status")
    total_price: Decimal = Field(description="Room total")
    final_amount: Decimal | None = Field(default=None, description="Discounted total")
    num_guests: int = Field(description="Number of guests")
    source: str = Field(description="Booking channel")
    special_requests: str | None = Field(default=None, description="Guest notes")
    group_id: str | None = Field(default=None, description="Group ID")
    group_reference: str | None = Field(default=None, description="Group reference")
    is_primary_booking: bool = Field(description="Primary booking of its group")
    payment_method: str | None = Field(default=None, description="Payment method")
    created_at: str | None = Field(default=None, description="Creation timestamp")


class BookingsResponse(BaseModel):
    """Response model for bookings collection."""

    bookings: list[BookingResponse] = Field(description="List of bookings")
    total: int = Field(description="Total count")


class StayItem(BaseModel):
    """One room of a booking request."""

    check_in: str | None = Field(default=None, description="Arrival (YYYY-MM-DD)")
    check_out: str | None = Field(default=None, description="Departure (YYYY-MM-DD)")
    room_type_id: str | int | None = Field(
        default=None, description="Room type ID or name"
    )
    room_id: int | None = Field(default=None, description="Specific room")
    num_guests: int = Field(default=1, ge=1, description="Number of guests")

    def to_stay(self) -> StayRequest:
        """Convert to the service's stay request."""
        return StayRequest(
            check_in=self.check_in,
            check_out=self.check_out,
            room_type_id=self.room_type_id,
            num_guests=self.num_guests,
            room_id=self.room_id,
        )


class StaffBookingRequest(StayItem):
    """Request model for a front desk booking."""

    guest_name: str | None = Field(default=None, description="Guest full name")
    guest_email: str | None = Field(default=None, description="Guest email")
    guest_phone: str | None = Field(default=None, description="Guest phone")
    special_requests: str | None = Field(default=None, description="Guest notes")
    notify: bool = Field(default=True, description="Send guest confirmations")


class GroupBookingRequest(BaseModel):
    """Request model for a group booking."""

    rooms: list[StayItem] = Field(description="Rooms requested")
    guest_name: str | None = Field(default=None, description="Billing contact")
    guest_email: str | None = Field(default=None, description="Billing email")
    guest_phone: str | None = Field(default=None, description="Billing phone")
    special_requests: str | None = Field(default=None, description="Guest notes")
    notify: bool = Field(default=True, description="Send guest confirmations")


def _booking_http_error(error: BookingError) -> HTTPException:
    """Map a booking error to its HTTP response."""
    code = _BOOKING_ERROR_STATUS.get(type(error), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=str(error))


def _booking_to_response(booking: Any) -> dict[str, Any]:
    """Convert booking model to response dict."""
    return {
        "id": booking.id,
        "guest_name": booking.guest.name if booking.guest else None,
        "guest_email": booking.guest.email if booking.guest else None,
        "room_id": booking.room_id,
        "room_number": booking.room.room_number if booking.room else None,
        "check_in": booking.check_in,
        "check_out": booking.check_out,
        "status": booking.status,
        "total_price": booking.total_price,
        "final_amount": booking.final_amount,
        "num_guests": booking.num_guests,
        "source": booking.source,
        "special_requests": booking.special_requests,
        "group_id": booking.group_id,
        "group_reference": booking.group_reference,
        "is_primary_booking": booking.is_primary_booking,
        "payment_method": booking.payment_method,
        "created_at": booking.created_at.isoformat() if booking.created_at else None,
    }


@router.get("", response_model=BookingsResponse)
async def list_bookings(
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("bookings", "read"))],
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> dict[str, Any]:
    """List bookings, newest first.

    Raises:
        HTTPException: 400 for an unknown status.
    """
    if status_filter is not None and status_filter not in BOOKING_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown booking status: {status_filter}",
        )
    bookings = await BookingService(db).list_bookings(status_filter, limit, offset)
    return {
        "bookings": [_booking_to_response(b) for b in bookings],
        "total": len(bookings),
    }


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: StaffBookingRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[StaffContext, Depends(require_permission("bookings", "create"))],
) -> dict[str, Any]:
    """Book a room at the front desk, optionally picking the room.

    Raises:
        HTTPException: 400, 404 or 409 when the booking cannot be made.
    """
    try:
        booking = await BookingService(db).create_booking(
            request.to_stay(),
            guest_name=request.guest_name,
            guest_email=request.guest_email,
            guest_phone=request.guest_phone,
            special_requests=request.special_requests,
            source=SOURCE_FRONT_DESK,
            user_id=staff.user_id,
            notify=request.notify,
        )
    except BookingError as e:
        raise _booking_http_error(e) from e
    return _booking_to_response(booking)


@router.post("/group", status_code=status.HTTP_201_CREATED)
async def create_group_booking(
    request: GroupBookingRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[StaffContext, Depends(require_permission("bookings", "create"))],
) -> dict[str, Any]:
    """Book several rooms under one group reference.

    Either every room is booked or none is.

    Raises:
        HTTPException: 400, 404 or 409 when any room cannot be booked.
    """
    try:
        bookings = await BookingService(db).create_group_booking(
            [room.to_stay() for room in request.rooms],
            guest_name=request.guest_name,
            guest_email=request.guest_email,
            guest_phone=request.guest_phone,
            special_requests=request.special_requests,
            user_id=staff.user_id,
            notify=request.notify,
        )
    except BookingError as e:
        raise _booking_http_error(e) from e
    return {
        "group_id": bookings[0].group_id,
        "group_reference": bookings[0].group_reference,
        "bookings": [_booking_to_response(b) for b in bookings],
    }


@router.post(
    "/group/{group_id}/rooms",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_room_to_group(
    group_id: str,
    request: StayItem,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[StaffContext, Depends(require_permission("bookings", "create"))],
) -> dict[str, Any]:
    """Add a room to an existing group booking.

    Raises:
        HTTPException: 404 for unknown groups, 409 when nothing is free.
    """
    try:
        booking = await BookingService(db).add_to_group(
            group_id, request.to_stay(), user_id=staff.user_id
        )
    except BookingError as e:
        raise _booking_http_error(e) from e
    return _booking_to_response(booking)


@router.post("/guest-tokens/backfill")
async def backfill_guest_tokens(
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("bookings", "update"))],
) -> dict[str, Any]:
    """Issue guest portal tokens to bookings that have none."""
    updated = await BookingService(db).backfill_guest_tokens()
    await db.commit()
    return {"success": True, "updated": updated}


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("bookings", "read"))],
) -> dict[str, Any]:
    """Get a booking.

    Raises:
        HTTPException: 404 if the booking does not exist.
    """
    try:
        booking = await BookingService(db).get_booking(booking_id)
    except BookingError as e:
        raise _booking_http_error(e) from e
    return _booking_to_response(booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[StaffContext, Depends(require_permission("bookings", "update"))],
) -> dict[str, Any]:
    """Cancel a booking.

    Raises:
        HTTPException: 404 if the booking does not exist.
    """
    try:
        booking = await BookingService(db).cancel_booking(booking_id, staff.user_id)
    except BookingError as e:
        raise _booking_http_error(e) from e
    await db.commit()
    return _booking_to_response(booking)


@router.delete("/{booking_id}/group")
async def remove_from_group(
    booking_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[StaffContext, Depends(require_permission("bookings", "update"))],
) -> dict[str, Any]:
    """Detach a booking from its group.

    Raises:
        HTTPException: 400 if it is not grouped or is the last member,
            404 if it does not exist.
    """
    try:
        result = await BookingService(db).remove_from_group(booking_id, staff.user_id)
    except BookingError as e:
        raise _booking_http_error(e) from e
    await db.commit()
    return {"success": True, **result}


@router.get("/{booking_id}/guest-token")
async def get_guest_token(
    booking_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("bookings", "read"))],
) -> dict[str, str]:
    """Get the guest portal token of a booking, issuing one when missing.

    Raises:
        HTTPException: 404 if the booking does not exist.
    """
    try:
        token = await BookingService(db).get_guest_token(booking_id)
    except BookingError as e:
        raise _booking_http_error(e) from e
    await db.commit()
    return {"token": token}
