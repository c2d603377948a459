# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Guest-facing API endpoints: availability, online booking and guest portal."""

import logging
from decimal import Decimal
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.config import get_settings
from hotel_pms.database import get_db
from hotel_pms.models.booking import SOURCE_ONLINE, SOURCE_VOICE_AGENT
from hotel_pms.services.availability_service import (
    AvailabilityService,
    InvalidDatesError,
    parse_guest_count,
    parse_stay_dates,
)
from hotel_pms.services.booking_service import (
    BookingError,
    BookingService,
    BookingValidationError,
    NoAvailabilityError,
    StayRequest,
)
from hotel_pms.services.guest_portal_service import (
    GuestAuthError,
    GuestPortalError,
    GuestPortalService,
    GuestTokenError,
    GuestValidationError,
    ReviewExistsError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/public", tags=["Public"])

PUBLIC_SOURCES = frozenset({SOURCE_ONLINE, SOURCE_VOICE_AGENT})

_GUEST_ERROR_STATUS = {
    GuestValidationError: status.HTTP_400_BAD_REQUEST,
    GuestAuthError: status.HTTP_401_UNAUTHORIZED,
    GuestTokenError: status.HTTP_404_NOT_FOUND,
    ReviewExistsError: status.HTTP_409_CONFLICT,
}


class RoomTypeAvailability(BaseModel):
    """Availability of one room type."""

    room_type_id: int = Field(description="Room type ID")
    name: str = Field(description="Room type name")
    description: str | None = Field(default=None, description="Description")
    currency: str = Field(description="Price currency")
    price: Decimal = Field(description="Nightly base price")
    max_occupancy: int = Field(description="Guests per room")
    images: list[str] = Field(description="Image URLs")
    available_count: int = Field(description="Rooms that can still be sold")
    room_ids: list[int] = Field(description="Free room IDs")


class AvailabilityResponse(BaseModel):
    """Response model for an availability search."""

    success: bool = Field(description="Whether the search succeeded")
    data: list[RoomTypeAvailability] = Field(description="One entry per room type")


class BookingCreateRequest(BaseModel):
    """Request model for an online booking."""

    check_in: str | None = Field(default=None, description="Arrival (YYYY-MM-DD)")
    check_out: str | None = Field(default=None, description="Departure (YYYY-MM-DD)")
    room_type_id: str | int | None = Field(
        default=None, description="Room type ID or name"
    )
    guest_name: str | None = Field(default=None, description="Guest full name")
    guest_email: str | None = Field(default=None, description="Guest email")
    guest_phone: str | None = Field(default=None, description="Guest phone")
    num_guests: int = Field(default=1, ge=1, description="Number of guests")
    special_requests: str | None = Field(default=None, description="Guest notes")
    source: str = Field(default=SOURCE_ONLINE, description="online or voice_agent")


class BookingCreatedData(BaseModel):
    """Summary of a created booking."""

    booking_id: int = Field(description="Booking ID")
    room_number: str = Field(description="Allocated room")
    total_price: Decimal = Field(description="Stay total")
    currency: str = Field(description="Price currency")
    status: str = Field(description="Booking status")


class BookingCreatedResponse(BaseModel):
    """Response model for a created booking."""

    success: bool = Field(description="Whether the booking was made")
    message: str = Field(description="Status message")
    data: BookingCreatedData


class GuestLoginRequest(BaseModel):
    """Request model for guest portal login."""

    room_number: str | None = Field(default=None, description="Room number")
    first_name: str | None = Field(default=None, description="Guest first name")


class GuestLoginResponse(BaseModel):
    """Response model for guest portal login."""

    token: str = Field(description="Guest portal token")
    guest_name: str = Field(description="Guest name on the booking")


class GuestRequestCreate(BaseModel):
    """Request model for a guest service request."""

    token: str | None = Field(default=None, description="Guest portal token")
    request_type: str | None = Field(default=None, description="Request type")
    details: str | None = Field(default=None, description="Request details")


class ReviewCreate(BaseModel):
    """Request model for a guest review."""

    booking_id: int | None = Field(default=None, description="Booking reviewed")
    rating: int | None = Field(default=None, description="Rating from 1 to 5")
    comment: str | None = Field(default=None, description="Review text")
    guest_name: str | None = Field(default=None, description="Reviewer name")


def _guest_http_error(error: GuestPortalError) -> HTTPException:
    """Map a guest portal error to its HTTP response."""
    code = _GUEST_ERROR_STATUS.get(type(error), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=str(error))


def _request_to_response(request: Any) -> dict[str, Any]:
    """Convert guest request model to response dict."""
    return {
        "id": request.id,
        "request_type": request.request_type,
        "details": request.details,
        "status": request.status,
        "created_at": request.created_at.isoformat() if request.created_at else None,
    }


@router.get("/availability", response_model=AvailabilityResponse)
async def search_availability(
    db: Annotated[AsyncSession, Depends(get_db)],
    check_in: Annotated[str | None, Query(alias="checkIn")] = None,
    check_out: Annotated[str | None, Query(alias="checkOut")] = None,
    guests: Annotated[str | None, Query()] = None,
) -> dict[str, Any]:
    """Search free rooms by type for a stay.

    Returns:
        Every room type with its available count.

    Raises:
        HTTPException: 400 if the dates are missing or invalid.
    """
    try:
        start, end = parse_stay_dates(check_in, check_out)
    except InvalidDatesError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
        ) from e

    data = await AvailabilityService(db).search(start, end, parse_guest_count(guests))
    return {"success": True, "data": data}


@router.post("/bookings", response_model=BookingCreatedResponse)
async def create_booking(
    request: BookingCreateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """Book a room from the website or the voice agent.

    Returns:
        Booking summary.

    Raises:
        HTTPException: 400 for bad input, 404 for unknown room types,
            409 when nothing is free.
    """
    if request.source not in PUBLIC_SOURCES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported booking source: {request.source}",
        )

    service = BookingService(db)
    stay = StayRequest(
        check_in=request.check_in,
        check_out=request.check_out,
        room_type_id=request.room_type_id,
        num_guests=request.num_guests,
    )
    try:
        booking = await service.create_booking(
            stay,
            guest_name=request.guest_name,
            guest_email=request.guest_email,
            guest_phone=request.guest_phone,
            special_requests=request.special_requests,
            source=request.source,
        )
    except BookingValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
        ) from e
    except NoAvailabilityError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except BookingError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    currency = get_settings().currency
    return {
        "success": True,
        "message": (
            f"Booking created successfully. Total: {currency} {booking.total_price}"
        ),
        "data": {
            "booking_id": booking.id,
            "room_number": booking.room.room_number,
            "total_price": booking.total_price,
            "currency": currency,
            "status": booking.status,
        },
    }


@router.post("/guest/login", response_model=GuestLoginResponse)
async def guest_login(
    request: GuestLoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, str]:
    """Log a guest in with room number and first name.

    Raises:
        HTTPException: 400 for missing fields, 401 when nothing matches.
    """
    try:
        result = await GuestPortalService(db).login(
            request.room_number or "", request.first_name or ""
        )
    except GuestPortalError as e:
        raise _guest_http_error(e) from e
    await db.commit()
    return result


@router.get("/guest/verify")
async def verify_guest(
    db: Annotated[AsyncSession, Depends(get_db)],
    token: Annotated[str | None, Query()] = None,
) -> dict[str, Any]:
    """Verify a guest token and describe the stay it belongs to.

    Raises:
        HTTPException: 400 without token, 404 for unknown tokens.
    """
    try:
        result = await GuestPortalService(db).verify(token or "")
    except GuestPortalError as e:
        raise _guest_http_error(e) from e
    return result


@router.post("/guest/requests")
async def submit_guest_request(
    request: GuestRequestCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """Record a service request from a guest.

    Raises:
        HTTPException: 400 for missing fields, 404 for unknown tokens.
    """
    if not request.token or not request.request_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields",
        )
    try:
        guest_request = await GuestPortalService(db).submit_request(
            request.token, request.request_type, request.details
        )
    except GuestPortalError as e:
        raise _guest_http_error(e) from e
    await db.commit()
    return {"success": True, "request": _request_to_response(guest_request)}


@router.get("/guest/requests")
async def list_guest_requests(
    db: Annotated[AsyncSession, Depends(get_db)],
    token: Annotated[str | None, Query()] = None,
) -> dict[str, Any]:
    """List the requests made under a guest token.

    Raises:
        HTTPException: 400 without token, 404 for unknown tokens.
    """
    try:
        requests = await GuestPortalService(db).list_requests(token or "")
    except GuestPortalError as e:
        raise _guest_http_error(e) from e
    return {"success": True, "requests": [_request_to_response(r) for r in requests]}


@router.post("/reviews")
async def submit_review(
    request: ReviewCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """Submit a review of a stay for moderation.

    Raises:
        HTTPException: 400 for bad input, 404 for unknown bookings,
            409 when already reviewed.
    """
    try:
        review = await GuestPortalService(db).submit_review(
            request.booking_id, request.rating, request.comment, request.guest_name
        )
    except GuestPortalError as e:
        raise _guest_http_error(e) from e
    await db.commit()
    return {
        "success": True,
        "review": {
            "id": review.id,
            "booking_id": review.booking_id,
            "guest_name": review.guest_name,
            "rating": review.rating,
            "comment": review.comment,
            "status": review.status,
        },
    }
