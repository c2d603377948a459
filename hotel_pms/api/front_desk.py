# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Front desk API endpoints: arrivals, departures, extensions and charges."""

import logging
from datetime import date
from decimal import Decimal
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.api.dependencies import StaffContext, require_permission
from hotel_pms.database import get_db
from hotel_pms.services.charge_service import (
    ChargeError,
    ChargeNotFoundError,
    ChargeService,
)
from hotel_pms.services.front_desk_service import (
    FrontDeskError,
    FrontDeskNotFoundError,
    FrontDeskService,
    RoomUnavailableError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/front-desk", tags=["Front Desk"])


class CheckInRequest(BaseModel):
    """Request model for a check-in."""

    payment_method: str | None = Field(
        default=None, description="cash, mobile_money or card"
    )
    discount_amount: Decimal | None = Field(
        default=None, ge=0, description="Discount off the room total"
    )
    discount_reason: str | None = Field(default=None, description="Discount reason")


class ExtendStayRequest(BaseModel):
    """Request model for a stay extension."""

    new_check_out: date = Field(description="New departure date")
    new_room_id: int | None = Field(default=None, description="Room to move to")
    discount_amount: Decimal | None = Field(
        default=None, ge=0, description="Discount on the extension"
    )
    discount_reason: str | None = Field(default=None, description="Discount reason")


class ChargeCreateRequest(BaseModel):
    """Request model for a new charge."""

    description: str = Field(min_length=1, description="Line item text")
    unit_price: Decimal = Field(description="Price per unit")
    quantity: int = Field(default=1, description="Number of units")
    category: str = Field(default="other", description="Charge category")
    notes: str | None = Field(default=None, description="Notes")


class ChargeUpdateRequest(BaseModel):
    """Request model for updating a charge."""

    description: str | None = Field(default=None, description="Line item text")
    unit_price: Decimal | None = Field(default=None, description="Price per unit")
    quantity: int | None = Field(default=None, description="Number of units")
    category: str | None = Field(default=None, description="Charge category")
    notes: str | None = Field(default=None, description="Notes")


class ChargeResponse(BaseModel):
    """Response model for a charge."""

    id: int = Field(description="Charge ID")
    booking_id: int = Field(description="Booking charged")
    description: str = Field(description="Line item text")
    category: str = Field(description="Charge category")
    quantity: int = Field(description="Number of units")
    unit_price: Decimal = Field(description="Price per unit")
    amount: Decimal = Field(description="quantity x unit price")
    notes: str | None = Field(default=None, description="Notes")
    created_by: str | None = Field(default=None, description="Staff user")


def _front_desk_http_error(error: FrontDeskError) -> HTTPException:
    """Map a front desk error to its HTTP response."""
    if isinstance(error, FrontDeskNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, RoomUnavailableError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(error))


def _charge_http_error(error: ChargeError) -> HTTPException:
    """Map a charge error to its HTTP response."""
    if isinstance(error, ChargeNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def _stay_to_response(booking: Any) -> dict[str, Any]:
    """Convert booking model to a front desk status dict."""
    return {
        "id": booking.id,
        "status": booking.status,
        "room_number": booking.room.room_number,
        "room_status": booking.room.status,
        "check_in": booking.check_in,
        "check_out": booking.check_out,
        "actual_check_in": booking.actual_check_in,
        "actual_check_out": booking.actual_check_out,
        "payment_method": booking.payment_method,
        "total_price": booking.total_price,
        "discount_amount": booking.discount_amount,
        "final_amount": booking.final_amount,
    }


def _charge_to_response(charge: Any) -> dict[str, Any]:
    """Convert charge model to response dict."""
    return {
        "id": charge.id,
        "booking_id": charge.booking_id,
        "description": charge.description,
        "category": charge.category,
        "quantity": charge.quantity,
        "unit_price": charge.unit_price,
        "amount": charge.amount,
        "notes": charge.notes,
        "created_by": charge.created_by,
    }


@router.post("/bookings/{booking_id}/check-in")
async def check_in(
    booking_id: int,
    request: CheckInRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[StaffContext, Depends(require_permission("bookings", "update"))],
) -> dict[str, Any]:
    """Check a guest in.

    Raises:
        HTTPException: 400 if not allowed, 404 for unknown bookings,
            409 if the room cannot take the guest.
    """
    try:
        booking = await FrontDeskService(db).check_in(
            booking_id,
            payment_method=request.payment_method,
            discount_amount=request.discount_amount,
            discount_reason=request.discount_reason,
            user_id=staff.user_id,
        )
    except FrontDeskError as e:
        raise _front_desk_http_error(e) from e
    await db.commit()
    return _stay_to_response(booking)


@router.post("/bookings/{booking_id}/check-out")
async def check_out(
    booking_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[StaffContext, Depends(require_permission("bookings", "update"))],
) -> dict[str, Any]:
    """Check a guest out and queue the room for cleaning.

    Raises:
        HTTPException: 400 if the guest is not checked in, 404 if unknown.
    """
    try:
        booking = await FrontDeskService(db).check_out(booking_id, staff.user_id)
    except FrontDeskError as e:
        raise _front_desk_http_error(e) from e
    await db.commit()
    return _stay_to_response(booking)


@router.post("/bookings/{booking_id}/extend")
async def extend_stay(
    booking_id: int,
    request: ExtendStayRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[StaffContext, Depends(require_permission("bookings", "update"))],
) -> dict[str, Any]:
    """Extend a checked-in stay, optionally moving rooms.

    Raises:
        HTTPException: 400 for bad dates or status, 404 for unknown rooms,
            409 when the room is taken for the extra nights.
    """
    try:
        result = await FrontDeskService(db).extend_stay(
            booking_id,
            new_check_out=request.new_check_out,
            new_room_id=request.new_room_id,
            discount_amount=request.discount_amount,
            discount_reason=request.discount_reason,
            user_id=staff.user_id,
        )
    except FrontDeskError as e:
        raise _front_desk_http_error(e) from e
    await db.commit()
    return {"success": True, **result}


@router.get("/bookings/{booking_id}/charges", response_model=list[ChargeResponse])
async def list_charges(
    booking_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("bookings", "read"))],
) -> list[dict[str, Any]]:
    """List the charges of a booking."""
    charges = await ChargeService(db).list_charges(booking_id)
    return [_charge_to_response(charge) for charge in charges]


@router.post(
    "/bookings/{booking_id}/charges",
    response_model=ChargeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_charge(
    booking_id: int,
    request: ChargeCreateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    staff: Annotated[StaffContext, Depends(require_permission("bookings", "update"))],
) -> dict[str, Any]:
    """Post a charge to a booking.

    Raises:
        HTTPException: 400 for invalid values, 404 for unknown bookings.
    """
    try:
        charge = await ChargeService(db).add_charge(
            booking_id,
            description=request.description,
            unit_price=request.unit_price,
            quantity=request.quantity,
            category=request.category,
            notes=request.notes,
            created_by=staff.user_id,
        )
    except ChargeError as e:
        raise _charge_http_error(e) from e
    await db.commit()
    return _charge_to_response(charge)


@router.patch("/charges/{charge_id}", response_model=ChargeResponse)
async def update_charge(
    charge_id: int,
    request: ChargeUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("bookings", "update"))],
) -> dict[str, Any]:
    """Update a charge, recalculating its amount.

    Raises:
        HTTPException: 400 for invalid values or closed bookings, 404 if unknown.
    """
    try:
        charge = await ChargeService(db).update_charge(
            charge_id, **request.model_dump(exclude_none=True)
        )
    except ChargeError as e:
        raise _charge_http_error(e) from e
    await db.commit()
    return _charge_to_response(charge)


@router.delete("/charges/{charge_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_charge(
    charge_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("bookings", "update"))],
) -> None:
    """Delete a charge.

    Raises:
        HTTPException: 400 for closed bookings, 404 if unknown.
    """
    try:
        await ChargeService(db).delete_charge(charge_id)
    except ChargeError as e:
        raise _charge_http_error(e) from e
    await db.commit()


@router.get("/bookings/{booking_id}/summary")
async def checkout_summary(
    booking_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("bookings", "read"))],
) -> dict[str, Any]:
    """Summarize what a guest owes at checkout.

    Raises:
        HTTPException: 404 for unknown bookings.
    """
    try:
        summary = await ChargeService(db).checkout_summary(booking_id)
    except ChargeError as e:
        raise _charge_http_error(e) from e
    summary["charges"] = [_charge_to_response(c) for c in summary["charges"]]
    return summary
