# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Front desk operations: check-in, check-out and stay extension."""

import logging
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.booking import (
    BOOKING_STATUS_CHECKED_IN,
    BOOKING_STATUS_CHECKED_OUT,
    BOOKING_STATUS_CONFIRMED,
    BOOKING_STATUS_RESERVED,
    PAYMENT_METHODS,
    Booking,
)
from hotel_pms.models.room import (
    ROOM_STATUS_CLEANING,
    ROOM_STATUS_MAINTENANCE,
    ROOM_STATUS_OCCUPIED,
    Room,
)
from hotel_pms.repositories.booking_repository import BookingRepository
from hotel_pms.repositories.room_repository import RoomRepository
from hotel_pms.services.activity_log_service import ActivityLogService
from hotel_pms.services.availability_service import AvailabilityService
from hotel_pms.services.calendar_service import CalendarCache, get_calendar_cache
from hotel_pms.services.charge_service import ChargeService
from hotel_pms.services.housekeeping_service import HousekeepingService

logger = logging.getLogger(__name__)

CHECK_IN_STATUSES = frozenset({BOOKING_STATUS_RESERVED, BOOKING_STATUS_CONFIRMED})


class FrontDeskError(Exception):
    """Exception raised when a front desk operation is not allowed."""

    pass


class FrontDeskNotFoundError(FrontDeskError):
    """Exception raised when a booking or room does not exist."""

    pass


class RoomUnavailableError(FrontDeskError):
    """Exception raised when the room cannot take the guest."""

    pass


def room_blocked_message(room: Room) -> str | None:
    """Explain why a room cannot receive a guest, None when it can."""
    if room.status == ROOM_STATUS_OCCUPIED:
        return (
            f"Cannot check in: Room {room.room_number} is currently occupied. "
            "Check out the previous guest first."
        )
    if room.status == ROOM_STATUS_CLEANING:
        return (
            f"Cannot check in: Room {room.room_number} is currently being cleaned. "
            "Please complete housekeeping first."
        )
    if room.status == ROOM_STATUS_MAINTENANCE:
        return f"Cannot check in: Room {room.room_number} is under maintenance."
    return None


def nightly_rate(room: Room) -> Decimal:
    """Rate charged per extra night: type base price, then room price, else 0."""
    if room.room_type is not None and room.room_type.base_price:
        return Decimal(room.room_type.base_price)
    if room.price:
        return Decimal(room.price)
    return Decimal("0.00")


class FrontDeskService:
    """Service for the guest's arrival, departure and stay changes."""

    def __init__(
        self, session: AsyncSession, calendar_cache: CalendarCache | None = None
    ) -> None:
        """Initialize FrontDeskService.

        Args:
            session: Async database session.
            calendar_cache: Feed cache cleared when stay dates change.
        """
        self._session = session
        self._calendar_cache = calendar_cache or get_calendar_cache()
        self._booking_repo = BookingRepository(session)
        self._room_repo = RoomRepository(session)
        self._availability = AvailabilityService(session)
        self._charges = ChargeService(session)
        self._housekeeping = HousekeepingService(session)
        self._activity = ActivityLogService(session)

    async def check_in(
        self,
        booking_id: int,
        payment_method: str | None = None,
        discount_amount: Decimal | None = None,
        discount_reason: str | None = None,
        user_id: str | None = None,
    ) -> Booking:
        """Check a guest in.

        Checking in an already checked-in booking returns it unchanged.

        Args:
            booking_id: Booking arriving.
            payment_method: cash, mobile_money or card.
            discount_amount: Optional discount off the room total.
            discount_reason: Why the discount was given.
            user_id: Acting staff user.

        Returns:
            The checked-in booking.

        Raises:
            FrontDeskNotFoundError: If the booking does not exist.
            FrontDeskError: If the booking cannot be checked in.
            RoomUnavailableError: If the room is occupied, dirty or in maintenance.
        """
        booking = await self._get_booking(booking_id)
        if booking.status == BOOKING_STATUS_CHECKED_IN:
            return booking
        if booking.status not in CHECK_IN_STATUSES:
            msg = f"Cannot check in a booking that is {booking.status}"
            raise FrontDeskError(msg)
        if payment_method is not None and payment_method not in PAYMENT_METHODS:
            msg = f"Unknown payment method: {payment_method}"
            raise FrontDeskError(msg)

        room = booking.room
        blocked = room_blocked_message(room)
        if blocked:
            raise RoomUnavailableError(blocked)

        booking.status = BOOKING_STATUS_CHECKED_IN
        booking.actual_check_in = datetime.now(UTC)
        booking.payment_method = payment_method
        if discount_amount and discount_amount > 0:
            discount = Decimal(discount_amount)
            booking.discount_amount = discount
            booking.discount_reason = discount_reason
            booking.discounted_by = user_id
            booking.final_amount = max(
                Decimal("0.00"), Decimal(booking.total_price) - discount
            )
        else:
            booking.final_amount = booking.total_price
        booking = await self._booking_repo.update(booking)
        await self._room_repo.set_status(room, ROOM_STATUS_OCCUPIED)

        await self._activity.log(
            "checked_in",
            "booking",
            booking.id,
            {
                "guest_name": booking.guest.name,
                "room_number": room.room_number,
                "payment_method": payment_method,
                "discount_amount": str(booking.discount_amount),
            },
            user_id,
        )
        logger.info("Checked in booking %d to room %s", booking.id, room.room_number)
        return booking

    async def check_out(self, booking_id: int, user_id: str | None = None) -> Booking:
        """Check a guest out and queue the room for cleaning.

        Raises:
            FrontDeskNotFoundError: If the booking does not exist.
            FrontDeskError: If the guest is not checked in.
        """
        booking = await self._get_booking(booking_id)
        if booking.status != BOOKING_STATUS_CHECKED_IN:
            msg = f"Cannot check out a booking that is {booking.status}"
            raise FrontDeskError(msg)

        booking.status = BOOKING_STATUS_CHECKED_OUT
        booking.actual_check_out = datetime.now(UTC)
        booking = await self._booking_repo.update(booking)

        room = booking.room
        await self._room_repo.set_status(room, ROOM_STATUS_CLEANING)
        await self._housekeeping.create_checkout_task(room, booking.guest.name, user_id)

        await self._activity.log(
            "checked_out",
            "booking",
            booking.id,
            {"guest_name": booking.guest.name, "room_number": room.room_number},
            user_id,
        )
        await self._session.commit()
        self._calendar_cache.clear()
        logger.info("Checked out booking %d from room %s", booking.id, room.room_number)
        return booking

    async def extend_stay(
        self,
        booking_id: int,
        new_check_out: date,
        new_room_id: int | None = None,
        discount_amount: Decimal | None = None,
        discount_reason: str | None = None,
        user_id: str | None = None,
    ) -> dict[str, Any]:
        """Extend a checked-in stay, optionally moving to another room.

        The room must be free for ``[current check-out, new check-out)``
        ignoring this booking. A new room must also be free for the nights
        still left in the current stay. The extra nights are billed as a charge.

        Args:
            booking_id: Booking to extend.
            new_check_out: New departure date.
            new_room_id: Room to move to, if changing rooms.
            discount_amount: Optional discount on the extension.
            discount_reason: Why the discount was given.
            user_id: Acting staff user.

        Returns:
            Dict with new_check_out, extension_cost, charge_id, room_changed
            and new_room_id.

        Raises:
            FrontDeskNotFoundError: If the booking or room does not exist.
            FrontDeskError: If the booking is not checked in or the date is bad.
            RoomUnavailableError: If the room is taken for the nights needed.
        """
        booking = await self._get_booking(booking_id)
        if booking.status != BOOKING_STATUS_CHECKED_IN:
            msg = "Can only extend checked-in bookings"
            raise FrontDeskError(msg)

        current_check_out = booking.check_out
        if new_check_out <= current_check_out:
            msg = "New checkout must be after current checkout"
            raise FrontDeskError(msg)

        room_changed = False
        target_room = booking.room
        if new_room_id is not None and new_room_id != booking.room_id:
            room_changed = True
            found = await self._room_repo.get_by_id(new_room_id)
            if found is None:
                msg = f"Room {new_room_id} not found"
                raise FrontDeskNotFoundError(msg)
            target_room = found

        check_from = current_check_out
        if room_changed:
            today = datetime.now(UTC).date()
            check_from = min(max(booking.check_in, today), current_check_out)

        result = await self._availability.check_room(
            target_room.id,
            check_from,
            new_check_out,
            exclude_booking_id=booking.id,
        )
        if not result["available"]:
            msg = "Room is not available for the extension period"
            if room_changed:
                msg = "Room is not available for the rest of the stay"
            raise RoomUnavailableError(msg)

        extra_nights = (new_check_out - current_check_out).days
        rate = nightly_rate(target_room)
        extension_cost = rate * extra_nights

        previous_room = booking.room
        booking.check_out = new_check_out
        if room_changed:
            booking.room_id = target_room.id
        booking = await self._booking_repo.update(booking)

        if room_changed:
            await self._room_repo.set_status(previous_room, ROOM_STATUS_CLEANING)
            await self._housekeeping.create_checkout_task(
                previous_room, booking.guest.name, user_id
            )
            await self._room_repo.set_status(target_room, ROOM_STATUS_OCCUPIED)

        night_label = "night" if extra_nights == 1 else "nights"
        charge = await self._charges.add_charge(
            booking.id,
            description=f"Stay Extension ({extra_nights} {night_label})",
            unit_price=rate,
            quantity=extra_nights,
            category="room_extension",
            notes=f"Extended from {current_check_out} to {new_check_out}",
            created_by=user_id,
        )

        final_cost = extension_cost
        if discount_amount and discount_amount > 0:
            reason_suffix = f" - {discount_reason}" if discount_reason else ""
            await self._charges.add_charge(
                booking.id,
                description=f"Stay Extension Discount{reason_suffix}",
                unit_price=-abs(Decimal(discount_amount)),
                category="room_extension",
                notes=f"Discount applied during extension. Reason: "
                f"{discount_reason or 'None'}",
                created_by=user_id,
            )
            final_cost = max(Decimal("0.00"), extension_cost - Decimal(discount_amount))

        await self._activity.log(
            "updated",
            "booking",
            booking.id,
            {
                "guest_name": booking.guest.name,
                "room_number": target_room.room_number,
                "previous_check_out": current_check_out.isoformat(),
                "new_check_out": new_check_out.isoformat(),
                "extension_cost": str(final_cost),
            },
            user_id,
        )
        await self._session.commit()
        self._calendar_cache.clear()
        logger.info(
            "Extended booking %d by %d nights to %s",
            booking.id,
            extra_nights,
            new_check_out,
        )
        return {
            "new_check_out": new_check_out,
            "extension_cost": final_cost,
            "charge_id": charge.id,
            "room_changed": room_changed,
            "new_room_id": target_room.id if room_changed else None,
        }

    async def _get_booking(self, booking_id: int) -> Booking:
        """Get a booking or raise FrontDeskNotFoundError."""
        booking = await self._booking_repo.get_by_id(booking_id)
        if booking is None:
            msg = "Booking not found"
            raise FrontDeskNotFoundError(msg)
        return booking
