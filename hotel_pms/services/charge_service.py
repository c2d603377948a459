# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Additional charges posted to bookings during a stay."""

import logging
from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.booking import (
    BOOKING_STATUS_CHECKED_OUT,
    CHARGE_CATEGORIES,
    Booking,
    BookingCharge,
)
from hotel_pms.repositories.booking_repository import (
    BookingRepository,
    ChargeRepository,
)

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class ChargeError(Exception):
    """Exception raised for charge errors."""

    pass


class ChargeNotFoundError(ChargeError):
    """Exception raised when a charge or its booking does not exist."""

    pass


def charges_total(charges: Sequence[BookingCharge]) -> Decimal:
    """Sum the amounts of a set of charges."""
    return sum((charge.amount for charge in charges), Decimal("0.00"))


class ChargeService:
    """Service managing booking charges."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ChargeService.

        Args:
            session: Async database session.
        """
        self._repo = ChargeRepository(session)
        self._booking_repo = BookingRepository(session)

    async def list_charges(self, booking_id: int) -> Sequence[BookingCharge]:
        """List the charges of a booking, oldest first."""
        return await self._repo.get_for_booking(booking_id)

    async def add_charge(
        self,
        booking_id: int,
        description: str,
        unit_price: Decimal,
        quantity: int = 1,
        category: str = "other",
        notes: str | None = None,
        created_by: str | None = None,
    ) -> BookingCharge:
        """Post a charge to a booking.

        Args:
            booking_id: Booking charged.
            description: Line item text.
            unit_price: Price per unit; negative for discounts.
            quantity: Number of units.
            category: Charge category.
            notes: Optional notes.
            created_by: Acting staff user.

        Returns:
            The stored charge with ``amount = quantity * unit_price``.

        Raises:
            ChargeError: If the category or quantity is invalid.
            ChargeNotFoundError: If the booking does not exist.
        """
        if category not in CHARGE_CATEGORIES:
            msg = f"Unknown charge category: {category}"
            raise ChargeError(msg)
        if quantity < 1:
            msg = "Quantity must be at least 1"
            raise ChargeError(msg)
        await self._get_booking(booking_id)

        unit = Decimal(unit_price).quantize(CENTS)
        charge = await self._repo.create(
            BookingCharge(
                booking_id=booking_id,
                description=description,
                category=category,
                quantity=quantity,
                unit_price=unit,
                amount=(unit * quantity).quantize(CENTS),
                notes=notes,
                created_by=created_by,
            )
        )
        logger.info(
            "Charged booking %d %s for %s", booking_id, charge.amount, description
        )
        return charge

    async def update_charge(self, charge_id: int, **changes: Any) -> BookingCharge:
        """Update a charge, recalculating its amount.

        Args:
            charge_id: Charge to update.
            **changes: Any of description, category, quantity, unit_price, notes.

        Returns:
            Updated charge.

        Raises:
            ChargeNotFoundError: If the charge does not exist.
            ChargeError: If the booking is checked out or a value is invalid.
        """
        charge = await self._get_editable(charge_id)
        category = changes.get("category")
        if category is not None and category not in CHARGE_CATEGORIES:
            msg = f"Unknown charge category: {category}"
            raise ChargeError(msg)
        quantity = changes.get("quantity")
        if quantity is not None and quantity < 1:
            msg = "Quantity must be at least 1"
            raise ChargeError(msg)

        for field in ("description", "category", "quantity", "notes"):
            if changes.get(field) is not None:
                setattr(charge, field, changes[field])
        if changes.get("unit_price") is not None:
            charge.unit_price = Decimal(changes["unit_price"]).quantize(CENTS)
        charge.amount = (Decimal(charge.unit_price) * charge.quantity).quantize(CENTS)
        return await self._repo.update(charge)

    async def delete_charge(self, charge_id: int) -> None:
        """Delete a charge.

        Raises:
            ChargeNotFoundError: If the charge does not exist.
            ChargeError: If the booking is checked out.
        """
        charge = await self._get_editable(charge_id)
        await self._repo.delete(charge)

    async def checkout_summary(self, booking_id: int) -> dict[str, Any]:
        """Summarize what a guest owes at checkout.

        Returns:
            Dict with charges, total_charges, room_cost and grand_total.

        Raises:
            ChargeNotFoundError: If the booking does not exist.
        """
        booking = await self._get_booking(booking_id)
        charges = await self._repo.get_for_booking(booking_id)
        total = charges_total(charges)
        room_cost = booking.final_amount
        if room_cost is None:
            room_cost = booking.total_price
        return {
            "charges": charges,
            "total_charges": total,
            "room_cost": room_cost,
            "grand_total": room_cost + total,
        }

    async def _get_booking(self, booking_id: int) -> Booking:
        """Get a booking or raise ChargeNotFoundError."""
        booking = await self._booking_repo.get_by_id(booking_id)
        if booking is None:
            msg = f"Booking {booking_id} not found"
            raise ChargeNotFoundError(msg)
        return booking

    async def _get_editable(self, charge_id: int) -> BookingCharge:
        """Get a charge whose booking still accepts changes."""
        charge = await self._repo.get_by_id(charge_id)
        if charge is None:
            msg = "Charge not found"
            raise ChargeNotFoundError(msg)
        if charge.booking.status == BOOKING_STATUS_CHECKED_OUT:
            msg = "Cannot change charges for a checked-out booking"
            raise ChargeError(msg)
        return charge
