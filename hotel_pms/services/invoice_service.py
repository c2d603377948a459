# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Invoice generation with the Ghana hospitality tax breakdown.

Room rates are quoted tax inclusive, so the taxes are back-calculated from
the amount the guest pays:

* sales = total / 1.2175
* GETFund + NHIL = 5% of sales
* taxable sub-total = sales + GETFund/NHIL
* VAT = 15% of the taxable sub-total
* tourism levy = 1% of sales
"""

import logging
import secrets
import string
import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.config import get_settings
from hotel_pms.models.booking import Booking, BookingCharge
from hotel_pms.models.invoice import Invoice
from hotel_pms.repositories.booking_repository import BookingRepository
from hotel_pms.repositories.invoice_repository import InvoiceRepository
from hotel_pms.repositories.settings_repository import SettingsRepository
from hotel_pms.services.charge_service import charges_total

logger = logging.getLogger(__name__)

TAX_INCLUSIVE_DIVISOR = Decimal("1.2175")
GF_NHIL_RATE = Decimal("0.05")
VAT_RATE = Decimal("0.15")
TOURISM_LEVY_RATE = Decimal("0.01")
CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

INVOICE_DUE_DAYS = 30
INVOICE_SUFFIX_LENGTH = 6


class InvoiceError(Exception):
    """Exception raised for invoice errors."""

    pass


class InvoiceNotFoundError(InvoiceError):
    """Exception raised when no invoice or booking matches a lookup."""

    pass


@dataclass(frozen=True)
class TaxBreakdown:
    """Taxes contained in a tax-inclusive total."""

    sales_total: Decimal
    gf_nhil: Decimal
    sub_total: Decimal
    vat: Decimal
    tourism_levy: Decimal
    total: Decimal


def _round(value: Decimal) -> Decimal:
    """Round half-up to cents."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def calculate_tax_breakdown(total: Decimal) -> TaxBreakdown:
    """Back-calculate the Ghana taxes included in a total.

    Args:
        total: Tax inclusive amount paid.

    Returns:
        TaxBreakdown with every component rounded half-up to cents.
    """
    total = Decimal(total)
    sales = total / TAX_INCLUSIVE_DIVISOR
    gf_nhil = sales * GF_NHIL_RATE
    sub_total = sales + gf_nhil
    return TaxBreakdown(
        sales_total=_round(sales),
        gf_nhil=_round(gf_nhil),
        sub_total=_round(sub_total),
        vat=_round(sub_total * VAT_RATE),
        tourism_levy=_round(sales * TOURISM_LEVY_RATE),
        total=_round(total),
    )


def generate_invoice_number(now_ms: int | None = None) -> str:
    """Generate an invoice number such as ``INV-1767225600000-K3QZ8A``."""
    alphabet = string.ascii_uppercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(INVOICE_SUFFIX_LENGTH))
    return f"INV-{now_ms or int(time.time() * 1000)}-{suffix}"


def invoice_due_date(issued: date) -> date:
    """Due date of an invoice issued on a given day."""
    return issued + timedelta(days=INVOICE_DUE_DAYS)


def billed_nights(booking: Booking) -> int:
    """Nights billed: until the actual departure when known, at least one."""
    departure = (
        booking.actual_check_out.date()
        if booking.actual_check_out is not None
        else booking.check_out
    )
    return max(1, (departure - booking.check_in).days)


class InvoiceService:
    """Builds invoice documents for single and group bookings."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize InvoiceService.

        Args:
            session: Async database session.
        """
        self._booking_repo = BookingRepository(session)
        self._invoice_repo = InvoiceRepository(session)
        self._settings_repo = SettingsRepository(session)

    async def get_invoice(
        self,
        invoice_number: str | None = None,
        booking_id: int | None = None,
    ) -> dict[str, Any]:
        """Find a booking by invoice number or booking id and build its invoice.

        An invoice number made only of digits that matches no invoice is
        tried as a booking id.

        Args:
            invoice_number: Issued invoice number.
            booking_id: Booking primary key.

        Returns:
            Invoice document; group bookings produce a group invoice.

        Raises:
            InvoiceError: If neither lookup key is given.
            InvoiceNotFoundError: If nothing matches.
        """
        if not invoice_number and booking_id is None:
            msg = "Missing invoiceNumber or bookingId"
            raise InvoiceError(msg)

        booking: Booking | None = None
        if booking_id is not None:
            booking = await self._booking_repo.get_by_id(booking_id)
        elif invoice_number:
            invoice = await self._invoice_repo.get_by_number(invoice_number)
            if invoice is not None:
                booking = await self._booking_repo.get_by_id(invoice.booking_id)
            elif invoice_number.isdigit():
                booking = await self._booking_repo.get_by_id(int(invoice_number))

        if booking is None:
            msg = "Invoice not found"
            raise InvoiceNotFoundError(msg)

        if booking.group_id:
            members = await self._booking_repo.get_group(booking.group_id)
            if len(members) > 1:
                return await self.build_group_invoice(members)
        return await self.build_invoice(booking)

    async def build_invoice(self, booking: Booking) -> dict[str, Any]:
        """Build (issuing on first use) the invoice of one booking.

        Args:
            booking: Booking invoiced.

        Returns:
            Invoice document.
        """
        nights = billed_nights(booking)
        room_total = Decimal(booking.total_price)
        extra = charges_total(booking.charges)
        discount = Decimal(booking.discount_amount or ZERO)
        grand_total = max(ZERO, room_total + extra - discount)
        invoice = await self._issue(booking, room_total, extra, discount, grand_total)

        document = await self._base_document(invoice, booking)
        document["type"] = "single"
        document["booking"] = self._booking_summary(booking, nights)
        document["charges"] = {
            "room_rate": _round(room_total / nights),
            "nights": nights,
            "room_total": _round(room_total),
            "additional_charges": [self._charge_line(c) for c in booking.charges],
            "additional_total": _round(extra),
            "discount": _round(discount),
            "discount_reason": booking.discount_reason,
            **self._totals(grand_total),
        }
        return document

    async def build_group_invoice(self, bookings: Sequence[Booking]) -> dict[str, Any]:
        """Build one invoice covering every booking of a group.

        The billing contact and the invoice number belong to the primary
        booking, which comes first.

        Args:
            bookings: Group members, primary first.

        Returns:
            Group invoice document with one line per booking.
        """
        primary = next((b for b in bookings if b.is_primary_booking), bookings[0])
        room_total = sum((Decimal(b.total_price) for b in bookings), ZERO)
        extra = sum((charges_total(b.charges) for b in bookings), ZERO)
        discount = sum((Decimal(b.discount_amount or ZERO) for b in bookings), ZERO)
        grand_total = max(ZERO, room_total + extra - discount)
        invoice = await self._issue(primary, room_total, extra, discount, grand_total)

        document = await self._base_document(invoice, primary)
        document["type"] = "group"
        document["group_id"] = primary.group_id
        document["group_reference"] = primary.group_reference
        document["bookings"] = [
            {
                **self._booking_summary(b, billed_nights(b)),
                "room_total": _round(Decimal(b.total_price)),
                "additional_total": _round(charges_total(b.charges)),
            }
            for b in bookings
        ]
        document["charges"] = {
            "room_total": _round(room_total),
            "additional_charges": [
                self._charge_line(c) for b in bookings for c in b.charges
            ],
            "additional_total": _round(extra),
            "discount": _round(discount),
            **self._totals(grand_total),
        }
        return document

    async def _issue(
        self,
        booking: Booking,
        room_total: Decimal,
        extra: Decimal,
        discount: Decimal,
        grand_total: Decimal,
    ) -> Invoice:
        """Store the invoice snapshot, keeping the number of an issued invoice."""
        invoice = await self._invoice_repo.get_for_booking(booking.id)
        if invoice is None:
            issued_at = datetime.now(UTC)
            invoice = Invoice(
                booking_id=booking.id,
                invoice_number=generate_invoice_number(),
                issued_at=issued_at,
                due_date=invoice_due_date(issued_at.date()),
            )
            logger.info(
                "Issued invoice %s for booking %d", invoice.invoice_number, booking.id
            )
        invoice.room_total = _round(room_total)
        invoice.charges_total = _round(extra)
        invoice.discount = _round(discount)
        invoice.total_amount = _round(grand_total)
        return await self._invoice_repo.save(invoice)

    async def _base_document(
        self, invoice: Invoice, booking: Booking
    ) -> dict[str, Any]:
        """Invoice header: number, dates, hotel and billing contact."""
        return {
            "invoice_number": invoice.invoice_number,
            "issued_at": invoice.issued_at,
            "due_date": invoice.due_date,
            "currency": get_settings().currency,
            "hotel": await self._hotel_identity(),
            "guest": {
                "name": booking.guest.name,
                "email": booking.guest.email,
                "phone": booking.guest.phone,
                "address": booking.guest.address,
            },
        }

    async def _hotel_identity(self) -> dict[str, str | None]:
        """Hotel details printed on invoices, from stored settings."""
        stored = await self._settings_repo.get()
        hotel_name = stored.hotel_name if stored else None
        return {
            "name": hotel_name or get_settings().hotel_name,
            "address": stored.address if stored else None,
            "phone": stored.phone if stored else None,
            "email": stored.email if stored else None,
            "website": stored.website if stored else None,
        }

    @staticmethod
    def _booking_summary(booking: Booking, nights: int) -> dict[str, Any]:
        """Stay details shown on an invoice."""
        return {
            "id": booking.id,
            "room_number": booking.room.room_number,
            "room_type": booking.room.room_type.name,
            "check_in": booking.check_in,
            "check_out": booking.check_out,
            "nights": nights,
            "num_guests": booking.num_guests,
        }

    @staticmethod
    def _charge_line(charge: BookingCharge) -> dict[str, Any]:
        """One additional charge line."""
        return {
            "description": charge.description,
            "category": charge.category,
            "quantity": charge.quantity,
            "unit_price": charge.unit_price,
            "amount": charge.amount,
        }

    @staticmethod
    def _totals(grand_total: Decimal) -> dict[str, Decimal]:
        """Tax breakdown fields of the charges block."""
        taxes = calculate_tax_breakdown(grand_total)
        return {
            "sales_total": taxes.sales_total,
            "gf_nhil": taxes.gf_nhil,
            "tax_sub_total": taxes.sub_total,
            "vat": taxes.vat,
            "tourism_levy": taxes.tourism_levy,
            "total": taxes.total,
        }
