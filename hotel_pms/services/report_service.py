# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""End-of-day reporting."""

import logging
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.booking import (
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_CHECKED_IN,
    BOOKING_STATUS_CONFIRMED,
    PAYMENT_METHODS,
)
from hotel_pms.repositories.booking_repository import BookingRepository

logger = logging.getLogger(__name__)

REVENUE_STATUSES = frozenset({BOOKING_STATUS_CONFIRMED, BOOKING_STATUS_CHECKED_IN})


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC start of a day and of the next day."""
    start = datetime.combine(day, time.min, tzinfo=UTC)
    return start, start + timedelta(days=1)


class ReportService:
    """Builds the daily figures the front desk closes the day with."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ReportService.

        Args:
            session: Async database session.
        """
        self._booking_repo = BookingRepository(session)

    async def end_of_day(self, day: date) -> dict[str, Any]:
        """Summarize a day's bookings and takings.

        Bookings are those created during the day. Payments come from the
        guests who checked in that day, grouped by payment method, using the
        discounted amount when one was set.

        Args:
            day: Report date (UTC).

        Returns:
            Dict with date, total_bookings, confirmed_bookings,
            cancelled_bookings, total_revenue and payments.
        """
        start, end = day_bounds(day)
        created = await self._booking_repo.get_created_between(start, end)
        confirmed = [b for b in created if b.status in REVENUE_STATUSES]
        cancelled = [b for b in created if b.status == BOOKING_STATUS_CANCELLED]
        revenue = sum((Decimal(b.total_price) for b in confirmed), Decimal("0.00"))

        payments = {method: Decimal("0.00") for method in sorted(PAYMENT_METHODS)}
        for booking in await self._booking_repo.get_checked_in_between(start, end):
            if booking.payment_method not in payments:
                continue
            amount = booking.final_amount
            if amount is None:
                amount = booking.total_price
            payments[booking.payment_method] += Decimal(amount)

        logger.debug("End of day report for %s: %d bookings", day, len(created))
        return {
            "date": day,
            "total_bookings": len(created),
            "confirmed_bookings": len(confirmed),
            "cancelled_bookings": len(cancelled),
            "total_revenue": revenue,
            "payments": payments,
        }
