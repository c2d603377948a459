# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Repository for Invoice database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models.invoice import Invoice


class InvoiceRepository:
    """Repository for Invoice lookups and persistence."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._session = session

    async def get_by_number(self, invoice_number: str) -> Invoice | None:
        """Get invoice by its number."""
        result = await self._session.execute(
            select(Invoice).where(Invoice.invoice_number == invoice_number)
        )
        return result.scalar_one_or_none()

    async def get_for_booking(self, booking_id: int) -> Invoice | None:
        """Get the invoice issued for a booking, if any."""
        result = await self._session.execute(
            select(Invoice).where(Invoice.booking_id == booking_id)
        )
        return result.scalar_one_or_none()

    async def save(self, invoice: Invoice) -> Invoice:
        """Insert or flush an invoice.

        Args:
            invoice: Invoice to persist.

        Returns:
            Persisted invoice.
        """
        self._session.add(invoice)
        await self._session.flush()
        await self._session.refresh(invoice)
        return invoice
