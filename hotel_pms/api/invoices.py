# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Invoice API endpoint."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.api.dependencies import StaffContext, require_permission
from hotel_pms.database import get_db
from hotel_pms.services.invoice_service import (
    InvoiceError,
    InvoiceNotFoundError,
    InvoiceService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["Invoices"])


@router.get("")
async def get_invoice(
    db: Annotated[AsyncSession, Depends(get_db)],
    _staff: Annotated[StaffContext, Depends(require_permission("invoices", "read"))],
    invoice_number: Annotated[str | None, Query(alias="invoiceNumber")] = None,
    booking_id: Annotated[int | None, Query(alias="bookingId")] = None,
) -> dict[str, Any]:
    """Get the invoice of a booking by invoice number or booking id.

    The invoice is issued on first request and keeps its number after.

    Returns:
        Invoice document with the tax breakdown.

    Raises:
        HTTPException: 400 without lookup key, 404 when nothing matches.
    """
    service = InvoiceService(db)
    try:
        invoice = await service.get_invoice(invoice_number, booking_id)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except InvoiceError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
        ) from e
    await db.commit()
    return invoice
