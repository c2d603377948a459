# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Outgoing guest messaging API endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from hotel_pms.api.dependencies import StaffContext, require_permission
from hotel_pms.services.email_service import EmailService, EmailServiceError
from hotel_pms.services.sms_service import SmsService, SmsServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["Messages"])


class Attachment(BaseModel):
    """Email attachment."""

    filename: str = Field(description="File name")
    content: str = Field(description="Base64 content or data URL")
    content_type: str | None = Field(default=None, description="MIME type")


class EmailRequest(BaseModel):
    """Request model for sending an email."""

    to: str | list[str] | None = Field(default=None, description="Recipients")
    subject: str | None = Field(default=None, description="Subject line")
    html: str | None = Field(default=None, description="HTML body")
    text: str | None = Field(default=None, description="Plain text body")
    sender: str | None = Field(default=None, description="From address")
    reply_to: str | None = Field(default=None, description="Reply-to address")
    attachments: list[Attachment] | None = Field(
        default=None, description="Attachments"
    )


class SmsRequest(BaseModel):
    """Request model for sending an SMS."""

    to: str | None = Field(default=None, description="Recipient phone number")
    message: str | None = Field(default=None, description="Message text")


@router.post("/email")
async def send_email(
    request: EmailRequest,
    _staff: Annotated[StaffContext, Depends(require_permission("guests", "update"))],
) -> dict[str, Any]:
    """Send an email through Resend.

    Raises:
        HTTPException: 400 for bad input, 500 when email is not configured.
    """
    attachments = (
        [attachment.model_dump() for attachment in request.attachments]
        if request.attachments
        else None
    )
    try:
        message_id = await EmailService().send(
            to=request.to or "",
            subject=request.subject or "",
            html=request.html or "",
            text=request.text,
            sender=request.sender,
            reply_to=request.reply_to,
            attachments=attachments,
        )
    except EmailServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    return {"success": True, "id": message_id}


@router.post("/sms")
async def send_sms(
    request: SmsRequest,
    _staff: Annotated[StaffContext, Depends(require_permission("guests", "update"))],
) -> dict[str, Any]:
    """Send an SMS through Arkesel.

    Raises:
        HTTPException: 400 for bad numbers, 402 when the balance is low,
            500 when SMS is not configured, 502 for other failures.
    """
    try:
        return await SmsService().send(request.to or "", request.message or "")
    except SmsServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
