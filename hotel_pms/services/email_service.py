# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Transactional email through the Resend SDK."""

import asyncio
import base64
import binascii
import logging
from typing import Any

import resend

from hotel_pms.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class EmailServiceError(Exception):
    """Exception raised when an email cannot be sent."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        """Initialize EmailServiceError.

        Args:
            message: Error message.
            status_code: HTTP status code the failure maps to.
        """
        super().__init__(message)
        self.status_code = status_code


def decode_attachment_content(content: str) -> bytes:
    """Decode attachment content given as base64 or as a data URL.

    Args:
        content: ``data:application/pdf;base64,...`` or plain base64.

    Returns:
        Raw attachment bytes.

    Raises:
        EmailServiceError: If the content is not valid base64.
    """
    if "," in content:
        content = content.split(",", 1)[1]
    try:
        return base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as e:
        msg = "Attachment content must be base64 encoded"
        raise EmailServiceError(msg, status_code=400) from e


def build_attachments(attachments: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert API attachments into Resend attachment parameters."""
    return [
        {
            "filename": attachment["filename"],
            "content": list(decode_attachment_content(attachment["content"])),
            "content_type": attachment.get("content_type") or DEFAULT_CONTENT_TYPE,
        }
        for attachment in attachments
    ]


class EmailService:
    """Sends HTML email through Resend."""

    def __init__(self, api_key: str | None = None, sender: str | None = None) -> None:
        """Initialize EmailService.

        Args:
            api_key: Resend API key, from settings when omitted.
            sender: Default ``From`` address, from settings when omitted.
        """
        settings = get_settings()
        self._api_key = api_key or settings.resend_api_key
        self._sender = sender or settings.email_from

    @property
    def is_configured(self) -> bool:
        """Whether a Resend API key is available."""
        return bool(self._api_key)

    async def send(
        self,
        to: str | list[str],
        subject: str,
        html: str,
        text: str | None = None,
        sender: str | None = None,
        reply_to: str | None = None,
        attachments: list[dict[str, Any]] | None = None,
    ) -> str | None:
        """Send one email.

        Args:
            to: Recipient address or addresses.
            subject: Subject line.
            html: HTML body.
            text: Optional plain text body.
            sender: ``From`` address overriding the default.
            reply_to: Optional reply-to address.
            attachments: Dicts with ``filename``, ``content`` (base64 or data
                URL) and optional ``content_type``.

        Returns:
            Resend message id.

        Raises:
            EmailServiceError: If input is missing, Resend is not configured
                or the message is rejected.
        """
        if not to or not subject or not html:
            msg = "Missing required fields: to, subject, html"
            raise EmailServiceError(msg, status_code=400)
        if not self.is_configured:
            logger.error("Resend API key not configured")
            msg = "Email service not configured - missing API key"
            raise EmailServiceError(msg)

        params: dict[str, Any] = {
            "from": sender or self._sender,
            "to": [to] if isinstance(to, str) else to,
            "subject": subject,
            "html": html,
        }
        if text:
            params["text"] = text
        if reply_to:
            params["reply_to"] = reply_to
        if attachments:
            params["attachments"] = build_attachments(attachments)

        logger.info("Sending email to %s: %s", params["to"], subject)
        resend.api_key = self._api_key
        try:
            response = await asyncio.to_thread(resend.Emails.send, params)
        except resend.exceptions.ResendError as e:
            logger.error("Resend rejected email to %s: %s", params["to"], e)
            raise EmailServiceError(str(e), status_code=400) from e

        message_id = response.get("id") if isinstance(response, dict) else None
        logger.info("Email sent, id %s", message_id)
        return message_id
