# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""SMS delivery through the Arkesel V1 HTTP API."""

import logging
import re
from http import HTTPStatus
from typing import Any

import httpx

from hotel_pms.config import get_settings
from hotel_pms.utils.logging import mask_secret

logger = logging.getLogger(__name__)

ARKESEL_API_URL = "https://sms.arkesel.com/sms/api"
LOCAL_NUMBER_LENGTH = 9
REQUEST_TIMEOUT_SECONDS = 15.0


class SmsServiceError(Exception):
    """Exception raised when an SMS cannot be sent."""

    def __init__(self, message: str, status_code: int = 502) -> None:
        """Initialize SmsServiceError.

        Args:
            message: Error message.
            status_code: HTTP status code the failure maps to.
        """
        super().__init__(message)
        self.status_code = status_code


class SmsNotConfiguredError(SmsServiceError):
    """Exception raised when no Arkesel API key is configured."""

    def __init__(self) -> None:
        """Initialize SmsNotConfiguredError."""
        super().__init__("SMS service not configured", status_code=500)


def normalize_phone(phone: str, country_code: str = "233") -> str:
    """Normalize a phone number to the international digits Arkesel expects.

    Args:
        phone: Number as typed, e.g. ``055 123 4567`` or ``+233551234567``.
        country_code: Country calling code without ``+``.

    Returns:
        Digits only, prefixed with the country code.
    """
    recipient = re.sub(r"\D", "", phone)
    if recipient.startswith("0"):
        recipient = country_code + recipient[1:]
    if (
        not recipient.startswith(country_code)
        and len(recipient) == LOCAL_NUMBER_LENGTH
    ):
        recipient = country_code + recipient
    return recipient


def classify_failure(response_text: str) -> int:
    """Map an Arkesel failure body to an HTTP status code.

    Args:
        response_text: Body returned by Arkesel.

    Returns:
        400 for bad numbers, 402 for an empty account, 502 otherwise.
    """
    text = response_text.lower()
    if "invalid phone" in text or "invalid number" in text:
        return HTTPStatus.BAD_REQUEST
    if "balance" in text or "credit" in text:
        return HTTPStatus.PAYMENT_REQUIRED
    return HTTPStatus.BAD_GATEWAY


def is_success(status_code: int, response_text: str) -> bool:
    """Check whether Arkesel accepted the message.

    Arkesel V1 answers 200 even for some failures, so the body must not
    mention an error either.
    """
    text = response_text.lower()
    return (
        status_code == HTTPStatus.OK and "error" not in text and "invalid" not in text
    )


class SmsService:
    """Client for sending text messages through Arkesel."""

    def __init__(
        self,
        api_key: str | None = None,
        sender_id: str | None = None,
        country_code: str | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize SmsService.

        Args:
            api_key: Arkesel API key, from settings when omitted.
            sender_id: Sender name shown to recipients.
            country_code: Calling code used to normalize local numbers.
            timeout: Request timeout in seconds.
        """
        settings = get_settings()
        self._api_key = (api_key or settings.arkesel_api_key or "").strip()
        self._sender_id = sender_id or settings.arkesel_sender_id
        self._country_code = country_code or settings.sms_country_code
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        """Whether an API key is available."""
        return bool(self._api_key)

    async def send(self, to: str, message: str) -> dict[str, Any]:
        """Send one SMS.

        Args:
            to: Recipient phone number in any common format.
            message: Text to send.

        Returns:
            Dict with ``success``, ``recipient`` and the raw ``response``.

        Raises:
            SmsServiceError: If input is missing or Arkesel rejects the message.
            SmsNotConfiguredError: If no API key is configured.
        """
        if not to or not message:
            msg = "Missing required fields: to, message"
            raise SmsServiceError(msg, status_code=HTTPStatus.BAD_REQUEST)
        if not self.is_configured:
            logger.error("Arkesel API key not configured")
            raise SmsNotConfiguredError

        recipient = normalize_phone(to, self._country_code)
        params = {
            "action": "send-sms",
            "api_key": self._api_key,
            "to": recipient,
            "from": self._sender_id,
            "sms": message,
        }
        logger.info(
            "Sending SMS to %s via Arkesel (key %s)",
            recipient,
            mask_secret(self._api_key),
        )

        async with httpx.AsyncClient() as client:
            try:
                response = await client.get(
                    ARKESEL_API_URL, params=params, timeout=self._timeout
                )
            except httpx.HTTPError as e:
                msg = f"Network error: {e}"
                raise SmsServiceError(msg) from e

        response_text = response.text
        if not is_success(response.status_code, response_text):
            logger.error("Arkesel rejected SMS to %s: %s", recipient, response_text)
            raise SmsServiceError(
                response_text or "Failed to send SMS via Arkesel",
                status_code=classify_failure(response_text),
            )

        logger.debug("Arkesel response: %s", response_text)
        return {"success": True, "recipient": recipient, "response": response_text}
