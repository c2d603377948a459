# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Booking notifications sent by SMS and email."""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from html import escape

from hotel_pms.config import get_settings
from hotel_pms.models.booking import SOURCE_ONLINE
from hotel_pms.services.email_service import EmailService
from hotel_pms.services.sms_service import SmsService

logger = logging.getLogger(__name__)


@dataclass
class BookingNotice:
    """Details of a confirmed booking shared with guest and hotel."""

    booking_id: int
    guest_name: str
    guest_email: str
    guest_phone: str | None
    room_number: str
    room_type_name: str
    check_in: date
    check_out: date
    nights: int
    num_guests: int
    total_price: Decimal
    currency: str
    source: str
    special_requests: str | None = None


def _info_row(label: str, value: object) -> str:
    """Render one label/value row of the booking summary."""
    return (
        '<tr><td style="padding:4px 12px;color:#555;">'
        f"{escape(label)}</td>"
        f'<td style="padding:4px 12px;"><strong>{escape(str(value))}</strong></td></tr>'
    )


def render_email(title: str, body_html: str) -> str:
    """Wrap a body in the hotel email layout.

    Args:
        title: Heading shown above the body, escaped here.
        body_html: Already escaped HTML body.

    Returns:
        Complete HTML document.
    """
    hotel_name = escape(get_settings().hotel_name)
    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head><meta charset="utf-8">'
        f"<title>{escape(title)}</title></head>"
        '<body style="font-family:Arial,sans-serif;margin:0;padding:24px;">'
        f"<h1>{hotel_name}</h1>"
        f"<h2>{escape(title)}</h2>"
        f"{body_html}"
        '<p style="color:#888;font-size:12px;">'
        "This is an automated notification, please do not reply.</p>"
        "</body></html>"
    )


def booking_confirmation_html(notice: BookingNotice) -> str:
    """Render the guest confirmation email for a booking."""
    hotel_name = get_settings().hotel_name
    channel = "our website" if notice.source == SOURCE_ONLINE else "our Voice Concierge"
    rows = "".join(
        [
            _info_row("Room", f"{notice.room_number} ({notice.room_type_name})"),
            _info_row("Check-In", notice.check_in.isoformat()),
            _info_row("Check-Out", notice.check_out.isoformat()),
            _info_row("Nights", notice.nights),
            _info_row("Guests", notice.num_guests),
            _info_row("Total", f"{notice.currency} {notice.total_price:.2f}"),
        ]
    )
    body = (
        f"<p>Dear <strong>{escape(notice.guest_name)}</strong>,</p>"
        f"<p>Thank you for booking with <strong>{escape(hotel_name)}</strong> "
        f"via {channel}. Your reservation is confirmed!</p>"
        f'<table cellpadding="0" cellspacing="0">{rows}</table>'
        "<p>Payment is due at check-in.</p>"
    )
    return render_email("Booking Confirmed!", body)


def booking_alert_html(notice: BookingNotice) -> str:
    """Render the hotel alert email for a new online booking."""
    rows = "".join(
        [
            _info_row("Booking", notice.booking_id),
            _info_row("Guest", notice.guest_name),
            _info_row("Email", notice.guest_email),
            _info_row("Phone", notice.guest_phone or "-"),
            _info_row("Room", notice.room_number),
            _info_row("Dates", f"{notice.check_in} to {notice.check_out}"),
            _info_row("Total", f"{notice.currency} {notice.total_price:.2f}"),
            _info_row("Requests", notice.special_requests or "-"),
        ]
    )
    body = (
        "<p>A new booking was made online.</p>"
        f'<table cellpadding="0" cellspacing="0">{rows}</table>'
    )
    return render_email("New Online Booking", body)


def booking_sms_text(notice: BookingNotice) -> str:
    """Build the confirmation text message for a booking."""
    hotel_name = get_settings().hotel_name
    return (
        f"Dear {notice.guest_name}, your booking at {hotel_name} "
        f"(Room {notice.room_number}) from {notice.check_in.isoformat()} to "
        f"{notice.check_out.isoformat()} is confirmed. Check email for details."
    )


class NotificationService:
    """Fans booking notifications out to SMS and email.

    Delivery is best effort: failures are logged and never reach the
    caller, since the booking is already stored.
    """

    def __init__(
        self,
        email_service: EmailService | None = None,
        sms_service: SmsService | None = None,
    ) -> None:
        """Initialize NotificationService.

        Args:
            email_service: Email sender, a default one when omitted.
            sms_service: SMS sender, a default one when omitted.
        """
        self._email = email_service or EmailService()
        self._sms = sms_service or SmsService()

    async def booking_confirmed(self, notice: BookingNotice) -> dict[str, bool]:
        """Send all notifications for a new booking concurrently.

        Args:
            notice: Booking details.

        Returns:
            Channel name to delivery success.
        """
        tasks: dict[str, Awaitable[object]] = {}
        if notice.guest_phone:
            tasks["sms"] = self._sms.send(notice.guest_phone, booking_sms_text(notice))
        if notice.guest_email:
            tasks["guest_email"] = self._email.send(
                to=notice.guest_email,
                subject=f"Booking Confirmation - Room {notice.room_number}",
                html=booking_confirmation_html(notice),
            )
        alert_email = get_settings().hotel_alert_email
        if notice.source == SOURCE_ONLINE and alert_email:
            tasks["hotel_alert"] = self._email.send(
                to=alert_email,
                subject=f"New Online Booking #{notice.booking_id}",
                html=booking_alert_html(notice),
            )

        if not tasks:
            return {}

        results = await asyncio.gather(*tasks.values(), return_exceptions=True)
        outcome: dict[str, bool] = {}
        for name, result in zip(tasks, results, strict=True):
            if isinstance(result, Exception):
                logger.error(
                    "Booking %d %s notification failed: %s",
                    notice.booking_id,
                    name,
                    result,
                )
                outcome[name] = False
            else:
                outcome[name] = True
        return outcome
