# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for booking notifications."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from hotel_pms.services.notification_service import (
    BookingNotice,
    NotificationService,
    booking_alert_html,
    booking_confirmation_html,
    booking_sms_text,
)
from hotel_pms.services.sms_service import SmsServiceError


def _notice(**overrides) -> BookingNotice:
    fields = {
        "booking_id": 17,
        "guest_name": "Ama <Mensah>",
        "guest_email": "ama@example.com",
        "guest_phone": "0551234567",
        "room_number": "101",
        "room_type_name": "Deluxe",
        "check_in": date(2026, 5, 10),
        "check_out": date(2026, 5, 12),
        "nights": 2,
        "num_guests": 2,
        "total_price": Decimal("1000"),
        "currency": "GHS",
        "source": "online",
        "special_requests": "Late arrival",
    }
    fields.update(overrides)
    return BookingNotice(**fields)


@pytest.fixture
def senders():
    """Mock email and SMS senders."""
    email = MagicMock()
    email.send = AsyncMock(return_value="msg-1")
    sms = MagicMock()
    sms.send = AsyncMock(return_value={"success": True})
    return email, sms


@pytest.fixture
def alert_settings():
    """Settings with a hotel alert address."""
    settings = MagicMock(hotel_name="AMP Lodge", hotel_alert_email="desk@amp.example")
    with patch(
        "hotel_pms.services.notification_service.get_settings",
        return_value=settings,
    ):
        yield settings


class TestTemplates:
    """Tests for notification content."""

    def test_confirmation_escapes_guest_input(self):
        """Test guest supplied text is HTML escaped."""
        html = booking_confirmation_html(_notice())
        assert "Ama &lt;Mensah&gt;" in html
        assert "Ama <Mensah>" not in html
        assert "GHS 1000.00" in html
        assert "our website" in html

    def test_voice_agent_confirmation(self):
        """Test voice bookings name the concierge."""
        html = booking_confirmation_html(_notice(source="voice_agent"))
        assert "our Voice Concierge" in html

    def test_alert_lists_requests(self):
        """Test the hotel alert shows contact details and requests."""
        html = booking_alert_html(_notice(guest_phone=None))
        assert "Late arrival" in html
        assert "ama@example.com" in html

    def test_sms_text(self):
        """Test the SMS names room and dates."""
        text = booking_sms_text(_notice())
        assert "(Room 101)" in text
        assert "from 2026-05-10 to 2026-05-12" in text


class TestBookingConfirmed:
    """Tests for NotificationService.booking_confirmed."""

    @pytest.mark.asyncio
    async def test_all_channels(self, senders, alert_settings):
        """Test online bookings notify guest by SMS and email plus the hotel."""
        email, sms = senders
        outcome = await NotificationService(email, sms).booking_confirmed(_notice())

        assert outcome == {"sms": True, "guest_email": True, "hotel_alert": True}
        sms.send.assert_awaited_once()
        recipients = [c.kwargs["to"] for c in email.send.await_args_list]
        assert recipients == ["ama@example.com", "desk@amp.example"]

    @pytest.mark.asyncio
    async def test_front_desk_booking_skips_alert(self, senders, alert_settings):
        """Test only online bookings alert the hotel."""
        email, sms = senders
        outcome = await NotificationService(email, sms).booking_confirmed(
            _notice(source="front_desk", guest_phone=None)
        )
        assert outcome == {"guest_email": True}
        sms.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failures_are_reported_not_raised(self, senders, alert_settings):
        """Test one failing channel does not stop the others."""
        email, sms = senders
        sms.send.side_effect = SmsServiceError("Insufficient balance", 402)

        outcome = await NotificationService(email, sms).booking_confirmed(_notice())

        assert outcome["sms"] is False
        assert outcome["guest_email"] is True

    @pytest.mark.asyncio
    async def test_nothing_to_send(self, senders, alert_settings):
        """Test a guest without contact details gets nothing."""
        email, sms = senders
        outcome = await NotificationService(email, sms).booking_confirmed(
            _notice(guest_email="", guest_phone=None, source="front_desk")
        )
        assert outcome == {}
        email.send.assert_not_awaited()
