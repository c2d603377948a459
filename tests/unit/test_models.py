# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for database models."""

from datetime import date
from unittest.mock import patch

import pytest
from hotel_pms.config import Settings
from hotel_pms.models.booking import (
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_CHECKED_IN,
    BOOKING_STATUS_CHECKED_OUT,
    BOOKING_STATUS_CONFIRMED,
    BOOKING_STATUS_RESERVED,
    Booking,
)
from hotel_pms.models.channel import ChannelRoomMapping, decrypt_value, encrypt_value
from hotel_pms.models.guest import Guest
from hotel_pms.models.room import (
    ROOM_STATUS_CLEANING,
    ROOM_STATUS_MAINTENANCE,
    Room,
)


class TestBooking:
    """Tests for Booking model."""

    def test_nights(self):
        """Test nights counts the half-open stay."""
        booking = Booking(check_in=date(2026, 3, 1), check_out=date(2026, 3, 4))
        assert booking.nights == 3

    @pytest.mark.parametrize(
        ("status", "occupying"),
        [
            (BOOKING_STATUS_RESERVED, True),
            (BOOKING_STATUS_CONFIRMED, True),
            (BOOKING_STATUS_CHECKED_IN, True),
            (BOOKING_STATUS_CHECKED_OUT, False),
            (BOOKING_STATUS_CANCELLED, False),
        ],
    )
    def test_is_occupying(self, status, occupying):
        """Test only live bookings hold their room."""
        assert Booking(status=status).is_occupying is occupying


class TestRoom:
    """Tests for Room model."""

    def test_maintenance_not_bookable(self):
        """Test rooms under maintenance leave the inventory."""
        assert Room(status=ROOM_STATUS_MAINTENANCE).is_bookable is False
        assert Room(status=ROOM_STATUS_CLEANING).is_bookable is True


class TestGuest:
    """Tests for Guest model."""

    @pytest.mark.parametrize(
        ("name", "first"),
        [("Ama Mensah", "Ama"), ("  Kofi  ", "Kofi"), ("", "")],
    )
    def test_first_name(self, name, first):
        """Test the first word of the name is the first name."""
        assert Guest(name=name, email="g@example.com").first_name == first


class TestImportUrlEncryption:
    """Tests for encrypted channel import URLs."""

    def test_stored_encrypted(self):
        """Test the feed URL is never stored in clear text."""
        url = "https://www.airbnb.com/calendar/ical/123.ics?s=secret"
        mapping = ChannelRoomMapping(export_token="feed")
        mapping.import_url = url

        assert mapping._import_url != url
        assert "secret" not in mapping._import_url
        assert mapping.import_url == url
        assert mapping.has_import_url is True

    def test_empty_clears(self):
        """Test an empty URL removes the feed."""
        mapping = ChannelRoomMapping(export_token="feed")
        mapping.import_url = "https://example.com/a.ics"
        mapping.import_url = ""

        assert mapping.import_url is None
        assert mapping.has_import_url is False

    def test_none_passthrough(self):
        """Test None is neither encrypted nor decrypted."""
        assert encrypt_value(None) is None
        assert decrypt_value(None) is None

    def test_missing_key(self):
        """Test encryption needs a configured key."""
        with (
            patch(
                "hotel_pms.models.channel.get_settings",
                return_value=Settings(encryption_key=""),
            ),
            pytest.raises(ValueError, match="ENCRYPTION_KEY"),
        ):
            encrypt_value("https://example.com/a.ics")
