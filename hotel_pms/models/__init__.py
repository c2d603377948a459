# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""SQLAlchemy ORM models for the hotel PMS."""

from hotel_pms.models.activity_log import ActivityLog
from hotel_pms.models.booking import Booking, BookingCharge
from hotel_pms.models.channel import (
    ChannelConnection,
    ChannelRoomMapping,
    ExternalBooking,
)
from hotel_pms.models.guest import Guest
from hotel_pms.models.guest_portal import GuestRequest, Review
from hotel_pms.models.hotel_settings import HotelSettings
from hotel_pms.models.housekeeping import HousekeepingTask
from hotel_pms.models.invoice import Invoice
from hotel_pms.models.room import Room, RoomType
from hotel_pms.models.staff import Staff

__all__ = [
    "ActivityLog",
    "Booking",
    "BookingCharge",
    "ChannelConnection",
    "ChannelRoomMapping",
    "ExternalBooking",
    "Guest",
    "GuestRequest",
    "HotelSettings",
    "HousekeepingTask",
    "Invoice",
    "Review",
    "Room",
    "RoomType",
    "Staff",
]
