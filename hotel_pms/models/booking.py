# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Booking and in-stay charge models."""

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hotel_pms.database import Base

if TYPE_CHECKING:
    from hotel_pms.models.guest import Guest
    from hotel_pms.models.room import Room

BOOKING_STATUS_RESERVED = "reserved"
BOOKING_STATUS_CONFIRMED = "confirmed"
BOOKING_STATUS_CHECKED_IN = "checked_in"
BOOKING_STATUS_CHECKED_OUT = "checked_out"
BOOKING_STATUS_CANCELLED = "cancelled"

BOOKING_STATUSES = frozenset(
    {
        BOOKING_STATUS_RESERVED,
        BOOKING_STATUS_CONFIRMED,
        BOOKING_STATUS_CHECKED_IN,
        BOOKING_STATUS_CHECKED_OUT,
        BOOKING_STATUS_CANCELLED,
    }
)

# Statuses that hold a room for their nights
OCCUPYING_STATUSES = frozenset(
    {
        BOOKING_STATUS_RESERVED,
        BOOKING_STATUS_CONFIRMED,
        BOOKING_STATUS_CHECKED_IN,
    }
)

SOURCE_ONLINE = "online"
SOURCE_VOICE_AGENT = "voice_agent"
SOURCE_FRONT_DESK = "front_desk"

CHARGE_CATEGORIES = frozenset(
    {
        "food_beverage",
        "room_service",
        "minibar",
        "laundry",
        "phone_internet",
        "parking",
        "room_extension",
        "other",
    }
)

PAYMENT_METHODS = frozenset({"cash", "mobile_money", "card"})


def _utc_now() -> datetime:
    """Get current UTC datetime for SQLAlchemy defaults."""
    return datetime.now(UTC)


class Booking(Base):
    """Stay of one guest in one room.

    A stay occupies the half-open date interval ``[check_in, check_out)``:
    the guest sleeps every night from check-in up to, but not including,
    the check-out date.
    """

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guest_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("guests.id"), nullable=False
    )
    room_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("rooms.id"), nullable=False
    )
    created_by_staff_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("staff.id", ondelete="SET NULL"), nullable=True
    )
    check_in: Mapped[date] = mapped_column(Date, nullable=False)
    check_out: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BOOKING_STATUS_CONFIRMED
    )
    total_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    num_guests: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str] = mapped_column(
        String(30), nullable=False, default=SOURCE_FRONT_DESK
    )
    guest_token: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True, index=True
    )

    # Group bookings share a group id; one booking carries the billing contact
    group_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    group_reference: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_primary_booking: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    # Front desk
    payment_method: Mapped[str | None] = mapped_column(String(30), nullable=True)
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    discount_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    discounted_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    final_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    actual_check_in: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    actual_check_out: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now, onupdate=_utc_now
    )

    guest: Mapped["Guest"] = relationship("Guest", lazy="selectin")
    room: Mapped["Room"] = relationship("Room", lazy="selectin")
    charges: Mapped[list["BookingCharge"]] = relationship(
        "BookingCharge",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingCharge.id",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_booking_room_dates", "room_id", "check_in", "check_out"),
        Index("idx_booking_status", "status"),
        Index("idx_booking_group", "group_id"),
    )

    @property
    def nights(self) -> int:
        """Number of nights booked."""
        return (self.check_out - self.check_in).days

    @property
    def is_occupying(self) -> bool:
        """Whether this booking holds its room."""
        return self.status in OCCUPYING_STATUSES

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<Booking(id={self.id}, room_id={self.room_id}, "
            f"{self.check_in}..{self.check_out}, status={self.status})>"
        )


class BookingCharge(Base):
    """Additional charge posted to a booking during the stay."""

    __tablename__ = "booking_charges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(30), nullable=False, default="other")
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utc_now
    )

    booking: Mapped[Booking] = relationship(
        "Booking", back_populates="charges", lazy="selectin"
    )

    __table_args__ = (Index("idx_charge_booking", "booking_id"),)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<BookingCharge(id={self.id}, booking_id={self.booking_id}, "
            f"amount={self.amount})>"
        )
