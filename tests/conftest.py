# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Pytest fixtures for Hotel PMS tests."""

import os
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest
from cryptography.fernet import Fernet
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


# Set environment variables BEFORE any hotel_pms imports
# This must happen at module load time
def _setup_env() -> None:
    """Set up test environment variables at module load."""
    if "ENCRYPTION_KEY" not in os.environ:
        test_key = Fernet.generate_key().decode()
        os.environ["ENCRYPTION_KEY"] = test_key
    if "DATABASE_URL" not in os.environ:
        os.environ["DATABASE_URL"] = "sqlite:///./test.db"
    if "STANDALONE_MODE" not in os.environ:
        os.environ["STANDALONE_MODE"] = "true"
    if "LOG_LEVEL" not in os.environ:
        os.environ["LOG_LEVEL"] = "DEBUG"
    # Outbound notifications stay unconfigured so nothing leaves the test run
    os.environ["RESEND_API_KEY"] = ""
    os.environ["ARKESEL_API_KEY"] = ""
    os.environ["HOTEL_ALERT_EMAIL"] = ""
    os.environ["ADMIN_EMAIL"] = ""


_setup_env()

# Now safe to import from hotel_pms
import hotel_pms.models  # noqa: E402, F401
from fastapi import FastAPI  # noqa: E402
from hotel_pms.database import Base, get_db  # noqa: E402
from hotel_pms.models.booking import BOOKING_STATUS_CONFIRMED, Booking  # noqa: E402
from hotel_pms.models.channel import (  # noqa: E402
    CHANNEL_NAMES,
    ChannelConnection,
    ChannelRoomMapping,
)
from hotel_pms.models.guest import Guest  # noqa: E402
from hotel_pms.models.room import Room, RoomType  # noqa: E402
from hotel_pms.models.staff import Staff  # noqa: E402
from hotel_pms.services.calendar_service import get_calendar_cache  # noqa: E402


@dataclass
class Inventory:
    """Seeded room types and rooms."""

    deluxe: RoomType
    suite: RoomType
    rooms: dict[str, Room]


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables."""
    # Already set by _setup_env(), just yield and cleanup
    yield
    test_db_path = Path("test.db")
    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture(autouse=True)
def clear_calendar_cache():
    """Start every test with an empty feed cache."""
    get_calendar_cache().clear()
    yield
    get_calendar_cache().clear()


@pytest.fixture
async def async_engine():
    """Create an async test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
    )

    # Enable foreign key constraint enforcement for SQLite on every connection
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, _connection_record):
        """Enable SQLite FK constraints on each connection."""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture
async def async_session(session_factory) -> AsyncGenerator[AsyncSession]:
    """Create an async test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def app(session_factory) -> FastAPI:
    """Create a test FastAPI application bound to the test database."""
    from hotel_pms.main import create_app

    app = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def today() -> date:
    """Current hotel date."""
    return datetime.now(UTC).date()


@pytest.fixture
def arrival(today) -> date:
    """An arrival date safely in the future."""
    return today + timedelta(days=30)


@pytest.fixture
async def inventory(async_session) -> Inventory:
    """Seed two Deluxe rooms and one Suite."""
    deluxe = RoomType(
        name="Deluxe",
        description="Queen bed, garden view",
        base_price=Decimal("500.00"),
        max_occupancy=2,
        images=["https://example.com/deluxe.jpg"],
    )
    suite = RoomType(
        name="Suite",
        description="King bed and lounge",
        base_price=Decimal("900.00"),
        max_occupancy=4,
    )
    async_session.add_all([deluxe, suite])
    await async_session.flush()

    rooms = {
        "101": Room(room_number="101", room_type_id=deluxe.id),
        "102": Room(room_number="102", room_type_id=deluxe.id),
        "201": Room(room_number="201", room_type_id=suite.id),
    }
    async_session.add_all(rooms.values())
    await async_session.commit()
    for room in rooms.values():
        await async_session.refresh(room)
    return Inventory(deluxe=deluxe, suite=suite, rooms=rooms)


@pytest.fixture
async def guest(async_session) -> Guest:
    """Seed a returning guest."""
    guest = Guest(name="Ama Mensah", email="ama@example.com", phone="0551234567")
    async_session.add(guest)
    await async_session.commit()
    return guest


@pytest.fixture
def make_booking(async_session):
    """Factory storing a booking directly, bypassing availability checks."""

    async def _make(
        room: Room,
        guest: Guest,
        check_in: date,
        check_out: date,
        status: str = BOOKING_STATUS_CONFIRMED,
        **fields,
    ) -> Booking:
        nights = (check_out - check_in).days
        booking = Booking(
            guest_id=guest.id,
            room_id=room.id,
            check_in=check_in,
            check_out=check_out,
            status=status,
            total_price=fields.pop("total_price", Decimal("500.00") * nights),
            **fields,
        )
        async_session.add(booking)
        await async_session.commit()
        await async_session.refresh(booking)
        return booking

    return _make


@pytest.fixture
def make_staff(async_session):
    """Factory storing a staff member with a role."""

    async def _make(role: str, user_id: str | None = None) -> Staff:
        user_id = user_id or f"{role}-user"
        staff = Staff(
            user_id=user_id,
            name=f"{role.title()} Person",
            email=f"{user_id}@hotel.example.com",
            role=role,
        )
        async_session.add(staff)
        await async_session.commit()
        return staff

    return _make


@pytest.fixture
def make_mapping(async_session):
    """Factory mapping a room type to a channel, creating the connection."""
    connections: dict[str, ChannelConnection] = {}

    async def _make(
        room_type: RoomType,
        channel_id: str = "airbnb",
        export_token: str | None = None,
        import_url: str | None = None,
    ) -> ChannelRoomMapping:
        connection = connections.get(channel_id)
        if connection is None:
            connection = ChannelConnection(
                channel_id=channel_id,
                channel_name=CHANNEL_NAMES[channel_id],
                is_active=True,
            )
            async_session.add(connection)
            await async_session.flush()
            connections[channel_id] = connection
        mapping = ChannelRoomMapping(
            connection_id=connection.id,
            room_type_id=room_type.id,
            export_token=export_token or f"{channel_id}-{room_type.id}-feed",
        )
        mapping.import_url = import_url
        async_session.add(mapping)
        await async_session.commit()
        await async_session.refresh(mapping)
        return mapping

    return _make
