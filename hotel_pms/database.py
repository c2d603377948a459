# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Database configuration and async engine setup."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from hotel_pms.config import get_settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    pass


def get_database_url() -> str:
    """Get the database URL, converting sqlite to async driver.

    Returns:
        Database URL with async driver prefix.
    """
    url = get_settings().database_url

    if url.startswith("sqlite://"):
        url = url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    return url


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    """Turn on SQLite FK enforcement for each new connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def build_engine(url: str | None = None) -> AsyncEngine:
    """Create the async engine for the configured database.

    Args:
        url: Optional database URL overriding settings.

    Returns:
        Async SQLAlchemy engine.
    """
    url = url or get_database_url()
    is_sqlite = url.startswith("sqlite")
    engine = create_async_engine(
        url,
        echo=False,
        connect_args={"check_same_thread": False} if is_sqlite else {},
    )
    if is_sqlite:
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine.

    Args:
        engine: Engine to bind. Built from settings when omitted.

    Returns:
        Async session maker for database operations.
    """
    return async_sessionmaker(
        engine or build_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


# Global session factory - initialized on first use
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the global session factory.

    Returns:
        Async session maker for database operations.
    """
    global _session_factory  # noqa: PLW0603
    if _session_factory is None:
        _session_factory = create_session_factory()
    return _session_factory


async def create_all_tables(engine: AsyncEngine) -> None:
    """Create any missing tables on the given engine.

    Used in standalone mode where migrations are not run.

    Args:
        engine: Engine to create tables on.
    """
    # Import models so every table is registered on the metadata
    import hotel_pms.models  # noqa: F401, PLC0415

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession]:
    """Get an async database session.

    Yields:
        AsyncSession for database operations.
    """
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession]:
    """FastAPI dependency for database sessions.

    Yields:
        AsyncSession for database operations.
    """
    async with get_session() as session:
        yield session
