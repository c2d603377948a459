# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""FastAPI application entry point for the hotel PMS."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hotel_pms import __version__
from hotel_pms.api import (
    activity_logs,
    bookings,
    channels,
    front_desk,
    health,
    housekeeping,
    ical,
    invoices,
    messages,
    public,
    reports,
    reviews,
    rooms,
    staff,
)
from hotel_pms.api import (
    settings as settings_api,
)
from hotel_pms.config import get_settings
from hotel_pms.database import build_engine, create_all_tables, get_session_factory
from hotel_pms.middleware.auth import AuthenticationMiddleware
from hotel_pms.middleware.error_handler import ErrorHandlerMiddleware
from hotel_pms.services.calendar_service import get_calendar_cache
from hotel_pms.services.scheduler import init_scheduler
from hotel_pms.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan handler for startup/shutdown events.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    # Startup
    setup_logging()

    settings = get_settings()
    app.state.settings = settings

    # Standalone runs skip migrations
    if settings.standalone_mode:
        engine = build_engine()
        await create_all_tables(engine)
        await engine.dispose()

    # Initialize and start the background sync scheduler
    scheduler = init_scheduler(get_session_factory(), get_calendar_cache())
    await scheduler.start()
    logger.info("Background sync scheduler started")

    yield

    # Shutdown
    scheduler.stop()
    logger.info("Background sync scheduler stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application.
    """
    settings = get_settings()

    app = FastAPI(
        title=f"{settings.hotel_name} PMS",
        description=(
            "Hotel property management: bookings, front desk, channel sync "
            "and guest portal"
        ),
        version=__version__,
        docs_url="/docs" if settings.standalone_mode else None,
        redoc_url="/redoc" if settings.standalone_mode else None,
        lifespan=lifespan,
    )

    # Middleware added last wraps the others
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(AuthenticationMiddleware)

    # CORS for iCal feeds and the public booking widget
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(ical.router)
    app.include_router(public.router)
    app.include_router(bookings.router)
    app.include_router(front_desk.router)
    app.include_router(invoices.router)
    app.include_router(housekeeping.router)
    app.include_router(channels.router)
    app.include_router(rooms.router)
    app.include_router(staff.router)
    app.include_router(messages.router)
    app.include_router(reports.router)
    app.include_router(activity_logs.router)
    app.include_router(reviews.router)
    app.include_router(settings_api.router)

    return app


# Application instance
app = create_app()


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "hotel_pms.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
