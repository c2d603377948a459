# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Background task scheduler for channel sync and data retention."""

import logging
from datetime import UTC, datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hotel_pms.config import get_settings
from hotel_pms.repositories.activity_log_repository import ActivityLogRepository
from hotel_pms.repositories.channel_repository import ExternalBookingRepository
from hotel_pms.repositories.settings_repository import SettingsRepository
from hotel_pms.services.activity_log_service import ACTIVITY_LOG_RETENTION_DAYS
from hotel_pms.services.calendar_service import CalendarCache
from hotel_pms.services.channel_sync_service import ChannelSyncService

# Data retention settings
EXTERNAL_BOOKING_RETENTION_DAYS = 90

MIN_SYNC_INTERVAL_MINUTES = 1
MAX_SYNC_INTERVAL_MINUTES = 1440

SYNC_JOB_ID = "sync_channel_calendars"
PURGE_JOB_ID = "purge_old_data"

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Scheduler for periodic channel sync tasks.

    Uses APScheduler to run background sync jobs at configured intervals.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        calendar_cache: CalendarCache | None = None,
    ) -> None:
        """Initialize scheduler.

        Args:
            session_factory: Factory for creating database sessions.
            calendar_cache: Optional calendar cache to invalidate on sync.
        """
        self._session_factory = session_factory
        self._calendar_cache = calendar_cache
        self._scheduler = AsyncIOScheduler()
        self._running = False
        self._current_interval_minutes = get_settings().channel_sync_interval_minutes

    async def start(self) -> None:
        """Start the scheduler with the stored sync interval."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._current_interval_minutes = await self._load_sync_interval()

        self._scheduler.add_job(
            self._sync_all_channels,
            trigger=IntervalTrigger(minutes=self._current_interval_minutes),
            id=SYNC_JOB_ID,
            replace_existing=True,
            max_instances=1,  # Prevent overlapping syncs
        )

        # Add daily purge job at 02:00 UTC
        self._scheduler.add_job(
            self._purge_old_data,
            trigger=CronTrigger(hour=2, minute=0, timezone="UTC"),
            id=PURGE_JOB_ID,
            replace_existing=True,
            max_instances=1,
        )

        self._scheduler.start()
        self._running = True
        logger.info(
            "Sync scheduler started with %d minute interval",
            self._current_interval_minutes,
        )
        logger.info("Data purge scheduled daily at 02:00 UTC")

    def stop(self) -> None:
        """Stop the scheduler."""
        if not self._running:
            return

        self._scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Sync scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running.

        Returns:
            True if scheduler is running.
        """
        return self._running

    @property
    def current_interval_minutes(self) -> int:
        """Get the active sync interval in minutes."""
        return self._current_interval_minutes

    def update_sync_interval(self, interval_minutes: int) -> None:
        """Reschedule the sync job with a new interval.

        Out of range values and unchanged intervals are ignored.

        Args:
            interval_minutes: New interval in minutes.
        """
        if not self._running:
            logger.debug("Scheduler not running, interval applies on next start")
            return
        if not (
            MIN_SYNC_INTERVAL_MINUTES <= interval_minutes <= MAX_SYNC_INTERVAL_MINUTES
        ):
            logger.warning("Ignoring invalid sync interval: %d", interval_minutes)
            return
        if interval_minutes == self._current_interval_minutes:
            return

        self._scheduler.reschedule_job(
            SYNC_JOB_ID, trigger=IntervalTrigger(minutes=interval_minutes)
        )
        self._current_interval_minutes = interval_minutes
        logger.info("Sync job rescheduled every %d minutes", interval_minutes)

    async def _load_sync_interval(self) -> int:
        """Read the sync interval from hotel settings, else configuration."""
        default = get_settings().channel_sync_interval_minutes
        async with self._session_factory() as session:
            stored = await SettingsRepository(session).get()
        if stored is None or stored.channel_sync_interval_minutes is None:
            return default
        return stored.channel_sync_interval_minutes

    async def _sync_all_channels(self) -> None:
        """Sync every active channel mapping."""
        logger.debug("Starting scheduled channel sync")

        async with self._session_factory() as session:
            try:
                service = ChannelSyncService(
                    session=session, calendar_cache=self._calendar_cache
                )
                results = await service.sync_all()
            except Exception:
                logger.exception("Error during scheduled sync")
                return

        if not results:
            logger.debug("No channel mappings to sync")
            return
        failed = sum(1 for result in results if result["status"] == "error")
        logger.info(
            "Scheduled sync complete: %d mappings, %d failed", len(results), failed
        )

    async def _purge_old_data(self) -> None:
        """Purge stale external bookings and old activity logs.

        Runs daily at 02:00 UTC to clean up:
        - External bookings that ended more than 90 days ago
        - Activity log entries older than 365 days
        """
        logger.info("Starting scheduled data purge")

        async with self._session_factory() as session:
            try:
                cutoff = datetime.now(UTC).date() - timedelta(
                    days=EXTERNAL_BOOKING_RETENTION_DAYS
                )
                external_count = await ExternalBookingRepository(
                    session
                ).purge_ended_before(cutoff)
                log_count = await ActivityLogRepository(session).purge_older_than(
                    days=ACTIVITY_LOG_RETENTION_DAYS
                )

                await session.commit()

                logger.info(
                    "Data purge complete: %d external bookings, %d log entries removed",
                    external_count,
                    log_count,
                )

            except Exception:
                logger.exception("Error during data purge")


# Global scheduler instance
_scheduler: SyncScheduler | None = None


def get_scheduler() -> SyncScheduler | None:
    """Get the global scheduler instance.

    Returns:
        SyncScheduler instance or None if not initialized.
    """
    return _scheduler


def init_scheduler(
    session_factory: async_sessionmaker[AsyncSession],
    calendar_cache: CalendarCache | None = None,
) -> SyncScheduler:
    """Initialize the global scheduler.

    Args:
        session_factory: Factory for creating database sessions.
        calendar_cache: Optional calendar cache.

    Returns:
        Initialized SyncScheduler.
    """
    global _scheduler  # noqa: PLW0603
    _scheduler = SyncScheduler(session_factory, calendar_cache)
    return _scheduler
