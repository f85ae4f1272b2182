"""Scheduled maintenance of the listing store."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class ExpiryScheduler:
    """Periodically marks listings past their expiry time as expired.

    Uses APScheduler for cron-based scheduling.
    """

    def __init__(self, config) -> None:
        """Initialize scheduler with a FoodShareConfig.

        Args:
            config: FoodShareConfig instance.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.cron import CronTrigger
        except ImportError:
            raise ImportError(
                "apscheduler is required: pip install 'foodshare[scheduler]'"
            )

        self._config = config
        self._scheduler = AsyncIOScheduler()
        self._CronTrigger = CronTrigger
        self._running = False

    def setup_jobs(self) -> None:
        """Register scheduled jobs based on config."""
        if not self._config.scheduler.enabled:
            logger.info("Listing expiry job disabled")
            return

        schedule = self._config.scheduler.expire_schedule
        self._scheduler.add_job(
            self._job_expire_listings,
            trigger=self._parse_cron(schedule),
            id="expire_listings",
            name="Expire stale listings",
            replace_existing=True,
        )
        logger.info("Registered expire_listings job: %s", schedule)

    def start(self) -> None:
        """Start the scheduler. Must be called from a running event loop."""
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Scheduler started")

    def stop(self) -> None:
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(next_run) if next_run else None,
            })
        return jobs

    def _parse_cron(self, expr: str):
        """Parse a five-field cron expression into a CronTrigger."""
        parts = expr.split()
        if len(parts) == 5:
            return self._CronTrigger(
                minute=parts[0],
                hour=parts[1],
                day=parts[2],
                month=parts[3],
                day_of_week=parts[4],
            )
        raise ValueError(f"Invalid cron expression: {expr}")

    async def _job_expire_listings(self) -> None:
        logger.info("Checking for expired listings...")

        try:
            from .db import ListingDB

            db = ListingDB(self._config.database.path)
            try:
                count = db.mark_expired()
                if count > 0:
                    logger.info("Marked %d listings as expired", count)
            finally:
                db.close()
        except Exception:
            logger.exception("Expiry check failed")
