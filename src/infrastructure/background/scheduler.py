# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scheduler for periodic maintenance jobs.

Uses APScheduler's AsyncIOScheduler so jobs run on the application's event
loop next to the API.

Example:
    from src.infrastructure.background.scheduler import get_scheduler

    scheduler = get_scheduler()
    await scheduler.start()

    # Add interval job (runs every 15 minutes)
    scheduler.add_interval_job(
        name="Section Lifecycle Sync",
        func=execute_lifecycle_sync,
        minutes=15,
    )
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable
from uuid import uuid4

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from src.core.config.settings import Settings

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[Any]]


@dataclass
class ScheduledJob:
    """Configuration and run statistics for a scheduled job.

    Attributes:
        id: Unique job identifier.
        name: Human-readable job name.
        func: Coroutine function executed on each run.
        enabled: Whether the job is enabled.
        last_run: Last run timestamp.
        last_result: Value returned by the last successful run.
        run_count: Total number of successful runs.
        error_count: Number of failed runs.
    """

    name: str
    func: JobFunc
    id: str = field(default_factory=lambda: str(uuid4()))
    enabled: bool = True
    last_run: datetime | None = None
    last_result: Any = None
    run_count: int = 0
    error_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "enabled": self.enabled,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "error_count": self.error_count,
        }


class JobScheduler:
    """Scheduler for periodic async jobs.

    Jobs can be registered before or after start(); jobs registered before
    start are handed to APScheduler when it starts.
    """

    def __init__(self) -> None:
        """Initialize the scheduler."""
        self._scheduler: AsyncIOScheduler | None = None
        self._jobs: dict[str, ScheduledJob] = {}
        self._triggers: dict[str, tuple[Any, datetime | None]] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    def add_interval_job(
        self,
        name: str,
        func: JobFunc,
        seconds: int = 0,
        minutes: int = 0,
        hours: int = 0,
        enabled: bool = True,
        start_immediately: bool = False,
    ) -> ScheduledJob:
        """Add an interval-scheduled job.

        Args:
            name: Job name.
            func: Coroutine function to run.
            seconds: Interval seconds.
            minutes: Interval minutes.
            hours: Interval hours.
            enabled: Whether job is enabled.
            start_immediately: Run once as soon as the scheduler starts.

        Returns:
            Created ScheduledJob.

        Raises:
            ValueError: If the interval is zero.
        """
        if seconds + minutes * 60 + hours * 3600 <= 0:
            raise ValueError("Interval must be positive")

        trigger = IntervalTrigger(seconds=seconds, minutes=minutes, hours=hours)
        next_run = datetime.now(timezone.utc) if start_immediately else None
        job = self._register(name, func, trigger, next_run, enabled)

        logger.info(
            "Added interval job: %s (every %dh %dm %ds)",
            name,
            hours,
            minutes,
            seconds,
        )
        return job

    def add_cron_job(
        self,
        name: str,
        func: JobFunc,
        cron_expression: str,
        enabled: bool = True,
    ) -> ScheduledJob:
        """Add a cron-scheduled job.

        Args:
            name: Job name.
            func: Coroutine function to run.
            cron_expression: Cron expression (minute hour day month weekday).
            enabled: Whether job is enabled.

        Returns:
            Created ScheduledJob.

        Raises:
            ValueError: If the cron expression is invalid.
        """
        parts = cron_expression.split()
        if len(parts) != 5:
            raise ValueError(f"Invalid cron expression: {cron_expression}")

        trigger = CronTrigger(
            minute=parts[0],
            hour=parts[1],
            day=parts[2],
            month=parts[3],
            day_of_week=parts[4],
        )
        job = self._register(name, func, trigger, None, enabled)

        logger.info("Added cron job: %s (%s)", name, cron_expression)
        return job

    def _register(
        self,
        name: str,
        func: JobFunc,
        trigger: Any,
        next_run: datetime | None,
        enabled: bool,
    ) -> ScheduledJob:
        job = ScheduledJob(name=name, func=func, enabled=enabled)
        self._jobs[job.id] = job
        self._triggers[job.id] = (trigger, next_run)

        if self._scheduler and enabled:
            self._schedule(job)

        return job

    def _schedule(self, job: ScheduledJob) -> None:
        trigger, next_run = self._triggers[job.id]
        kwargs: dict[str, Any] = {}
        if next_run is not None:
            kwargs["next_run_time"] = next_run

        self._scheduler.add_job(
            self.run_job,
            trigger=trigger,
            args=[job.id],
            id=job.id,
            name=job.name,
            max_instances=1,
            coalesce=True,
            **kwargs,
        )

    async def run_job(self, job_id: str) -> Any:
        """Execute a scheduled job once.

        Failures are logged and counted; the scheduler keeps running.

        Args:
            job_id: ID of the job to execute.

        Returns:
            The job's return value, or None if it failed or is disabled.
        """
        job = self._jobs.get(job_id)
        if not job or not job.enabled:
            return None

        logger.debug("Executing scheduled job: %s", job.name)

        try:
            result = await job.func()
        except Exception as e:
            job.error_count += 1
            logger.error("Scheduled job %s failed: %s", job.name, e, exc_info=True)
            return None

        job.last_run = datetime.now(timezone.utc)
        job.last_result = result
        job.run_count += 1
        return result

    def remove_job(self, job_id: str) -> bool:
        """Remove a scheduled job.

        Args:
            job_id: Job ID to remove.

        Returns:
            True if removed.
        """
        if job_id not in self._jobs:
            return False

        if self._scheduler and self._scheduler.get_job(job_id):
            self._scheduler.remove_job(job_id)

        del self._jobs[job_id]
        del self._triggers[job_id]
        logger.info("Removed scheduled job: %s", job_id)
        return True

    def get_job(self, job_id: str) -> ScheduledJob | None:
        """Get a scheduled job by ID."""
        return self._jobs.get(job_id)

    def list_jobs(self) -> list[ScheduledJob]:
        """List all scheduled jobs."""
        return list(self._jobs.values())

    async def start(self) -> None:
        """Start the scheduler."""
        if self._running:
            return

        self._scheduler = AsyncIOScheduler(timezone=timezone.utc)
        for job in self._jobs.values():
            if job.enabled:
                self._schedule(job)
        self._scheduler.start()
        self._running = True

        logger.info("Job scheduler started with %d job(s)", len(self._jobs))

    async def stop(self) -> None:
        """Stop the scheduler."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        self._running = False
        logger.info("Job scheduler stopped")

    def get_stats(self) -> dict[str, Any]:
        """Get scheduler statistics.

        Returns:
            Statistics dictionary.
        """
        return {
            "is_running": self._running,
            "job_count": len(self._jobs),
            "enabled_count": sum(1 for j in self._jobs.values() if j.enabled),
            "total_runs": sum(j.run_count for j in self._jobs.values()),
            "total_errors": sum(j.error_count for j in self._jobs.values()),
            "jobs": [j.to_dict() for j in self._jobs.values()],
        }


# Singleton instance
_scheduler: JobScheduler | None = None


def get_scheduler() -> JobScheduler:
    """Get the singleton scheduler instance.

    Returns:
        JobScheduler instance.
    """
    global _scheduler
    if _scheduler is None:
        _scheduler = JobScheduler()
    return _scheduler


async def start_scheduler(settings: Settings) -> JobScheduler:
    """Start the scheduler and register default jobs.

    Args:
        settings: Application settings.

    Returns:
        Started scheduler instance.
    """
    from src.infrastructure.background.jobs import execute_lifecycle_sync

    scheduler = get_scheduler()

    if settings.lifecycle_sync.enabled:
        scheduler.add_interval_job(
            name="Section Lifecycle Sync",
            func=execute_lifecycle_sync,
            minutes=settings.lifecycle_sync.interval_minutes,
            start_immediately=True,
        )

    await scheduler.start()
    logger.info("Registered %d default scheduled jobs", len(scheduler.list_jobs()))

    return scheduler


async def stop_scheduler() -> None:
    """Stop the scheduler."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None
