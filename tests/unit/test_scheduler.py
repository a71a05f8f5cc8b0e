# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the job scheduler and the lifecycle sync job."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import update

from src.core.config.settings import LifecycleSyncSettings, Settings
from src.infrastructure.background import jobs
from src.infrastructure.background.scheduler import (
    JobScheduler,
    start_scheduler,
    stop_scheduler,
)
from src.infrastructure.database.models import Section

MON = 2


class TestJobScheduler:
    """Tests for job registration and execution."""

    async def test_run_job_records_result(self):
        """Test a successful run is counted and its result kept."""
        scheduler = JobScheduler()
        func = AsyncMock(return_value={"changed_count": 2})
        job = scheduler.add_interval_job(name="Sync", func=func, minutes=5)

        result = await scheduler.run_job(job.id)

        assert result == {"changed_count": 2}
        assert job.run_count == 1
        assert job.error_count == 0
        assert job.last_result == {"changed_count": 2}
        assert job.last_run is not None
        func.assert_awaited_once()

    async def test_run_job_counts_errors(self):
        """Test a failing job is logged and counted without raising."""
        scheduler = JobScheduler()
        job = scheduler.add_interval_job(
            name="Broken", func=AsyncMock(side_effect=RuntimeError("boom")), seconds=30
        )

        result = await scheduler.run_job(job.id)

        assert result is None
        assert job.error_count == 1
        assert job.run_count == 0
        assert scheduler.get_stats()["total_errors"] == 1

    async def test_disabled_job_is_skipped(self):
        """Test disabled jobs do not run."""
        scheduler = JobScheduler()
        func = AsyncMock()
        job = scheduler.add_interval_job(name="Off", func=func, hours=1, enabled=False)

        assert await scheduler.run_job(job.id) is None
        func.assert_not_awaited()
        assert scheduler.get_stats()["enabled_count"] == 0

    async def test_unknown_job(self):
        """Test running an unknown id is a no-op."""
        assert await JobScheduler().run_job("missing") is None

    def test_interval_must_be_positive(self):
        """Test a zero interval is rejected."""
        with pytest.raises(ValueError):
            JobScheduler().add_interval_job(name="Never", func=AsyncMock())

    def test_cron_expression_validated(self):
        """Test cron expressions need five fields."""
        scheduler = JobScheduler()

        with pytest.raises(ValueError):
            scheduler.add_cron_job(name="Bad", func=AsyncMock(), cron_expression="0 3 * *")

        job = scheduler.add_cron_job(name="Nightly", func=AsyncMock(), cron_expression="0 3 * * *")
        assert scheduler.get_job(job.id) is job

    def test_remove_job(self):
        """Test removed jobs disappear from the listing."""
        scheduler = JobScheduler()
        job = scheduler.add_interval_job(name="Temp", func=AsyncMock(), minutes=1)

        assert scheduler.remove_job(job.id) is True
        assert scheduler.remove_job(job.id) is False
        assert scheduler.list_jobs() == []

    async def test_start_and_stop(self):
        """Test the scheduler starts on the running loop and stops cleanly."""
        scheduler = JobScheduler()
        scheduler.add_interval_job(name="Sync", func=AsyncMock(), minutes=15)

        await scheduler.start()
        assert scheduler.is_running
        assert scheduler.get_stats()["job_count"] == 1

        await scheduler.stop()
        assert not scheduler.is_running


class TestStartScheduler:
    """Tests for default job registration."""

    async def test_registers_lifecycle_sync(self, monkeypatch):
        """Test the lifecycle sync job is registered when enabled."""
        monkeypatch.setattr(jobs, "execute_lifecycle_sync", AsyncMock(return_value={}))
        settings = Settings(lifecycle_sync=LifecycleSyncSettings(enabled=True, interval_minutes=5))

        scheduler = await start_scheduler(settings)
        try:
            assert scheduler.is_running
            assert [job.name for job in scheduler.list_jobs()] == ["Section Lifecycle Sync"]
        finally:
            await stop_scheduler()

    async def test_disabled_lifecycle_sync(self):
        """Test no job is registered when the sync is disabled."""
        settings = Settings(lifecycle_sync=LifecycleSyncSettings(enabled=False))

        scheduler = await start_scheduler(settings)
        try:
            assert scheduler.list_jobs() == []
        finally:
            await stop_scheduler()


class TestLifecycleSyncJob:
    """Tests for the lifecycle sync job body."""

    async def test_job_sweeps_current_term(self, monkeypatch, make_section, db, seed):
        """Test the job deactivates teacherless sections of the current term."""
        section = await make_section(seed.math, [(MON, 1, seed.room_a)])
        await db.execute(
            update(Section).where(Section.id == str(section.id)).values(teacher_id=None)
        )
        await db.commit()

        @asynccontextmanager
        async def session_override():
            yield db

        monkeypatch.setattr(jobs, "get_session", session_override)

        stats = await jobs.execute_lifecycle_sync()

        assert stats == {
            "term_id": seed.term.id,
            "changed_count": 1,
            "cancelled_registrations": 0,
        }
