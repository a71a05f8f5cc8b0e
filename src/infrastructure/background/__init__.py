# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background job infrastructure.

Periodic jobs run on APScheduler inside the API process:
- Section lifecycle sync (deactivates sections without a teacher)

Scheduler:
    from src.infrastructure.background import start_scheduler, stop_scheduler

    # Start scheduler with default jobs
    await start_scheduler(settings)

    # Stop at shutdown
    await stop_scheduler()
"""

from src.infrastructure.background.scheduler import (
    JobScheduler,
    ScheduledJob,
    get_scheduler,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "JobScheduler",
    "ScheduledJob",
    "get_scheduler",
    "start_scheduler",
    "stop_scheduler",
]
