# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for the Registrar engine.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from src.utils.datetime import (
    days_from_now,
    ensure_utc,
    now,
    to_utc_date,
    utc_now,
)
from src.utils.logging import bind_context, clear_context, get_logger, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "now",
    "ensure_utc",
    "to_utc_date",
    "days_from_now",
]
