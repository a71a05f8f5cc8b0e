# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Term domain package.

This package provides academic term management:
- Term creation and editing
- Current term lookup and activation
"""

from src.domains.term.service import (
    InvalidTermError,
    TermCodeExistsError,
    TermNotFoundError,
    TermService,
    TermServiceError,
)

__all__ = [
    "TermService",
    "TermServiceError",
    "TermNotFoundError",
    "TermCodeExistsError",
    "InvalidTermError",
]
