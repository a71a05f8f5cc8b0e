# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Calendar domain package.

Pure date arithmetic for expanding weekly schedule slots across a term.
"""

from src.domains.calendar.expander import (
    expand_weekly_dates,
    first_occurrence,
    week_bounds,
    week_number,
)

__all__ = [
    "expand_weekly_dates",
    "first_occurrence",
    "week_bounds",
    "week_number",
]
