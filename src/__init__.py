"""Registrar Backend.

Scheduling and enrollment engine: section timetables, conflict detection,
credit limits and the registration lifecycle.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
