# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Importing this package registers every table on Base.metadata, which the
migration environment and the test fixtures rely on.
"""

from src.infrastructure.database.models.base import Base, TimestampMixin, generate_uuid
from src.infrastructure.database.models.reference import Classroom, Subject, User
from src.infrastructure.database.models.registration import Registration, StudentTermLoad
from src.infrastructure.database.models.section import ScheduleSlot, Section
from src.infrastructure.database.models.term import Term

__all__ = [
    "Base",
    "Classroom",
    "Registration",
    "ScheduleSlot",
    "Section",
    "StudentTermLoad",
    "Subject",
    "Term",
    "TimestampMixin",
    "User",
    "generate_uuid",
]
