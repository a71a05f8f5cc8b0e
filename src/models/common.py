# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Common types shared across the scheduling and enrollment models.

This module defines the enumerations used at the data-model boundary:
- ErrorKind: the error taxonomy returned to callers
- Weekday: the fixed weekday numbering used by schedule slots
- ActorRole / Actor: who is triggering an operation

Weekday numbering:
    2 = Monday, 3 = Tuesday, ..., 7 = Saturday, 8 = Sunday.
    Day 1 is unused. Python's date.weekday() is Monday=0, so
    Weekday.value == date.weekday() + 2.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from enum import Enum, IntEnum


class ErrorKind(str, Enum):
    """Kinds of errors returned by the engine."""

    CONFLICT_CLASSROOM = "CONFLICT_CLASSROOM"
    CONFLICT_TEACHER = "CONFLICT_TEACHER"
    SECTION_FULL = "SECTION_FULL"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    CREDIT_LIMIT_EXCEEDED = "CREDIT_LIMIT_EXCEEDED"
    SUBJECT_DUPLICATE = "SUBJECT_DUPLICATE"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    INVALID_REQUEST = "INVALID_REQUEST"


_WEEKDAY_NAMES = {
    "monday": 2,
    "tuesday": 3,
    "wednesday": 4,
    "thursday": 5,
    "friday": 6,
    "saturday": 7,
    "sunday": 8,
}


class Weekday(IntEnum):
    """Day of week for a recurring schedule slot (2=Monday ... 8=Sunday)."""

    MONDAY = 2
    TUESDAY = 3
    WEDNESDAY = 4
    THURSDAY = 5
    FRIDAY = 6
    SATURDAY = 7
    SUNDAY = 8

    @property
    def python_weekday(self) -> int:
        """Weekday in Python's date.weekday() numbering (Monday=0)."""
        return self.value - 2

    @property
    def label(self) -> str:
        """Human readable name, e.g. "Monday"."""
        return self.name.capitalize()

    @classmethod
    def from_date(cls, day: date) -> Weekday:
        """Get the weekday a calendar date falls on."""
        return cls(day.weekday() + 2)

    @classmethod
    def parse(cls, value: object) -> Weekday:
        """Normalize a loosely typed weekday into the enum.

        Accepts an existing Weekday, an int in 2..8, a numeric string,
        or an English day name / three-letter abbreviation.

        Args:
            value: Raw weekday value.

        Returns:
            Normalized Weekday.

        Raises:
            ValueError: If the value does not name a weekday.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid weekday: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            text = value.strip().lower()
            if text.isdigit():
                return cls(int(text))
            for name, number in _WEEKDAY_NAMES.items():
                if text == name or (len(text) == 3 and name.startswith(text)):
                    return cls(number)
        raise ValueError(f"Invalid weekday: {value!r}")


# Fixed daily time blocks
PERIOD_TIMES: dict[int, tuple[time, time]] = {
    1: (time(7, 0), time(9, 0)),
    2: (time(9, 0), time(11, 0)),
    3: (time(13, 0), time(15, 0)),
    4: (time(15, 0), time(17, 0)),
}


class ActorRole(str, Enum):
    """Role of the user triggering an operation."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"
    SYSTEM = "system"


@dataclass(frozen=True)
class Actor:
    """Identity of the caller, as resolved by the authentication layer.

    Attributes:
        id: User identifier.
        role: User role.
    """

    id: str
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        """Admins and the system itself may perform admin actions."""
        return self.role in (ActorRole.ADMIN, ActorRole.SYSTEM)

    @property
    def is_teacher(self) -> bool:
        return self.role == ActorRole.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == ActorRole.STUDENT
