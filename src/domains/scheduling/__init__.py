# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scheduling domain package.

Classroom, teacher and student timetable conflict detection.
"""

from src.domains.scheduling.conflicts import (
    ClassroomConflictError,
    CommittedSlot,
    Conflict,
    ProposedSlot,
    ScheduleConflictError,
    ScheduleIndex,
    StudentSlot,
    TeacherConflictError,
    find_conflicts,
    find_internal_conflicts,
    find_student_overlaps,
    slot_label,
    validate_schedule,
)

__all__ = [
    "ClassroomConflictError",
    "CommittedSlot",
    "Conflict",
    "ProposedSlot",
    "ScheduleConflictError",
    "ScheduleIndex",
    "StudentSlot",
    "TeacherConflictError",
    "find_conflicts",
    "find_internal_conflicts",
    "find_student_overlaps",
    "slot_label",
    "validate_schedule",
]
