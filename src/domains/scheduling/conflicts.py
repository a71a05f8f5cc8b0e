# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Conflict detection over weekly recurring schedule slots.

Two kinds of checks live here:
- Hard-blocking resource checks run when a section is created or edited:
  a (weekday, period, classroom) key and a (weekday, period, teacher) key
  must each be unique across the active sections of a term, and inside
  the proposal itself.
- An advisory student timetable check run after registration changes:
  any two of a student's active sections sharing a (weekday, period) are
  reported so the registrations can be flagged.

All checks build a map of occupied keys from committed state once and test
each candidate key for membership.
"""

from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Iterable, Sequence

from src.core.errors import RegistrarError
from src.models.common import ErrorKind, Weekday

SlotKey = tuple[Weekday, int, str]


@dataclass(frozen=True)
class ProposedSlot:
    """A slot in a section create/edit request."""

    weekday: Weekday
    period: int
    classroom_id: str


@dataclass(frozen=True)
class CommittedSlot:
    """A slot of an active section already stored in the term."""

    section_id: str
    weekday: Weekday
    period: int
    classroom_id: str
    teacher_id: str | None


@dataclass(frozen=True)
class Conflict:
    """One conflicting key.

    section_id is the clashing committed section, or None when the clash is
    inside the proposal itself.
    """

    kind: ErrorKind
    weekday: Weekday
    period: int
    classroom_id: str | None = None
    teacher_id: str | None = None
    section_id: str | None = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["weekday"] = int(self.weekday)
        return data


class ScheduleConflictError(RegistrarError):
    """Base exception for hard-blocking schedule conflicts."""

    def __init__(self, message: str, conflicts: Sequence[Conflict]):
        self.conflicts = list(conflicts)
        super().__init__(message, {"conflicts": [c.to_dict() for c in self.conflicts]})


class ClassroomConflictError(ScheduleConflictError):
    """Raised when a classroom would be double-booked."""

    kind = ErrorKind.CONFLICT_CLASSROOM


class TeacherConflictError(ScheduleConflictError):
    """Raised when a teacher would be double-booked."""

    kind = ErrorKind.CONFLICT_TEACHER


class ScheduleIndex:
    """Occupied classroom and teacher keys of the active sections in a term.

    Args:
        committed: Slots of the term's active sections.
        exclude_section_id: Section whose own slots are ignored, used when
            editing so an unchanged slot does not clash with itself.
    """

    def __init__(
        self,
        committed: Iterable[CommittedSlot],
        exclude_section_id: str | None = None,
    ) -> None:
        self._classrooms: dict[SlotKey, str] = {}
        self._teachers: dict[SlotKey, str] = {}

        for slot in committed:
            if exclude_section_id is not None and slot.section_id == exclude_section_id:
                continue
            self._classrooms.setdefault(
                (slot.weekday, slot.period, slot.classroom_id), slot.section_id
            )
            if slot.teacher_id:
                self._teachers.setdefault(
                    (slot.weekday, slot.period, slot.teacher_id), slot.section_id
                )

    def __len__(self) -> int:
        return len(self._classrooms)

    def classroom_holder(self, weekday: Weekday, period: int, classroom_id: str) -> str | None:
        """Get the section occupying a classroom key, if any."""
        return self._classrooms.get((weekday, period, classroom_id))

    def teacher_holder(self, weekday: Weekday, period: int, teacher_id: str) -> str | None:
        """Get the section occupying a teacher key, if any."""
        return self._teachers.get((weekday, period, teacher_id))


def find_internal_conflicts(
    proposed: Sequence[ProposedSlot],
    teacher_id: str | None = None,
) -> list[Conflict]:
    """Find clashes inside a single section's proposed slot list.

    Args:
        proposed: Proposed slots.
        teacher_id: Teacher assigned to the section, if any.

    Returns:
        Conflicts in proposal order. A duplicated (weekday, period,
        classroom) is a classroom conflict; a repeated (weekday, period)
        is a teacher conflict when a teacher is assigned.
    """
    conflicts: list[Conflict] = []
    rooms_seen: set[SlotKey] = set()
    times_seen: set[tuple[Weekday, int]] = set()

    for slot in proposed:
        room_key = (slot.weekday, slot.period, slot.classroom_id)
        if room_key in rooms_seen:
            conflicts.append(
                Conflict(
                    kind=ErrorKind.CONFLICT_CLASSROOM,
                    weekday=slot.weekday,
                    period=slot.period,
                    classroom_id=slot.classroom_id,
                )
            )
        rooms_seen.add(room_key)

        if teacher_id:
            time_key = (slot.weekday, slot.period)
            if time_key in times_seen:
                conflicts.append(
                    Conflict(
                        kind=ErrorKind.CONFLICT_TEACHER,
                        weekday=slot.weekday,
                        period=slot.period,
                        teacher_id=teacher_id,
                    )
                )
            times_seen.add(time_key)

    return conflicts


def find_conflicts(
    proposed: Sequence[ProposedSlot],
    index: ScheduleIndex,
    teacher_id: str | None = None,
) -> list[Conflict]:
    """Find every classroom and teacher conflict of a proposal.

    Args:
        proposed: Proposed slots.
        index: Occupied keys of the term, with the edited section excluded.
        teacher_id: Teacher assigned to the section, if any.

    Returns:
        Internal conflicts followed by conflicts against committed sections.
    """
    conflicts = find_internal_conflicts(proposed, teacher_id)

    for slot in proposed:
        holder = index.classroom_holder(slot.weekday, slot.period, slot.classroom_id)
        if holder is not None:
            conflicts.append(
                Conflict(
                    kind=ErrorKind.CONFLICT_CLASSROOM,
                    weekday=slot.weekday,
                    period=slot.period,
                    classroom_id=slot.classroom_id,
                    section_id=holder,
                )
            )
        if teacher_id:
            holder = index.teacher_holder(slot.weekday, slot.period, teacher_id)
            if holder is not None:
                conflicts.append(
                    Conflict(
                        kind=ErrorKind.CONFLICT_TEACHER,
                        weekday=slot.weekday,
                        period=slot.period,
                        teacher_id=teacher_id,
                        section_id=holder,
                    )
                )

    return conflicts


def validate_schedule(
    proposed: Sequence[ProposedSlot],
    index: ScheduleIndex,
    teacher_id: str | None = None,
) -> None:
    """Raise if the proposal collides with itself or the committed schedule.

    Classroom conflicts take precedence in the raised error kind; the
    error carries every conflicting key regardless of kind.

    Raises:
        ClassroomConflictError: If any classroom key is double-booked.
        TeacherConflictError: If only teacher keys are double-booked.
    """
    conflicts = find_conflicts(proposed, index, teacher_id)
    if not conflicts:
        return

    if any(c.kind == ErrorKind.CONFLICT_CLASSROOM for c in conflicts):
        raise ClassroomConflictError(
            f"Classroom already booked for {len(conflicts)} slot(s)", conflicts
        )
    raise TeacherConflictError(
        f"Teacher already booked for {len(conflicts)} slot(s)", conflicts
    )


@dataclass(frozen=True)
class StudentSlot:
    """A weekly slot of a section a student actively holds."""

    registration_id: str
    section_id: str
    weekday: Weekday
    period: int


def slot_label(weekday: Weekday, period: int) -> str:
    """Stable label for a (weekday, period) time key, e.g. "MONDAY/1"."""
    return f"{Weekday(weekday).name}/{period}"


def find_student_overlaps(slots: Iterable[StudentSlot]) -> dict[str, list[str]]:
    """Find registrations whose sections share a (weekday, period).

    Two slots of the same section never overlap each other.

    Args:
        slots: All weekly slots of a student's active registrations in a term.

    Returns:
        Mapping of registration id to its sorted overlapping slot labels.
        Registrations without an overlap are absent.
    """
    by_time: dict[tuple[Weekday, int], list[StudentSlot]] = defaultdict(list)
    for slot in slots:
        by_time[(slot.weekday, slot.period)].append(slot)

    overlaps: dict[str, set[str]] = defaultdict(set)
    for (weekday, period), entries in by_time.items():
        if len({entry.section_id for entry in entries}) < 2:
            continue
        label = slot_label(weekday, period)
        for entry in entries:
            overlaps[entry.registration_id].add(label)

    return {reg_id: sorted(labels) for reg_id, labels in overlaps.items()}
