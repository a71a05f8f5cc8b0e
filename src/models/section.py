# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Section and schedule request/response models.

Weekdays are normalized to the Weekday enum here, so the services never
see the raw numeric or string forms accepted on the wire.
"""

from datetime import date, datetime, time
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.models.common import Weekday


class ScheduleSlotInput(BaseModel):
    """One weekly recurring (weekday, period, classroom) assignment."""

    weekday: Weekday = Field(description="2=Monday ... 7=Saturday, 8=Sunday")
    period: int = Field(ge=1, le=4)
    classroom_id: UUID

    @field_validator("weekday", mode="before")
    @classmethod
    def normalize_weekday(cls, value: Any) -> Weekday:
        """Accept ints, numeric strings and day names."""
        return Weekday.parse(value)


class ScheduleSlotResponse(BaseModel):
    """A schedule slot as stored."""

    weekday: Weekday
    period: int
    classroom_id: UUID
    classroom_code: str | None = None


class SectionCreateRequest(BaseModel):
    """Request to create a section."""

    term_id: UUID
    subject_id: UUID
    class_code: str = Field(min_length=1, max_length=20)
    teacher_id: UUID | None = None
    max_students: int = Field(ge=1)
    slots: list[ScheduleSlotInput] = Field(min_length=1)


class SectionUpdateRequest(BaseModel):
    """Request to edit a section.

    Omitted fields are unchanged. Passing teacher_id explicitly as null
    removes the assigned teacher.
    """

    max_students: int | None = Field(default=None, ge=1)
    teacher_id: UUID | None = None
    slots: list[ScheduleSlotInput] | None = Field(default=None, min_length=1)
    is_active: bool | None = None
    status_note: str | None = Field(default=None, max_length=500)

    def teacher_changed(self) -> bool:
        """Whether the request touches the teacher assignment."""
        return "teacher_id" in self.model_fields_set


class SectionResponse(BaseModel):
    """Section details."""

    id: UUID
    term_id: UUID
    subject_id: UUID
    subject_code: str | None = None
    subject_credits: int | None = None
    class_code: str
    teacher_id: UUID | None
    max_students: int
    current_students: int
    available_seats: int
    is_active: bool
    status_note: str | None
    slots: list[ScheduleSlotResponse]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SectionListResponse(BaseModel):
    """List of sections."""

    items: list[SectionResponse]
    total: int
    limit: int
    offset: int


class ScheduleOccurrence(BaseModel):
    """One dated occurrence of a section's weekly slot."""

    date: date
    weekday: Weekday
    period: int
    start_time: time
    end_time: time
    classroom_id: UUID
    classroom_code: str | None = None
    teacher_id: UUID | None = None
    week_number: int
    week_start: date
    week_end: date


class ExpandedScheduleResponse(BaseModel):
    """Calendar expansion of a section over its term."""

    section_id: UUID
    term_id: UUID
    occurrences: list[ScheduleOccurrence]
    total: int


class LifecycleSyncResponse(BaseModel):
    """Result of a section lifecycle sweep."""

    term_id: UUID | None
    changed_count: int
    cancelled_registrations: int = 0
