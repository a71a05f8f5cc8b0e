# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Term request/response models."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field


class TermCreateRequest(BaseModel):
    """Request to create an academic term."""

    name: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=1, max_length=20)
    start_date: date
    end_date: date
    registration_start: datetime
    registration_end: datetime
    withdrawal_deadline: datetime
    min_credits_per_student: int | None = Field(default=None, ge=1)
    max_credits_per_student: int | None = Field(default=None, ge=1)
    is_current: bool = False


class TermUpdateRequest(BaseModel):
    """Request to update an academic term. Omitted fields are unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    start_date: date | None = None
    end_date: date | None = None
    registration_start: datetime | None = None
    registration_end: datetime | None = None
    withdrawal_deadline: datetime | None = None
    min_credits_per_student: int | None = Field(default=None, ge=1)
    max_credits_per_student: int | None = Field(default=None, ge=1)


class TermResponse(BaseModel):
    """Term details."""

    id: UUID
    name: str
    code: str
    start_date: date
    end_date: date
    registration_start: datetime
    registration_end: datetime
    withdrawal_deadline: datetime
    min_credits_per_student: int
    max_credits_per_student: int
    is_current: bool
    is_registration_open: bool
    created_at: datetime | None = None


class TermListResponse(BaseModel):
    """List of terms."""

    items: list[TermResponse]
    total: int


class StudentCreditSummary(BaseModel):
    """Credit load of one student within a term."""

    student_id: UUID
    active_credits: int
    completed_credits: int
    dropped_count: int
    below_minimum: bool


class CreditReportResponse(BaseModel):
    """Per-student credit report for a term."""

    term_id: UUID
    min_credits_per_student: int
    max_credits_per_student: int
    students: list[StudentCreditSummary]
    below_minimum_count: int
