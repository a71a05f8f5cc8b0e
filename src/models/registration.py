# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration request/response models."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class RegistrationStatus(str, Enum):
    """Lifecycle states of a registration."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DROPPED = "dropped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = frozenset({RegistrationStatus.PENDING, RegistrationStatus.APPROVED})


class RegisterRequest(BaseModel):
    """Request to register a student in a section."""

    section_id: UUID
    term_id: UUID
    student_id: UUID | None = Field(
        default=None,
        description="Target student. Defaults to the calling student.",
    )


class SwitchRequest(BaseModel):
    """Request to move a registration to another section of the same subject."""

    new_section_id: UUID
    student_id: UUID | None = Field(
        default=None,
        description="Used only when no prior registration id is given.",
    )


class RejectRequest(BaseModel):
    """Admin rejection. Reason defaults to the teacher's request reason."""

    reason: str | None = Field(default=None, max_length=500)


class RejectionRequestInput(BaseModel):
    """Teacher request for an admin to reject a registration."""

    reason: str = Field(min_length=1, max_length=500)

    @field_validator("reason", mode="before")
    @classmethod
    def strip_reason(cls, value: Any) -> Any:
        """Blank reasons must fail the length check."""
        return value.strip() if isinstance(value, str) else value


class RejectionRequestInfo(BaseModel):
    """Teacher-initiated rejection request awaiting admin action."""

    requested: bool
    reason: str | None = None
    requested_by: str | None = None
    requested_at: datetime | None = None


class RegistrationResponse(BaseModel):
    """Registration details."""

    id: UUID
    student_id: UUID
    section_id: UUID
    term_id: UUID
    subject_id: UUID
    credits: int
    status: RegistrationStatus
    created_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    dropped_by: str | None = None
    dropped_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    completed_at: datetime | None = None
    rejection_request: RejectionRequestInfo
    has_schedule_conflict: bool = False
    conflict_slots: list[str] = Field(default_factory=list)
    replaces_registration_id: UUID | None = None


class RegistrationListResponse(BaseModel):
    """List of registrations."""

    items: list[RegistrationResponse]
    total: int
    limit: int
    offset: int
