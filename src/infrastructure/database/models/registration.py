# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration and per-student term load models."""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.registration import ACTIVE_STATUSES, RegistrationStatus

_ACTIVE_STATUS_SQL = "status IN ('pending', 'approved')"


class Registration(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A student's enrollment record against one section within one term.

    Rows are never deleted. The rejection request is a sub-state that is
    only meaningful while the registration is pending.
    """

    __tablename__ = "registrations"
    __table_args__ = (
        Index(
            "uq_registrations_active_subject",
            "student_id",
            "term_id",
            "subject_id",
            unique=True,
            postgresql_where=text(_ACTIVE_STATUS_SQL),
            sqlite_where=text(_ACTIVE_STATUS_SQL),
        ),
        Index("ix_registrations_student_term", "student_id", "term_id"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    section_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sections.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    term_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("terms.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    subject_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False
    )
    credits: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RegistrationStatus.PENDING.value, index=True
    )

    approved_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    dropped_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    dropped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    rejection_requested: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    rejection_request_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_requested_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    rejection_requested_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    has_schedule_conflict: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    conflict_slots: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    replaces_registration_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("registrations.id", ondelete="SET NULL"), nullable=True
    )

    @property
    def state(self) -> RegistrationStatus:
        return RegistrationStatus(self.status)

    @property
    def is_active(self) -> bool:
        return self.state in ACTIVE_STATUSES

    def clear_rejection_request(self) -> None:
        self.rejection_requested = False
        self.rejection_request_reason = None
        self.rejection_requested_by = None
        self.rejection_requested_at = None

    def __repr__(self) -> str:
        return f"<Registration {self.id} {self.status}>"


class StudentTermLoad(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Credit aggregate of one student in one term.

    credits is the sum of the student's active registrations and is only
    changed through conditional UPDATE statements. dropped_count and
    dropped_credits track manual drops; cancellations are not counted.
    """

    __tablename__ = "student_term_loads"
    __table_args__ = (
        UniqueConstraint("student_id", "term_id", name="uq_student_term_loads_student_term"),
        CheckConstraint("credits >= 0", name="credits_non_negative"),
    )

    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    term_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("terms.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dropped_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dropped_credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<StudentTermLoad {self.student_id}/{self.term_id}: {self.credits}>"
