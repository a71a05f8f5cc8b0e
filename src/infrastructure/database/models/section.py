# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Section and schedule slot models."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.infrastructure.database.models.reference import Classroom, Subject
from src.models.common import Weekday


class Section(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A scheduled offering of a subject within a term.

    current_students counts active (pending or approved) registrations and
    is only changed through conditional UPDATE statements. is_active can
    only be true while a teacher is assigned.
    """

    __tablename__ = "sections"
    __table_args__ = (
        UniqueConstraint("term_id", "subject_id", "class_code", name="uq_sections_term_subject_code"),
        CheckConstraint("current_students >= 0", name="seats_non_negative"),
        CheckConstraint("current_students <= max_students", name="seats_within_capacity"),
        CheckConstraint("max_students > 0", name="capacity_positive"),
    )

    term_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("terms.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    subject_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    class_code: Mapped[str] = mapped_column(String(20), nullable=False)
    teacher_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    max_students: Mapped[int] = mapped_column(Integer, nullable=False)
    current_students: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    subject: Mapped[Subject] = relationship(lazy="selectin")
    slots: Mapped[list["ScheduleSlot"]] = relationship(
        back_populates="section",
        cascade="all, delete-orphan",
        order_by="ScheduleSlot.position",
        lazy="selectin",
    )

    @property
    def available_seats(self) -> int:
        return max(self.max_students - self.current_students, 0)

    def __repr__(self) -> str:
        return f"<Section {self.class_code} ({self.current_students}/{self.max_students})>"


class ScheduleSlot(UUIDPrimaryKeyMixin, Base):
    """One weekly recurring (weekday, period, classroom) assignment of a section."""

    __tablename__ = "schedule_slots"
    __table_args__ = (
        CheckConstraint("weekday BETWEEN 2 AND 8", name="weekday_range"),
        CheckConstraint("period BETWEEN 1 AND 4", name="period_range"),
    )

    section_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("sections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)
    period: Mapped[int] = mapped_column(Integer, nullable=False)
    classroom_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("classrooms.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    section: Mapped[Section] = relationship(back_populates="slots")
    classroom: Mapped[Classroom] = relationship(lazy="selectin")

    @property
    def day(self) -> Weekday:
        return Weekday(self.weekday)

    def __repr__(self) -> str:
        return f"<ScheduleSlot {self.day.label} P{self.period} @{self.classroom_id}>"
