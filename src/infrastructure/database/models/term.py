# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic term model."""

from datetime import date, datetime

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.utils.datetime import ensure_utc, utc_now


class Term(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """An academic period with its own registration window and credit limits.

    At most one term has is_current set. Terms are never hard-deleted while
    registrations reference them.
    """

    __tablename__ = "terms"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="date_range"),
        CheckConstraint("registration_end > registration_start", name="registration_window"),
        CheckConstraint(
            "min_credits_per_student <= max_credits_per_student", name="credit_range"
        ),
        Index(
            "uq_terms_single_current",
            "is_current",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current = 1"),
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    registration_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    registration_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    # Informational only; student drops follow the registration window
    withdrawal_deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    min_credits_per_student: Mapped[int] = mapped_column(Integer, nullable=False, default=8)
    max_credits_per_student: Mapped[int] = mapped_column(Integer, nullable=False, default=16)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    def is_registration_open(self, now: datetime | None = None) -> bool:
        """Check whether registration_start <= now <= registration_end."""
        now = ensure_utc(now) if now is not None else utc_now()
        return ensure_utc(self.registration_start) <= now <= ensure_utc(self.registration_end)

    def __repr__(self) -> str:
        return f"<Term {self.code}{' (current)' if self.is_current else ''}>"
