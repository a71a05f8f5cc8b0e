# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Term service for managing academic terms.

This module provides the TermService class for:
- Term creation and editing with date/credit validation
- Current term lookup
- Atomic current-term activation (demote old, promote new)
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import RegistrationSettings, get_settings
from src.core.errors import RegistrarError
from src.infrastructure.database.models import Term
from src.models.common import ErrorKind
from src.models.term import (
    TermCreateRequest,
    TermListResponse,
    TermResponse,
    TermUpdateRequest,
)
from src.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


class TermServiceError(RegistrarError):
    """Base exception for term service errors."""

    kind = ErrorKind.INVALID_REQUEST


class TermNotFoundError(TermServiceError):
    """Raised when term is not found."""

    kind = ErrorKind.NOT_FOUND


class TermCodeExistsError(TermServiceError):
    """Raised when a term code is already used."""

    pass


class InvalidTermError(TermServiceError):
    """Raised when term dates or credit limits are inconsistent."""

    pass


def validate_term_fields(
    start_date,
    end_date,
    registration_start,
    registration_end,
    withdrawal_deadline,
    min_credits: int,
    max_credits: int,
) -> None:
    """Check the ordering rules a term must satisfy.

    Raises:
        InvalidTermError: On the first violated rule.
    """
    if end_date <= start_date:
        raise InvalidTermError("End date must be after start date")
    if ensure_utc(registration_end) <= ensure_utc(registration_start):
        raise InvalidTermError("Registration end must be after registration start")
    if ensure_utc(withdrawal_deadline).date() > end_date:
        raise InvalidTermError("Withdrawal deadline must not be after the term end date")
    if min_credits > max_credits:
        raise InvalidTermError(
            "Minimum credits per student cannot exceed maximum credits per student"
        )


class TermService:
    """Service for managing academic terms.

    Terms are read-only configuration for the registration engine; this
    service is their only writer.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: RegistrationSettings | None = None,
    ) -> None:
        """Initialize term service.

        Args:
            db: Async database session.
            settings: Registration settings supplying default credit limits.
        """
        self.db = db
        self.settings = settings or get_settings().registration

    async def create_term(self, request: TermCreateRequest) -> TermResponse:
        """Create a new term.

        Args:
            request: Term creation data.

        Returns:
            Created term.

        Raises:
            InvalidTermError: If dates or credit limits are inconsistent.
            TermCodeExistsError: If the code is already used.
        """
        code = request.code.strip().upper()
        min_credits = request.min_credits_per_student or self.settings.default_min_credits
        max_credits = request.max_credits_per_student or self.settings.default_max_credits

        validate_term_fields(
            request.start_date,
            request.end_date,
            request.registration_start,
            request.registration_end,
            request.withdrawal_deadline,
            min_credits,
            max_credits,
        )

        existing = await self.db.execute(select(Term.id).where(Term.code == code))
        if existing.scalar_one_or_none():
            raise TermCodeExistsError(f"Term code {code} already exists")

        if request.is_current:
            await self._unset_current_term()

        term = Term(
            name=request.name.strip(),
            code=code,
            start_date=request.start_date,
            end_date=request.end_date,
            registration_start=ensure_utc(request.registration_start),
            registration_end=ensure_utc(request.registration_end),
            withdrawal_deadline=ensure_utc(request.withdrawal_deadline),
            min_credits_per_student=min_credits,
            max_credits_per_student=max_credits,
            is_current=request.is_current,
        )

        self.db.add(term)
        await self.db.commit()
        await self.db.refresh(term)

        logger.info("Created term: %s (%s)", term.code, term.id)

        return self._to_response(term)

    async def update_term(self, term_id: UUID, request: TermUpdateRequest) -> TermResponse:
        """Update a term.

        Args:
            term_id: Term identifier.
            request: Update data; omitted fields keep their values.

        Returns:
            Updated term.

        Raises:
            TermNotFoundError: If term not found.
            InvalidTermError: If the resulting term is inconsistent.
        """
        term = await self._get_by_id(term_id)
        changes = request.model_dump(exclude_none=True)

        merged = {
            field: changes.get(field, getattr(term, field))
            for field in (
                "start_date",
                "end_date",
                "registration_start",
                "registration_end",
                "withdrawal_deadline",
                "min_credits_per_student",
                "max_credits_per_student",
            )
        }
        validate_term_fields(
            merged["start_date"],
            merged["end_date"],
            merged["registration_start"],
            merged["registration_end"],
            merged["withdrawal_deadline"],
            merged["min_credits_per_student"],
            merged["max_credits_per_student"],
        )

        for field, value in changes.items():
            if field in ("registration_start", "registration_end", "withdrawal_deadline"):
                value = ensure_utc(value)
            setattr(term, field, value)

        await self.db.commit()
        await self.db.refresh(term)

        logger.info("Updated term: %s", term_id)

        return self._to_response(term)

    async def get_term(self, term_id: UUID) -> TermResponse:
        """Get term by ID.

        Raises:
            TermNotFoundError: If term not found.
        """
        term = await self._get_by_id(term_id)
        return self._to_response(term)

    async def list_terms(self) -> TermListResponse:
        """List all terms, newest first."""
        result = await self.db.execute(select(Term).order_by(Term.start_date.desc()))
        terms = result.scalars().all()

        total_result = await self.db.execute(select(func.count()).select_from(Term))
        total = total_result.scalar() or 0

        return TermListResponse(items=[self._to_response(t) for t in terms], total=total)

    async def get_current_term(self) -> TermResponse | None:
        """Get the current term.

        Returns:
            Current term or None if no term is current.
        """
        term = await self.get_current_term_model()
        return self._to_response(term) if term else None

    async def get_current_term_model(self) -> Term | None:
        """Get the current term ORM row, if any."""
        result = await self.db.execute(select(Term).where(Term.is_current == True))
        return result.scalar_one_or_none()

    async def activate_term(self, term_id: UUID) -> TermResponse:
        """Make a term the current one.

        The target row is locked, every other current term is demoted and the
        target promoted in one transaction.

        Args:
            term_id: Term identifier.

        Returns:
            The now-current term.

        Raises:
            TermNotFoundError: If term not found.
        """
        result = await self.db.execute(
            select(Term).where(Term.id == str(term_id)).with_for_update()
        )
        term = result.scalar_one_or_none()
        if not term:
            raise TermNotFoundError(f"Term {term_id} not found")

        try:
            await self.db.execute(
                update(Term)
                .where(Term.is_current == True, Term.id != term.id)
                .values(is_current=False)
            )
            term.is_current = True
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(term)

        logger.info("Activated term %s as current", term.code)

        return self._to_response(term)

    async def _get_by_id(self, term_id: UUID | str) -> Term:
        """Get term by ID.

        Raises:
            TermNotFoundError: If not found.
        """
        result = await self.db.execute(select(Term).where(Term.id == str(term_id)))
        term = result.scalar_one_or_none()

        if not term:
            raise TermNotFoundError(f"Term {term_id} not found")

        return term

    async def _unset_current_term(self) -> None:
        """Unset any current term."""
        await self.db.execute(
            update(Term).where(Term.is_current == True).values(is_current=False)
        )

    def _to_response(self, term: Term) -> TermResponse:
        return TermResponse(
            id=UUID(term.id),
            name=term.name,
            code=term.code,
            start_date=term.start_date,
            end_date=term.end_date,
            registration_start=ensure_utc(term.registration_start),
            registration_end=ensure_utc(term.registration_end),
            withdrawal_deadline=ensure_utc(term.withdrawal_deadline),
            min_credits_per_student=term.min_credits_per_student,
            max_credits_per_student=term.max_credits_per_student,
            is_current=term.is_current,
            is_registration_open=term.is_registration_open(),
            created_at=ensure_utc(term.created_at),
        )
