# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Term service."""

from datetime import date, datetime, timezone
from uuid import UUID, uuid4

import pytest

from src.domains.term.service import (
    InvalidTermError,
    TermCodeExistsError,
    TermNotFoundError,
    TermService,
)
from src.models.common import ErrorKind
from src.models.term import TermCreateRequest, TermUpdateRequest


@pytest.fixture
def term_service(db, registration_settings):
    """Create term service over the test database."""
    return TermService(db, registration_settings)


def make_request(code: str = "2025F", **overrides) -> TermCreateRequest:
    data = {
        "name": "Fall 2025",
        "code": code,
        "start_date": date(2025, 9, 1),
        "end_date": date(2025, 12, 19),
        "registration_start": datetime(2025, 8, 1, tzinfo=timezone.utc),
        "registration_end": datetime(2025, 8, 25, tzinfo=timezone.utc),
        "withdrawal_deadline": datetime(2025, 10, 15, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return TermCreateRequest(**data)


class TestTermServiceCreate:
    """Tests for term creation."""

    async def test_create_term_uses_default_credit_limits(self, term_service):
        """Test credit limits default from settings."""
        term = await term_service.create_term(make_request(code=" 2025f "))

        assert term.code == "2025F"
        assert term.min_credits_per_student == 8
        assert term.max_credits_per_student == 16
        assert term.is_current is False
        assert term.is_registration_open is False
        assert term.registration_start.tzinfo is not None

    async def test_create_term_with_explicit_limits(self, term_service):
        """Test explicit credit limits are kept."""
        term = await term_service.create_term(
            make_request(min_credits_per_student=6, max_credits_per_student=20)
        )

        assert term.min_credits_per_student == 6
        assert term.max_credits_per_student == 20

    async def test_duplicate_code(self, term_service):
        """Test term codes are unique."""
        await term_service.create_term(make_request())

        with pytest.raises(TermCodeExistsError):
            await term_service.create_term(make_request())

    @pytest.mark.parametrize(
        "overrides",
        [
            {"end_date": date(2025, 9, 1)},
            {"registration_end": datetime(2025, 7, 1, tzinfo=timezone.utc)},
            {"withdrawal_deadline": datetime(2026, 1, 15, tzinfo=timezone.utc)},
            {"min_credits_per_student": 18, "max_credits_per_student": 16},
        ],
    )
    async def test_invalid_terms_rejected(self, term_service, overrides):
        """Test date ordering and credit range rules."""
        with pytest.raises(InvalidTermError) as exc_info:
            await term_service.create_term(make_request(**overrides))

        assert exc_info.value.kind == ErrorKind.INVALID_REQUEST

    async def test_create_current_term_demotes_previous(self, term_service):
        """Test a new current term replaces the old one."""
        first = await term_service.create_term(make_request(code="2025F", is_current=True))
        second = await term_service.create_term(make_request(code="2026S", is_current=True))

        current = await term_service.get_current_term()

        assert current.id == second.id
        assert (await term_service.get_term(first.id)).is_current is False


class TestTermServiceQueries:
    """Tests for term lookup and update."""

    async def test_get_term_not_found(self, term_service):
        """Test unknown ids raise not found."""
        with pytest.raises(TermNotFoundError) as exc_info:
            await term_service.get_term(uuid4())

        assert exc_info.value.kind == ErrorKind.NOT_FOUND

    async def test_current_term_none(self, term_service):
        """Test no current term yields None."""
        await term_service.create_term(make_request())

        assert await term_service.get_current_term() is None

    async def test_list_terms_newest_first(self, term_service):
        """Test terms are listed by start date, newest first."""
        await term_service.create_term(make_request(code="2025F"))
        await term_service.create_term(
            make_request(
                code="2026S",
                start_date=date(2026, 1, 12),
                end_date=date(2026, 5, 8),
                withdrawal_deadline=datetime(2026, 3, 1, tzinfo=timezone.utc),
            )
        )

        terms = await term_service.list_terms()

        assert terms.total == 2
        assert [t.code for t in terms.items] == ["2026S", "2025F"]

    async def test_update_term(self, term_service):
        """Test partial updates keep omitted fields."""
        term = await term_service.create_term(make_request())

        updated = await term_service.update_term(
            term.id, TermUpdateRequest(name="Autumn 2025", max_credits_per_student=18)
        )

        assert updated.name == "Autumn 2025"
        assert updated.max_credits_per_student == 18
        assert updated.start_date == term.start_date

    async def test_update_validates_merged_term(self, term_service):
        """Test an update that breaks ordering is rejected."""
        term = await term_service.create_term(make_request())

        with pytest.raises(InvalidTermError):
            await term_service.update_term(
                term.id, TermUpdateRequest(min_credits_per_student=30)
            )


class TestTermServiceActivate:
    """Tests for current term activation."""

    async def test_activate_switches_current(self, term_service):
        """Test activation demotes the previous current term atomically."""
        first = await term_service.create_term(make_request(code="2025F", is_current=True))
        second = await term_service.create_term(make_request(code="2026S"))

        activated = await term_service.activate_term(second.id)

        assert activated.is_current is True
        assert (await term_service.get_term(first.id)).is_current is False
        current = await term_service.get_current_term()
        assert current.id == second.id

    async def test_activate_is_idempotent(self, term_service):
        """Test re-activating the current term keeps it current."""
        term = await term_service.create_term(make_request(is_current=True))

        activated = await term_service.activate_term(term.id)

        assert activated.is_current is True
        assert isinstance(activated.id, UUID)

    async def test_activate_unknown_term(self, term_service):
        """Test activating an unknown term raises not found."""
        with pytest.raises(TermNotFoundError):
            await term_service.activate_term(uuid4())
