# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for Registration service."""

import asyncio
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select

from src.core.config.settings import RegistrationSettings
from src.domains.registration.exceptions import (
    CreditLimitExceededError,
    InvalidSwitchError,
    InvalidTransitionError,
    RegistrationClosedError,
    RegistrationForbiddenError,
    RegistrationNotFoundError,
    RegistrationServiceError,
    SectionFullError,
    SubjectDuplicateError,
)
from src.domains.registration.service import RegistrationService
from src.domains.section.service import SectionService
from src.infrastructure.database import create_sessionmaker
from src.infrastructure.database.models import Registration, StudentTermLoad, Term, User
from src.models.common import Actor, ActorRole, ErrorKind
from src.models.registration import ACTIVE_STATUSES, RegistrationStatus, RejectionRequestInput
from src.utils.datetime import ensure_utc, utc_now

MON, TUE, WED, THU, FRI = 2, 3, 4, 5, 6


@pytest.fixture
def service(db, registration_settings):
    """Create registration service over the test database."""
    return RegistrationService(db, registration_settings)


@pytest.fixture
async def sections(make_section, seed):
    """One non-overlapping section per subject plus a second math section."""
    return {
        "math": await make_section(seed.math, [(MON, 1, seed.room_a)]),
        "math_b": await make_section(
            seed.math, [(TUE, 1, seed.room_b)], teacher=seed.other_teacher
        ),
        "physics": await make_section(seed.physics, [(WED, 1, seed.room_a)]),
        "chemistry": await make_section(seed.chemistry, [(THU, 1, seed.room_a)]),
        "biology": await make_section(seed.biology, [(FRI, 1, seed.room_a)]),
        "art": await make_section(seed.art, [(MON, 2, seed.room_a)]),
    }


async def seats(db, section) -> int:
    return (await SectionService(db).get_section(section.id)).current_students


async def term_load(db, student_id: str, term_id: str) -> tuple[int, int]:
    """Credits and dropped count of a student's term load."""
    result = await db.execute(
        select(StudentTermLoad.credits, StudentTermLoad.dropped_count).where(
            StudentTermLoad.student_id == student_id,
            StudentTermLoad.term_id == term_id,
        )
    )
    row = result.one()
    return row.credits, row.dropped_count


class TestRegister:
    """Tests for registering a student."""

    async def test_register_success(self, service, sections, db, seed):
        """Test a registration is pending and claims a seat and credits."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )

        assert registration.status == RegistrationStatus.PENDING
        assert registration.student_id == UUID(seed.student.id)
        assert registration.subject_id == UUID(seed.math.id)
        assert registration.credits == 4
        assert registration.rejection_request.requested is False
        assert registration.has_schedule_conflict is False
        assert await seats(db, sections["math"]) == 1
        assert await term_load(db, seed.student.id, seed.term.id) == (4, 0)

    async def test_credit_limit_reached_exactly(self, service, sections, db, seed):
        """Test 12 + 4 credits fits a 16 credit limit."""
        student = seed.actor(seed.student)
        for name in ("math", "physics", "chemistry"):
            await service.register(None, sections[name].id, seed.term.id, student)

        await service.register(None, sections["biology"].id, seed.term.id, student)

        assert await term_load(db, seed.student.id, seed.term.id) == (16, 0)

    async def test_credit_limit_exceeded(self, service, sections, db, seed):
        """Test 13 + 4 credits is refused and nothing changes."""
        student = seed.actor(seed.student)
        for name in ("math", "physics", "chemistry", "art"):
            await service.register(None, sections[name].id, seed.term.id, student)

        with pytest.raises(CreditLimitExceededError) as exc_info:
            await service.register(None, sections["biology"].id, seed.term.id, student)

        error = exc_info.value
        assert error.kind == ErrorKind.CREDIT_LIMIT_EXCEEDED
        assert error.details["current_credits"] == 13
        assert error.details["requested_credits"] == 4
        assert error.details["max_credits"] == 16
        assert await seats(db, sections["biology"]) == 0
        assert await term_load(db, seed.student.id, seed.term.id) == (13, 0)

    async def test_section_full(self, service, make_section, db, seed):
        """Test a full section refuses further students."""
        section = await make_section(seed.math, [(MON, 1, seed.room_a)], max_students=1)
        await service.register(None, section.id, seed.term.id, seed.actor(seed.student))

        with pytest.raises(SectionFullError) as exc_info:
            await service.register(
                None, section.id, seed.term.id, seed.actor(seed.other_student)
            )

        assert exc_info.value.kind == ErrorKind.SECTION_FULL
        assert await seats(db, section) == 1

    async def test_inactive_section_refused(self, service, make_section, seed):
        """Test a section without a teacher is not open."""
        section = await make_section(seed.math, [(MON, 1, seed.room_a)], without_teacher=True)

        with pytest.raises(SectionFullError):
            await service.register(None, section.id, seed.term.id, seed.actor(seed.student))

    async def test_closed_window(self, service, sections, close_window, seed):
        """Test students cannot register outside the window."""
        await close_window()

        with pytest.raises(RegistrationClosedError) as exc_info:
            await service.register(
                None, sections["math"].id, seed.term.id, seed.actor(seed.student)
            )

        assert exc_info.value.kind == ErrorKind.REGISTRATION_CLOSED

    async def test_admin_refused_outside_window(self, service, sections, close_window, seed):
        """Test the window binds admins too unless the bypass is enabled."""
        await close_window()

        with pytest.raises(RegistrationClosedError):
            await service.register(
                seed.student.id, sections["math"].id, seed.term.id, seed.actor(seed.admin)
            )

    async def test_admin_bypass_when_enabled(self, db, sections, close_window, seed):
        """Test the opt-in bypass lets admins register after the window closed."""
        await close_window()
        service = RegistrationService(
            db, RegistrationSettings(admin_bypasses_registration_window=True)
        )

        registration = await service.register(
            seed.student.id, sections["math"].id, seed.term.id, seed.actor(seed.admin)
        )

        assert registration.status == RegistrationStatus.PENDING

    async def test_duplicate_subject(self, service, sections, db, seed):
        """Test a second section of a held subject is refused."""
        student = seed.actor(seed.student)
        await service.register(None, sections["math"].id, seed.term.id, student)

        with pytest.raises(SubjectDuplicateError) as exc_info:
            await service.register(None, sections["math_b"].id, seed.term.id, student)

        assert exc_info.value.kind == ErrorKind.SUBJECT_DUPLICATE
        assert await seats(db, sections["math_b"]) == 0
        assert await term_load(db, seed.student.id, seed.term.id) == (4, 0)

    async def test_same_section_twice(self, service, sections, seed):
        """Test registering twice in one section is a duplicate."""
        student = seed.actor(seed.student)
        await service.register(None, sections["math"].id, seed.term.id, student)

        with pytest.raises(SubjectDuplicateError):
            await service.register(None, sections["math"].id, seed.term.id, student)

    async def test_actor_rules(self, service, sections, seed):
        """Test who may register whom."""
        section_id = sections["math"].id

        with pytest.raises(RegistrationForbiddenError):
            await service.register(None, section_id, seed.term.id, seed.actor(seed.teacher))
        with pytest.raises(RegistrationForbiddenError):
            await service.register(
                seed.other_student.id, section_id, seed.term.id, seed.actor(seed.student)
            )
        with pytest.raises(RegistrationServiceError):
            await service.register(None, section_id, seed.term.id, seed.actor(seed.admin))

    async def test_unknown_section(self, service, sections, seed):
        """Test an unknown section raises not found."""
        with pytest.raises(RegistrationServiceError) as exc_info:
            await service.register(None, uuid4(), seed.term.id, seed.actor(seed.student))

        assert exc_info.value.kind == ErrorKind.NOT_FOUND

    async def test_admin_cannot_register_teacher(self, service, sections, seed):
        """Test only student accounts can hold registrations."""
        with pytest.raises(RegistrationServiceError) as exc_info:
            await service.register(
                seed.teacher.id, sections["math"].id, seed.term.id, seed.actor(seed.admin)
            )

        assert exc_info.value.kind == ErrorKind.NOT_FOUND


class TestSwitch:
    """Tests for switching sections of a subject."""

    async def test_switch_moves_seat(self, service, sections, db, seed):
        """Test the old seat is released and the new one claimed."""
        student = seed.actor(seed.student)
        old = await service.register(None, sections["math"].id, seed.term.id, student)

        new = await service.switch_registration(old.id, sections["math_b"].id, student)

        assert new.status == RegistrationStatus.PENDING
        assert new.section_id == sections["math_b"].id
        assert new.replaces_registration_id == old.id
        dropped = await service.get_registration(old.id)
        assert dropped.status == RegistrationStatus.DROPPED
        assert await seats(db, sections["math"]) == 0
        assert await seats(db, sections["math_b"]) == 1
        # A switch is not a manual drop
        assert await term_load(db, seed.student.id, seed.term.id) == (4, 0)

    async def test_switch_at_credit_limit(self, service, sections, db, seed):
        """Test the old credits are released before the new ones are checked."""
        student = seed.actor(seed.student)
        old = await service.register(None, sections["math"].id, seed.term.id, student)
        for name in ("physics", "chemistry", "biology"):
            await service.register(None, sections[name].id, seed.term.id, student)

        await service.switch_registration(old.id, sections["math_b"].id, student)

        assert await term_load(db, seed.student.id, seed.term.id) == (16, 0)

    async def test_failed_switch_keeps_old_registration(
        self, service, make_section, sections, db, seed
    ):
        """Test a switch into a full section leaves everything untouched."""
        full = await make_section(
            seed.math, [(THU, 3, seed.room_c)], teacher=seed.other_teacher, max_students=1
        )
        await service.register(None, full.id, seed.term.id, seed.actor(seed.other_student))
        student = seed.actor(seed.student)
        old = await service.register(None, sections["math"].id, seed.term.id, student)

        with pytest.raises(SectionFullError):
            await service.switch_registration(old.id, full.id, student)

        kept = await service.get_registration(old.id)
        assert kept.status == RegistrationStatus.PENDING
        assert kept.dropped_at is None
        assert await seats(db, sections["math"]) == 1
        assert await seats(db, full) == 1
        assert await term_load(db, seed.student.id, seed.term.id) == (4, 0)

    async def test_switch_by_subject_lookup(self, service, sections, seed):
        """Test a switch without an id finds the held registration of the subject."""
        student = seed.actor(seed.student)
        old = await service.register(None, sections["math"].id, seed.term.id, student)

        new = await service.switch_registration(None, sections["math_b"].id, student)

        assert new.replaces_registration_id == old.id

    async def test_switch_without_prior_registration_registers(self, service, sections, seed):
        """Test a switch into an unheld subject is a plain registration."""
        new = await service.switch_registration(
            None, sections["math_b"].id, seed.actor(seed.student)
        )

        assert new.status == RegistrationStatus.PENDING
        assert new.replaces_registration_id is None

    async def test_switch_to_other_subject_refused(self, service, sections, seed):
        """Test switch targets must be sections of the same subject."""
        student = seed.actor(seed.student)
        old = await service.register(None, sections["math"].id, seed.term.id, student)

        with pytest.raises(InvalidSwitchError):
            await service.switch_registration(old.id, sections["physics"].id, student)
        with pytest.raises(InvalidSwitchError):
            await service.switch_registration(old.id, sections["math"].id, student)

    async def test_switch_other_students_registration_forbidden(self, service, sections, seed):
        """Test students cannot switch someone else's registration."""
        old = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )

        with pytest.raises(RegistrationForbiddenError):
            await service.switch_registration(
                old.id, sections["math_b"].id, seed.actor(seed.other_student)
            )


class TestApprovalAndRejection:
    """Tests for approval and the two-step rejection."""

    async def test_teacher_approves_after_window(self, service, sections, close_window, seed):
        """Test the section's teacher approves once registration closed."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )

        with pytest.raises(RegistrationForbiddenError):
            await service.approve(registration.id, seed.actor(seed.teacher))

        await close_window()
        approved = await service.approve(registration.id, seed.actor(seed.teacher))

        assert approved.status == RegistrationStatus.APPROVED
        assert approved.approved_by == seed.teacher.id
        assert approved.approved_at is not None

    async def test_approve_twice(self, service, sections, seed):
        """Test an approved registration cannot be approved again."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )
        await service.approve(registration.id, seed.actor(seed.admin))

        with pytest.raises(InvalidTransitionError):
            await service.approve(registration.id, seed.actor(seed.admin))

    async def test_two_step_rejection(self, service, sections, db, seed):
        """Test a teacher request followed by an admin rejection."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )

        with pytest.raises(RegistrationForbiddenError):
            await service.reject(registration.id, seed.actor(seed.teacher), "No prerequisite")

        requested = await service.request_rejection(
            registration.id, seed.actor(seed.teacher), "No prerequisite"
        )
        assert requested.status == RegistrationStatus.PENDING
        assert requested.rejection_request.requested is True
        assert requested.rejection_request.reason == "No prerequisite"
        assert requested.rejection_request.requested_by == seed.teacher.id

        rejected = await service.reject(registration.id, seed.actor(seed.admin))

        assert rejected.status == RegistrationStatus.REJECTED
        assert rejected.rejection_reason == "No prerequisite"
        assert rejected.rejected_by == seed.admin.id
        assert rejected.rejection_request.requested is False
        assert await seats(db, sections["math"]) == 0
        assert await term_load(db, seed.student.id, seed.term.id) == (0, 0)

    async def test_reject_requires_reason(self, service, sections, seed):
        """Test an admin rejection without any reason is refused."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )

        with pytest.raises(RegistrationServiceError) as exc_info:
            await service.reject(registration.id, seed.actor(seed.admin), "  ")

        assert exc_info.value.kind == ErrorKind.INVALID_REQUEST

    async def test_blank_rejection_request_refused(self, service, sections, seed):
        """Test a whitespace-only teacher reason is refused and nothing is flagged."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )

        with pytest.raises(ValidationError):
            RejectionRequestInput(reason="   ")
        with pytest.raises(RegistrationServiceError):
            await service.request_rejection(registration.id, seed.actor(seed.teacher), "   ")

        assert RejectionRequestInput(reason="  Full lab ").reason == "Full lab"
        row = await service.get_registration(registration.id)
        assert row.rejection_request.requested is False

    async def test_dismiss_rejection_request(self, service, sections, seed):
        """Test an admin clears the teacher's request and status stays pending."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )
        await service.request_rejection(registration.id, seed.actor(seed.teacher), "Full lab")

        dismissed = await service.dismiss_rejection_request(
            registration.id, seed.actor(seed.admin)
        )

        assert dismissed.status == RegistrationStatus.PENDING
        assert dismissed.rejection_request.requested is False
        assert dismissed.rejection_request.reason is None

    async def test_admin_approval_overrides_request(self, service, sections, seed):
        """Test admin approval clears an outstanding request."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )
        await service.request_rejection(registration.id, seed.actor(seed.teacher), "Full lab")

        approved = await service.approve(registration.id, seed.actor(seed.admin))

        assert approved.status == RegistrationStatus.APPROVED
        assert approved.rejection_request.requested is False

    async def test_unknown_registration(self, service, seed):
        """Test unknown ids raise not found."""
        with pytest.raises(RegistrationNotFoundError):
            await service.approve(uuid4(), seed.actor(seed.admin))


class TestDropAndComplete:
    """Tests for leaving a section."""

    async def test_student_drops_approved(self, service, sections, db, seed):
        """Test a drop releases seat and credits and counts the drop."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )
        await service.approve(registration.id, seed.actor(seed.admin))

        dropped = await service.drop(registration.id, seed.actor(seed.student))

        assert dropped.status == RegistrationStatus.DROPPED
        assert dropped.dropped_by == seed.student.id
        assert await seats(db, sections["math"]) == 0
        assert await term_load(db, seed.student.id, seed.term.id) == (0, 1)

    async def test_pending_cannot_be_dropped(self, service, sections, seed):
        """Test only approved registrations are dropped."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )

        with pytest.raises(InvalidTransitionError):
            await service.drop(registration.id, seed.actor(seed.student))

    async def test_drop_after_window_needs_admin(self, service, sections, close_window, seed):
        """Test students cannot drop once the window closed but admins can."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )
        await service.approve(registration.id, seed.actor(seed.admin))
        await close_window()

        with pytest.raises(RegistrationClosedError):
            await service.drop(registration.id, seed.actor(seed.student))

        dropped = await service.drop(registration.id, seed.actor(seed.admin))
        assert dropped.status == RegistrationStatus.DROPPED

    async def test_withdrawal_deadline_does_not_extend_drops(
        self, service, sections, close_window, db, seed
    ):
        """Test the withdrawal deadline is informational for drops."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )
        await service.approve(registration.id, seed.actor(seed.admin))
        await close_window()

        term = (await db.execute(select(Term).where(Term.id == seed.term.id))).scalar_one()
        assert ensure_utc(term.withdrawal_deadline) > utc_now()

        with pytest.raises(RegistrationClosedError):
            await service.drop(registration.id, seed.actor(seed.student))

    async def test_complete_releases_seat(self, service, sections, db, seed):
        """Test completion frees the seat and reports completed credits."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )
        await service.approve(registration.id, seed.actor(seed.admin))

        completed = await service.complete(registration.id, seed.actor(seed.admin))

        assert completed.status == RegistrationStatus.COMPLETED
        assert completed.completed_at is not None
        assert await seats(db, sections["math"]) == 0
        assert await term_load(db, seed.student.id, seed.term.id) == (0, 0)

        report = await service.credit_report(seed.term.id)
        summary = report.students[0]
        assert summary.active_credits == 0
        assert summary.completed_credits == 4

    async def test_terminal_states_are_final(self, service, sections, seed):
        """Test a dropped registration cannot be completed or approved."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )
        await service.approve(registration.id, seed.actor(seed.admin))
        await service.drop(registration.id, seed.actor(seed.admin))

        with pytest.raises(InvalidTransitionError):
            await service.complete(registration.id, seed.actor(seed.admin))
        with pytest.raises(InvalidTransitionError):
            await service.approve(registration.id, seed.actor(seed.admin))


class TestOverlapFlags:
    """Tests for advisory timetable overlap flags."""

    async def test_overlap_flagged_and_cleared(self, service, make_section, sections, seed):
        """Test overlapping sections are flagged, not refused, and unflagged on exit."""
        clash = await make_section(
            seed.physics, [(MON, 1, seed.room_b)], teacher=seed.other_teacher
        )
        student = seed.actor(seed.student)
        first = await service.register(None, sections["math"].id, seed.term.id, student)

        second = await service.register(None, clash.id, seed.term.id, student)

        assert second.has_schedule_conflict is True
        assert second.conflict_slots == ["MONDAY/1"]
        flagged = await service.get_registration(first.id)
        assert flagged.has_schedule_conflict is True
        assert flagged.conflict_slots == ["MONDAY/1"]

        await service.reject(second.id, seed.actor(seed.admin), "Timetable clash")

        cleared = await service.get_registration(first.id)
        assert cleared.has_schedule_conflict is False
        assert cleared.conflict_slots == []


class TestQueries:
    """Tests for listing, visibility and credit reports."""

    async def test_list_visibility(self, service, sections, seed):
        """Test students see their own rows and teachers their sections' rows."""
        await service.register(None, sections["math"].id, seed.term.id, seed.actor(seed.student))
        await service.register(
            None, sections["math_b"].id, seed.term.id, seed.actor(seed.other_student)
        )

        own = await service.list_registrations(seed.actor(seed.student))
        taught = await service.list_registrations(seed.actor(seed.other_teacher))
        everything = await service.list_registrations(seed.actor(seed.admin), term_id=seed.term.id)
        approved = await service.list_registrations(
            seed.actor(seed.admin), status=RegistrationStatus.APPROVED
        )

        assert [r.student_id for r in own.items] == [UUID(seed.student.id)]
        assert [r.student_id for r in taught.items] == [UUID(seed.other_student.id)]
        assert everything.total == 2
        assert approved.total == 0

    async def test_get_other_students_registration_forbidden(self, service, sections, seed):
        """Test a student cannot read another student's registration."""
        registration = await service.register(
            None, sections["math"].id, seed.term.id, seed.actor(seed.student)
        )

        with pytest.raises(RegistrationForbiddenError):
            await service.get_registration(registration.id, seed.actor(seed.other_student))
        with pytest.raises(RegistrationForbiddenError):
            await service.get_registration(registration.id, seed.actor(seed.other_teacher))

        visible = await service.get_registration(registration.id, seed.actor(seed.teacher))
        assert visible.id == registration.id

    async def test_credit_report(self, service, sections, seed):
        """Test the minimum-credit rule is reported, never enforced."""
        await service.register(None, sections["math"].id, seed.term.id, seed.actor(seed.student))
        other = seed.actor(seed.other_student)
        await service.register(None, sections["math"].id, seed.term.id, other)
        await service.register(None, sections["physics"].id, seed.term.id, other)

        report = await service.credit_report(seed.term.id)

        by_student = {str(s.student_id): s for s in report.students}
        assert by_student[seed.student.id].active_credits == 4
        assert by_student[seed.student.id].below_minimum is True
        assert by_student[seed.other_student.id].active_credits == 8
        assert by_student[seed.other_student.id].below_minimum is False
        assert report.below_minimum_count == 1
        assert report.min_credits_per_student == 8


class TestConcurrency:
    """Tests for the seat counter under concurrent sessions."""

    @pytest.fixture
    async def students(self, db, seed) -> list[User]:
        """Five extra students committed outside any open transaction."""
        users = [
            User(
                email=f"student{i}@school.test",
                full_name=f"Student {i}",
                role=ActorRole.STUDENT.value,
            )
            for i in range(5)
        ]
        db.add_all(users)
        await db.commit()
        return users

    async def test_concurrent_registrations_never_oversell(
        self, engine, db, make_section, students, registration_settings, seed
    ):
        """Test only max_students of many simultaneous requests get a seat."""
        section = await make_section(seed.math, [(MON, 1, seed.room_a)], max_students=2)
        await db.commit()
        sessionmaker = create_sessionmaker(engine)

        async def attempt(student: User) -> ErrorKind | None:
            async with sessionmaker() as session:
                service = RegistrationService(session, registration_settings)
                try:
                    await service.register(
                        None, section.id, seed.term.id, Actor(student.id, ActorRole.STUDENT)
                    )
                except SectionFullError as e:
                    return e.kind
                return None

        outcomes = await asyncio.gather(*(attempt(student) for student in students))

        assert outcomes.count(None) == 2
        assert outcomes.count(ErrorKind.SECTION_FULL) == 3
        assert await seats(db, section) == 2

    async def test_concurrent_drop_and_register(
        self, engine, db, make_section, students, registration_settings, seed
    ):
        """Test the counter matches the active registrations after a racing drop."""
        section = await make_section(seed.math, [(MON, 1, seed.room_a)], max_students=1)
        holder, newcomer = students[0], students[1]
        service = RegistrationService(db, registration_settings)
        registration = await service.register(
            None, section.id, seed.term.id, Actor(holder.id, ActorRole.STUDENT)
        )
        await service.approve(registration.id, seed.actor(seed.admin))
        await db.commit()
        sessionmaker = create_sessionmaker(engine)

        async def drop() -> None:
            async with sessionmaker() as session:
                await RegistrationService(session, registration_settings).drop(
                    registration.id, Actor(holder.id, ActorRole.STUDENT)
                )

        async def register() -> ErrorKind | None:
            async with sessionmaker() as session:
                try:
                    await RegistrationService(session, registration_settings).register(
                        None, section.id, seed.term.id, Actor(newcomer.id, ActorRole.STUDENT)
                    )
                except SectionFullError as e:
                    return e.kind
                return None

        _, outcome = await asyncio.gather(drop(), register())

        current = await seats(db, section)
        active = await db.scalar(
            select(func.count())
            .select_from(Registration)
            .where(
                Registration.section_id == str(section.id),
                Registration.status.in_([s.value for s in ACTIVE_STATUSES]),
            )
        )
        assert 0 <= current <= 1
        assert current == active
        assert current == (1 if outcome is None else 0)
