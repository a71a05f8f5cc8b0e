# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Registration service for student enrollment in sections.

This module provides the RegistrationService class for:
- Registering a student in a section (capacity, window, credit and
  duplicate-subject checks, atomic seat and credit claims)
- Switching a registration to another section of the same subject
- Approval, rejection, teacher rejection requests, drop and completion
- Cancelling a section's registrations when the section is deactivated
- Advisory student timetable overlap flags
- Per-term credit reports

Every operation runs in one transaction: counters and status change
together, and any failure rolls the whole operation back.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import case, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import RegistrationSettings, get_settings
from src.domains.registration import guard
from src.domains.registration.exceptions import (
    InvalidSwitchError,
    ReferenceNotFoundError,
    RegistrationForbiddenError,
    RegistrationNotFoundError,
    RegistrationServiceError,
    SubjectDuplicateError,
)
from src.domains.registration.state_machine import (
    authorize_approve,
    authorize_complete,
    authorize_dismiss_rejection_request,
    authorize_drop,
    authorize_reject,
    authorize_rejection_request,
    authorize_switch,
    ensure_transition,
)
from src.domains.scheduling.conflicts import StudentSlot, find_student_overlaps
from src.infrastructure.database.models import (
    Registration,
    ScheduleSlot,
    Section,
    StudentTermLoad,
    Term,
    User,
)
from src.models.common import Actor, ActorRole, Weekday
from src.models.registration import (
    ACTIVE_STATUSES,
    RegistrationListResponse,
    RegistrationResponse,
    RegistrationStatus,
    RejectionRequestInfo,
)
from src.models.term import CreditReportResponse, StudentCreditSummary
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = [status.value for status in ACTIVE_STATUSES]


class RegistrationService:
    """Service for the registration lifecycle.

    Args:
        db: Async database session.
        settings: Registration policy settings.
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: RegistrationSettings | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings().registration

    # ------------------------------------------------------------------
    # Create / switch
    # ------------------------------------------------------------------

    async def register(
        self,
        student_id: UUID | str | None,
        section_id: UUID,
        term_id: UUID,
        actor: Actor,
    ) -> RegistrationResponse:
        """Register a student in a section.

        Checks, in order: section open, registration window, credit limit,
        duplicate subject. Then claims a seat and the credits atomically and
        creates a pending registration. Timetable overlaps with the
        student's other registrations are flagged, never rejected.

        Args:
            student_id: Student to register; defaults to the calling student.
            section_id: Target section.
            term_id: Term of the section.
            actor: Caller.

        Returns:
            The new pending registration.

        Raises:
            ReferenceNotFoundError: If term, section or student not found.
            RegistrationForbiddenError: If the actor may not register the student.
            SectionFullError: If the section is inactive or full.
            RegistrationClosedError: If the window is closed.
            CreditLimitExceededError: If the credit limit would be exceeded.
            SubjectDuplicateError: If the subject is already held.
        """
        target_student = self._resolve_student(actor, student_id)

        try:
            term = await self._get_term(term_id)
            section = await self._get_section(section_id)
            self._ensure_section_in_term(section, term)
            await self._get_student(target_student)

            registration = await self._admit(target_student, section, term, actor)
            await self._refresh_overlap_flags(target_student, term.id)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise SubjectDuplicateError(
                "Student already holds an active registration for this subject"
            ) from e
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Registered student %s in section %s (%s) by %s",
            target_student,
            section.class_code,
            registration.id,
            actor.id,
        )

        return await self._reload(registration.id)

    async def switch_registration(
        self,
        registration_id: UUID | str | None,
        new_section_id: UUID,
        actor: Actor,
        student_id: UUID | str | None = None,
    ) -> RegistrationResponse:
        """Move a registration to another section of the same subject.

        Atomically drops the old registration and creates a pending one in
        the new section. The new section must pass every capacity, window,
        credit and duplicate check with the old registration's credits
        released; if anything fails the old registration is left untouched.
        Without an old registration for the subject this is a plain
        register.

        Args:
            registration_id: Registration to replace, or None to look up the
                student's active registration for the new section's subject.
            new_section_id: Target section.
            actor: Caller.
            student_id: Student, used only when registration_id is None.

        Returns:
            The new pending registration.

        Raises:
            InvalidSwitchError: If the target is the same section, another
                subject or another term.
            RegistrationNotFoundError: If the old registration is not found.
            InvalidTransitionError: If the old registration is not active.
        """
        if registration_id is None:
            target_student = self._resolve_student(actor, student_id)
            new_section = await self._get_section(new_section_id)
            existing = await self._find_active_for_subject(
                target_student, new_section.term_id, new_section.subject_id
            )
            if existing is None:
                return await self.register(
                    target_student, new_section_id, UUID(new_section.term_id), actor
                )
            registration_id = existing.id

        old = await self._get_by_id(registration_id)
        authorize_switch(actor, old)
        new_section = await self._get_section(new_section_id)

        if new_section.id == old.section_id:
            raise InvalidSwitchError("Cannot switch a registration to its own section")
        if new_section.subject_id != old.subject_id:
            raise InvalidSwitchError(
                "Switch target must be a section of the same subject",
                {"subject_id": old.subject_id, "target_subject_id": new_section.subject_id},
            )
        if new_section.term_id != old.term_id:
            raise InvalidSwitchError("Switch target must be in the same term")

        old_id = old.id
        old_section_id = old.section_id
        student = old.student_id

        try:
            term = await self._get_term(old.term_id)

            old.status = RegistrationStatus.DROPPED.value
            old.dropped_by = actor.id
            old.dropped_at = utc_now()
            old.clear_rejection_request()
            await self.db.flush()

            await guard.release_seat(self.db, old.section_id)
            await guard.release_credits(self.db, student, old.term_id, old.credits)

            registration = await self._admit(
                student, new_section, term, actor, replaces_registration_id=old_id
            )
            await self._refresh_overlap_flags(student, term.id)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise SubjectDuplicateError(
                "Student already holds an active registration for this subject"
            ) from e
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Switched registration %s from section %s to %s (%s) by %s",
            old_id,
            old_section_id,
            new_section.id,
            registration.id,
            actor.id,
        )

        return await self._reload(registration.id)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def approve(self, registration_id: UUID | str, actor: Actor) -> RegistrationResponse:
        """Approve a pending registration.

        Raises:
            RegistrationNotFoundError: If not found.
            RegistrationForbiddenError: If the actor may not approve.
            InvalidTransitionError: If the registration is not pending.
        """
        registration = await self._get_by_id(registration_id)
        section = await self._get_section(registration.section_id)
        term = await self._get_term(registration.term_id)
        authorize_approve(actor, registration, section, term, self.settings)

        registration.status = RegistrationStatus.APPROVED.value
        registration.approved_by = actor.id
        registration.approved_at = utc_now()
        if registration.rejection_requested:
            # Admin approval overrides the teacher's request
            registration.clear_rejection_request()

        await self.db.commit()
        await self.db.refresh(registration)

        logger.info("Approved registration %s by %s", registration.id, actor.id)

        return self._to_response(registration)

    async def reject(
        self,
        registration_id: UUID | str,
        actor: Actor,
        reason: str | None = None,
    ) -> RegistrationResponse:
        """Reject a pending registration (admin only).

        The reason defaults to the teacher's rejection request reason.

        Raises:
            RegistrationNotFoundError: If not found.
            RegistrationForbiddenError: If the actor is not an admin.
            InvalidTransitionError: If the registration is not pending.
            RegistrationServiceError: If no reason is given or requested.
        """
        registration = await self._get_by_id(registration_id)
        authorize_reject(actor, registration)

        final_reason = (reason or "").strip() or registration.rejection_request_reason
        if not final_reason:
            raise RegistrationServiceError("A rejection reason is required")

        try:
            registration.status = RegistrationStatus.REJECTED.value
            registration.rejected_by = actor.id
            registration.rejected_at = utc_now()
            registration.rejection_reason = final_reason
            registration.rejection_requested = False
            await self.db.flush()

            await self._release(registration, dropped=False)
            await self._refresh_overlap_flags(registration.student_id, registration.term_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Rejected registration %s by %s", registration_id, actor.id)

        return await self._reload(str(registration_id))

    async def request_rejection(
        self,
        registration_id: UUID | str,
        actor: Actor,
        reason: str,
    ) -> RegistrationResponse:
        """Flag a pending registration for rejection (section teacher only).

        The status stays pending until an admin rejects or dismisses.

        Raises:
            RegistrationNotFoundError: If not found.
            RegistrationForbiddenError: If the actor is not the section's teacher.
            InvalidTransitionError: If the registration is not pending.
            RegistrationServiceError: If the reason is blank.
        """
        registration = await self._get_by_id(registration_id)
        section = await self._get_section(registration.section_id)
        authorize_rejection_request(actor, registration, section)
        if not reason.strip():
            raise RegistrationServiceError("A rejection request needs a reason")

        registration.rejection_requested = True
        registration.rejection_request_reason = reason.strip()
        registration.rejection_requested_by = actor.id
        registration.rejection_requested_at = utc_now()

        await self.db.commit()
        await self.db.refresh(registration)

        logger.info("Rejection requested for registration %s by %s", registration.id, actor.id)

        return self._to_response(registration)

    async def dismiss_rejection_request(
        self,
        registration_id: UUID | str,
        actor: Actor,
    ) -> RegistrationResponse:
        """Clear a teacher's rejection request (admin only); status stays pending.

        Raises:
            RegistrationNotFoundError: If not found.
            RegistrationForbiddenError: If the actor is not an admin.
            InvalidTransitionError: If there is no outstanding request.
        """
        registration = await self._get_by_id(registration_id)
        authorize_dismiss_rejection_request(actor, registration)

        registration.clear_rejection_request()

        await self.db.commit()
        await self.db.refresh(registration)

        logger.info("Dismissed rejection request on registration %s by %s", registration.id, actor.id)

        return self._to_response(registration)

    async def drop(self, registration_id: UUID | str, actor: Actor) -> RegistrationResponse:
        """Drop an approved registration.

        Students may drop their own registration while the registration
        window is open; admins at any time. Releases the seat and credits
        and records the drop in the student's term history.

        Raises:
            RegistrationNotFoundError: If not found.
            RegistrationForbiddenError: If the actor may not drop.
            InvalidTransitionError: If the registration is not approved.
            RegistrationClosedError: If a student drops outside the window.
        """
        registration = await self._get_by_id(registration_id)
        term = await self._get_term(registration.term_id)
        authorize_drop(actor, registration, term)

        try:
            registration.status = RegistrationStatus.DROPPED.value
            registration.dropped_by = actor.id
            registration.dropped_at = utc_now()
            await self.db.flush()

            await self._release(registration, dropped=True)
            await self._refresh_overlap_flags(registration.student_id, registration.term_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Dropped registration %s by %s", registration_id, actor.id)

        return await self._reload(str(registration_id))

    async def complete(self, registration_id: UUID | str, actor: Actor) -> RegistrationResponse:
        """Mark an approved registration completed (term-close processing).

        The seat and active credits are released; completed credits are
        reported separately by credit_report.

        Raises:
            RegistrationNotFoundError: If not found.
            RegistrationForbiddenError: If the actor is not an admin.
            InvalidTransitionError: If the registration is not approved.
        """
        registration = await self._get_by_id(registration_id)
        authorize_complete(actor, registration)

        try:
            registration.status = RegistrationStatus.COMPLETED.value
            registration.completed_at = utc_now()
            await self.db.flush()

            await self._release(registration, dropped=False)
            await self._refresh_overlap_flags(registration.student_id, registration.term_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Completed registration %s by %s", registration_id, actor.id)

        return await self._reload(str(registration_id))

    async def cancel_for_section(self, section_id: str, reason: str) -> int:
        """Cancel every active registration of a deactivated section.

        Releases seats and credits without recording a drop. Does not
        commit; the caller owns the transaction.

        Args:
            section_id: Section being deactivated.
            reason: Cancellation reason shown to students.

        Returns:
            Number of registrations cancelled.
        """
        result = await self.db.execute(
            select(Registration).where(
                Registration.section_id == section_id,
                Registration.status.in_(_ACTIVE_VALUES),
            )
        )
        registrations = result.scalars().all()
        if not registrations:
            return 0

        now = utc_now()
        affected: set[tuple[str, str]] = set()
        for registration in registrations:
            ensure_transition(registration, RegistrationStatus.CANCELLED)
            registration.status = RegistrationStatus.CANCELLED.value
            registration.cancelled_at = now
            registration.cancellation_reason = reason
            registration.clear_rejection_request()
            affected.add((registration.student_id, registration.term_id))
        await self.db.flush()

        for registration in registrations:
            await self._release(registration, dropped=False)
        for student_id, term_id in affected:
            await self._refresh_overlap_flags(student_id, term_id)

        logger.info(
            "Cancelled %d registration(s) of section %s", len(registrations), section_id
        )
        return len(registrations)

    async def refresh_overlaps_for_section(self, section_id: str) -> int:
        """Recompute overlap flags for every student active in a section.

        Used after a section's slots change. Does not commit; the caller
        owns the transaction.

        Args:
            section_id: Section whose timetable changed.

        Returns:
            Number of students whose flags were recomputed.
        """
        result = await self.db.execute(
            select(Registration.student_id, Registration.term_id)
            .where(
                Registration.section_id == section_id,
                Registration.status.in_(_ACTIVE_VALUES),
            )
            .distinct()
        )
        affected = result.all()
        for student_id, term_id in affected:
            await self._refresh_overlap_flags(student_id, term_id)
        return len(affected)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_registration(
        self,
        registration_id: UUID | str,
        actor: Actor | None = None,
    ) -> RegistrationResponse:
        """Get a registration.

        Students see their own registrations, teachers those of their
        sections, admins all.

        Raises:
            RegistrationNotFoundError: If not found.
            RegistrationForbiddenError: If the actor may not see it.
        """
        registration = await self._get_by_id(registration_id)
        if actor is not None and not actor.is_admin:
            if actor.is_student and registration.student_id != actor.id:
                raise RegistrationForbiddenError("Registration belongs to another student")
            if actor.is_teacher:
                section = await self._get_section(registration.section_id)
                if section.teacher_id != actor.id:
                    raise RegistrationForbiddenError("Registration is not in your section")
        return self._to_response(registration)

    async def list_registrations(
        self,
        actor: Actor,
        term_id: UUID | None = None,
        section_id: UUID | None = None,
        student_id: UUID | None = None,
        status: RegistrationStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> RegistrationListResponse:
        """List registrations visible to the actor, newest first."""
        query = select(Registration)

        if actor.is_student:
            query = query.where(Registration.student_id == actor.id)
        elif actor.is_teacher:
            query = query.join(Section, Section.id == Registration.section_id).where(
                Section.teacher_id == actor.id
            )

        if term_id:
            query = query.where(Registration.term_id == str(term_id))
        if section_id:
            query = query.where(Registration.section_id == str(section_id))
        if student_id:
            query = query.where(Registration.student_id == str(student_id))
        if status:
            query = query.where(Registration.status == status.value)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(Registration.created_at.desc()).offset(offset).limit(limit)
        result = await self.db.execute(query)
        registrations = result.scalars().all()

        return RegistrationListResponse(
            items=[self._to_response(r) for r in registrations],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def credit_report(self, term_id: UUID | str) -> CreditReportResponse:
        """Per-student credit totals for a term.

        The minimum-credit rule is advisory and only surfaces here: a
        student whose active plus completed credits are below the term
        minimum is flagged below_minimum.

        Raises:
            ReferenceNotFoundError: If the term is not found.
        """
        term = await self._get_term(term_id)

        active_credits = func.sum(
            case((Registration.status.in_(_ACTIVE_VALUES), Registration.credits), else_=0)
        )
        completed_credits = func.sum(
            case(
                (Registration.status == RegistrationStatus.COMPLETED.value, Registration.credits),
                else_=0,
            )
        )
        result = await self.db.execute(
            select(
                Registration.student_id,
                active_credits.label("active_credits"),
                completed_credits.label("completed_credits"),
            )
            .where(Registration.term_id == term.id)
            .group_by(Registration.student_id)
            .order_by(Registration.student_id)
        )
        rows = result.all()

        loads_result = await self.db.execute(
            select(StudentTermLoad.student_id, StudentTermLoad.dropped_count).where(
                StudentTermLoad.term_id == term.id
            )
        )
        dropped = {row.student_id: row.dropped_count for row in loads_result}

        students = []
        for row in rows:
            active = int(row.active_credits or 0)
            completed = int(row.completed_credits or 0)
            students.append(
                StudentCreditSummary(
                    student_id=UUID(row.student_id),
                    active_credits=active,
                    completed_credits=completed,
                    dropped_count=dropped.get(row.student_id, 0),
                    below_minimum=active + completed < term.min_credits_per_student,
                )
            )

        return CreditReportResponse(
            term_id=UUID(term.id),
            min_credits_per_student=term.min_credits_per_student,
            max_credits_per_student=term.max_credits_per_student,
            students=students,
            below_minimum_count=sum(1 for s in students if s.below_minimum),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _admit(
        self,
        student_id: str,
        section: Section,
        term: Term,
        actor: Actor,
        replaces_registration_id: str | None = None,
    ) -> Registration:
        """Run the guard checks, claim seat and credits, create the row."""
        credits = section.subject.credits

        guard.check_section_open(section)
        guard.check_registration_window(term, actor, self.settings)
        current_credits = await self._current_credits(student_id, term.id)
        guard.check_credit_limit(current_credits, credits, term.max_credits_per_student)
        await self._ensure_no_duplicate(student_id, term.id, section)

        await guard.claim_seat(self.db, section.id)
        await guard.claim_credits(
            self.db, student_id, term.id, credits, term.max_credits_per_student
        )

        registration = Registration(
            student_id=student_id,
            section_id=section.id,
            term_id=term.id,
            subject_id=section.subject_id,
            credits=credits,
            status=RegistrationStatus.PENDING.value,
            replaces_registration_id=replaces_registration_id,
        )
        self.db.add(registration)
        await self.db.flush()
        return registration

    async def _release(self, registration: Registration, dropped: bool) -> None:
        """Give back the seat and credits of a registration leaving active."""
        await guard.release_seat(self.db, registration.section_id)
        await guard.release_credits(
            self.db,
            registration.student_id,
            registration.term_id,
            registration.credits,
            dropped=dropped,
        )

    async def _refresh_overlap_flags(self, student_id: str, term_id: str) -> None:
        """Recompute advisory timetable overlap flags for a student's term."""
        await self.db.flush()

        result = await self.db.execute(
            select(
                Registration.id,
                Registration.section_id,
                ScheduleSlot.weekday,
                ScheduleSlot.period,
            )
            .join(ScheduleSlot, ScheduleSlot.section_id == Registration.section_id)
            .where(
                Registration.student_id == student_id,
                Registration.term_id == term_id,
                Registration.status.in_(_ACTIVE_VALUES),
            )
        )
        overlaps = find_student_overlaps(
            StudentSlot(
                registration_id=row.id,
                section_id=row.section_id,
                weekday=Weekday(row.weekday),
                period=row.period,
            )
            for row in result
        )

        registrations = await self.db.execute(
            select(Registration).where(
                Registration.student_id == student_id,
                Registration.term_id == term_id,
            )
        )
        for registration in registrations.scalars():
            labels = overlaps.get(registration.id, [])
            if registration.has_schedule_conflict != bool(labels) or (
                registration.conflict_slots or []
            ) != labels:
                registration.has_schedule_conflict = bool(labels)
                registration.conflict_slots = labels

        if overlaps:
            logger.info(
                "Student %s has %d registration(s) with timetable overlaps in term %s",
                student_id,
                len(overlaps),
                term_id,
            )
        await self.db.flush()

    async def _current_credits(self, student_id: str, term_id: str) -> int:
        result = await self.db.execute(
            select(StudentTermLoad.credits).where(
                StudentTermLoad.student_id == student_id,
                StudentTermLoad.term_id == term_id,
            )
        )
        return result.scalar_one_or_none() or 0

    async def _ensure_no_duplicate(self, student_id: str, term_id: str, section: Section) -> None:
        result = await self.db.execute(
            select(Registration.id)
            .where(
                Registration.student_id == student_id,
                Registration.term_id == term_id,
                Registration.status.in_(_ACTIVE_VALUES),
                or_(
                    Registration.subject_id == section.subject_id,
                    Registration.section_id == section.id,
                ),
            )
            .limit(1)
        )
        existing_id = result.scalar_one_or_none()
        if existing_id:
            raise SubjectDuplicateError(
                "Student already holds an active registration for this subject",
                {"existing_registration_id": existing_id, "subject_id": section.subject_id},
            )

    async def _find_active_for_subject(
        self, student_id: str, term_id: str, subject_id: str
    ) -> Registration | None:
        result = await self.db.execute(
            select(Registration).where(
                Registration.student_id == student_id,
                Registration.term_id == term_id,
                Registration.subject_id == subject_id,
                Registration.status.in_(_ACTIVE_VALUES),
            )
        )
        return result.scalars().first()

    def _resolve_student(self, actor: Actor, student_id: UUID | str | None) -> str:
        """Work out which student an actor is acting for."""
        if actor.is_student:
            if student_id is not None and str(student_id) != actor.id:
                raise RegistrationForbiddenError("Students may only register themselves")
            return actor.id
        if actor.is_admin:
            if student_id is None:
                raise RegistrationServiceError("student_id is required when acting as admin")
            return str(student_id)
        raise RegistrationForbiddenError("Only students and admins may register")

    def _ensure_section_in_term(self, section: Section, term: Term) -> None:
        if section.term_id != term.id:
            raise RegistrationServiceError(
                f"Section {section.class_code} does not belong to term {term.code}",
                {"section_id": section.id, "term_id": term.id},
            )

    async def _get_by_id(self, registration_id: UUID | str) -> Registration:
        result = await self.db.execute(
            select(Registration).where(Registration.id == str(registration_id))
        )
        registration = result.scalar_one_or_none()
        if not registration:
            raise RegistrationNotFoundError(f"Registration {registration_id} not found")
        return registration

    async def _get_term(self, term_id: UUID | str) -> Term:
        result = await self.db.execute(select(Term).where(Term.id == str(term_id)))
        term = result.scalar_one_or_none()
        if not term:
            raise ReferenceNotFoundError(f"Term {term_id} not found")
        return term

    async def _get_section(self, section_id: UUID | str) -> Section:
        result = await self.db.execute(select(Section).where(Section.id == str(section_id)))
        section = result.scalar_one_or_none()
        if not section:
            raise ReferenceNotFoundError(f"Section {section_id} not found")
        return section

    async def _get_student(self, student_id: str) -> User:
        result = await self.db.execute(
            select(User).where(
                User.id == student_id,
                User.role == ActorRole.STUDENT.value,
            )
        )
        student = result.scalar_one_or_none()
        if not student:
            raise ReferenceNotFoundError(f"Student {student_id} not found")
        return student

    async def _reload(self, registration_id: str) -> RegistrationResponse:
        """Re-read a registration after commit."""
        result = await self.db.execute(
            select(Registration)
            .where(Registration.id == registration_id)
            .execution_options(populate_existing=True)
        )
        return self._to_response(result.scalar_one())

    def _to_response(self, registration: Registration) -> RegistrationResponse:
        return RegistrationResponse(
            id=UUID(registration.id),
            student_id=UUID(registration.student_id),
            section_id=UUID(registration.section_id),
            term_id=UUID(registration.term_id),
            subject_id=UUID(registration.subject_id),
            credits=registration.credits,
            status=registration.state,
            created_at=ensure_utc(registration.created_at),
            approved_by=registration.approved_by,
            approved_at=ensure_utc(registration.approved_at),
            rejected_by=registration.rejected_by,
            rejected_at=ensure_utc(registration.rejected_at),
            rejection_reason=registration.rejection_reason,
            dropped_by=registration.dropped_by,
            dropped_at=ensure_utc(registration.dropped_at),
            cancelled_at=ensure_utc(registration.cancelled_at),
            cancellation_reason=registration.cancellation_reason,
            completed_at=ensure_utc(registration.completed_at),
            rejection_request=RejectionRequestInfo(
                requested=registration.rejection_requested,
                reason=registration.rejection_request_reason,
                requested_by=registration.rejection_requested_by,
                requested_at=ensure_utc(registration.rejection_requested_at),
            ),
            has_schedule_conflict=registration.has_schedule_conflict,
            conflict_slots=list(registration.conflict_slots or []),
            replaces_registration_id=(
                UUID(registration.replaces_registration_id)
                if registration.replaces_registration_id
                else None
            ),
        )
