# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Section service for scheduled subject offerings.

This module provides the SectionService class for:
- Section creation and editing with classroom/teacher conflict validation
- Keeping is_active consistent with teacher assignment
- Calendar expansion of a section's weekly slots across its term
- The section lifecycle sync that deactivates sections without a teacher
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import RegistrarError
from src.domains.calendar.expander import expand_weekly_dates, week_bounds, week_number
from src.domains.registration.service import RegistrationService
from src.domains.scheduling.conflicts import (
    CommittedSlot,
    ProposedSlot,
    ScheduleIndex,
    validate_schedule,
)
from src.infrastructure.database.models import (
    Classroom,
    ScheduleSlot,
    Section,
    Subject,
    Term,
    User,
)
from src.models.common import PERIOD_TIMES, ActorRole, ErrorKind, Weekday
from src.models.section import (
    ExpandedScheduleResponse,
    LifecycleSyncResponse,
    ScheduleOccurrence,
    ScheduleSlotInput,
    ScheduleSlotResponse,
    SectionCreateRequest,
    SectionListResponse,
    SectionResponse,
    SectionUpdateRequest,
)
from src.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)

NO_TEACHER_NOTE = "Deactivated: no teacher assigned"
DEACTIVATED_REASON = "Section was deactivated"


class SectionServiceError(RegistrarError):
    """Base exception for section service errors."""

    kind = ErrorKind.INVALID_REQUEST


class SectionNotFoundError(SectionServiceError):
    """Raised when section is not found."""

    kind = ErrorKind.NOT_FOUND


class SectionReferenceNotFoundError(SectionServiceError):
    """Raised when the term, subject, teacher or a classroom does not exist."""

    kind = ErrorKind.NOT_FOUND


class SectionCodeExistsError(SectionServiceError):
    """Raised when the class code is already used for the term and subject."""

    pass


class InvalidSectionError(SectionServiceError):
    """Raised when an edit would break a section invariant."""

    pass


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a lifecycle sweep."""

    term_id: str | None
    changed_count: int
    cancelled_registrations: int = 0


class SectionService:
    """Service for managing sections and their weekly schedules."""

    def __init__(self, db: AsyncSession) -> None:
        """Initialize section service.

        Args:
            db: Async database session.
        """
        self.db = db

    async def create_section(self, request: SectionCreateRequest) -> SectionResponse:
        """Create a section.

        Classroom conflicts are checked against every active section of the
        term, teacher conflicts against the teacher's other active sections.
        A section created without a teacher is stored inactive with a note.

        Args:
            request: Section creation data.

        Returns:
            Created section.

        Raises:
            SectionReferenceNotFoundError: If term, subject, teacher or a
                classroom does not exist.
            SectionCodeExistsError: If the class code is taken.
            ClassroomConflictError: If a classroom is double-booked.
            TeacherConflictError: If the teacher is double-booked.
        """
        term_id = str(request.term_id)
        subject_id = str(request.subject_id)
        teacher_id = str(request.teacher_id) if request.teacher_id else None
        class_code = request.class_code.strip().upper()

        await self._ensure_exists(Term, term_id, "Term")
        subject = await self.db.get(Subject, subject_id)
        if subject is None:
            raise SectionReferenceNotFoundError(f"Subject {subject_id} not found")
        if teacher_id:
            await self._ensure_teacher(teacher_id)
        classrooms = await self._ensure_classrooms(request.slots)

        existing = await self.db.execute(
            select(Section.id).where(
                Section.term_id == term_id,
                Section.subject_id == subject_id,
                Section.class_code == class_code,
            )
        )
        if existing.scalar_one_or_none():
            raise SectionCodeExistsError(
                f"Class code {class_code} already exists for this subject and term"
            )

        proposed = self._to_proposed(request.slots)
        index = await self._build_index(term_id)
        validate_schedule(proposed, index, teacher_id)

        section = Section(
            term_id=term_id,
            subject_id=subject_id,
            subject=subject,
            class_code=class_code,
            teacher_id=teacher_id,
            max_students=request.max_students,
            current_students=0,
            is_active=teacher_id is not None,
            status_note=None if teacher_id else NO_TEACHER_NOTE,
            slots=self._build_slots(proposed, classrooms),
        )

        self.db.add(section)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise SectionCodeExistsError(
                f"Class code {class_code} already exists for this subject and term"
            ) from e

        logger.info(
            "Created section: %s (%s) with %d slot(s), active=%s",
            section.class_code,
            section.id,
            len(proposed),
            section.is_active,
        )

        return self._to_response(await self._get_by_id(section.id))

    async def update_section(
        self,
        section_id: UUID | str,
        request: SectionUpdateRequest,
    ) -> SectionResponse:
        """Edit a section.

        Conflict validation re-runs with the section's own current slots
        excluded. is_active is recomputed: it can only be true while a
        teacher is assigned. A section that goes from active to inactive
        has its active registrations cancelled. A slot change recomputes the
        timetable overlap flags of the students registered in it.

        Args:
            section_id: Section identifier.
            request: Edit data; omitted fields are unchanged.

        Returns:
            Updated section.

        Raises:
            SectionNotFoundError: If section not found.
            InvalidSectionError: If max_students is below the live count.
            ClassroomConflictError: If a classroom is double-booked.
            TeacherConflictError: If the teacher is double-booked.
        """
        section = await self._get_by_id(section_id)
        was_active = section.is_active

        teacher_id = section.teacher_id
        if request.teacher_changed():
            teacher_id = str(request.teacher_id) if request.teacher_id else None
            if teacher_id:
                await self._ensure_teacher(teacher_id)

        if request.max_students is not None and request.max_students < section.current_students:
            raise InvalidSectionError(
                f"max_students cannot be below the {section.current_students} "
                "students currently registered",
                {"current_students": section.current_students},
            )

        if request.slots is not None:
            classrooms = await self._ensure_classrooms(request.slots)
            proposed = self._to_proposed(request.slots)
        else:
            proposed = [
                ProposedSlot(
                    weekday=Weekday(slot.weekday),
                    period=slot.period,
                    classroom_id=slot.classroom_id,
                )
                for slot in section.slots
            ]

        if request.is_active is not None:
            wants_active = request.is_active
        else:
            # Assigning a teacher to a section parked for lacking one re-activates it
            wants_active = section.is_active or (
                request.teacher_changed()
                and teacher_id is not None
                and section.teacher_id is None
                and section.status_note == NO_TEACHER_NOTE
            )
        is_active = wants_active and teacher_id is not None

        index = await self._build_index(section.term_id, exclude_section_id=section.id)
        validate_schedule(proposed, index, teacher_id)

        cancelled = 0
        try:
            if request.slots is not None:
                section.slots = self._build_slots(proposed, classrooms)
            if request.max_students is not None:
                section.max_students = request.max_students
            section.teacher_id = teacher_id
            section.is_active = is_active

            if request.status_note is not None:
                section.status_note = request.status_note or None
            elif wants_active and teacher_id is None:
                section.status_note = NO_TEACHER_NOTE
            elif is_active and section.status_note == NO_TEACHER_NOTE:
                section.status_note = None

            section.version += 1
            await self.db.flush()

            if was_active and not is_active:
                reason = NO_TEACHER_NOTE if teacher_id is None else DEACTIVATED_REASON
                cancelled = await RegistrationService(self.db).cancel_for_section(
                    section.id, reason
                )
            elif request.slots is not None:
                await RegistrationService(self.db).refresh_overlaps_for_section(section.id)

            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise InvalidSectionError("Section edit violates a capacity constraint") from e
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Updated section %s (active=%s, cancelled %d registration(s))",
            section_id,
            is_active,
            cancelled,
        )

        return self._to_response(await self._get_by_id(section_id))

    async def get_section(self, section_id: UUID | str) -> SectionResponse:
        """Get section by ID.

        Raises:
            SectionNotFoundError: If section not found.
        """
        return self._to_response(await self._get_by_id(section_id))

    async def list_sections(
        self,
        term_id: UUID | None = None,
        subject_id: UUID | None = None,
        teacher_id: UUID | None = None,
        is_active: bool | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> SectionListResponse:
        """List sections with optional filters."""
        query = select(Section)

        if term_id:
            query = query.where(Section.term_id == str(term_id))
        if subject_id:
            query = query.where(Section.subject_id == str(subject_id))
        if teacher_id:
            query = query.where(Section.teacher_id == str(teacher_id))
        if is_active is not None:
            query = query.where(Section.is_active == is_active)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(Section.class_code).offset(offset).limit(limit)
        result = await self.db.execute(query)
        sections = result.scalars().all()

        return SectionListResponse(
            items=[self._to_response(s) for s in sections],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def expand_schedule(
        self,
        section_id: UUID | str,
        term_id: UUID | str | None = None,
    ) -> ExpandedScheduleResponse:
        """Expand a section's weekly slots into dated occurrences over its term.

        Args:
            section_id: Section identifier.
            term_id: Term to expand over; must be the section's term.

        Returns:
            Occurrences ordered by date then period.

        Raises:
            SectionNotFoundError: If section not found.
            SectionServiceError: If term_id is not the section's term.
        """
        section = await self._get_by_id(section_id)
        if term_id is not None and str(term_id) != section.term_id:
            raise SectionServiceError(
                f"Section {section.class_code} does not belong to term {term_id}"
            )

        result = await self.db.execute(select(Term).where(Term.id == section.term_id))
        term = result.scalar_one()

        occurrences: list[ScheduleOccurrence] = []
        for slot in section.slots:
            weekday = Weekday(slot.weekday)
            start_time, end_time = PERIOD_TIMES[slot.period]
            for day in expand_weekly_dates(term.start_date, term.end_date, weekday):
                monday, sunday = week_bounds(day)
                occurrences.append(
                    ScheduleOccurrence(
                        date=day,
                        weekday=weekday,
                        period=slot.period,
                        start_time=start_time,
                        end_time=end_time,
                        classroom_id=UUID(slot.classroom_id),
                        classroom_code=slot.classroom.code if slot.classroom else None,
                        teacher_id=UUID(section.teacher_id) if section.teacher_id else None,
                        week_number=week_number(term.start_date, day),
                        week_start=monday,
                        week_end=sunday,
                    )
                )

        occurrences.sort(key=lambda o: (o.date, o.period))

        return ExpandedScheduleResponse(
            section_id=UUID(section.id),
            term_id=UUID(term.id),
            occurrences=occurrences,
            total=len(occurrences),
        )

    async def sync_section_lifecycle(self, term_id: UUID | str | None = None) -> SyncResult:
        """Force sections without a teacher inactive.

        Sweeps the given term (the current term when omitted). Each flip is
        a conditional UPDATE on is_active AND teacher_id IS NULL, so a
        concurrent teacher assignment wins. Registrations of flipped
        sections are cancelled. Running it twice in a row changes nothing
        the second time.

        Args:
            term_id: Term to sweep, or None for the current term.

        Returns:
            Number of sections changed and registrations cancelled.
        """
        if term_id is None:
            result = await self.db.execute(select(Term.id).where(Term.is_current == True))
            current = result.scalar_one_or_none()
            if current is None:
                logger.info("Lifecycle sync skipped: no current term")
                return SyncResult(term_id=None, changed_count=0)
            term = str(current)
        else:
            term = str(term_id)
            await self._ensure_exists(Term, term, "Term")

        candidates = await self.db.execute(
            select(Section.id).where(
                Section.term_id == term,
                Section.is_active == True,
                Section.teacher_id.is_(None),
            )
        )
        section_ids = list(candidates.scalars())

        changed = 0
        cancelled = 0
        registrations = RegistrationService(self.db)
        try:
            for candidate_id in section_ids:
                result = await self.db.execute(
                    update(Section)
                    .where(
                        Section.id == candidate_id,
                        Section.is_active == True,
                        Section.teacher_id.is_(None),
                    )
                    .values(
                        is_active=False,
                        status_note=NO_TEACHER_NOTE,
                        version=Section.version + 1,
                    )
                )
                if result.rowcount:
                    changed += 1
                    cancelled += await registrations.cancel_for_section(
                        candidate_id, NO_TEACHER_NOTE
                    )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        if changed:
            logger.info(
                "Lifecycle sync deactivated %d section(s) in term %s, cancelled %d registration(s)",
                changed,
                term,
                cancelled,
            )

        return SyncResult(term_id=term, changed_count=changed, cancelled_registrations=cancelled)

    async def _build_index(
        self,
        term_id: str,
        exclude_section_id: str | None = None,
    ) -> ScheduleIndex:
        """Index the slots of the term's active sections."""
        result = await self.db.execute(
            select(
                ScheduleSlot.section_id,
                ScheduleSlot.weekday,
                ScheduleSlot.period,
                ScheduleSlot.classroom_id,
                Section.teacher_id,
            )
            .join(Section, Section.id == ScheduleSlot.section_id)
            .where(Section.term_id == term_id, Section.is_active == True)
        )
        committed = [
            CommittedSlot(
                section_id=row.section_id,
                weekday=Weekday(row.weekday),
                period=row.period,
                classroom_id=row.classroom_id,
                teacher_id=row.teacher_id,
            )
            for row in result
        ]
        return ScheduleIndex(committed, exclude_section_id=exclude_section_id)

    def _to_proposed(self, slots: list[ScheduleSlotInput]) -> list[ProposedSlot]:
        return [
            ProposedSlot(
                weekday=slot.weekday,
                period=slot.period,
                classroom_id=str(slot.classroom_id),
            )
            for slot in slots
        ]

    def _build_slots(
        self,
        proposed: list[ProposedSlot],
        classrooms: dict[str, Classroom],
    ) -> list[ScheduleSlot]:
        return [
            ScheduleSlot(
                position=position,
                weekday=int(slot.weekday),
                period=slot.period,
                classroom_id=slot.classroom_id,
                classroom=classrooms[slot.classroom_id],
            )
            for position, slot in enumerate(proposed)
        ]

    async def _ensure_exists(self, model, object_id: str, label: str) -> None:
        result = await self.db.execute(select(model.id).where(model.id == object_id))
        if not result.scalar_one_or_none():
            raise SectionReferenceNotFoundError(f"{label} {object_id} not found")

    async def _ensure_teacher(self, teacher_id: str) -> None:
        result = await self.db.execute(
            select(User.id).where(User.id == teacher_id, User.role == ActorRole.TEACHER.value)
        )
        if not result.scalar_one_or_none():
            raise SectionReferenceNotFoundError(f"Teacher {teacher_id} not found")

    async def _ensure_classrooms(self, slots: list[ScheduleSlotInput]) -> dict[str, Classroom]:
        wanted = {str(slot.classroom_id) for slot in slots}
        result = await self.db.execute(select(Classroom).where(Classroom.id.in_(wanted)))
        classrooms = {classroom.id: classroom for classroom in result.scalars()}
        missing = wanted - set(classrooms)
        if missing:
            raise SectionReferenceNotFoundError(
                f"Classroom(s) not found: {', '.join(sorted(missing))}"
            )
        return classrooms

    async def _get_by_id(self, section_id: UUID | str) -> Section:
        """Get section by ID with subject and slots loaded.

        Raises:
            SectionNotFoundError: If not found.
        """
        result = await self.db.execute(
            select(Section)
            .where(Section.id == str(section_id))
            .execution_options(populate_existing=True)
        )
        section = result.scalar_one_or_none()

        if not section:
            raise SectionNotFoundError(f"Section {section_id} not found")

        return section

    def _to_response(self, section: Section) -> SectionResponse:
        return SectionResponse(
            id=UUID(section.id),
            term_id=UUID(section.term_id),
            subject_id=UUID(section.subject_id),
            subject_code=section.subject.code if section.subject else None,
            subject_credits=section.subject.credits if section.subject else None,
            class_code=section.class_code,
            teacher_id=UUID(section.teacher_id) if section.teacher_id else None,
            max_students=section.max_students,
            current_students=section.current_students,
            available_seats=section.available_seats,
            is_active=section.is_active,
            status_note=section.status_note,
            slots=[
                ScheduleSlotResponse(
                    weekday=Weekday(slot.weekday),
                    period=slot.period,
                    classroom_id=UUID(slot.classroom_id),
                    classroom_code=slot.classroom.code if slot.classroom else None,
                )
                for slot in section.slots
            ],
            created_at=ensure_utc(section.created_at),
            updated_at=ensure_utc(section.updated_at),
        )
