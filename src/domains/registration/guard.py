# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Capacity & credit guard.

Pre-checks run before a registration is admitted, in this order:
1. the section is active and has a free seat
2. the registration window is open (admins may be exempt)
3. the student's active credits plus the new subject fit the term maximum

The shared aggregates (section seat counter, student term credit load) are
then changed with compare-and-swap UPDATE statements: the limit is part of
the WHERE clause and zero updated rows means another request won the race.
Callers run these inside their transaction and roll back on any error.
"""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import RegistrationSettings
from src.domains.registration.exceptions import (
    CreditLimitExceededError,
    RegistrationClosedError,
    SectionFullError,
)
from src.infrastructure.database.models import Section, StudentTermLoad, Term
from src.models.common import Actor

logger = logging.getLogger(__name__)


def check_section_open(section: Section) -> None:
    """Require an active section with a free seat.

    Raises:
        SectionFullError: If the section is inactive or full.
    """
    if not section.is_active:
        raise SectionFullError(
            f"Section {section.class_code} is not open for registration",
            {"section_id": section.id, "is_active": False},
        )
    if section.current_students >= section.max_students:
        raise SectionFullError(
            f"Section {section.class_code} is full",
            {
                "section_id": section.id,
                "current_students": section.current_students,
                "max_students": section.max_students,
            },
        )


def check_registration_window(
    term: Term,
    actor: Actor,
    settings: RegistrationSettings,
    now: datetime | None = None,
) -> None:
    """Require registration_start <= now <= registration_end.

    Raises:
        RegistrationClosedError: If the window is closed and the actor is not exempt.
    """
    if actor.is_admin and settings.admin_bypasses_registration_window:
        return
    if not term.is_registration_open(now):
        raise RegistrationClosedError(
            f"Registration for term {term.code} is closed",
            {"term_id": term.id},
        )


def check_credit_limit(current_credits: int, added_credits: int, max_credits: int) -> None:
    """Require current + added <= max.

    Raises:
        CreditLimitExceededError: If the limit would be exceeded.
    """
    if current_credits + added_credits > max_credits:
        raise CreditLimitExceededError(
            f"Registration would bring the credit load to "
            f"{current_credits + added_credits}, above the limit of {max_credits}",
            {
                "current_credits": current_credits,
                "requested_credits": added_credits,
                "max_credits": max_credits,
            },
        )


async def claim_seat(db: AsyncSession, section_id: str) -> None:
    """Atomically take one seat of an active section.

    Raises:
        SectionFullError: If no seat could be taken.
    """
    result = await db.execute(
        update(Section)
        .where(
            Section.id == section_id,
            Section.is_active == True,
            Section.current_students < Section.max_students,
        )
        .values(
            current_students=Section.current_students + 1,
            version=Section.version + 1,
        )
    )
    if result.rowcount == 0:
        raise SectionFullError(
            f"Section {section_id} has no free seat",
            {"section_id": section_id},
        )


async def release_seat(db: AsyncSession, section_id: str) -> bool:
    """Atomically give back one seat. The counter never goes below zero.

    Returns:
        True if a seat was released.
    """
    result = await db.execute(
        update(Section)
        .where(Section.id == section_id, Section.current_students > 0)
        .values(
            current_students=Section.current_students - 1,
            version=Section.version + 1,
        )
    )
    if result.rowcount == 0:
        logger.warning("Seat release on section %s found counter already at zero", section_id)
        return False
    return True


async def get_or_create_load(db: AsyncSession, student_id: str, term_id: str) -> StudentTermLoad:
    """Get the student's credit aggregate for a term, creating it on first use.

    The insert runs in a SAVEPOINT so a concurrent insert of the same row
    only rolls back the savepoint.
    """
    query = select(StudentTermLoad).where(
        StudentTermLoad.student_id == student_id,
        StudentTermLoad.term_id == term_id,
    )
    result = await db.execute(query)
    load = result.scalar_one_or_none()
    if load:
        return load

    load = StudentTermLoad(student_id=student_id, term_id=term_id, credits=0)
    try:
        async with db.begin_nested():
            db.add(load)
    except IntegrityError:
        result = await db.execute(query)
        load = result.scalar_one()
    return load


async def claim_credits(
    db: AsyncSession,
    student_id: str,
    term_id: str,
    credits: int,
    max_credits: int,
) -> None:
    """Atomically add credits to the student's term load within the limit.

    Raises:
        CreditLimitExceededError: If the limit would be exceeded.
    """
    load = await get_or_create_load(db, student_id, term_id)
    result = await db.execute(
        update(StudentTermLoad)
        .where(
            StudentTermLoad.id == load.id,
            StudentTermLoad.credits + credits <= max_credits,
        )
        .values(credits=StudentTermLoad.credits + credits)
    )
    if result.rowcount == 0:
        check_credit_limit(load.credits, credits, max_credits)
        # Lost a race: the row changed between read and update
        raise CreditLimitExceededError(
            "Credit load changed concurrently and would exceed the limit",
            {"requested_credits": credits, "max_credits": max_credits},
        )


async def release_credits(
    db: AsyncSession,
    student_id: str,
    term_id: str,
    credits: int,
    dropped: bool = False,
) -> None:
    """Atomically remove credits from the student's term load.

    Args:
        db: Database session.
        student_id: Student identifier.
        term_id: Term identifier.
        credits: Credits to release.
        dropped: Whether this is a manual drop, which is recorded in the
            drop history. Cancellations and rejections are not.
    """
    values: dict = {"credits": StudentTermLoad.credits - credits}
    if dropped:
        values["dropped_count"] = StudentTermLoad.dropped_count + 1
        values["dropped_credits"] = StudentTermLoad.dropped_credits + credits

    result = await db.execute(
        update(StudentTermLoad)
        .where(
            StudentTermLoad.student_id == student_id,
            StudentTermLoad.term_id == term_id,
            StudentTermLoad.credits >= credits,
        )
        .values(**values)
    )
    if result.rowcount == 0:
        logger.warning(
            "Credit release of %d for student %s in term %s found no matching load",
            credits,
            student_id,
            term_id,
        )
