# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

Service and API tests run against a real database: a throwaway SQLite file
per test by default, or the URL in TEST_DATABASE_URL.
"""

import os
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from datetime import date

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from src.core.config.settings import RegistrationSettings
from src.domains.section.service import SectionService
from src.infrastructure.database import configure_sqlite_engine, create_sessionmaker
from src.infrastructure.database.models import Base, Classroom, Subject, Term, User
from src.models.common import Actor, ActorRole
from src.models.section import ScheduleSlotInput, SectionCreateRequest, SectionResponse
from src.utils.datetime import days_from_now

# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (exercises the HTTP API)"
    )
    config.addinivalue_line("markers", "slow: mark test as slow running")


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    """Create a database engine with a fresh schema."""
    url = os.environ.get("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'registrar.db'}")
    engine = create_async_engine(url)
    if url.startswith("sqlite"):
        configure_sqlite_engine(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db(engine) -> AsyncIterator[AsyncSession]:
    """Provide a session configured like the application's."""
    sessionmaker = create_sessionmaker(engine)
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def registration_settings() -> RegistrationSettings:
    """Registration policy with the default rules."""
    return RegistrationSettings(
        teacher_approval_requires_closed_window=True,
        admin_bypasses_registration_window=False,
        default_max_credits=16,
        default_min_credits=8,
    )


# =============================================================================
# Reference Data
# =============================================================================


@dataclass
class SeedData:
    """Reference rows shared by the service tests."""

    admin: User
    teacher: User
    other_teacher: User
    student: User
    other_student: User
    math: Subject
    physics: Subject
    chemistry: Subject
    biology: Subject
    art: Subject
    room_a: Classroom
    room_b: Classroom
    room_c: Classroom
    term: Term

    def actor(self, user: User) -> Actor:
        return Actor(id=user.id, role=ActorRole(user.role))


TERM_START = date(2025, 1, 6)
TERM_END = date(2025, 4, 28)


@pytest.fixture
async def seed(db) -> SeedData:
    """Insert users, subjects, classrooms and an open term."""

    def user(name: str, role: ActorRole) -> User:
        return User(email=f"{name}@school.test", full_name=name.title(), role=role.value)

    data = SeedData(
        admin=user("admin", ActorRole.ADMIN),
        teacher=user("teacher", ActorRole.TEACHER),
        other_teacher=user("other.teacher", ActorRole.TEACHER),
        student=user("student", ActorRole.STUDENT),
        other_student=user("other.student", ActorRole.STUDENT),
        math=Subject(code="MATH101", name="Calculus", credits=4),
        physics=Subject(code="PHYS101", name="Mechanics", credits=4),
        chemistry=Subject(code="CHEM101", name="General Chemistry", credits=4),
        biology=Subject(code="BIO101", name="Cell Biology", credits=4),
        art=Subject(code="ART100", name="Drawing", credits=1),
        room_a=Classroom(code="A101", name="Room A101", capacity=40),
        room_b=Classroom(code="B202", name="Room B202", capacity=30),
        room_c=Classroom(code="C303", name="Room C303", capacity=25),
        term=Term(
            name="Spring 2025",
            code="2025S",
            start_date=TERM_START,
            end_date=TERM_END,
            registration_start=days_from_now(-1),
            registration_end=days_from_now(7),
            withdrawal_deadline=days_from_now(30),
            min_credits_per_student=8,
            max_credits_per_student=16,
            is_current=True,
        ),
    )
    db.add_all(
        [
            data.admin,
            data.teacher,
            data.other_teacher,
            data.student,
            data.other_student,
            data.math,
            data.physics,
            data.chemistry,
            data.biology,
            data.art,
            data.room_a,
            data.room_b,
            data.room_c,
            data.term,
        ]
    )
    await db.commit()
    # Detached copies keep their loaded ids after a service rolls back
    db.expunge_all()
    return data


SectionFactory = Callable[..., Awaitable[SectionResponse]]


@pytest.fixture
def make_section(db, seed) -> SectionFactory:
    """Create sections through the service.

    Slots are (weekday, period, classroom) tuples. The teacher defaults to
    seed.teacher; pass without_teacher=True for an unassigned section.
    """
    counter = iter(range(1, 1000))

    async def factory(
        subject: Subject,
        slots: list[tuple[int, int, Classroom]],
        teacher: User | None = None,
        without_teacher: bool = False,
        max_students: int = 30,
        class_code: str | None = None,
    ) -> SectionResponse:
        if not without_teacher:
            teacher = teacher or seed.teacher
        request = SectionCreateRequest(
            term_id=seed.term.id,
            subject_id=subject.id,
            class_code=class_code or f"S{next(counter):02d}",
            teacher_id=None if without_teacher else teacher.id,
            max_students=max_students,
            slots=[
                ScheduleSlotInput(weekday=weekday, period=period, classroom_id=room.id)
                for weekday, period, room in slots
            ],
        )
        return await SectionService(db).create_section(request)

    return factory


@pytest.fixture
def close_window(db, seed) -> Callable[[], Awaitable[None]]:
    """Move the seeded term's registration window into the past."""

    async def close() -> None:
        await db.execute(
            update(Term)
            .where(Term.id == seed.term.id)
            .values(registration_start=days_from_now(-10), registration_end=days_from_now(-1))
        )
        await db.commit()

    return close
