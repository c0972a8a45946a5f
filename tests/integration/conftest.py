# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

Provides an async engine, sessions, a transaction runner and a seeded
tutoring center (teacher, student, parent, program with a curriculum).

Set TEST_DATABASE_URL to run against PostgreSQL; the default is an
in-memory SQLite database.
"""

import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.domains.enrollment import EnrollmentService
from src.infrastructure.database.connection import TransactionRunner
from src.infrastructure.database.models import (
    AvailabilitySlot,
    MessageTemplate,
    Program,
    ProgramCurriculumItem,
    TutoringSession,
    User,
    new_id,
)
from src.infrastructure.database.models.base import Base
from src.models.common import SessionStatus, SessionType
from src.models.enrollment import EnrollmentCreateRequest

LOW_CREDIT_CONTENT = (
    "Hi [Parent Name],\n\n"
    "This is a notification that [Student Name]'s credit balance for [Program Name] is running low. "
    "They have [Credits Remaining] credits left.\n\n"
    "Thank you,\n"
    "[Company Name]"
)


@dataclass
class TutoringCenter:
    """Ids of the seeded records."""

    teacher_id: str
    student_id: str
    parent_id: str
    program_id: str
    chapter_1: str
    topic_1_1: str
    topic_1_2: str
    chapter_2: str
    topic_2_1: str


@pytest.fixture(scope="session")
def db_url() -> str:
    """Get database URL for tests."""
    return os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest_asyncio.fixture(scope="function")
async def db_engine(db_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine with a fresh schema.

    In-memory SQLite shares one connection across sessions; file databases
    and PostgreSQL give every session its own connection.
    """
    if db_url.startswith("sqlite") and ":memory:" in db_url:
        engine = create_async_engine(
            db_url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(db_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def sessionmaker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory used by fixtures and the runner."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
def runner(sessionmaker) -> TransactionRunner:
    """Create a transaction runner over the test database."""
    return TransactionRunner(sessionmaker, max_attempts=3, timeout_seconds=10.0)


@pytest_asyncio.fixture(scope="function")
async def center(sessionmaker) -> TutoringCenter:
    """Seed a teacher available on Mondays, a student with a parent and a program.

    Curriculum:
        Chapter 1
            Topic 1.1
            Topic 1.2 (one assignment template)
        Chapter 2
            Topic 2.1
    """
    parent = User(first_name="Pat", last_name="Parent", role="Parent")
    teacher = User(first_name="Tess", last_name="Teacher", role="Teacher")
    async with sessionmaker() as session, session.begin():
        session.add_all([parent, teacher])
        await session.flush()

        student = User(first_name="Sam", last_name="Student", role="Student", parent_id=parent.id)
        program = Program(title="Algebra Foundations")
        session.add_all([student, program])
        await session.flush()

        chapter_1 = ProgramCurriculumItem(program_id=program.id, position=0, title="Chapter 1", item_type="Chapter")
        chapter_2 = ProgramCurriculumItem(program_id=program.id, position=1, title="Chapter 2", item_type="Chapter")
        session.add_all([chapter_1, chapter_2])
        await session.flush()

        topic_1_1 = ProgramCurriculumItem(
            program_id=program.id, parent_id=chapter_1.id, position=0, title="Topic 1.1", item_type="Topic"
        )
        topic_1_2 = ProgramCurriculumItem(
            program_id=program.id,
            parent_id=chapter_1.id,
            position=1,
            title="Topic 1.2",
            item_type="Topic",
            assignment_templates=[
                {"id": "tmpl-1", "title": "Linear equations worksheet", "url": "https://example.com/ws1"}
            ],
        )
        topic_2_1 = ProgramCurriculumItem(
            program_id=program.id, parent_id=chapter_2.id, position=0, title="Topic 2.1", item_type="Topic"
        )
        session.add_all([topic_1_1, topic_1_2, topic_2_1])

        # Mondays 09:00-17:00
        session.add(
            AvailabilitySlot(teacher_id=teacher.id, day_of_week=1, start_time=time(9, 0), end_time=time(17, 0))
        )
        session.add(MessageTemplate(id="low-credit-alert", title="Low Credit Alert", content=LOW_CREDIT_CONTENT))
        await session.flush()

        return TutoringCenter(
            teacher_id=teacher.id,
            student_id=student.id,
            parent_id=parent.id,
            program_id=program.id,
            chapter_1=chapter_1.id,
            topic_1_1=topic_1_1.id,
            topic_1_2=topic_1_2.id,
            chapter_2=chapter_2.id,
            topic_2_1=topic_2_1.id,
        )


@pytest.fixture
def enroll(runner: TransactionRunner, center: TutoringCenter) -> Callable[[int], Awaitable[str]]:
    """Factory that enrolls the seeded student with a number of credits.

    Returns:
        Coroutine function returning the new enrollment id.
    """

    async def _enroll(credits: int) -> str:
        request = EnrollmentCreateRequest(
            student_id=center.student_id,
            program_id=center.program_id,
            teacher_id=center.teacher_id,
            initial_credits=credits,
        )
        response = await runner.run(lambda db: EnrollmentService(db).create_enrollment(request, actor="Admin"))
        return response.id

    return _enroll


@pytest.fixture
def book(runner: TransactionRunner, center: TutoringCenter) -> Callable[..., Awaitable[str]]:
    """Factory that stores a scheduled session for the seeded student.

    Returns:
        Coroutine function returning the new session id.
    """

    async def _book(
        start: datetime,
        *,
        curriculum_item_id: str | None = None,
        session_type: SessionType = SessionType.CURRICULUM,
        recurring_id: str | None = None,
    ) -> str:
        session = TutoringSession(
            id=new_id(),
            title="Algebra Foundations - Sam Student",
            start=start,
            end=start + timedelta(hours=1),
            student_id=center.student_id,
            teacher_id=center.teacher_id,
            program_id=center.program_id,
            curriculum_item_id=curriculum_item_id,
            status=SessionStatus.SCHEDULED.value,
            session_type=session_type.value,
            recurring_id=recurring_id,
        )

        async def _store(db):
            db.add(session)
            await db.flush()
            return session.id

        return await runner.run(_store)

    return _book
