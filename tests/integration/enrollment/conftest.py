# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for enrollment integration tests.

Provides a file-backed SQLite database with every table created, seeded
users and courses, and services wired to the SQL adapters the API uses.
"""

from collections.abc import Callable
from datetime import timedelta
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from lms_enrollment.core.config.settings import EnrollmentSettings, NotificationSettings
from lms_enrollment.domains.auth.password import PasswordHasher
from lms_enrollment.domains.enrollment.notifier import EnrollmentNotifier
from lms_enrollment.domains.enrollment.policy import AdmissionPolicyEngine
from lms_enrollment.domains.enrollment.service import EnrollmentService
from lms_enrollment.domains.enrollment.statistics import StatisticsAggregator
from lms_enrollment.infrastructure.database.connection import create_sessionmaker
from lms_enrollment.infrastructure.database.models import Base, Course, Subject, User
from lms_enrollment.infrastructure.database.repositories import (
    EnrollmentRepository,
    SQLAssignmentCatalog,
    SQLCourseCatalog,
    SQLQuizAttemptStore,
    SQLQuizCatalog,
    SQLStudentDirectory,
    SQLSubjectCatalog,
    SQLSubmissionStore,
)
from lms_enrollment.infrastructure.notifications import NotificationService
from lms_enrollment.utils.datetime import utc_now

TEACHER_ID = "teacher-1"
STUDENT_IDS = ("student-1", "student-2", "student-3")
COURSE_PASSWORD = "spring-2025"


@pytest_asyncio.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh SQLite database with every table."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'enrollment.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def sessionmaker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_sessionmaker(db_engine)


@pytest_asyncio.fixture
async def seeded(sessionmaker: async_sessionmaker[AsyncSession]) -> None:
    """Seed one admin, one teacher and three students."""
    async with sessionmaker() as session:
        session.add(User(id="admin-1", username="admin", role="admin"))
        session.add(User(id=TEACHER_ID, username="tbinh", fullname="Tran Binh", role="teacher"))
        for index, student_id in enumerate(STUDENT_IDS, start=1):
            session.add(
                User(
                    id=student_id,
                    username=f"student{index}",
                    email=f"student{index}@example.com",
                    fullname=f"Student {index}",
                )
            )
        await session.commit()


@pytest.fixture
def add_course(
    sessionmaker: async_sessionmaker[AsyncSession],
    seeded: None,
) -> Callable[..., Any]:
    """Factory inserting an ongoing course taught by teacher-1."""

    async def _add(**overrides: Any) -> str:
        values: dict[str, Any] = {
            "title": "Algorithms",
            "code": "CS201",
            "status": "ongoing",
            "teacher_ids": [TEACHER_ID],
            "end_date": utc_now() + timedelta(days=60),
        }
        values.update(overrides)
        async with sessionmaker() as session:
            course = Course(**values)
            session.add(course)
            await session.commit()
            return course.id

    return _add


@pytest.fixture
def add_subject(sessionmaker: async_sessionmaker[AsyncSession]) -> Callable[..., Any]:
    async def _add(name: str, prerequisites: list[str] | None = None, **overrides: Any) -> str:
        async with sessionmaker() as session:
            subject = Subject(name=name, prerequisites=prerequisites or [], **overrides)
            session.add(subject)
            await session.commit()
            return subject.id

    return _add


@pytest.fixture
def password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def notifier(sessionmaker: async_sessionmaker[AsyncSession]) -> EnrollmentNotifier:
    """Notifier writing in-app notifications to the test database."""
    return EnrollmentNotifier(NotificationService(sessionmaker, NotificationSettings()))


@pytest.fixture
def build_service(
    sessionmaker: async_sessionmaker[AsyncSession],
    password_hasher: PasswordHasher,
) -> Callable[..., EnrollmentService]:
    """Wire an EnrollmentService to one session, as the API does per request.

    Notifications are off unless a notifier is passed; SQLite allows one
    writer at a time and background deliveries would race the test.
    """
    silent = EnrollmentNotifier(NotificationService(sessionmaker), enabled=False)

    def _build(session: AsyncSession, notifier: EnrollmentNotifier | None = None) -> EnrollmentService:
        store = EnrollmentRepository(session)
        policy = AdmissionPolicyEngine(
            students=SQLStudentDirectory(session),
            courses=SQLCourseCatalog(session),
            subjects=SQLSubjectCatalog(session),
            passwords=password_hasher,
            completions=store,
        )
        return EnrollmentService(
            store=store,
            policy=policy,
            notifier=notifier or silent,
            settings=EnrollmentSettings(),
        )

    return _build


@pytest.fixture
def build_aggregator() -> Callable[[AsyncSession], StatisticsAggregator]:
    def _build(session: AsyncSession) -> StatisticsAggregator:
        return StatisticsAggregator(
            store=EnrollmentRepository(session),
            students=SQLStudentDirectory(session),
            courses=SQLCourseCatalog(session),
            quizzes=SQLQuizCatalog(session),
            assignments=SQLAssignmentCatalog(session),
            attempts=SQLQuizAttemptStore(session),
            submissions=SQLSubmissionStore(session),
        )

    return _build
