# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across unit and integration tests:
- Test environment variables
- Actors for each platform role
- Student and course catalog entries
- Transient enrollment records
"""

import os
from collections.abc import Callable
from datetime import timedelta
from typing import Any
from uuid import uuid4

# Settings are cached on first use; set the test environment before any import.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("LOG_LEVEL", "INFO")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("JWT_ALGORITHM", "HS256")

import pytest

from lms_enrollment.domains.enrollment.lifecycle import (
    ActorRole,
    CourseStatus,
    EnrollmentMethod,
    EnrollmentRole,
    EnrollmentStatus,
)
from lms_enrollment.domains.enrollment.ports import Actor, CourseInfo, StudentInfo
from lms_enrollment.infrastructure.database.models.enrollment import Enrollment, empty_progress
from lms_enrollment.utils.datetime import utc_now


# =============================================================================
# Actor Fixtures
# =============================================================================


@pytest.fixture
def admin() -> Actor:
    return Actor(id="admin-1", role=ActorRole.ADMIN)


@pytest.fixture
def teacher() -> Actor:
    return Actor(id="teacher-1", role=ActorRole.TEACHER)


@pytest.fixture
def other_teacher() -> Actor:
    return Actor(id="teacher-2", role=ActorRole.TEACHER)


@pytest.fixture
def student_actor(student: StudentInfo) -> Actor:
    return Actor(id=student.id, role=ActorRole.STUDENT)


# =============================================================================
# Catalog Fixtures
# =============================================================================


@pytest.fixture
def student() -> StudentInfo:
    """Provide a sample student."""
    return StudentInfo(
        id="550e8400-e29b-41d4-a716-446655440001",
        username="alice",
        email="alice@example.com",
        fullname="Alice Nguyen",
    )


@pytest.fixture
def make_course() -> Callable[..., CourseInfo]:
    """Factory for ongoing courses taught by teacher-1."""

    def _make(**overrides: Any) -> CourseInfo:
        values: dict[str, Any] = {
            "id": "course-1",
            "title": "Algorithms",
            "code": "CS201",
            "status": CourseStatus.ONGOING,
            "capacity": None,
            "enroll_requires_approval": False,
            "enroll_password_hash": None,
            "teacher_ids": ("teacher-1",),
            "subject_id": None,
            "end_date": utc_now() + timedelta(days=60),
        }
        values.update(overrides)
        return CourseInfo(**values)

    return _make


@pytest.fixture
def course(make_course: Callable[..., CourseInfo]) -> CourseInfo:
    return make_course()


@pytest.fixture
def make_enrollment() -> Callable[..., Enrollment]:
    """Factory for transient enrollment records."""

    def _make(**overrides: Any) -> Enrollment:
        now = utc_now()
        values: dict[str, Any] = {
            "id": str(uuid4()),
            "student_id": "550e8400-e29b-41d4-a716-446655440001",
            "course_id": "course-1",
            "status": EnrollmentStatus.PENDING,
            "role": EnrollmentRole.STUDENT,
            "method": EnrollmentMethod.SELF,
            "note": None,
            "enrolled_at": now,
            "progress": empty_progress(),
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }
        values.update(overrides)
        return Enrollment(**values)

    return _make
