# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Collaborator contracts consumed by the enrollment domain.

The engine reads students, courses and subjects from catalogs it does not
own, verifies course passwords, hands notifications to a dispatcher, and
reads quiz and assignment results for statistics. Each collaborator is a
Protocol here; SQL-backed adapters live in
lms_enrollment.infrastructure.database.repositories.catalog.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from lms_enrollment.domains.enrollment.lifecycle import (
    ActorRole,
    CourseStatus,
    EnrollmentMethod,
    EnrollmentStatus,
)

if TYPE_CHECKING:
    from lms_enrollment.infrastructure.database.models.enrollment import Enrollment


@dataclass(frozen=True)
class Actor:
    """User performing an operation.

    Attributes:
        id: User identifier.
        role: Platform role of the user.
    """

    id: str
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == ActorRole.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == ActorRole.STUDENT


@dataclass(frozen=True)
class StudentInfo:
    """Student as seen by the enrollment engine."""

    id: str
    username: str
    role: str = "student"
    email: str | None = None
    fullname: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class CourseInfo:
    """Course offering as seen by the enrollment engine.

    Attributes:
        id: Course identifier.
        title: Display title.
        code: Course code.
        status: Publication status.
        capacity: Maximum approved enrollments, None for unlimited.
        enroll_requires_approval: Whether self admissions start pending.
        enroll_password_hash: Bcrypt hash guarding self enrollment.
        teacher_ids: Teachers of the course.
        subject_id: Subject this offering teaches.
        end_date: Last day of the course.
    """

    id: str
    title: str
    status: CourseStatus
    code: str | None = None
    capacity: int | None = None
    enroll_requires_approval: bool = False
    enroll_password_hash: str | None = None
    teacher_ids: tuple[str, ...] = ()
    subject_id: str | None = None
    end_date: datetime | None = None

    def is_taught_by(self, user_id: str) -> bool:
        return user_id in self.teacher_ids


@dataclass(frozen=True)
class SubjectInfo:
    """Subject with its prerequisite subject ids."""

    id: str
    name: str = ""
    prerequisites: tuple[str, ...] = ()


@dataclass(frozen=True)
class QuizInfo:
    id: str
    title: str = ""


@dataclass(frozen=True)
class AssignmentInfo:
    id: str
    title: str = ""


@dataclass(frozen=True)
class QuizAttemptInfo:
    """Quiz attempt result. Status is one of in_progress, submitted, abandoned."""

    id: str
    quiz_id: str
    student_id: str
    status: str
    score: float | None = None
    submitted_at: datetime | None = None


@dataclass(frozen=True)
class SubmissionInfo:
    """Assignment submission. Status is one of draft, submitted, graded."""

    id: str
    assignment_id: str
    student_id: str
    status: str
    grade: float | None = None
    submitted_at: datetime | None = None


@dataclass
class NotificationMessage:
    """Status-change message for one recipient.

    Attributes:
        recipient_id: User receiving the notification.
        notification_type: Machine-readable type.
        title: Notification title.
        message: Notification body.
        data: Extra payload (enrollment and course ids).
    """

    recipient_id: str
    notification_type: str
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class EnrollmentFilter:
    """Filters for listing enrollments."""

    student_id: str | None = None
    course_id: str | None = None
    status: EnrollmentStatus | None = None
    method: EnrollmentMethod | None = None


class StudentDirectory(Protocol):
    async def find_by_id(self, student_id: str) -> StudentInfo | None: ...


class CourseCatalog(Protocol):
    async def find_by_id(self, course_id: str) -> CourseInfo | None: ...

    async def find_ids_by_subject(self, subject_id: str) -> list[str]: ...


class SubjectCatalog(Protocol):
    async def find_by_id(self, subject_id: str) -> SubjectInfo | None: ...


class PasswordVerifier(Protocol):
    def verify(self, password: str, password_hash: str) -> bool: ...


class CompletionLookup(Protocol):
    """Answers whether a student completed any of the given courses."""

    async def has_completed_any(self, student_id: str, course_ids: list[str]) -> bool: ...


class NotificationDispatcher(Protocol):
    async def send(self, payload: NotificationMessage, actor_id: str | None, actor_role: str | None) -> None: ...


class QuizCatalog(Protocol):
    async def list_by_course(self, course_id: str) -> list[QuizInfo]: ...


class AssignmentCatalog(Protocol):
    async def list_by_course(self, course_id: str) -> list[AssignmentInfo]: ...


class QuizAttemptStore(Protocol):
    async def find_by_quizzes_and_student(
        self, quiz_ids: list[str], student_id: str
    ) -> list[QuizAttemptInfo]: ...


class SubmissionStore(Protocol):
    async def find_by_assignments_and_student(
        self, assignment_ids: list[str], student_id: str
    ) -> list[SubmissionInfo]: ...


class EnrollmentStore(CompletionLookup, Protocol):
    """Persistence boundary for enrollment records.

    insert() and update() are conditional writes: they enforce pair
    uniqueness and course capacity atomically and raise
    AlreadyEnrolledError, CourseFullError or ConcurrentModificationError.
    """

    async def get(self, enrollment_id: str) -> Enrollment | None: ...

    async def find_latest_for_pair(self, student_id: str, course_id: str) -> Enrollment | None: ...

    async def list(
        self, filters: EnrollmentFilter, offset: int, limit: int
    ) -> tuple[list[Enrollment], int]: ...

    async def count_approved(self, course_id: str) -> int: ...

    async def count_self_admissions_since(self, student_id: str, since: datetime) -> int: ...

    async def record_admission(self, enrollment: Enrollment) -> None: ...

    async def insert(self, enrollment: Enrollment, capacity: int | None) -> Enrollment: ...

    async def update(
        self,
        enrollment: Enrollment,
        previous_status: EnrollmentStatus,
        capacity: int | None,
    ) -> Enrollment: ...
