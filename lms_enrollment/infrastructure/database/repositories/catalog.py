# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read-only SQL adapters for the enrollment collaborators.

Each adapter maps the catalog read models onto the plain dataclasses the
enrollment domain consumes, so domain code never sees ORM objects owned by
other services.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms_enrollment.domains.enrollment.lifecycle import CourseStatus
from lms_enrollment.domains.enrollment.ports import (
    AssignmentInfo,
    CourseInfo,
    QuizAttemptInfo,
    QuizInfo,
    StudentInfo,
    SubjectInfo,
    SubmissionInfo,
)
from lms_enrollment.infrastructure.database.models.catalog import (
    Assignment,
    Course,
    Quiz,
    QuizAttempt,
    Subject,
    Submission,
    User,
)

logger = logging.getLogger(__name__)


class SQLStudentDirectory:
    """Student lookups against the users table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_id(self, student_id: str) -> StudentInfo | None:
        user = await self.db.get(User, student_id)
        if user is None:
            return None
        return StudentInfo(
            id=user.id,
            username=user.username,
            role=user.role,
            email=user.email,
            fullname=user.fullname,
            avatar_url=user.avatar_url,
        )


class SQLCourseCatalog:
    """Course lookups against the courses table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_id(self, course_id: str) -> CourseInfo | None:
        course = await self.db.get(Course, course_id)
        if course is None:
            return None
        return self._to_info(course)

    async def find_ids_by_subject(self, subject_id: str) -> list[str]:
        """List ids of every course offering of a subject."""
        result = await self.db.execute(select(Course.id).where(Course.subject_id == subject_id))
        return [row[0] for row in result.all()]

    @staticmethod
    def _to_info(course: Course) -> CourseInfo:
        try:
            status = CourseStatus(course.status)
        except ValueError:
            logger.warning("Course %s has unknown status %r", course.id, course.status)
            status = CourseStatus.DRAFT

        return CourseInfo(
            id=course.id,
            title=course.title,
            code=course.code,
            status=status,
            capacity=course.capacity,
            enroll_requires_approval=course.enroll_requires_approval,
            enroll_password_hash=course.enroll_password_hash,
            teacher_ids=tuple(course.teacher_ids or ()),
            subject_id=course.subject_id,
            end_date=course.end_date,
        )


class SQLSubjectCatalog:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_id(self, subject_id: str) -> SubjectInfo | None:
        subject = await self.db.get(Subject, subject_id)
        if subject is None:
            return None
        return SubjectInfo(
            id=subject.id,
            name=subject.name,
            prerequisites=tuple(subject.prerequisites or ()),
        )


class SQLQuizCatalog:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_by_course(self, course_id: str) -> list[QuizInfo]:
        result = await self.db.execute(
            select(Quiz).where(Quiz.course_id == course_id).order_by(Quiz.title)
        )
        return [QuizInfo(id=q.id, title=q.title) for q in result.scalars().all()]


class SQLAssignmentCatalog:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_by_course(self, course_id: str) -> list[AssignmentInfo]:
        result = await self.db.execute(
            select(Assignment).where(Assignment.course_id == course_id).order_by(Assignment.title)
        )
        return [AssignmentInfo(id=a.id, title=a.title) for a in result.scalars().all()]


class SQLQuizAttemptStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_quizzes_and_student(
        self,
        quiz_ids: list[str],
        student_id: str,
    ) -> list[QuizAttemptInfo]:
        if not quiz_ids:
            return []
        result = await self.db.execute(
            select(QuizAttempt).where(
                QuizAttempt.quiz_id.in_(quiz_ids),
                QuizAttempt.student_id == student_id,
            )
        )
        return [
            QuizAttemptInfo(
                id=a.id,
                quiz_id=a.quiz_id,
                student_id=a.student_id,
                status=a.status,
                score=a.score,
                submitted_at=a.submitted_at,
            )
            for a in result.scalars().all()
        ]


class SQLSubmissionStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_assignments_and_student(
        self,
        assignment_ids: list[str],
        student_id: str,
    ) -> list[SubmissionInfo]:
        if not assignment_ids:
            return []
        result = await self.db.execute(
            select(Submission).where(
                Submission.assignment_id.in_(assignment_ids),
                Submission.student_id == student_id,
            )
        )
        return [
            SubmissionInfo(
                id=s.id,
                assignment_id=s.assignment_id,
                student_id=s.student_id,
                status=s.status,
                grade=s.grade,
                submitted_at=s.submitted_at,
            )
            for s in result.scalars().all()
        ]
