# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Learning statistics for an enrollment in a completed course.

Summary figures and totals come from the enrollment's progress counters,
which the content and attendance services maintain. Per-item details join
the student's quiz attempts and assignment submissions. Nothing here writes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lms_enrollment.domains.enrollment import messages
from lms_enrollment.domains.enrollment.errors import (
    CourseNotFoundError,
    EnrollmentAccessDeniedError,
    EnrollmentNotFoundError,
    StatisticsUnavailableError,
)
from lms_enrollment.domains.enrollment.lifecycle import CourseStatus, EnrollmentStatus
from lms_enrollment.domains.enrollment.ports import (
    Actor,
    AssignmentCatalog,
    AssignmentInfo,
    CourseCatalog,
    CourseInfo,
    EnrollmentStore,
    QuizAttemptInfo,
    QuizAttemptStore,
    QuizCatalog,
    QuizInfo,
    StudentDirectory,
    SubmissionInfo,
    SubmissionStore,
)
from lms_enrollment.domains.enrollment.schemas import (
    AssignmentResult,
    AssignmentStatistics,
    AttendanceStatistics,
    CourseSummary,
    EnrollmentStatisticsResponse,
    LessonStatistics,
    QuizResult,
    QuizStatistics,
    StatisticsDetails,
    StatisticsSummary,
    StudentSummary,
)
from lms_enrollment.utils.datetime import ensure_utc

if TYPE_CHECKING:
    from lms_enrollment.infrastructure.database.models.enrollment import Enrollment

logger = logging.getLogger(__name__)

ATTEMPT_SUBMITTED = "submitted"
SUBMISSION_COUNTED = frozenset({"submitted", "graded"})


def percentage(part: float, total: float) -> float:
    """Percentage of part in total, 0 when total is 0."""
    if not total:
        return 0.0
    return round(part / total * 100, 2)


def average(total_score: float, count: int) -> float:
    """Mean score over count items rounded to two decimals, 0 when count is 0.

    Items without a score still count, so missed work lowers the average.
    """
    if not count:
        return 0.0
    return round(total_score / count, 2)


def best_attempts(attempts: list[QuizAttemptInfo]) -> dict[str, QuizAttemptInfo]:
    """Pick the highest scoring submitted attempt per quiz."""
    best: dict[str, QuizAttemptInfo] = {}
    for attempt in attempts:
        if attempt.status != ATTEMPT_SUBMITTED:
            continue
        current = best.get(attempt.quiz_id)
        if current is None or (attempt.score or 0) > (current.score or 0):
            best[attempt.quiz_id] = attempt
    return best


def latest_submissions(submissions: list[SubmissionInfo]) -> dict[str, SubmissionInfo]:
    """Pick the most recent submitted or graded submission per assignment."""
    latest: dict[str, SubmissionInfo] = {}
    for submission in submissions:
        if submission.status not in SUBMISSION_COUNTED:
            continue
        current = latest.get(submission.assignment_id)
        if current is None or _submitted_key(submission) > _submitted_key(current):
            latest[submission.assignment_id] = submission
    return latest


def _submitted_key(submission: SubmissionInfo) -> float:
    submitted_at = ensure_utc(submission.submitted_at)
    return submitted_at.timestamp() if submitted_at else float("-inf")


class StatisticsAggregator:
    """Builds enrollment statistics once a course has completed."""

    def __init__(
        self,
        store: EnrollmentStore,
        students: StudentDirectory,
        courses: CourseCatalog,
        quizzes: QuizCatalog,
        assignments: AssignmentCatalog,
        attempts: QuizAttemptStore,
        submissions: SubmissionStore,
    ) -> None:
        self.store = store
        self.students = students
        self.courses = courses
        self.quizzes = quizzes
        self.assignments = assignments
        self.attempts = attempts
        self.submissions = submissions

    async def get_enrollment_statistics(
        self,
        enrollment_id: str,
        viewer: Actor,
    ) -> EnrollmentStatisticsResponse:
        """Get learning statistics of an enrollment.

        Args:
            enrollment_id: Enrollment identifier.
            viewer: User requesting the statistics.

        Returns:
            Summary figures and per-quiz, per-assignment details.

        Raises:
            EnrollmentNotFoundError: If the enrollment is not found.
            CourseNotFoundError: If the course is not found.
            EnrollmentAccessDeniedError: If the viewer is not the student,
                a teacher of the course or an admin.
            StatisticsUnavailableError: If the course has not completed.
        """
        enrollment = await self.store.get(enrollment_id)
        if not enrollment:
            raise EnrollmentNotFoundError(messages.ENROLLMENT_NOT_FOUND)

        course = await self.courses.find_by_id(enrollment.course_id)
        if not course:
            raise CourseNotFoundError(messages.COURSE_NOT_FOUND)

        allowed = (
            viewer.is_admin
            or (viewer.is_student and enrollment.student_id == viewer.id)
            or (viewer.is_teacher and course.is_taught_by(viewer.id))
        )
        if not allowed:
            raise EnrollmentAccessDeniedError(messages.STATISTICS_FORBIDDEN)

        if course.status != CourseStatus.COMPLETED:
            raise StatisticsUnavailableError(messages.STATISTICS_UNAVAILABLE)

        student = await self.students.find_by_id(enrollment.student_id)
        quizzes = await self._quiz_statistics(course, enrollment)
        assignments = await self._assignment_statistics(course, enrollment)

        lessons = LessonStatistics(
            total=enrollment.progress_value("total_lessons"),
            completed=enrollment.progress_value("completed_lessons"),
            percentage=percentage(
                enrollment.progress_value("completed_lessons"),
                enrollment.progress_value("total_lessons"),
            ),
        )
        total_attendances = enrollment.progress_value("total_attendances")
        present = enrollment.progress_value("present_attendances")
        attendance = AttendanceStatistics(
            total=total_attendances,
            present=present,
            absent=max(total_attendances - present, 0),
            percentage=percentage(present, total_attendances),
        )

        logger.debug(
            "Built statistics: enrollment=%s, quizzes=%d, assignments=%d",
            enrollment.id,
            quizzes.total,
            assignments.total,
        )

        return EnrollmentStatisticsResponse(
            enrollment_id=enrollment.id,
            status=EnrollmentStatus(enrollment.status),
            student=(
                StudentSummary(
                    id=student.id,
                    username=student.username,
                    email=student.email,
                    fullname=student.fullname,
                    avatar_url=student.avatar_url,
                )
                if student
                else None
            ),
            course=CourseSummary(
                id=course.id,
                title=course.title,
                code=course.code,
                status=course.status.value,
            ),
            summary=StatisticsSummary(
                lesson_progress=lessons.percentage,
                attendance_rate=attendance.percentage,
                quiz_average=quizzes.average,
                assignment_average=assignments.average,
                absences=attendance.absent,
                final_grade=enrollment.final_grade,
            ),
            details=StatisticsDetails(
                lessons=lessons,
                quizzes=quizzes,
                assignments=assignments,
                attendance=attendance,
            ),
        )

    async def _quiz_statistics(self, course: CourseInfo, enrollment: Enrollment) -> QuizStatistics:
        quizzes: list[QuizInfo] = await self.quizzes.list_by_course(course.id)
        attempts = await self.attempts.find_by_quizzes_and_student(
            [q.id for q in quizzes], enrollment.student_id
        )
        best = best_attempts(attempts)

        items = [
            QuizResult(
                quiz_id=quiz.id,
                title=quiz.title,
                score=best[quiz.id].score if quiz.id in best else None,
                submitted_at=best[quiz.id].submitted_at if quiz.id in best else None,
            )
            for quiz in quizzes
        ]

        total = enrollment.progress_value("total_quizzes")
        total_score = enrollment.progress_score("total_quiz_scores")
        return QuizStatistics(
            items=items,
            average=average(total_score, total),
            total=total,
            completed=enrollment.progress_value("completed_quizzes"),
            total_score=total_score,
        )

    async def _assignment_statistics(
        self,
        course: CourseInfo,
        enrollment: Enrollment,
    ) -> AssignmentStatistics:
        assignments: list[AssignmentInfo] = await self.assignments.list_by_course(course.id)
        submissions = await self.submissions.find_by_assignments_and_student(
            [a.id for a in assignments], enrollment.student_id
        )
        latest = latest_submissions(submissions)

        items = []
        for assignment in assignments:
            submission = latest.get(assignment.id)
            items.append(
                AssignmentResult(
                    assignment_id=assignment.id,
                    title=assignment.title,
                    status=submission.status if submission else None,
                    grade=submission.grade if submission else None,
                    submitted_at=submission.submitted_at if submission else None,
                )
            )

        total = enrollment.progress_value("total_assignments")
        total_score = enrollment.progress_score("total_assignment_scores")
        return AssignmentStatistics(
            items=items,
            average=average(total_score, total),
            total=total,
            completed=enrollment.progress_value("completed_assignments"),
            total_score=total_score,
        )
