# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment API schemas.

Request and response models for the enrollment endpoints. Status, role
and method are closed enumerations; unknown values are rejected by
validation before they reach the service.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from lms_enrollment.domains.enrollment.lifecycle import (
    EnrollmentMethod,
    EnrollmentRole,
    EnrollmentStatus,
)


class StudentSummary(BaseModel):
    """Student display fields."""

    id: str
    username: str
    email: str | None = None
    fullname: str | None = None
    avatar_url: str | None = None


class CourseSummary(BaseModel):
    """Course display fields."""

    id: str
    title: str
    code: str | None = None
    status: str | None = None


class EnrollmentResponse(BaseModel):
    """Enrollment record with student and course display fields."""

    id: str
    student_id: str
    course_id: str
    status: EnrollmentStatus
    role: EnrollmentRole
    method: EnrollmentMethod
    note: str | None = None
    enrolled_at: datetime | None = None
    responded_at: datetime | None = None
    responded_by: str | None = None
    completed_at: datetime | None = None
    dropped_at: datetime | None = None
    final_grade: float | None = None
    progress: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    student: StudentSummary | None = None
    course: CourseSummary | None = None


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class EnrollmentListResponse(BaseModel):
    """Paginated list of enrollments."""

    enrollments: list[EnrollmentResponse]
    pagination: Pagination


class EnrollmentCreateRequest(BaseModel):
    """Staff request to enroll a student.

    The admission method is taken from the caller's role.
    """

    model_config = ConfigDict(extra="forbid")

    student_id: str = Field(min_length=1, description="Student to enroll")
    course_id: str = Field(min_length=1, description="Course to enroll in")
    status: EnrollmentStatus | None = Field(
        default=None,
        description="Initial status, pending or approved. Defaults from the course approval setting.",
    )
    role: EnrollmentRole = EnrollmentRole.STUDENT
    note: str | None = Field(default=None, max_length=2000)


class SelfEnrollRequest(BaseModel):
    """Student request to join a course."""

    model_config = ConfigDict(extra="forbid")

    course_id: str = Field(min_length=1)
    password: str | None = Field(default=None, description="Enrollment password of a protected course")
    note: str | None = Field(default=None, max_length=2000)


class EnrollmentUpdateRequest(BaseModel):
    """Staff update of an enrollment.

    Only fields present in the request are applied. Lifecycle timestamps
    are derived from the status change and cannot be set directly.
    """

    model_config = ConfigDict(extra="forbid")

    status: EnrollmentStatus | None = None
    role: EnrollmentRole | None = None
    final_grade: float | None = Field(default=None, ge=0, le=100)
    note: str | None = Field(default=None, max_length=2000)
    responded_by: str | None = None


class KickRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: str = Field(min_length=1, max_length=500)


# Statistics


class LessonStatistics(BaseModel):
    total: int
    completed: int
    percentage: float


class QuizResult(BaseModel):
    """Best submitted attempt of a quiz, score is None when not attempted."""

    quiz_id: str
    title: str
    score: float | None = None
    submitted_at: datetime | None = None


class QuizStatistics(BaseModel):
    """Totals and average come from progress counters, items from the quiz catalog."""

    items: list[QuizResult]
    average: float
    total: int
    completed: int
    total_score: float


class AssignmentResult(BaseModel):
    """Latest submitted or graded submission of an assignment."""

    assignment_id: str
    title: str
    status: str | None = None
    grade: float | None = None
    submitted_at: datetime | None = None


class AssignmentStatistics(BaseModel):
    items: list[AssignmentResult]
    average: float
    total: int
    completed: int
    total_score: float


class AttendanceStatistics(BaseModel):
    total: int
    present: int
    absent: int
    percentage: float


class StatisticsSummary(BaseModel):
    """Headline figures, percentages rounded to two decimals."""

    lesson_progress: float
    attendance_rate: float
    quiz_average: float
    assignment_average: float
    absences: int
    final_grade: float | None = None


class StatisticsDetails(BaseModel):
    lessons: LessonStatistics
    quizzes: QuizStatistics
    assignments: AssignmentStatistics
    attendance: AttendanceStatistics


class EnrollmentStatisticsResponse(BaseModel):
    """Learning statistics of one enrollment in a completed course."""

    enrollment_id: str
    status: EnrollmentStatus
    student: StudentSummary | None
    course: CourseSummary
    summary: StatisticsSummary
    details: StatisticsDetails
