# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment and seat counter models.

Enrollment holds one record per (student, course) pair; a new admission
cycle resets the record in place. EnrollmentAdmission logs every admission
cycle. CourseSeatCounter tracks the number of approved enrollments per
course and is updated in the same transaction as the enrollment.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from lms_enrollment.domains.enrollment.lifecycle import (
    EnrollmentMethod,
    EnrollmentRole,
    EnrollmentStatus,
)
from lms_enrollment.infrastructure.database.models.base import (
    Base,
    JSONType,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from lms_enrollment.utils.datetime import utc_now

PROGRESS_FIELDS = (
    "total_lessons",
    "completed_lessons",
    "total_quizzes",
    "completed_quizzes",
    "total_quiz_scores",
    "total_assignments",
    "completed_assignments",
    "total_assignment_scores",
    "total_attendances",
    "present_attendances",
)


def empty_progress() -> dict[str, int]:
    """Progress counters with every field at zero."""
    return {name: 0 for name in PROGRESS_FIELDS}


def _enum_column(enum_cls: type) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class Enrollment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Student enrollment in a course offering.

    Attributes:
        student_id: Enrolled student.
        course_id: Course offering.
        status: Lifecycle status.
        role: Role within the course.
        method: Who initiated the admission.
        note: Audit trail; kick reasons are appended.
        enrolled_at: Start of the current admission cycle.
        responded_at: When the request was approved or rejected.
        responded_by: Who approved or rejected it.
        completed_at: When the course was completed.
        dropped_at: When the student was dropped.
        final_grade: Final grade, 0-100.
        progress: Counters maintained by the content and attendance services.
        version: Optimistic concurrency token.
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
        CheckConstraint(
            "final_grade IS NULL OR (final_grade >= 0 AND final_grade <= 100)",
            name="ck_enrollments_final_grade_range",
        ),
    )

    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    course_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    status: Mapped[EnrollmentStatus] = mapped_column(
        _enum_column(EnrollmentStatus), nullable=False, index=True
    )
    role: Mapped[EnrollmentRole] = mapped_column(
        _enum_column(EnrollmentRole), nullable=False, default=EnrollmentRole.STUDENT
    )
    method: Mapped[EnrollmentMethod] = mapped_column(
        _enum_column(EnrollmentMethod), nullable=False, default=EnrollmentMethod.SELF
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    responded_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    dropped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    final_grade: Mapped[float | None] = mapped_column(Float, nullable=True)
    progress: Mapped[dict[str, Any]] = mapped_column(
        JSONType, nullable=False, default=empty_progress
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def progress_value(self, name: str) -> int:
        """Read a progress counter, treating missing values as zero."""
        return int((self.progress or {}).get(name) or 0)

    def progress_score(self, name: str) -> float:
        """Read a summed score, which may be fractional."""
        return float((self.progress or {}).get(name) or 0)

    def __repr__(self) -> str:
        return (
            f"<Enrollment(id={self.id}, student_id={self.student_id}, "
            f"course_id={self.course_id}, status={self.status})>"
        )


class EnrollmentAdmission(UUIDPrimaryKeyMixin, Base):
    """One row per admission cycle started on an enrollment.

    Re-enrollment resets the enrollment in place, so admissions per day are
    counted here rather than from enrollment records.
    """

    __tablename__ = "enrollment_admissions"
    __table_args__ = (
        Index(
            "ix_enrollment_admissions_student_method_admitted",
            "student_id",
            "method",
            "admitted_at",
        ),
    )

    student_id: Mapped[str] = mapped_column(String(36), nullable=False)
    course_id: Mapped[str] = mapped_column(String(36), nullable=False)
    method: Mapped[EnrollmentMethod] = mapped_column(_enum_column(EnrollmentMethod), nullable=False)
    admitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )


class CourseSeatCounter(Base):
    """Approved enrollment count per course."""

    __tablename__ = "course_seat_counters"
    __table_args__ = (
        CheckConstraint("approved_count >= 0", name="ck_course_seat_counters_non_negative"),
    )

    course_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    approved_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
