# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read models for entities owned by other LMS services.

Users, courses, subjects, quizzes and assignments are managed elsewhere.
The enrollment service only reads them through the catalog adapters.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lms_enrollment.infrastructure.database.models.base import (
    Base,
    JSONType,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Platform user."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    fullname: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="student")


class Subject(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Subject with prerequisite subject ids."""

    __tablename__ = "subjects"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    prerequisites: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)


class Course(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Course offering of a subject."""

    __tablename__ = "courses"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    enroll_requires_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    enroll_password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    teacher_ids: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    subject_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Quiz(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "quizzes"

    course_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)


class QuizAttempt(UUIDPrimaryKeyMixin, Base):
    """Attempt of a student at a quiz."""

    __tablename__ = "quiz_attempts"

    quiz_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="in_progress")
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Assignment(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "assignments"

    course_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)


class Submission(UUIDPrimaryKeyMixin, Base):
    """Submission of a student for an assignment."""

    __tablename__ = "submissions"

    assignment_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    grade: Mapped[float | None] = mapped_column(Float, nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
