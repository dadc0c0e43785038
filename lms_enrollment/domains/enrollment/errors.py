# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by the enrollment domain.

Each exception carries an ErrorKind so the API layer can translate it
into an HTTP status without knowing every subclass.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure category of an enrollment error."""

    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"


class EnrollmentServiceError(Exception):
    """Base exception for enrollment service errors.

    Attributes:
        message: Human-readable error description.
        kind: Failure category.
    """

    kind: ErrorKind = ErrorKind.BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# Not found


class EnrollmentNotFoundError(EnrollmentServiceError):
    """Raised when an enrollment is not found."""

    kind = ErrorKind.NOT_FOUND


class StudentNotFoundError(EnrollmentServiceError):
    """Raised when a student is not found."""

    kind = ErrorKind.NOT_FOUND


class CourseNotFoundError(EnrollmentServiceError):
    """Raised when a course is not found."""

    kind = ErrorKind.NOT_FOUND


class SubjectNotFoundError(EnrollmentServiceError):
    """Raised when a subject referenced by a course is not found."""

    kind = ErrorKind.NOT_FOUND


# Bad request


class CourseNotEnrollableError(EnrollmentServiceError):
    """Raised when a course is not open for enrollment."""

    pass


class CourseInactiveError(EnrollmentServiceError):
    """Raised when a course has completed or passed its end date."""

    pass


class PrerequisiteNotMetError(EnrollmentServiceError):
    """Raised when a student has not completed a prerequisite subject."""

    def __init__(self, message: str, missing_subject_ids: list[str]) -> None:
        super().__init__(message)
        self.missing_subject_ids = missing_subject_ids


class PrerequisiteCycleError(EnrollmentServiceError):
    """Raised when the subject prerequisite graph contains a cycle."""

    pass


class PasswordRequiredError(EnrollmentServiceError):
    """Raised when a password-protected course is joined without one."""

    pass


class InvalidStatusError(EnrollmentServiceError):
    """Raised when a requested initial status is not allowed."""

    pass


class InvalidTransitionError(EnrollmentServiceError):
    """Raised when a status change is not a declared lifecycle edge."""

    pass


class CourseFullError(EnrollmentServiceError):
    """Raised when no approved seats are left in a course."""

    pass


class CooldownActiveError(EnrollmentServiceError):
    """Raised when a student re-enrolls before the cooldown has elapsed."""

    def __init__(self, message: str, remaining_seconds: int) -> None:
        super().__init__(message)
        self.remaining_seconds = remaining_seconds


class DailyLimitExceededError(EnrollmentServiceError):
    """Raised when a student exceeds the daily self-enrollment limit."""

    pass


class StatisticsUnavailableError(EnrollmentServiceError):
    """Raised when statistics are requested before the course completes."""

    pass


# Unauthorized / forbidden / conflict


class InvalidPasswordError(EnrollmentServiceError):
    """Raised when the course enrollment password does not match."""

    kind = ErrorKind.UNAUTHORIZED


class EnrollmentAccessDeniedError(EnrollmentServiceError):
    """Raised when the actor may not view or change an enrollment."""

    kind = ErrorKind.FORBIDDEN


class AlreadyEnrolledError(EnrollmentServiceError):
    """Raised when the pair already has a non-reenrollable enrollment."""

    kind = ErrorKind.CONFLICT


class ConcurrentModificationError(EnrollmentServiceError):
    """Raised when another request changed the enrollment first."""

    kind = ErrorKind.CONFLICT
