# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides the enrollment admission and lifecycle engine:
- lifecycle: Closed enumerations and the status transition table
- policy: Admission policy (student, course, prerequisites, password, status)
- service: EnrollmentService orchestrating create, update, cancel and kick
- notifier: Status-change notifications scheduled after commit
- statistics: Learning statistics for completed courses

EnrollmentService is imported from lms_enrollment.domains.enrollment.service
directly; it depends on the ORM models, which in turn depend on this package.
"""

from lms_enrollment.domains.enrollment.errors import (
    AlreadyEnrolledError,
    ConcurrentModificationError,
    CooldownActiveError,
    CourseFullError,
    CourseInactiveError,
    CourseNotEnrollableError,
    CourseNotFoundError,
    DailyLimitExceededError,
    EnrollmentAccessDeniedError,
    EnrollmentNotFoundError,
    EnrollmentServiceError,
    ErrorKind,
    InvalidPasswordError,
    InvalidStatusError,
    InvalidTransitionError,
    PasswordRequiredError,
    PrerequisiteCycleError,
    PrerequisiteNotMetError,
    StatisticsUnavailableError,
    StudentNotFoundError,
    SubjectNotFoundError,
)
from lms_enrollment.domains.enrollment.lifecycle import (
    ActorRole,
    CourseStatus,
    EnrollmentMethod,
    EnrollmentRole,
    EnrollmentStatus,
    Trigger,
    can_transition,
)
from lms_enrollment.domains.enrollment.notifier import EnrollmentNotifier
from lms_enrollment.domains.enrollment.policy import (
    AdmissionDecision,
    AdmissionPolicyEngine,
    AdmissionRequest,
)
from lms_enrollment.domains.enrollment.ports import Actor, EnrollmentFilter
from lms_enrollment.domains.enrollment.statistics import StatisticsAggregator

__all__ = [
    # Lifecycle
    "ActorRole",
    "CourseStatus",
    "EnrollmentMethod",
    "EnrollmentRole",
    "EnrollmentStatus",
    "Trigger",
    "can_transition",
    # Engine
    "Actor",
    "AdmissionDecision",
    "AdmissionPolicyEngine",
    "AdmissionRequest",
    "EnrollmentFilter",
    "EnrollmentNotifier",
    "StatisticsAggregator",
    # Errors
    "ErrorKind",
    "EnrollmentServiceError",
    "EnrollmentNotFoundError",
    "StudentNotFoundError",
    "CourseNotFoundError",
    "SubjectNotFoundError",
    "CourseNotEnrollableError",
    "CourseInactiveError",
    "PrerequisiteNotMetError",
    "PrerequisiteCycleError",
    "PasswordRequiredError",
    "InvalidPasswordError",
    "InvalidStatusError",
    "InvalidTransitionError",
    "CourseFullError",
    "CooldownActiveError",
    "DailyLimitExceededError",
    "StatisticsUnavailableError",
    "EnrollmentAccessDeniedError",
    "AlreadyEnrolledError",
    "ConcurrentModificationError",
]
