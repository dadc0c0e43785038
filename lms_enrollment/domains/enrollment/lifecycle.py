# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment lifecycle: closed enumerations and the transition table.

Every legal status edge is declared once in TRANSITIONS together with the
triggers allowed to take it. Callers ask the table instead of comparing
statuses inline:

    >>> can_transition(EnrollmentStatus.APPROVED, EnrollmentStatus.DROPPED, Trigger.KICK)
    True
    >>> can_transition(EnrollmentStatus.COMPLETED, EnrollmentStatus.PENDING, Trigger.REENROLL)
    False
"""

from enum import Enum


class EnrollmentStatus(str, Enum):
    """Status of an enrollment record."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    DROPPED = "dropped"
    COMPLETED = "completed"


class EnrollmentRole(str, Enum):
    """Role the student holds within the course."""

    STUDENT = "student"
    TA = "ta"
    AUDITOR = "auditor"


class EnrollmentMethod(str, Enum):
    """Who initiated the admission."""

    SELF = "self"
    ADMIN = "admin"
    TEACHER = "teacher"


class ActorRole(str, Enum):
    """Platform role of the user performing an operation."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class CourseStatus(str, Enum):
    """Publication status of a course offering."""

    DRAFT = "draft"
    ONGOING = "ongoing"
    COMPLETED = "completed"


class Trigger(str, Enum):
    """Operation that moves an enrollment between statuses."""

    CREATE = "create"
    REENROLL = "reenroll"
    UPDATE = "update"
    SELF_CANCEL = "self_cancel"
    KICK = "kick"


# Statuses an admission may start in.
INITIAL_STATUSES = frozenset({EnrollmentStatus.PENDING, EnrollmentStatus.APPROVED})

# Statuses that occupy the (student, course) pair.
ACTIVE_STATUSES = frozenset({EnrollmentStatus.PENDING, EnrollmentStatus.APPROVED})

# A new admission cycle may start from these.
REENROLLABLE_STATUSES = frozenset({EnrollmentStatus.REJECTED, EnrollmentStatus.CANCELLED})

# No outgoing edges for the same (student, course) pair.
TERMINAL_STATUSES = frozenset({EnrollmentStatus.DROPPED, EnrollmentStatus.COMPLETED})

_S = EnrollmentStatus

# (from, to) -> triggers. `None` as source means "no record yet".
TRANSITIONS: dict[tuple[EnrollmentStatus | None, EnrollmentStatus], frozenset[Trigger]] = {
    (None, _S.PENDING): frozenset({Trigger.CREATE}),
    (None, _S.APPROVED): frozenset({Trigger.CREATE}),
    (_S.REJECTED, _S.PENDING): frozenset({Trigger.REENROLL}),
    (_S.REJECTED, _S.APPROVED): frozenset({Trigger.REENROLL}),
    (_S.CANCELLED, _S.PENDING): frozenset({Trigger.REENROLL}),
    (_S.CANCELLED, _S.APPROVED): frozenset({Trigger.REENROLL}),
    (_S.PENDING, _S.APPROVED): frozenset({Trigger.UPDATE}),
    (_S.PENDING, _S.REJECTED): frozenset({Trigger.UPDATE}),
    (_S.PENDING, _S.CANCELLED): frozenset({Trigger.SELF_CANCEL}),
    (_S.APPROVED, _S.CANCELLED): frozenset({Trigger.SELF_CANCEL}),
    (_S.APPROVED, _S.DROPPED): frozenset({Trigger.KICK, Trigger.UPDATE}),
    (_S.APPROVED, _S.COMPLETED): frozenset({Trigger.UPDATE}),
}


def can_transition(
    source: EnrollmentStatus | None,
    target: EnrollmentStatus,
    trigger: Trigger,
) -> bool:
    """Check whether a trigger may move an enrollment from source to target."""
    return trigger in TRANSITIONS.get((source, target), frozenset())


def allowed_targets(source: EnrollmentStatus | None, trigger: Trigger) -> frozenset[EnrollmentStatus]:
    """List the statuses a trigger may move an enrollment into from source."""
    return frozenset(
        target
        for (src, target), triggers in TRANSITIONS.items()
        if src == source and trigger in triggers
    )


def is_reenrollable(status: EnrollmentStatus) -> bool:
    """Check whether a new admission cycle may start from status."""
    return status in REENROLLABLE_STATUSES


def is_terminal(status: EnrollmentStatus) -> bool:
    """Check whether status is permanently terminal for its pair."""
    return status in TERMINAL_STATUSES
