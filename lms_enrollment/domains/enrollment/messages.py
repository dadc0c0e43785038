# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User-facing messages for the enrollment domain.

Messages for self-initiated actions and for staff acting on behalf of a
student are worded differently, so the same cause yields two strings.
"""

from lms_enrollment.domains.enrollment.lifecycle import EnrollmentStatus

# (prior status, is_self) -> message
_CONFLICT_MESSAGES: dict[tuple[EnrollmentStatus, bool], str] = {
    (EnrollmentStatus.PENDING, True): (
        "You already have a pending enrollment request for this course. "
        "Please wait for the teacher to review it."
    ),
    (EnrollmentStatus.PENDING, False): (
        "This student already has a pending enrollment request for this course. "
        "Approve or reject it instead of creating a new one."
    ),
    (EnrollmentStatus.APPROVED, True): "You are already enrolled in this course.",
    (EnrollmentStatus.APPROVED, False): "This student is already enrolled in this course.",
    (EnrollmentStatus.DROPPED, True): (
        "You were removed from this course and cannot enroll again. "
        "Please enroll in another offering of the same subject."
    ),
    (EnrollmentStatus.DROPPED, False): (
        "This student was removed from this course and cannot be enrolled again. "
        "Enroll the student in another offering of the same subject."
    ),
    (EnrollmentStatus.COMPLETED, True): (
        "You have already completed this course. "
        "Please enroll in another offering of the same subject."
    ),
    (EnrollmentStatus.COMPLETED, False): (
        "This student has already completed this course. "
        "Enroll the student in another offering of the same subject."
    ),
}

_CANCEL_MESSAGES: dict[EnrollmentStatus, str] = {
    EnrollmentStatus.COMPLETED: "You have already completed this course and cannot cancel the enrollment.",
    EnrollmentStatus.DROPPED: "You were dropped from this course by staff; the enrollment cannot be cancelled.",
    EnrollmentStatus.REJECTED: "Your enrollment request was already rejected; there is nothing to cancel.",
    EnrollmentStatus.CANCELLED: "This enrollment has already been cancelled.",
}

STUDENT_NOT_FOUND = "Student not found"
COURSE_NOT_FOUND = "Course not found"
ENROLLMENT_NOT_FOUND = "Enrollment not found"
COURSE_NOT_ENROLLABLE = "This course is not open for enrollment"
COURSE_COMPLETED = "This course has already completed"
COURSE_ENDED = "This course has already ended"
COURSE_FULL = "This course is full"
PASSWORD_REQUIRED = "This course requires an enrollment password"
INVALID_PASSWORD = "Invalid enrollment password"
CONCURRENT_MODIFICATION = "The enrollment was modified by another request, please try again"
ENROLL_FORBIDDEN = "Only an admin or a teacher of this course can enroll students"
UPDATE_FORBIDDEN = "Only an admin or a teacher of this course can update enrollments"
KICK_FORBIDDEN = "Only an admin or a teacher of this course can remove students"
VIEW_FORBIDDEN = "You don't have permission to view this enrollment"
LIST_ALL_FORBIDDEN = "Only admins can view all enrollments"
LIST_COURSE_FORBIDDEN = "You don't have permission to view this course's enrollments"
LIST_STUDENT_FORBIDDEN = "You don't have permission to view this student's enrollments"
STATISTICS_FORBIDDEN = "You don't have permission to view statistics for this enrollment"
STATISTICS_UNAVAILABLE = "Statistics are only available after the course has completed"


def already_enrolled(status: EnrollmentStatus, is_self: bool) -> str:
    """Conflict message for an admission attempt on an occupied pair."""
    return _CONFLICT_MESSAGES[(status, is_self)]


def cannot_cancel(status: EnrollmentStatus) -> str:
    return _CANCEL_MESSAGES.get(status, f"Cannot cancel an enrollment with status '{status.value}'")


def cannot_kick(status: EnrollmentStatus) -> str:
    return f"Only approved students can be removed; this enrollment is '{status.value}'"


def invalid_initial_status(status: EnrollmentStatus) -> str:
    return f"Enrollment cannot start with status '{status.value}'; use 'pending' or 'approved'"


def invalid_transition(source: EnrollmentStatus, target: EnrollmentStatus) -> str:
    return f"Cannot change enrollment status from '{source.value}' to '{target.value}'"


def prerequisite_not_met(subject_names: list[str], is_self: bool) -> str:
    names = ", ".join(subject_names)
    if is_self:
        return f"You must complete the prerequisite subject(s) first: {names}"
    return f"The student has not completed the prerequisite subject(s): {names}"


def prerequisite_cycle(subject_id: str) -> str:
    return f"Prerequisite chain of subject {subject_id} contains a cycle"


def subject_not_found(subject_id: str) -> str:
    return f"Subject {subject_id} not found"


def cooldown_active(remaining_seconds: int) -> str:
    return f"Please wait {remaining_seconds} seconds before enrolling in this course again"


def daily_limit_exceeded(limit: int) -> str:
    return f"You can enroll in at most {limit} courses per day. Please try again tomorrow"


# Notification titles and bodies


def admission_notice(status: EnrollmentStatus, course_title: str) -> tuple[str, str]:
    """Title and message telling a student staff enrolled them."""
    if status == EnrollmentStatus.APPROVED:
        return (
            "Enrolled in course",
            f'You have been enrolled in the course "{course_title}".',
        )
    return (
        "Enrollment pending",
        f'An enrollment in the course "{course_title}" was created for you and is awaiting approval.',
    )


def pending_request_notice(student_name: str, course_title: str) -> tuple[str, str]:
    return (
        "New enrollment request",
        f'{student_name} requested to join the course "{course_title}".',
    )


_STATUS_CHANGE_NOTICES: dict[EnrollmentStatus, tuple[str, str]] = {
    EnrollmentStatus.APPROVED: (
        "Enrollment approved",
        'Your enrollment in the course "{course}" has been approved.',
    ),
    EnrollmentStatus.REJECTED: (
        "Enrollment rejected",
        'Your enrollment in the course "{course}" has been rejected.',
    ),
    EnrollmentStatus.COMPLETED: (
        "Course completed",
        'Congratulations! You have completed the course "{course}".',
    ),
}


def status_change_notice(status: EnrollmentStatus, course_title: str) -> tuple[str, str] | None:
    """Title and message for a staff status update, None when none is defined."""
    notice = _STATUS_CHANGE_NOTICES.get(status)
    if notice is None:
        return None
    title, template = notice
    return title, template.format(course=course_title)


def kick_notice(course_title: str, reason: str) -> tuple[str, str]:
    return (
        "Removed from course",
        f'You have been removed from the course "{course_title}". Reason: {reason}',
    )
