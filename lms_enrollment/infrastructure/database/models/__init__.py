# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Importing this package registers every table on Base.metadata, which the
Alembic environment and the test fixtures rely on.
"""

from lms_enrollment.infrastructure.database.models.base import (
    Base,
    JSONType,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
    new_id,
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
from lms_enrollment.infrastructure.database.models.enrollment import (
    PROGRESS_FIELDS,
    CourseSeatCounter,
    Enrollment,
    EnrollmentAdmission,
    empty_progress,
)
from lms_enrollment.infrastructure.database.models.notification import Notification

__all__ = [
    # Base
    "Base",
    "JSONType",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "new_id",
    # Enrollment
    "Enrollment",
    "EnrollmentAdmission",
    "CourseSeatCounter",
    "PROGRESS_FIELDS",
    "empty_progress",
    # Notification
    "Notification",
    # Catalog
    "User",
    "Subject",
    "Course",
    "Quiz",
    "QuizAttempt",
    "Assignment",
    "Submission",
]
