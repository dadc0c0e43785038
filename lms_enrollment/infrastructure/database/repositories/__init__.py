# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Repositories and read-only catalog adapters."""

from lms_enrollment.infrastructure.database.repositories.catalog import (
    SQLAssignmentCatalog,
    SQLCourseCatalog,
    SQLQuizAttemptStore,
    SQLQuizCatalog,
    SQLStudentDirectory,
    SQLSubjectCatalog,
    SQLSubmissionStore,
)
from lms_enrollment.infrastructure.database.repositories.enrollment import EnrollmentRepository

__all__ = [
    "EnrollmentRepository",
    "SQLStudentDirectory",
    "SQLCourseCatalog",
    "SQLSubjectCatalog",
    "SQLQuizCatalog",
    "SQLAssignmentCatalog",
    "SQLQuizAttemptStore",
    "SQLSubmissionStore",
]
