# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get authenticated users
- Get service instances wired to their SQL adapters

Example:
    @router.get("/my-enrollments")
    async def list_my_enrollments(
        current_user: CurrentUser = Depends(require_auth),
        service: EnrollmentService = Depends(get_enrollment_service),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from lms_enrollment.api.middleware.auth import CurrentUser, get_current_user
from lms_enrollment.core.config import get_settings
from lms_enrollment.domains.auth.password import PasswordHasher
from lms_enrollment.domains.enrollment.notifier import EnrollmentNotifier
from lms_enrollment.domains.enrollment.policy import AdmissionPolicyEngine
from lms_enrollment.domains.enrollment.service import EnrollmentService
from lms_enrollment.domains.enrollment.statistics import StatisticsAggregator
from lms_enrollment.infrastructure.database.connection import (
    close_database,
    get_session,
    get_sessionmaker,
    init_database,
)
from lms_enrollment.infrastructure.database.repositories import (
    EnrollmentRepository,
    SQLAssignmentCatalog,
    SQLCourseCatalog,
    SQLQuizAttemptStore,
    SQLQuizCatalog,
    SQLStudentDirectory,
    SQLSubjectCatalog,
    SQLSubmissionStore,
)
from lms_enrollment.infrastructure.notifications import (
    get_notification_service,
    reset_notification_service,
)

logger = logging.getLogger(__name__)

# Notifier singleton; its delivery tasks outlive the request that scheduled them
_notifier: EnrollmentNotifier | None = None
_password_hasher = PasswordHasher()


async def init_db() -> None:
    """Initialize the database connection pool."""
    await init_database(get_settings())


async def close_db() -> None:
    """Drain pending notifications and close the database connection pool."""
    global _notifier

    if _notifier is not None:
        await _notifier.wait_idle()
        _notifier = None
    reset_notification_service()
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the request.

    Yields:
        AsyncSession committed when the request succeeds.
    """
    async with get_session() as session:
        yield session


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require an authenticated user.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_teacher_or_admin(request: Request) -> CurrentUser:
    """Require an admin or teacher.

    Raises:
        HTTPException: If not authenticated or neither admin nor teacher.
    """
    user = require_auth(request)
    if not (user.is_admin or user.is_teacher):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher or admin access required",
        )
    return user


def require_student(request: Request) -> CurrentUser:
    """Require a student.

    Raises:
        HTTPException: If not authenticated or not a student.
    """
    user = require_auth(request)
    if not user.is_student:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student access required",
        )
    return user


# =========================================================================
# Service Dependencies
# =========================================================================


def get_password_hasher() -> PasswordHasher:
    return _password_hasher


def get_enrollment_notifier() -> EnrollmentNotifier:
    """Get the enrollment notifier singleton.

    Deliveries go through the notification service, which opens its own
    session so a notification never shares the enrollment transaction.
    """
    global _notifier

    if _notifier is None:
        settings = get_settings()
        dispatcher = get_notification_service(get_sessionmaker(), settings.notifications)
        _notifier = EnrollmentNotifier(dispatcher, enabled=settings.notifications.enabled)
    return _notifier


async def get_enrollment_service(
    db: AsyncSession = Depends(get_db),
    notifier: EnrollmentNotifier = Depends(get_enrollment_notifier),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
) -> EnrollmentService:
    """Get an enrollment service bound to the request session."""
    store = EnrollmentRepository(db)
    policy = AdmissionPolicyEngine(
        students=SQLStudentDirectory(db),
        courses=SQLCourseCatalog(db),
        subjects=SQLSubjectCatalog(db),
        passwords=password_hasher,
        completions=store,
    )
    return EnrollmentService(
        store=store,
        policy=policy,
        notifier=notifier,
        settings=get_settings().enrollment,
    )


async def get_statistics_aggregator(
    db: AsyncSession = Depends(get_db),
) -> StatisticsAggregator:
    """Get a statistics aggregator bound to the request session."""
    return StatisticsAggregator(
        store=EnrollmentRepository(db),
        students=SQLStudentDirectory(db),
        courses=SQLCourseCatalog(db),
        quizzes=SQLQuizCatalog(db),
        assignments=SQLAssignmentCatalog(db),
        attempts=SQLQuizAttemptStore(db),
        submissions=SQLSubmissionStore(db),
    )
