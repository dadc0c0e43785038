# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment API endpoints.

This module provides endpoints for the enrollment lifecycle:
- GET / - List enrollments (admin, teacher)
- GET /my-enrollments - List the caller's own enrollments
- GET /student/{student_id} - List a student's enrollments
- GET /course/{course_id} - List a course's enrollments
- GET /{enrollment_id} - Get enrollment details
- GET /{enrollment_id}/statistics - Learning statistics of a completed course
- POST / - Enroll a student on their behalf (admin, teacher)
- POST /enroll - Self enrollment (student, rate limited)
- PUT /my-enrollments/{enrollment_id} - Cancel own enrollment (student)
- PUT /{enrollment_id} - Update an enrollment (admin, teacher)
- POST /{enrollment_id}/kick - Remove a student from a course (admin, teacher)

Domain errors carry their failure category, which decides the HTTP status.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from lms_enrollment.api.dependencies import (
    get_enrollment_service,
    get_statistics_aggregator,
    require_auth,
    require_student,
    require_teacher_or_admin,
)
from lms_enrollment.api.middleware.auth import CurrentUser
from lms_enrollment.api.middleware.rate_limit import SELF_ENROLL_LIMIT, limiter
from lms_enrollment.domains.enrollment.errors import (
    CooldownActiveError,
    EnrollmentServiceError,
    ErrorKind,
)
from lms_enrollment.domains.enrollment.lifecycle import EnrollmentMethod, EnrollmentStatus
from lms_enrollment.domains.enrollment.policy import AdmissionRequest
from lms_enrollment.domains.enrollment.ports import EnrollmentFilter
from lms_enrollment.domains.enrollment.schemas import (
    EnrollmentCreateRequest,
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollmentStatisticsResponse,
    EnrollmentUpdateRequest,
    KickRequest,
    SelfEnrollRequest,
)
from lms_enrollment.domains.enrollment.service import EnrollmentService
from lms_enrollment.domains.enrollment.statistics import StatisticsAggregator

logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
}


def _http_error(error: EnrollmentServiceError) -> HTTPException:
    """Translate a domain error into an HTTP error with the same message."""
    headers = None
    if isinstance(error, CooldownActiveError):
        headers = {"Retry-After": str(error.remaining_seconds)}
    return HTTPException(
        status_code=_STATUS_CODES.get(error.kind, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
        headers=headers,
    )


async def _list(
    service: EnrollmentService,
    filters: EnrollmentFilter,
    current_user: CurrentUser,
    page: int,
    limit: int | None,
) -> EnrollmentListResponse:
    try:
        return await service.list_enrollments(
            filters=filters,
            viewer=current_user.to_actor(),
            page=page,
            limit=limit,
        )
    except EnrollmentServiceError as e:
        raise _http_error(e)


PageQuery = Annotated[int, Query(ge=1, description="Page number")]
LimitQuery = Annotated[int | None, Query(ge=1, le=100, description="Page size")]
StatusQuery = Annotated[EnrollmentStatus | None, Query(alias="status", description="Filter by status")]
MethodQuery = Annotated[EnrollmentMethod | None, Query(description="Filter by admission method")]


@router.get(
    "",
    response_model=EnrollmentListResponse,
    summary="List enrollments",
    description="Admins list everything; teachers must filter by a course they teach or a student.",
)
async def list_enrollments(
    student_id: Annotated[str | None, Query(description="Filter by student")] = None,
    course_id: Annotated[str | None, Query(description="Filter by course")] = None,
    status_filter: StatusQuery = None,
    method: MethodQuery = None,
    page: PageQuery = 1,
    limit: LimitQuery = None,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentListResponse:
    filters = EnrollmentFilter(
        student_id=student_id,
        course_id=course_id,
        status=status_filter,
        method=method,
    )
    return await _list(service, filters, current_user, page, limit)


@router.get(
    "/my-enrollments",
    response_model=EnrollmentListResponse,
    summary="List my enrollments",
)
async def list_my_enrollments(
    status_filter: StatusQuery = None,
    page: PageQuery = 1,
    limit: LimitQuery = None,
    current_user: CurrentUser = Depends(require_auth),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentListResponse:
    filters = EnrollmentFilter(student_id=current_user.id, status=status_filter)
    return await _list(service, filters, current_user, page, limit)


@router.get(
    "/student/{student_id}",
    response_model=EnrollmentListResponse,
    summary="List a student's enrollments",
)
async def list_student_enrollments(
    student_id: str,
    status_filter: StatusQuery = None,
    page: PageQuery = 1,
    limit: LimitQuery = None,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentListResponse:
    filters = EnrollmentFilter(student_id=student_id, status=status_filter)
    return await _list(service, filters, current_user, page, limit)


@router.get(
    "/course/{course_id}",
    response_model=EnrollmentListResponse,
    summary="List a course's enrollments",
)
async def list_course_enrollments(
    course_id: str,
    status_filter: StatusQuery = None,
    page: PageQuery = 1,
    limit: LimitQuery = None,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentListResponse:
    filters = EnrollmentFilter(course_id=course_id, status=status_filter)
    return await _list(service, filters, current_user, page, limit)


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll a student",
    description="Enroll a student on their behalf. Teachers may only enroll into courses they teach.",
)
async def create_enrollment(
    data: EnrollmentCreateRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentResponse:
    """Enroll a student on their behalf.

    The admission method is taken from the caller's role, so enrollments
    made by staff are never subject to the self-enrollment rules.

    Raises:
        HTTPException: On any admission failure.
    """
    logger.info(
        "Creating enrollment: student=%s, course=%s by %s",
        data.student_id,
        data.course_id,
        current_user.id,
    )

    request = AdmissionRequest(
        student_id=data.student_id,
        course_id=data.course_id,
        method=EnrollmentMethod.ADMIN if current_user.is_admin else EnrollmentMethod.TEACHER,
        status=data.status,
        role=data.role,
        note=data.note,
    )
    try:
        return await service.create_enrollment(request, actor=current_user.to_actor())
    except EnrollmentServiceError as e:
        raise _http_error(e)


@router.post(
    "/enroll",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in a course",
    description="Self enrollment. The course approval setting decides the initial status.",
)
@limiter.limit(SELF_ENROLL_LIMIT)
async def self_enroll(
    request: Request,
    data: SelfEnrollRequest,
    current_user: CurrentUser = Depends(require_student),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentResponse:
    """Enroll the calling student in a course.

    Raises:
        HTTPException: On any admission failure, including cooldown
            (with Retry-After) and the daily limit.
    """
    admission = AdmissionRequest(
        student_id=current_user.id,
        course_id=data.course_id,
        method=EnrollmentMethod.SELF,
        password=data.password,
        note=data.note,
    )
    try:
        return await service.create_enrollment(admission, actor=current_user.to_actor())
    except EnrollmentServiceError as e:
        raise _http_error(e)


@router.put(
    "/my-enrollments/{enrollment_id}",
    response_model=EnrollmentResponse,
    summary="Cancel my enrollment",
)
async def cancel_my_enrollment(
    enrollment_id: str,
    current_user: CurrentUser = Depends(require_student),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentResponse:
    try:
        return await service.self_cancel_enrollment(enrollment_id, current_user.id)
    except EnrollmentServiceError as e:
        raise _http_error(e)


@router.get(
    "/{enrollment_id}",
    response_model=EnrollmentResponse,
    summary="Get enrollment",
)
async def get_enrollment(
    enrollment_id: str,
    current_user: CurrentUser = Depends(require_auth),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentResponse:
    try:
        return await service.get_enrollment(enrollment_id, current_user.to_actor())
    except EnrollmentServiceError as e:
        raise _http_error(e)


@router.get(
    "/{enrollment_id}/statistics",
    response_model=EnrollmentStatisticsResponse,
    summary="Get enrollment statistics",
    description="Lesson, quiz, assignment and attendance figures. Only for completed courses.",
)
async def get_enrollment_statistics(
    enrollment_id: str,
    current_user: CurrentUser = Depends(require_auth),
    aggregator: StatisticsAggregator = Depends(get_statistics_aggregator),
) -> EnrollmentStatisticsResponse:
    try:
        return await aggregator.get_enrollment_statistics(enrollment_id, current_user.to_actor())
    except EnrollmentServiceError as e:
        raise _http_error(e)


@router.put(
    "/{enrollment_id}",
    response_model=EnrollmentResponse,
    summary="Update enrollment",
    description="Approve, reject, complete or drop an enrollment, or set its role, grade and note.",
)
async def update_enrollment(
    enrollment_id: str,
    data: EnrollmentUpdateRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentResponse:
    try:
        return await service.update_enrollment(enrollment_id, data, current_user.to_actor())
    except EnrollmentServiceError as e:
        raise _http_error(e)


@router.post(
    "/{enrollment_id}/kick",
    response_model=EnrollmentResponse,
    summary="Remove a student from a course",
)
async def kick_student(
    enrollment_id: str,
    data: KickRequest,
    current_user: CurrentUser = Depends(require_teacher_or_admin),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> EnrollmentResponse:
    logger.info("Kicking from enrollment %s by %s", enrollment_id, current_user.id)

    try:
        return await service.kick_student(enrollment_id, data.reason, current_user.to_actor())
    except EnrollmentServiceError as e:
        raise _http_error(e)
