# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for Enrollments API endpoints.

The services are replaced through dependency overrides; authentication
runs through the real middleware with signed tokens.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from lms_enrollment.api import create_app
from lms_enrollment.api.dependencies import get_enrollment_service, get_statistics_aggregator
from lms_enrollment.api.middleware.rate_limit import limiter
from lms_enrollment.core.config import get_settings
from lms_enrollment.domains.auth.jwt import JWTManager
from lms_enrollment.domains.enrollment.errors import (
    AlreadyEnrolledError,
    CooldownActiveError,
    CourseFullError,
    EnrollmentAccessDeniedError,
    EnrollmentNotFoundError,
    InvalidPasswordError,
    StatisticsUnavailableError,
)
from lms_enrollment.domains.enrollment.lifecycle import (
    EnrollmentMethod,
    EnrollmentRole,
    EnrollmentStatus,
)
from lms_enrollment.domains.enrollment.ports import EnrollmentFilter
from lms_enrollment.domains.enrollment.schemas import (
    EnrollmentListResponse,
    EnrollmentResponse,
    Pagination,
)
from lms_enrollment.infrastructure.database.connection import DatabaseError
from lms_enrollment.utils.datetime import utc_now

pytestmark = pytest.mark.integration

STUDENT_ID = "550e8400-e29b-41d4-a716-446655440001"
BASE = "/api/v1/enrollments"


def _token(user_id: str, role: str, **kwargs) -> str:
    return JWTManager(get_settings().jwt).create_access_token(user_id=user_id, role=role, **kwargs)


def _auth(user_id: str, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {_token(user_id, role)}"}


ADMIN = ("admin-1", "admin")
TEACHER = ("teacher-1", "teacher")
STUDENT = (STUDENT_ID, "student")


@pytest.fixture
def enrollment_response() -> EnrollmentResponse:
    now = utc_now()
    return EnrollmentResponse(
        id="enr-1",
        student_id=STUDENT_ID,
        course_id="course-1",
        status=EnrollmentStatus.APPROVED,
        role=EnrollmentRole.STUDENT,
        method=EnrollmentMethod.SELF,
        enrolled_at=now,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def service(enrollment_response):
    """Create mock enrollment service."""
    service = AsyncMock()
    service.create_enrollment.return_value = enrollment_response
    service.update_enrollment.return_value = enrollment_response
    service.self_cancel_enrollment.return_value = enrollment_response
    service.kick_student.return_value = enrollment_response
    service.get_enrollment.return_value = enrollment_response
    service.list_enrollments.return_value = EnrollmentListResponse(
        enrollments=[enrollment_response],
        pagination=Pagination(total=1, page=1, limit=10, total_pages=1),
    )
    return service


@pytest.fixture
def aggregator():
    return AsyncMock()


@pytest.fixture
def app(service, aggregator):
    """Create test FastAPI app."""
    app = create_app()
    app.dependency_overrides[get_enrollment_service] = lambda: service
    app.dependency_overrides[get_statistics_aggregator] = lambda: aggregator
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    limiter.reset()
    return TestClient(app)


class TestEnrollmentsAPIRouting:
    """Tests for enrollments API routing."""

    def test_routes_registered(self, app):
        routes = set(app.openapi()["paths"])

        assert f"{BASE}" in routes
        assert f"{BASE}/enroll" in routes
        assert f"{BASE}/my-enrollments" in routes
        assert f"{BASE}/my-enrollments/{{enrollment_id}}" in routes
        assert f"{BASE}/student/{{student_id}}" in routes
        assert f"{BASE}/course/{{course_id}}" in routes
        assert f"{BASE}/{{enrollment_id}}" in routes
        assert f"{BASE}/{{enrollment_id}}/statistics" in routes
        assert f"{BASE}/{{enrollment_id}}/kick" in routes

    def test_my_enrollments_not_shadowed_by_id_route(self, client, service):
        response = client.get(f"{BASE}/my-enrollments", headers=_auth(*STUDENT))

        assert response.status_code == 200
        service.get_enrollment.assert_not_awaited()
        filters = service.list_enrollments.await_args.kwargs["filters"]
        assert filters == EnrollmentFilter(student_id=STUDENT_ID)


class TestAuthentication:
    """Tests for token and role checks."""

    def test_missing_token(self, client):
        response = client.get(f"{BASE}/my-enrollments")

        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_expired_token(self, client):
        token = _token(*STUDENT, expires_in=timedelta(seconds=-5))

        response = client.get(f"{BASE}/my-enrollments", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_malformed_header(self, client):
        response = client.get(f"{BASE}/my-enrollments", headers={"Authorization": "Token abc"})

        assert response.status_code == 401

    def test_student_cannot_enroll_others(self, client, service):
        response = client.post(
            BASE,
            json={"student_id": "someone", "course_id": "course-1"},
            headers=_auth(*STUDENT),
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Teacher or admin access required"
        service.create_enrollment.assert_not_awaited()

    def test_teacher_cannot_self_enroll(self, client):
        response = client.post(
            f"{BASE}/enroll",
            json={"course_id": "course-1"},
            headers=_auth(*TEACHER),
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Student access required"


class TestCreateEnrollment:
    """Tests for POST /enrollments and POST /enrollments/enroll."""

    @pytest.mark.parametrize(
        "caller,method",
        [(ADMIN, EnrollmentMethod.ADMIN), (TEACHER, EnrollmentMethod.TEACHER)],
    )
    def test_method_follows_caller_role(self, client, service, caller, method):
        response = client.post(
            BASE,
            json={"student_id": STUDENT_ID, "course_id": "course-1", "status": "pending"},
            headers=_auth(*caller),
        )

        assert response.status_code == 201
        request = service.create_enrollment.await_args.args[0]
        actor = service.create_enrollment.await_args.kwargs["actor"]
        assert request.method == method
        assert request.status == EnrollmentStatus.PENDING
        assert actor.id == caller[0]

    def test_self_enroll_uses_token_identity(self, client, service):
        response = client.post(
            f"{BASE}/enroll",
            json={"course_id": "course-1", "password": "spring-2025"},
            headers=_auth(*STUDENT),
        )

        assert response.status_code == 201
        assert response.json()["status"] == "approved"
        request = service.create_enrollment.await_args.args[0]
        assert request.student_id == STUDENT_ID
        assert request.method == EnrollmentMethod.SELF
        assert request.password == "spring-2025"

    def test_self_enroll_rejects_student_id_in_body(self, client):
        response = client.post(
            f"{BASE}/enroll",
            json={"course_id": "course-1", "student_id": "someone-else"},
            headers=_auth(*STUDENT),
        )

        assert response.status_code == 422

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (AlreadyEnrolledError("You are already enrolled in this course."), 409),
            (CourseFullError("This course is full"), 400),
            (InvalidPasswordError("Invalid enrollment password"), 401),
            (EnrollmentNotFoundError("Course not found"), 404),
            (EnrollmentAccessDeniedError("Nope"), 403),
        ],
    )
    def test_domain_errors_map_to_status(self, client, service, error, status_code):
        service.create_enrollment.side_effect = error

        response = client.post(f"{BASE}/enroll", json={"course_id": "course-1"}, headers=_auth(*STUDENT))

        assert response.status_code == status_code
        assert response.json()["detail"] == error.message

    def test_cooldown_sets_retry_after(self, client, service):
        service.create_enrollment.side_effect = CooldownActiveError(
            "Please wait 1200 seconds before enrolling in this course again",
            remaining_seconds=1200,
        )

        response = client.post(f"{BASE}/enroll", json={"course_id": "course-1"}, headers=_auth(*STUDENT))

        assert response.status_code == 400
        assert response.headers["Retry-After"] == "1200"

    def test_self_enroll_rate_limited(self, client):
        headers = _auth(*STUDENT)
        limit = get_settings().rate_limit.self_enroll_per_minute

        statuses = [
            client.post(f"{BASE}/enroll", json={"course_id": "course-1"}, headers=headers).status_code
            for _ in range(limit + 1)
        ]

        assert statuses[:limit] == [201] * limit
        assert statuses[limit] == 429


class TestListAndView:
    """Tests for list and detail endpoints."""

    def test_list_with_filters(self, client, service):
        response = client.get(
            BASE,
            params={"course_id": "course-1", "status": "pending", "method": "self", "page": 2, "limit": 5},
            headers=_auth(*TEACHER),
        )

        assert response.status_code == 200
        kwargs = service.list_enrollments.await_args.kwargs
        assert kwargs["filters"] == EnrollmentFilter(
            course_id="course-1",
            status=EnrollmentStatus.PENDING,
            method=EnrollmentMethod.SELF,
        )
        assert kwargs["page"] == 2
        assert kwargs["limit"] == 5
        assert response.json()["pagination"]["total"] == 1

    @pytest.mark.parametrize(
        "params",
        [{"status": "archived"}, {"method": "import"}, {"page": 0}, {"limit": 101}],
    )
    def test_invalid_query_rejected(self, client, service, params):
        response = client.get(BASE, params=params, headers=_auth(*ADMIN))

        assert response.status_code == 422
        service.list_enrollments.assert_not_awaited()

    def test_course_listing_forbidden(self, client, service):
        service.list_enrollments.side_effect = EnrollmentAccessDeniedError(
            "You don't have permission to view this course's enrollments"
        )

        response = client.get(f"{BASE}/course/course-9", headers=_auth(*TEACHER))

        assert response.status_code == 403

    def test_get_enrollment(self, client, service):
        response = client.get(f"{BASE}/enr-1", headers=_auth(*STUDENT))

        assert response.status_code == 200
        assert response.json()["id"] == "enr-1"
        assert service.get_enrollment.await_args.args[0] == "enr-1"

    def test_statistics_before_completion(self, client, aggregator):
        aggregator.get_enrollment_statistics.side_effect = StatisticsUnavailableError(
            "Statistics are only available after the course has completed"
        )

        response = client.get(f"{BASE}/enr-1/statistics", headers=_auth(*STUDENT))

        assert response.status_code == 400


class TestUpdateEndpoints:
    """Tests for update, cancel and kick endpoints."""

    def test_update_passes_only_sent_fields(self, client, service):
        response = client.put(
            f"{BASE}/enr-1",
            json={"status": "completed", "final_grade": 92.5},
            headers=_auth(*TEACHER),
        )

        assert response.status_code == 200
        enrollment_id, update, actor = service.update_enrollment.await_args.args
        assert enrollment_id == "enr-1"
        assert update.model_dump(exclude_unset=True) == {
            "status": EnrollmentStatus.COMPLETED,
            "final_grade": 92.5,
        }
        assert actor.id == "teacher-1"

    @pytest.mark.parametrize(
        "body",
        [{"status": "archived"}, {"final_grade": 101}, {"completed_at": "2025-01-01T00:00:00Z"}],
    )
    def test_update_validation(self, client, body):
        response = client.put(f"{BASE}/enr-1", json=body, headers=_auth(*ADMIN))

        assert response.status_code == 422

    def test_cancel_own_enrollment(self, client, service):
        response = client.put(f"{BASE}/my-enrollments/enr-1", headers=_auth(*STUDENT))

        assert response.status_code == 200
        service.self_cancel_enrollment.assert_awaited_once_with("enr-1", STUDENT_ID)

    def test_kick_requires_reason(self, client):
        response = client.post(f"{BASE}/enr-1/kick", json={"reason": ""}, headers=_auth(*TEACHER))

        assert response.status_code == 422

    def test_kick(self, client, service):
        response = client.post(
            f"{BASE}/enr-1/kick",
            json={"reason": "Academic misconduct"},
            headers=_auth(*TEACHER),
        )

        assert response.status_code == 200
        assert service.kick_student.await_args.args[1] == "Academic misconduct"


class TestHealthEndpoints:
    """Tests for health endpoints without a database."""

    @pytest.fixture(autouse=True)
    def no_database(self, monkeypatch):
        def _not_initialized():
            raise DatabaseError("Database not initialized. Call init_database() first.")

        monkeypatch.setattr("lms_enrollment.api.routes.health.get_engine", _not_initialized)

    def test_liveness(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_health_reports_database(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["environment"] == "test"
        assert body["database"]["status"] == "unhealthy"

    def test_not_ready_without_database(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is False
