# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for EnrollmentService."""

from datetime import timedelta
from uuid import uuid4
from unittest.mock import AsyncMock, MagicMock

import pytest

from lms_enrollment.core.config.settings import EnrollmentSettings
from lms_enrollment.domains.enrollment.errors import (
    AlreadyEnrolledError,
    ConcurrentModificationError,
    CooldownActiveError,
    CourseInactiveError,
    DailyLimitExceededError,
    EnrollmentAccessDeniedError,
    EnrollmentNotFoundError,
    InvalidTransitionError,
)
from lms_enrollment.domains.enrollment.lifecycle import (
    ActorRole,
    CourseStatus,
    EnrollmentMethod,
    EnrollmentStatus,
)
from lms_enrollment.domains.enrollment.notifier import (
    NOTIFICATION_TYPE_KICK,
    NOTIFICATION_TYPE_REQUEST,
    NOTIFICATION_TYPE_STATUS,
    EnrollmentNotifier,
)
from lms_enrollment.domains.enrollment.policy import AdmissionPolicyEngine, AdmissionRequest
from lms_enrollment.domains.enrollment.ports import Actor, EnrollmentFilter
from lms_enrollment.domains.enrollment.schemas import EnrollmentUpdateRequest
from lms_enrollment.domains.enrollment.service import EnrollmentService
from lms_enrollment.utils.datetime import utc_now

pytestmark = pytest.mark.unit


async def _persist(enrollment, *args):
    """Stand in for a flush: fill server-side defaults on new rows."""
    now = utc_now()
    if enrollment.id is None:
        enrollment.id = str(uuid4())
        enrollment.created_at = now
    enrollment.updated_at = now
    enrollment.version = (enrollment.version or 0) + 1
    return enrollment


@pytest.fixture
def store():
    """Create mock enrollment store that echoes writes."""
    store = AsyncMock()
    store.find_latest_for_pair.return_value = None
    store.count_self_admissions_since.return_value = 0
    store.has_completed_any.return_value = False
    store.insert.side_effect = _persist
    store.update.side_effect = _persist
    return store


@pytest.fixture
def courses(course):
    catalog = AsyncMock()
    catalog.find_by_id.return_value = course
    catalog.find_ids_by_subject.return_value = []
    return catalog


@pytest.fixture
def students(student):
    directory = AsyncMock()
    directory.find_by_id.return_value = student
    return directory


@pytest.fixture
def dispatcher():
    return AsyncMock()


@pytest.fixture
def notifier(dispatcher):
    return EnrollmentNotifier(dispatcher)


@pytest.fixture
def service(store, students, courses, notifier):
    passwords = MagicMock()
    passwords.verify.return_value = True
    policy = AdmissionPolicyEngine(
        students=students,
        courses=courses,
        subjects=AsyncMock(),
        passwords=passwords,
        completions=store,
    )
    return EnrollmentService(
        store=store,
        policy=policy,
        notifier=notifier,
        settings=EnrollmentSettings(reenroll_cooldown_seconds=1800, daily_self_enroll_limit=5),
    )


def _self_request(student, course, **kwargs) -> AdmissionRequest:
    return AdmissionRequest(
        student_id=student.id,
        course_id=course.id,
        method=EnrollmentMethod.SELF,
        **kwargs,
    )


def _staff_request(student, course, method=EnrollmentMethod.ADMIN, **kwargs) -> AdmissionRequest:
    return AdmissionRequest(student_id=student.id, course_id=course.id, method=method, **kwargs)


class TestCreateEnrollment:
    """Tests for first admissions."""

    @pytest.mark.asyncio
    async def test_self_enroll_open_course(self, service, store, student, course, student_actor):
        result = await service.create_enrollment(_self_request(student, course), actor=student_actor)

        assert result.status == EnrollmentStatus.APPROVED
        assert result.method == EnrollmentMethod.SELF
        assert result.student.username == "alice"
        assert result.course.title == "Algorithms"
        store.insert.assert_awaited_once()
        inserted, capacity = store.insert.await_args.args
        assert inserted.enrolled_at is not None
        assert capacity is None
        store.record_admission.assert_awaited_once_with(inserted)

    @pytest.mark.asyncio
    async def test_self_pending_notifies_teachers(
        self, service, courses, dispatcher, notifier, student, make_course, student_actor
    ):
        course = make_course(enroll_requires_approval=True, teacher_ids=("teacher-1", "teacher-2"))
        courses.find_by_id.return_value = course

        result = await service.create_enrollment(_self_request(student, course), actor=student_actor)
        await notifier.wait_idle()

        assert result.status == EnrollmentStatus.PENDING
        recipients = sorted(call.args[0].recipient_id for call in dispatcher.send.await_args_list)
        assert recipients == ["teacher-1", "teacher-2"]
        assert all(
            call.args[0].notification_type == NOTIFICATION_TYPE_REQUEST
            for call in dispatcher.send.await_args_list
        )

    @pytest.mark.asyncio
    async def test_staff_enroll_notifies_student(
        self, service, dispatcher, notifier, student, course, admin
    ):
        await service.create_enrollment(_staff_request(student, course), actor=admin)
        await notifier.wait_idle()

        dispatcher.send.assert_awaited_once()
        payload, actor_id, actor_role = dispatcher.send.await_args.args
        assert payload.recipient_id == student.id
        assert actor_id == admin.id
        assert actor_role == "admin"

    @pytest.mark.asyncio
    async def test_teacher_must_teach_course(self, service, store, student, course, other_teacher):
        with pytest.raises(EnrollmentAccessDeniedError):
            await service.create_enrollment(
                _staff_request(student, course, method=EnrollmentMethod.TEACHER),
                actor=other_teacher,
            )

        store.insert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_capacity_passed_to_store(self, service, store, courses, student, make_course):
        courses.find_by_id.return_value = make_course(capacity=30)

        await service.create_enrollment(_self_request(student, courses.find_by_id.return_value))

        assert store.insert.await_args.args[1] == 30

    @pytest.mark.asyncio
    async def test_daily_limit(self, service, store, student, course):
        store.count_self_admissions_since.return_value = 5

        with pytest.raises(DailyLimitExceededError, match="at most 5 courses per day"):
            await service.create_enrollment(_self_request(student, course))

        store.insert.assert_not_awaited()
        store.record_admission.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_daily_limit_does_not_apply_to_staff(self, service, store, student, course, admin):
        store.count_self_admissions_since.return_value = 50

        result = await service.create_enrollment(_staff_request(student, course), actor=admin)

        assert result.status == EnrollmentStatus.APPROVED
        store.count_self_admissions_since.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_insert_rereads_winner(
        self, service, store, student, course, make_enrollment
    ):
        winner = make_enrollment(status=EnrollmentStatus.APPROVED)
        store.insert.side_effect = ConcurrentModificationError("lost")
        store.find_latest_for_pair.side_effect = [None, winner]

        with pytest.raises(AlreadyEnrolledError, match="You are already enrolled in this course."):
            await service.create_enrollment(_self_request(student, course))


class TestReenrollment:
    """Tests for admissions on a pair that already has a record."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [
            EnrollmentStatus.PENDING,
            EnrollmentStatus.APPROVED,
            EnrollmentStatus.DROPPED,
            EnrollmentStatus.COMPLETED,
        ],
    )
    async def test_non_reenrollable_conflicts(
        self, service, store, student, course, make_enrollment, status
    ):
        store.find_latest_for_pair.return_value = make_enrollment(status=status)

        with pytest.raises(AlreadyEnrolledError):
            await service.create_enrollment(_self_request(student, course))

        store.update.assert_not_awaited()
        store.insert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_conflict_messages_depend_on_initiator(
        self, service, store, student, course, make_enrollment, admin
    ):
        store.find_latest_for_pair.return_value = make_enrollment(status=EnrollmentStatus.COMPLETED)

        with pytest.raises(AlreadyEnrolledError) as self_error:
            await service.create_enrollment(_self_request(student, course))
        with pytest.raises(AlreadyEnrolledError) as staff_error:
            await service.create_enrollment(_staff_request(student, course), actor=admin)

        assert self_error.value.message.startswith("You have already completed")
        assert staff_error.value.message.startswith("This student has already completed")

    @pytest.mark.asyncio
    async def test_cooldown_reports_remaining_seconds(
        self, service, store, student, course, make_enrollment
    ):
        store.find_latest_for_pair.return_value = make_enrollment(
            status=EnrollmentStatus.CANCELLED,
            updated_at=utc_now() - timedelta(minutes=10),
        )

        with pytest.raises(CooldownActiveError) as exc_info:
            await service.create_enrollment(_self_request(student, course))

        remaining = exc_info.value.remaining_seconds
        assert 1195 <= remaining <= 1200
        assert exc_info.value.message == (
            f"Please wait {remaining} seconds before enrolling in this course again"
        )
        store.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reenroll_after_cooldown_resets_cycle(
        self, service, store, student, course, make_enrollment
    ):
        existing = make_enrollment(
            status=EnrollmentStatus.REJECTED,
            updated_at=utc_now() - timedelta(minutes=31),
            responded_by="teacher-1",
            responded_at=utc_now() - timedelta(minutes=31),
            note="old note",
        )
        store.find_latest_for_pair.return_value = existing

        result = await service.create_enrollment(_self_request(student, course, note="second try"))

        assert result.id == existing.id
        assert result.status == EnrollmentStatus.APPROVED
        assert result.responded_by is None
        assert result.responded_at is None
        assert result.note == "second try"
        assert store.update.await_args.args[1] == EnrollmentStatus.REJECTED
        store.record_admission.assert_awaited_once_with(existing)
        store.count_self_admissions_since.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_staff_bypass_cooldown(
        self, service, store, student, course, make_enrollment, admin
    ):
        store.find_latest_for_pair.return_value = make_enrollment(
            status=EnrollmentStatus.REJECTED,
            updated_at=utc_now(),
        )

        result = await service.create_enrollment(_staff_request(student, course), actor=admin)

        assert result.status == EnrollmentStatus.APPROVED
        assert result.method == EnrollmentMethod.ADMIN


class TestUpdateEnrollment:
    """Tests for staff updates."""

    @pytest.mark.asyncio
    async def test_admin_approves_pending(
        self, service, store, dispatcher, notifier, make_enrollment, admin, student
    ):
        enrollment = make_enrollment(status=EnrollmentStatus.PENDING)
        store.get.return_value = enrollment

        result = await service.update_enrollment(
            enrollment.id,
            EnrollmentUpdateRequest(status=EnrollmentStatus.APPROVED),
            admin,
        )
        await notifier.wait_idle()

        assert result.status == EnrollmentStatus.APPROVED
        assert result.responded_at is not None
        assert result.responded_by == admin.id
        dispatcher.send.assert_awaited_once()
        payload = dispatcher.send.await_args.args[0]
        assert payload.recipient_id == student.id
        assert payload.notification_type == NOTIFICATION_TYPE_STATUS
        assert store.update.await_args.args[1] == EnrollmentStatus.PENDING

        # Same status again: no second notification, nothing re-stamped
        responded_at = result.responded_at
        await service.update_enrollment(
            enrollment.id,
            EnrollmentUpdateRequest(status=EnrollmentStatus.APPROVED),
            admin,
        )
        await notifier.wait_idle()

        dispatcher.send.assert_awaited_once()
        assert enrollment.responded_at == responded_at

    @pytest.mark.asyncio
    async def test_complete_sets_grade_and_timestamp(self, service, store, make_enrollment, teacher):
        enrollment = make_enrollment(status=EnrollmentStatus.APPROVED)
        store.get.return_value = enrollment

        result = await service.update_enrollment(
            enrollment.id,
            EnrollmentUpdateRequest(status=EnrollmentStatus.COMPLETED, final_grade=87.5),
            teacher,
        )

        assert result.status == EnrollmentStatus.COMPLETED
        assert result.completed_at is not None
        assert result.final_grade == 87.5

    @pytest.mark.asyncio
    async def test_invalid_transition(self, service, store, make_enrollment, admin):
        enrollment = make_enrollment(status=EnrollmentStatus.APPROVED)
        store.get.return_value = enrollment

        with pytest.raises(InvalidTransitionError, match="from 'approved' to 'pending'"):
            await service.update_enrollment(
                enrollment.id,
                EnrollmentUpdateRequest(status=EnrollmentStatus.PENDING),
                admin,
            )

        store.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_teacher_of_other_course_forbidden(self, service, store, make_enrollment, other_teacher):
        store.get.return_value = make_enrollment()

        with pytest.raises(EnrollmentAccessDeniedError):
            await service.update_enrollment(
                "any",
                EnrollmentUpdateRequest(status=EnrollmentStatus.APPROVED),
                other_teacher,
            )

    @pytest.mark.asyncio
    async def test_completed_course_is_read_only(
        self, service, store, courses, make_enrollment, make_course, admin
    ):
        courses.find_by_id.return_value = make_course(status=CourseStatus.COMPLETED)
        store.get.return_value = make_enrollment()

        with pytest.raises(CourseInactiveError):
            await service.update_enrollment(
                "any",
                EnrollmentUpdateRequest(status=EnrollmentStatus.APPROVED),
                admin,
            )

    @pytest.mark.asyncio
    async def test_ended_course_is_read_only(
        self, service, store, courses, make_enrollment, make_course, admin
    ):
        courses.find_by_id.return_value = make_course(end_date=utc_now() - timedelta(days=1))
        store.get.return_value = make_enrollment()

        with pytest.raises(CourseInactiveError, match="ended"):
            await service.update_enrollment("any", EnrollmentUpdateRequest(note="x"), admin)

    @pytest.mark.asyncio
    async def test_not_found(self, service, store, admin):
        store.get.return_value = None

        with pytest.raises(EnrollmentNotFoundError):
            await service.update_enrollment("missing", EnrollmentUpdateRequest(), admin)


class TestSelfCancel:
    """Tests for student self-cancellation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [EnrollmentStatus.PENDING, EnrollmentStatus.APPROVED])
    async def test_cancel_active(self, service, store, make_enrollment, student, status):
        enrollment = make_enrollment(status=status)
        store.get.return_value = enrollment

        result = await service.self_cancel_enrollment(enrollment.id, student.id)

        assert result.status == EnrollmentStatus.CANCELLED
        assert store.update.await_args.args[1] == status

    @pytest.mark.asyncio
    async def test_cannot_cancel_someone_else(self, service, store, make_enrollment):
        store.get.return_value = make_enrollment(student_id="someone-else")

        with pytest.raises(EnrollmentNotFoundError):
            await service.self_cancel_enrollment("any", "550e8400-e29b-41d4-a716-446655440001")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,fragment",
        [
            (EnrollmentStatus.DROPPED, "dropped from this course"),
            (EnrollmentStatus.COMPLETED, "already completed"),
            (EnrollmentStatus.REJECTED, "already rejected"),
            (EnrollmentStatus.CANCELLED, "already been cancelled"),
        ],
    )
    async def test_explains_why_not(self, service, store, make_enrollment, student, status, fragment):
        store.get.return_value = make_enrollment(status=status)

        with pytest.raises(InvalidTransitionError, match=fragment):
            await service.self_cancel_enrollment("any", student.id)


class TestKickStudent:
    """Tests for removing a student from a course."""

    @pytest.mark.asyncio
    async def test_kick_appends_reason(
        self, service, store, dispatcher, notifier, make_enrollment, teacher
    ):
        enrollment = make_enrollment(status=EnrollmentStatus.APPROVED, note="Joined late")
        store.get.return_value = enrollment

        result = await service.kick_student(enrollment.id, "Repeated plagiarism", teacher)
        await notifier.wait_idle()

        assert result.status == EnrollmentStatus.DROPPED
        assert result.dropped_at is not None
        first, second = result.note.split("\n")
        assert first == "Joined late"
        assert second.endswith("Kicked by teacher-1 (teacher): Repeated plagiarism")
        assert second.startswith("[")
        payload = dispatcher.send.await_args.args[0]
        assert payload.notification_type == NOTIFICATION_TYPE_KICK
        assert payload.data["reason"] == "Repeated plagiarism"

    @pytest.mark.asyncio
    async def test_kick_requires_approved(self, service, store, make_enrollment, admin):
        store.get.return_value = make_enrollment(status=EnrollmentStatus.PENDING)

        with pytest.raises(InvalidTransitionError, match="Only approved students"):
            await service.kick_student("any", "reason", admin)

    @pytest.mark.asyncio
    async def test_student_cannot_kick(self, service, store, make_enrollment, student_actor):
        store.get.return_value = make_enrollment(status=EnrollmentStatus.APPROVED)

        with pytest.raises(EnrollmentAccessDeniedError):
            await service.kick_student("any", "reason", student_actor)


class TestViewAndList:
    """Tests for viewing and listing enrollments."""

    @pytest.mark.asyncio
    async def test_owner_can_view(self, service, store, make_enrollment, student_actor):
        enrollment = make_enrollment()
        store.get.return_value = enrollment

        result = await service.get_enrollment(enrollment.id, student_actor)

        assert result.id == enrollment.id

    @pytest.mark.asyncio
    async def test_other_student_cannot_view(self, service, store, make_enrollment):
        store.get.return_value = make_enrollment()

        with pytest.raises(EnrollmentAccessDeniedError, match="permission to view this enrollment"):
            await service.get_enrollment("any", Actor(id="bob", role=ActorRole.STUDENT))

    @pytest.mark.asyncio
    async def test_list_paginates(self, service, store, make_enrollment, admin):
        store.list.return_value = ([make_enrollment(), make_enrollment()], 23)

        result = await service.list_enrollments(EnrollmentFilter(), admin, page=2, limit=10)

        assert result.pagination.total == 23
        assert result.pagination.page == 2
        assert result.pagination.total_pages == 3
        assert len(result.enrollments) == 2
        store.list.assert_awaited_once_with(EnrollmentFilter(), 10, 10)

    @pytest.mark.asyncio
    async def test_list_clamps_page_size(self, service, store, admin):
        store.list.return_value = ([], 0)

        result = await service.list_enrollments(EnrollmentFilter(), admin, limit=1000)

        assert result.pagination.limit == 100
        assert result.pagination.total_pages == 0

    @pytest.mark.asyncio
    async def test_teacher_cannot_list_everything(self, service, teacher):
        with pytest.raises(EnrollmentAccessDeniedError, match="Only admins can view all enrollments"):
            await service.list_enrollments(EnrollmentFilter(), teacher)

    @pytest.mark.asyncio
    async def test_teacher_lists_own_course(self, service, store, teacher):
        store.list.return_value = ([], 0)

        await service.list_enrollments(EnrollmentFilter(course_id="course-1"), teacher)

        store.list.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_student_limited_to_self(self, service, student_actor):
        with pytest.raises(EnrollmentAccessDeniedError):
            await service.list_enrollments(EnrollmentFilter(student_id="someone-else"), student_actor)
