# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service managing the enrollment lifecycle.

This module provides the EnrollmentService class for:
- Admission of new students and re-enrollment after rejection or cancellation
- Staff updates (approve, reject, complete, drop, grade)
- Self-cancellation by the student
- Removal of a student by staff (kick)
- Viewing and listing enrollments

Every status change is checked against the lifecycle transition table.
Notifications are scheduled only after the write has committed.
"""

from __future__ import annotations

import logging
import math

from lms_enrollment.core.config.settings import EnrollmentSettings
from lms_enrollment.domains.enrollment import messages
from lms_enrollment.domains.enrollment.errors import (
    AlreadyEnrolledError,
    ConcurrentModificationError,
    CooldownActiveError,
    CourseInactiveError,
    CourseNotFoundError,
    DailyLimitExceededError,
    EnrollmentAccessDeniedError,
    EnrollmentNotFoundError,
    InvalidTransitionError,
)
from lms_enrollment.domains.enrollment.lifecycle import (
    CourseStatus,
    EnrollmentMethod,
    EnrollmentStatus,
    Trigger,
    can_transition,
    is_reenrollable,
)
from lms_enrollment.domains.enrollment.notifier import EnrollmentNotifier
from lms_enrollment.domains.enrollment.policy import (
    AdmissionDecision,
    AdmissionPolicyEngine,
    AdmissionRequest,
)
from lms_enrollment.domains.enrollment.ports import (
    Actor,
    CourseInfo,
    EnrollmentFilter,
    EnrollmentStore,
    StudentInfo,
)
from lms_enrollment.domains.enrollment.schemas import (
    CourseSummary,
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollmentUpdateRequest,
    Pagination,
    StudentSummary,
)
from lms_enrollment.infrastructure.database.models.enrollment import Enrollment, empty_progress
from lms_enrollment.utils.datetime import ensure_utc, is_expired, utc_now, utc_today_start

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Service for the enrollment lifecycle.

    Attributes:
        store: Enrollment persistence.
        policy: Admission policy engine, also the source of student and
            course lookups.
        notifier: Status-change notifier.
        settings: Cooldown, daily limit and paging settings.
    """

    def __init__(
        self,
        store: EnrollmentStore,
        policy: AdmissionPolicyEngine,
        notifier: EnrollmentNotifier,
        settings: EnrollmentSettings | None = None,
    ) -> None:
        self.store = store
        self.policy = policy
        self.notifier = notifier
        self.settings = settings or EnrollmentSettings()

    async def create_enrollment(
        self,
        request: AdmissionRequest,
        actor: Actor | None = None,
    ) -> EnrollmentResponse:
        """Admit a student to a course, or re-admit after rejection or cancellation.

        Args:
            request: Admission request.
            actor: User performing the admission; the student for self enrollment.

        Returns:
            The created or reset enrollment.

        Raises:
            EnrollmentServiceError: Any admission policy failure.
            EnrollmentAccessDeniedError: If a teacher enrolls into a course
                they do not teach.
            AlreadyEnrolledError: If the pair already has a non-reenrollable enrollment.
            CooldownActiveError: If a self re-enrollment comes too soon.
            DailyLimitExceededError: If the student hit the daily self-enrollment limit.
            CourseFullError: If no approved seat is left.
        """
        decision = await self.policy.evaluate(request)

        if (
            actor is not None
            and actor.is_teacher
            and not request.is_self
            and not decision.course.is_taught_by(actor.id)
        ):
            raise EnrollmentAccessDeniedError(messages.ENROLL_FORBIDDEN)

        try:
            enrollment, previous_status = await self._admit_or_readmit(decision)
        except ConcurrentModificationError:
            # The loser of a race re-reads the winner's record.
            logger.info(
                "Retrying enrollment after concurrent write: student=%s, course=%s",
                request.student_id,
                request.course_id,
            )
            enrollment, previous_status = await self._admit_or_readmit(decision)

        logger.info(
            "Enrolled student: enrollment=%s, student=%s, course=%s, %s -> %s, method=%s, by=%s",
            enrollment.id,
            enrollment.student_id,
            enrollment.course_id,
            previous_status.value if previous_status else None,
            EnrollmentStatus(enrollment.status).value,
            decision.method.value,
            actor.id if actor else None,
        )

        self.notifier.admission(enrollment, decision.student, decision.course, actor)
        return self._to_response(enrollment, decision.student, decision.course)

    async def update_enrollment(
        self,
        enrollment_id: str,
        update: EnrollmentUpdateRequest,
        actor: Actor,
    ) -> EnrollmentResponse:
        """Apply a staff update to an enrollment.

        Status changes must follow the lifecycle table. Approve and reject
        stamp responded_at, complete stamps completed_at, drop stamps
        dropped_at. Setting the current status again changes nothing.

        Args:
            enrollment_id: Enrollment identifier.
            update: Fields to change; unset fields are left alone.
            actor: Admin or teacher performing the update.

        Returns:
            The updated enrollment.

        Raises:
            EnrollmentNotFoundError: If the enrollment is not found.
            CourseNotFoundError: If the course is not found.
            CourseInactiveError: If the course completed or ended.
            EnrollmentAccessDeniedError: If a teacher does not teach the course.
            InvalidTransitionError: If the status change is not allowed.
            CourseFullError: If approving and no seat is left.
        """
        enrollment = await self._get_enrollment(enrollment_id)
        course = await self._get_course(enrollment.course_id)
        self._ensure_course_active(course)
        self._ensure_staff_of(course, actor)

        fields = update.model_dump(exclude_unset=True)
        previous_status = EnrollmentStatus(enrollment.status)
        new_status = fields.get("status")

        if new_status is not None and new_status != previous_status:
            if not can_transition(previous_status, new_status, Trigger.UPDATE):
                raise InvalidTransitionError(messages.invalid_transition(previous_status, new_status))
            self._apply_status(enrollment, new_status, fields.get("responded_by") or actor.id)
        elif fields.get("responded_by"):
            enrollment.responded_by = fields["responded_by"]

        if fields.get("role") is not None:
            enrollment.role = fields["role"]
        if "final_grade" in fields:
            enrollment.final_grade = fields["final_grade"]
        if "note" in fields:
            enrollment.note = fields["note"]

        enrollment = await self.store.update(enrollment, previous_status, course.capacity)

        logger.info(
            "Updated enrollment: enrollment=%s, student=%s, course=%s, %s -> %s, by=%s",
            enrollment.id,
            enrollment.student_id,
            enrollment.course_id,
            previous_status.value,
            EnrollmentStatus(enrollment.status).value,
            actor.id,
        )

        self.notifier.status_changed(enrollment, previous_status, course, actor)
        student = await self.policy.students.find_by_id(enrollment.student_id)
        return self._to_response(enrollment, student, course)

    async def self_cancel_enrollment(
        self,
        enrollment_id: str,
        student_id: str,
    ) -> EnrollmentResponse:
        """Cancel the student's own pending or approved enrollment.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist or
                belongs to another student.
            CourseNotFoundError: If the course is not found.
            CourseInactiveError: If the course completed or ended.
            InvalidTransitionError: If the enrollment cannot be cancelled.
        """
        enrollment = await self.store.get(enrollment_id)
        if not enrollment or enrollment.student_id != student_id:
            raise EnrollmentNotFoundError(messages.ENROLLMENT_NOT_FOUND)

        course = await self._get_course(enrollment.course_id)
        self._ensure_course_active(course)

        previous_status = EnrollmentStatus(enrollment.status)
        if not can_transition(previous_status, EnrollmentStatus.CANCELLED, Trigger.SELF_CANCEL):
            raise InvalidTransitionError(messages.cannot_cancel(previous_status))

        enrollment.status = EnrollmentStatus.CANCELLED
        enrollment = await self.store.update(enrollment, previous_status, course.capacity)

        logger.info(
            "Cancelled enrollment: enrollment=%s, student=%s, course=%s, %s -> %s",
            enrollment.id,
            student_id,
            enrollment.course_id,
            previous_status.value,
            EnrollmentStatus.CANCELLED.value,
        )

        student = await self.policy.students.find_by_id(student_id)
        return self._to_response(enrollment, student, course)

    async def kick_student(
        self,
        enrollment_id: str,
        reason: str,
        actor: Actor,
    ) -> EnrollmentResponse:
        """Remove an approved student from a course.

        The reason is appended to the enrollment note with a timestamp and
        the acting user; earlier note content is kept.

        Raises:
            EnrollmentNotFoundError: If the enrollment is not found.
            CourseNotFoundError: If the course is not found.
            EnrollmentAccessDeniedError: If the actor is neither admin nor
                a teacher of the course.
            InvalidTransitionError: If the enrollment is not approved.
        """
        enrollment = await self._get_enrollment(enrollment_id)
        course = await self._get_course(enrollment.course_id)

        if not (actor.is_admin or course.is_taught_by(actor.id)):
            raise EnrollmentAccessDeniedError(messages.KICK_FORBIDDEN)

        previous_status = EnrollmentStatus(enrollment.status)
        if not can_transition(previous_status, EnrollmentStatus.DROPPED, Trigger.KICK):
            raise InvalidTransitionError(messages.cannot_kick(previous_status))

        now = utc_now()
        enrollment.status = EnrollmentStatus.DROPPED
        enrollment.dropped_at = now
        line = f"[{now.isoformat()}] Kicked by {actor.id} ({actor.role.value}): {reason}"
        enrollment.note = f"{enrollment.note}\n{line}" if enrollment.note else line

        enrollment = await self.store.update(enrollment, previous_status, course.capacity)

        logger.info(
            "Kicked student: enrollment=%s, student=%s, course=%s, %s -> %s, by=%s",
            enrollment.id,
            enrollment.student_id,
            enrollment.course_id,
            previous_status.value,
            EnrollmentStatus.DROPPED.value,
            actor.id,
        )

        self.notifier.kicked(enrollment, course, reason, actor)
        student = await self.policy.students.find_by_id(enrollment.student_id)
        return self._to_response(enrollment, student, course)

    async def get_enrollment(self, enrollment_id: str, viewer: Actor) -> EnrollmentResponse:
        """Get an enrollment visible to the viewer.

        Admins see every enrollment, students their own, teachers those of
        the courses they teach.

        Raises:
            EnrollmentNotFoundError: If the enrollment is not found.
            EnrollmentAccessDeniedError: If the viewer may not see it.
        """
        enrollment = await self._get_enrollment(enrollment_id)
        course = await self.policy.courses.find_by_id(enrollment.course_id)

        allowed = (
            viewer.is_admin
            or enrollment.student_id == viewer.id
            or (course is not None and course.is_taught_by(viewer.id))
        )
        if not allowed:
            raise EnrollmentAccessDeniedError(messages.VIEW_FORBIDDEN)

        student = await self.policy.students.find_by_id(enrollment.student_id)
        return self._to_response(enrollment, student, course)

    async def list_enrollments(
        self,
        filters: EnrollmentFilter,
        viewer: Actor,
        page: int = 1,
        limit: int | None = None,
    ) -> EnrollmentListResponse:
        """List enrollments visible to the viewer, newest first.

        Admins may list everything. Teachers must filter by a course they
        teach or by a student. Students may only list their own.

        Raises:
            CourseNotFoundError: If filtering by an unknown course.
            EnrollmentAccessDeniedError: If the viewer may not see the list.
        """
        await self._authorize_list(filters, viewer)

        page = max(page, 1)
        limit = min(max(limit or self.settings.default_page_size, 1), self.settings.max_page_size)
        enrollments, total = await self.store.list(filters, (page - 1) * limit, limit)

        students: dict[str, StudentInfo | None] = {}
        courses: dict[str, CourseInfo | None] = {}
        items = []
        for enrollment in enrollments:
            if enrollment.student_id not in students:
                students[enrollment.student_id] = await self.policy.students.find_by_id(
                    enrollment.student_id
                )
            if enrollment.course_id not in courses:
                courses[enrollment.course_id] = await self.policy.courses.find_by_id(
                    enrollment.course_id
                )
            items.append(
                self._to_response(
                    enrollment,
                    students[enrollment.student_id],
                    courses[enrollment.course_id],
                )
            )

        return EnrollmentListResponse(
            enrollments=items,
            pagination=Pagination(
                total=total,
                page=page,
                limit=limit,
                total_pages=math.ceil(total / limit) if total else 0,
            ),
        )

    async def _admit_or_readmit(
        self,
        decision: AdmissionDecision,
    ) -> tuple[Enrollment, EnrollmentStatus | None]:
        """Insert or reset the pair's record.

        Returns:
            Tuple of (enrollment, status before the write or None if new).
        """
        existing = await self.store.find_latest_for_pair(decision.student.id, decision.course.id)
        if existing is None:
            return await self._admit(decision), None
        previous_status = EnrollmentStatus(existing.status)
        return await self._readmit(existing, decision), previous_status

    async def _admit(self, decision: AdmissionDecision) -> Enrollment:
        """Insert the first enrollment of a pair."""
        if decision.method == EnrollmentMethod.SELF:
            await self._check_daily_limit(decision.student.id)

        enrollment = Enrollment(
            student_id=decision.student.id,
            course_id=decision.course.id,
            status=decision.status,
            role=decision.role,
            method=decision.method,
            note=decision.note,
            enrolled_at=utc_now(),
            progress=empty_progress(),
        )
        await self.store.record_admission(enrollment)
        return await self.store.insert(enrollment, decision.course.capacity)

    async def _readmit(self, existing: Enrollment, decision: AdmissionDecision) -> Enrollment:
        """Start a new admission cycle on an existing record.

        Raises:
            AlreadyEnrolledError: If the prior status is not re-enrollable.
        """
        previous_status = EnrollmentStatus(existing.status)
        is_self = decision.method == EnrollmentMethod.SELF

        if not is_reenrollable(previous_status):
            raise AlreadyEnrolledError(messages.already_enrolled(previous_status, is_self))
        if not can_transition(previous_status, decision.status, Trigger.REENROLL):
            raise InvalidTransitionError(messages.invalid_transition(previous_status, decision.status))

        if is_self:
            self._check_cooldown(existing)
            await self._check_daily_limit(existing.student_id)

        existing.status = decision.status
        existing.role = decision.role
        existing.method = decision.method
        existing.note = decision.note
        existing.enrolled_at = utc_now()
        existing.responded_at = None
        existing.responded_by = None
        existing.completed_at = None
        existing.dropped_at = None
        existing.final_grade = None

        await self.store.record_admission(existing)
        return await self.store.update(existing, previous_status, decision.course.capacity)

    def _check_cooldown(self, existing: Enrollment) -> None:
        """Reject a self re-enrollment before the cooldown has elapsed.

        Raises:
            CooldownActiveError: With the remaining whole seconds.
        """
        cooldown = self.settings.reenroll_cooldown_seconds
        if cooldown <= 0:
            return
        last_change = ensure_utc(existing.updated_at or existing.created_at)
        if last_change is None:
            return
        remaining = cooldown - (utc_now() - last_change).total_seconds()
        if remaining > 0:
            seconds = math.ceil(remaining)
            raise CooldownActiveError(messages.cooldown_active(seconds), remaining_seconds=seconds)

    async def _check_daily_limit(self, student_id: str) -> None:
        limit = self.settings.daily_self_enroll_limit
        if limit <= 0:
            return
        count = await self.store.count_self_admissions_since(student_id, utc_today_start())
        if count >= limit:
            raise DailyLimitExceededError(messages.daily_limit_exceeded(limit))

    async def _authorize_list(self, filters: EnrollmentFilter, viewer: Actor) -> None:
        if viewer.is_admin:
            return

        if viewer.is_student:
            if filters.student_id != viewer.id:
                raise EnrollmentAccessDeniedError(messages.LIST_STUDENT_FORBIDDEN)
            return

        if viewer.is_teacher:
            if filters.course_id:
                course = await self._get_course(filters.course_id)
                if not course.is_taught_by(viewer.id):
                    raise EnrollmentAccessDeniedError(messages.LIST_COURSE_FORBIDDEN)
                return
            if filters.student_id:
                return

        raise EnrollmentAccessDeniedError(messages.LIST_ALL_FORBIDDEN)

    @staticmethod
    def _apply_status(enrollment: Enrollment, status: EnrollmentStatus, responded_by: str) -> None:
        """Set a new status with its timestamp side effects."""
        now = utc_now()
        enrollment.status = status
        if status in (EnrollmentStatus.APPROVED, EnrollmentStatus.REJECTED):
            enrollment.responded_at = now
            enrollment.responded_by = responded_by
        elif status == EnrollmentStatus.COMPLETED:
            enrollment.completed_at = now
        elif status == EnrollmentStatus.DROPPED:
            enrollment.dropped_at = now

    @staticmethod
    def _ensure_course_active(course: CourseInfo) -> None:
        """Raise CourseInactiveError if the course completed or ended."""
        if course.status == CourseStatus.COMPLETED:
            raise CourseInactiveError(messages.COURSE_COMPLETED)
        if course.end_date is not None and is_expired(course.end_date):
            raise CourseInactiveError(messages.COURSE_ENDED)

    @staticmethod
    def _ensure_staff_of(course: CourseInfo, actor: Actor) -> None:
        if actor.is_admin or (actor.is_teacher and course.is_taught_by(actor.id)):
            return
        raise EnrollmentAccessDeniedError(messages.UPDATE_FORBIDDEN)

    async def _get_enrollment(self, enrollment_id: str) -> Enrollment:
        enrollment = await self.store.get(enrollment_id)
        if not enrollment:
            raise EnrollmentNotFoundError(messages.ENROLLMENT_NOT_FOUND)
        return enrollment

    async def _get_course(self, course_id: str) -> CourseInfo:
        course = await self.policy.courses.find_by_id(course_id)
        if not course:
            raise CourseNotFoundError(messages.COURSE_NOT_FOUND)
        return course

    @staticmethod
    def _to_response(
        enrollment: Enrollment,
        student: StudentInfo | None,
        course: CourseInfo | None,
    ) -> EnrollmentResponse:
        """Convert an enrollment to a response with display fields."""
        return EnrollmentResponse(
            id=enrollment.id,
            student_id=enrollment.student_id,
            course_id=enrollment.course_id,
            status=enrollment.status,
            role=enrollment.role,
            method=enrollment.method,
            note=enrollment.note,
            enrolled_at=enrollment.enrolled_at,
            responded_at=enrollment.responded_at,
            responded_by=enrollment.responded_by,
            completed_at=enrollment.completed_at,
            dropped_at=enrollment.dropped_at,
            final_grade=enrollment.final_grade,
            progress=dict(enrollment.progress or {}),
            created_at=enrollment.created_at,
            updated_at=enrollment.updated_at,
            student=(
                StudentSummary(
                    id=student.id,
                    username=student.username,
                    email=student.email,
                    fullname=student.fullname,
                    avatar_url=student.avatar_url,
                )
                if student
                else None
            ),
            course=(
                CourseSummary(
                    id=course.id,
                    title=course.title,
                    code=course.code,
                    status=course.status.value,
                )
                if course
                else None
            ),
        )
