# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment status-change notifications.

EnrollmentNotifier turns lifecycle events into notification messages and
hands them to a NotificationDispatcher in background tasks. It is called
only after the enrollment write has committed; a failed delivery is logged
and never reaches the caller.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from lms_enrollment.domains.enrollment import messages
from lms_enrollment.domains.enrollment.lifecycle import EnrollmentMethod, EnrollmentStatus
from lms_enrollment.domains.enrollment.ports import (
    Actor,
    CourseInfo,
    NotificationDispatcher,
    NotificationMessage,
    StudentInfo,
)

if TYPE_CHECKING:
    from lms_enrollment.infrastructure.database.models.enrollment import Enrollment

logger = logging.getLogger(__name__)

NOTIFICATION_TYPE_ADMISSION = "enrollment_admission"
NOTIFICATION_TYPE_REQUEST = "enrollment_request"
NOTIFICATION_TYPE_STATUS = "enrollment_status"
NOTIFICATION_TYPE_KICK = "enrollment_kicked"


class EnrollmentNotifier:
    """Schedules enrollment notifications off the request path.

    Attributes:
        dispatcher: Delivery backend.
        enabled: When False nothing is scheduled.
    """

    def __init__(self, dispatcher: NotificationDispatcher, enabled: bool = True) -> None:
        self.dispatcher = dispatcher
        self.enabled = enabled
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def admission(
        self,
        enrollment: Enrollment,
        student: StudentInfo,
        course: CourseInfo,
        actor: Actor | None,
    ) -> None:
        """Notify about a new or renewed admission.

        Staff admissions notify the student. A pending self admission
        notifies every teacher of the course.
        """
        data = self._data(enrollment)
        status = EnrollmentStatus(enrollment.status)

        if EnrollmentMethod(enrollment.method) != EnrollmentMethod.SELF:
            title, message = messages.admission_notice(status, course.title)
            self._schedule(
                NotificationMessage(
                    recipient_id=enrollment.student_id,
                    notification_type=NOTIFICATION_TYPE_ADMISSION,
                    title=title,
                    message=message,
                    data=data,
                ),
                actor,
            )
            return

        if status == EnrollmentStatus.PENDING:
            title, message = messages.pending_request_notice(
                student.fullname or student.username, course.title
            )
            for teacher_id in course.teacher_ids:
                self._schedule(
                    NotificationMessage(
                        recipient_id=teacher_id,
                        notification_type=NOTIFICATION_TYPE_REQUEST,
                        title=title,
                        message=message,
                        data={**data, "student_id": enrollment.student_id},
                    ),
                    actor,
                )

    def status_changed(
        self,
        enrollment: Enrollment,
        previous_status: EnrollmentStatus,
        course: CourseInfo,
        actor: Actor | None,
    ) -> None:
        """Notify the student when a staff update changed the status."""
        status = EnrollmentStatus(enrollment.status)
        if status == previous_status:
            return
        notice = messages.status_change_notice(status, course.title)
        if notice is None:
            return
        title, message = notice
        self._schedule(
            NotificationMessage(
                recipient_id=enrollment.student_id,
                notification_type=NOTIFICATION_TYPE_STATUS,
                title=title,
                message=message,
                data={**self._data(enrollment), "previous_status": previous_status.value},
            ),
            actor,
        )

    def kicked(
        self,
        enrollment: Enrollment,
        course: CourseInfo,
        reason: str,
        actor: Actor | None,
    ) -> None:
        title, message = messages.kick_notice(course.title, reason)
        self._schedule(
            NotificationMessage(
                recipient_id=enrollment.student_id,
                notification_type=NOTIFICATION_TYPE_KICK,
                title=title,
                message=message,
                data={**self._data(enrollment), "reason": reason},
            ),
            actor,
        )

    async def wait_idle(self) -> None:
        """Wait for every scheduled delivery to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _schedule(self, payload: NotificationMessage, actor: Actor | None) -> None:
        if not self.enabled:
            return
        task = asyncio.create_task(self._deliver(payload, actor))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, payload: NotificationMessage, actor: Actor | None) -> None:
        try:
            await self.dispatcher.send(
                payload,
                actor.id if actor else None,
                actor.role.value if actor else None,
            )
        except Exception:
            logger.error(
                "Failed to deliver %s notification to %s",
                payload.notification_type,
                payload.recipient_id,
                exc_info=True,
            )

    @staticmethod
    def _data(enrollment: Enrollment) -> dict[str, str]:
        return {
            "enrollment_id": enrollment.id,
            "course_id": enrollment.course_id,
            "status": EnrollmentStatus(enrollment.status).value,
        }
