# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment repository.

Persistence boundary for enrollment records. Writes are conditional:

- Pair uniqueness is enforced by the (student_id, course_id) unique
  constraint; a losing concurrent insert surfaces as
  ConcurrentModificationError.
- In-place updates are guarded by the version column; a stale write
  surfaces as ConcurrentModificationError.
- Capacity is enforced by a conditional update on course_seat_counters
  executed in the same transaction as the enrollment write; when no seat
  is left the transaction rolls back with CourseFullError.
- Admission rows are staged with record_admission and commit or roll
  back together with the enrollment write that follows.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import Insert, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from lms_enrollment.domains.enrollment import messages
from lms_enrollment.domains.enrollment.errors import (
    ConcurrentModificationError,
    CourseFullError,
)
from lms_enrollment.domains.enrollment.lifecycle import EnrollmentMethod, EnrollmentStatus
from lms_enrollment.domains.enrollment.ports import EnrollmentFilter
from lms_enrollment.infrastructure.database.models.enrollment import (
    CourseSeatCounter,
    Enrollment,
    EnrollmentAdmission,
)

logger = logging.getLogger(__name__)


class EnrollmentRepository:
    """Enrollment store backed by SQLAlchemy.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # Reads

    async def get(self, enrollment_id: str) -> Enrollment | None:
        return await self.db.get(Enrollment, enrollment_id)

    async def find_latest_for_pair(self, student_id: str, course_id: str) -> Enrollment | None:
        """Find the enrollment of a student in a course, latest first."""
        query = (
            select(Enrollment)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.course_id == course_id,
            )
            .order_by(Enrollment.created_at.desc())
            .limit(1)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list(
        self,
        filters: EnrollmentFilter,
        offset: int,
        limit: int,
    ) -> tuple[list[Enrollment], int]:
        """List enrollments matching filters, most recently admitted first.

        Returns:
            Tuple of (page of enrollments, total matching count).
        """
        conditions = []
        if filters.student_id:
            conditions.append(Enrollment.student_id == filters.student_id)
        if filters.course_id:
            conditions.append(Enrollment.course_id == filters.course_id)
        if filters.status:
            conditions.append(Enrollment.status == filters.status)
        if filters.method:
            conditions.append(Enrollment.method == filters.method)

        count_query = select(func.count()).select_from(Enrollment).where(*conditions)
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            select(Enrollment)
            .where(*conditions)
            .order_by(Enrollment.enrolled_at.desc(), Enrollment.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def count_approved(self, course_id: str) -> int:
        query = select(func.count()).select_from(Enrollment).where(
            Enrollment.course_id == course_id,
            Enrollment.status == EnrollmentStatus.APPROVED,
        )
        return (await self.db.execute(query)).scalar() or 0

    async def has_completed_any(self, student_id: str, course_ids: list[str]) -> bool:
        """Check whether the student completed any of the given courses."""
        if not course_ids:
            return False
        query = (
            select(Enrollment.id)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.course_id.in_(course_ids),
                Enrollment.status == EnrollmentStatus.COMPLETED,
            )
            .limit(1)
        )
        return (await self.db.execute(query)).first() is not None

    async def count_self_admissions_since(self, student_id: str, since: datetime) -> int:
        """Count self-initiated admission cycles started at or after since.

        Every re-enrollment of the same course counts again.
        """
        query = select(func.count()).select_from(EnrollmentAdmission).where(
            EnrollmentAdmission.student_id == student_id,
            EnrollmentAdmission.method == EnrollmentMethod.SELF,
            EnrollmentAdmission.admitted_at >= since,
        )
        return (await self.db.execute(query)).scalar() or 0

    async def record_admission(self, enrollment: Enrollment) -> None:
        """Stage an admission row for the cycle the enrollment is starting."""
        self.db.add(
            EnrollmentAdmission(
                student_id=enrollment.student_id,
                course_id=enrollment.course_id,
                method=enrollment.method,
                admitted_at=enrollment.enrolled_at,
            )
        )

    # Conditional writes

    async def insert(self, enrollment: Enrollment, capacity: int | None) -> Enrollment:
        """Insert a new enrollment and reserve a seat if it is approved.

        Raises:
            CourseFullError: If no approved seat is left.
            ConcurrentModificationError: If the pair was enrolled concurrently.
        """
        # Rollback expires the instance; keep the identifiers for logging.
        student_id, course_id = enrollment.student_id, enrollment.course_id
        try:
            if enrollment.status == EnrollmentStatus.APPROVED:
                await self._reserve_seat(enrollment.course_id, capacity)
            self.db.add(enrollment)
            await self.db.flush()
            await self.db.commit()
        except CourseFullError:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(
                "Concurrent enrollment insert lost: student=%s, course=%s",
                student_id,
                course_id,
            )
            raise ConcurrentModificationError(messages.CONCURRENT_MODIFICATION) from e

        await self.db.refresh(enrollment)
        return enrollment

    async def update(
        self,
        enrollment: Enrollment,
        previous_status: EnrollmentStatus,
        capacity: int | None,
    ) -> Enrollment:
        """Persist changes to an enrollment and adjust its course seats.

        Entering approved reserves a seat, leaving approved releases one.

        Raises:
            CourseFullError: If entering approved and no seat is left.
            ConcurrentModificationError: If the record changed since it was read.
        """
        entering = (
            previous_status != EnrollmentStatus.APPROVED
            and enrollment.status == EnrollmentStatus.APPROVED
        )
        leaving = (
            previous_status == EnrollmentStatus.APPROVED
            and enrollment.status != EnrollmentStatus.APPROVED
        )
        enrollment_id = enrollment.id
        try:
            if entering:
                await self._reserve_seat(enrollment.course_id, capacity)
            elif leaving:
                await self._release_seat(enrollment.course_id)
            await self.db.flush()
            await self.db.commit()
        except CourseFullError:
            await self.db.rollback()
            raise
        except StaleDataError as e:
            await self.db.rollback()
            logger.info("Stale enrollment write rejected: enrollment=%s", enrollment_id)
            raise ConcurrentModificationError(messages.CONCURRENT_MODIFICATION) from e

        await self.db.refresh(enrollment)
        return enrollment

    async def _reserve_seat(self, course_id: str, capacity: int | None) -> None:
        await self._ensure_counter(course_id)
        stmt = (
            update(CourseSeatCounter)
            .where(CourseSeatCounter.course_id == course_id)
            .values(approved_count=CourseSeatCounter.approved_count + 1)
        )
        if capacity is not None:
            stmt = stmt.where(CourseSeatCounter.approved_count < capacity)
        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            logger.info("Seat reservation refused: course=%s, capacity=%s", course_id, capacity)
            raise CourseFullError(messages.COURSE_FULL)

    async def _release_seat(self, course_id: str) -> None:
        await self._ensure_counter(course_id)
        await self.db.execute(
            update(CourseSeatCounter)
            .where(
                CourseSeatCounter.course_id == course_id,
                CourseSeatCounter.approved_count > 0,
            )
            .values(approved_count=CourseSeatCounter.approved_count - 1)
        )

    async def _ensure_counter(self, course_id: str) -> None:
        """Create the seat counter of a course on first use.

        The counter is seeded from the approved enrollments already stored,
        before the pending write is flushed. A counter created concurrently
        by another transaction is kept.
        """
        query = select(CourseSeatCounter.course_id).where(CourseSeatCounter.course_id == course_id)
        if (await self.db.execute(query)).first() is not None:
            return

        approved = await self.count_approved(course_id)
        await self.db.execute(
            self._insert_ignoring_conflict().values(course_id=course_id, approved_count=approved)
        )

    def _insert_ignoring_conflict(self) -> Insert:
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(CourseSeatCounter).on_conflict_do_nothing(
                index_elements=[CourseSeatCounter.course_id]
            )
        if dialect == "sqlite":
            return sqlite.insert(CourseSeatCounter).on_conflict_do_nothing(
                index_elements=[CourseSeatCounter.course_id]
            )
        raise NotImplementedError(f"Unsupported database dialect: {dialect}")
