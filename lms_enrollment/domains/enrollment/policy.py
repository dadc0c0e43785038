# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admission policy for course enrollment.

The AdmissionPolicyEngine decides whether a student may join a course and
with which initial status. It reads students, courses and subjects through
ports and never writes anything. Checks run in a fixed order and stop at
the first failure:

1. The student exists.
2. The course exists and is ongoing.
3. Every prerequisite subject of the course has been completed.
4. The enrollment password matches (self enrollment only).
5. The requested or default initial status is pending or approved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lms_enrollment.domains.enrollment import messages
from lms_enrollment.domains.enrollment.errors import (
    CourseNotEnrollableError,
    CourseNotFoundError,
    EnrollmentServiceError,
    InvalidPasswordError,
    InvalidStatusError,
    PasswordRequiredError,
    PrerequisiteCycleError,
    PrerequisiteNotMetError,
    StudentNotFoundError,
    SubjectNotFoundError,
)
from lms_enrollment.domains.enrollment.lifecycle import (
    INITIAL_STATUSES,
    CourseStatus,
    EnrollmentMethod,
    EnrollmentRole,
    EnrollmentStatus,
)
from lms_enrollment.domains.enrollment.ports import (
    CompletionLookup,
    CourseCatalog,
    CourseInfo,
    PasswordVerifier,
    StudentDirectory,
    StudentInfo,
    SubjectCatalog,
    SubjectInfo,
)

logger = logging.getLogger(__name__)


@dataclass
class AdmissionRequest:
    """Candidate admission.

    Attributes:
        student_id: Student to admit.
        course_id: Course to join.
        method: Who initiates the admission.
        password: Plain enrollment password, if any.
        status: Explicitly requested initial status.
        role: Role within the course.
        note: Free-text note stored on the enrollment.
    """

    student_id: str
    course_id: str
    method: EnrollmentMethod
    password: str | None = None
    status: EnrollmentStatus | None = None
    role: EnrollmentRole = EnrollmentRole.STUDENT
    note: str | None = None

    @property
    def is_self(self) -> bool:
        return self.method == EnrollmentMethod.SELF


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of a successful admission evaluation."""

    status: EnrollmentStatus
    role: EnrollmentRole
    method: EnrollmentMethod
    note: str | None
    student: StudentInfo
    course: CourseInfo


class AdmissionPolicyEngine:
    """Decides whether and how a student is admitted to a course.

    Attributes:
        students: Student directory.
        courses: Course catalog.
        subjects: Subject catalog.
        passwords: Enrollment password verifier.
        completions: Lookup of completed enrollments.
    """

    def __init__(
        self,
        students: StudentDirectory,
        courses: CourseCatalog,
        subjects: SubjectCatalog,
        passwords: PasswordVerifier,
        completions: CompletionLookup,
    ) -> None:
        self.students = students
        self.courses = courses
        self.subjects = subjects
        self.passwords = passwords
        self.completions = completions

    async def evaluate(self, request: AdmissionRequest) -> AdmissionDecision:
        """Evaluate an admission request.

        Args:
            request: Candidate admission.

        Returns:
            The admission decision.

        Raises:
            StudentNotFoundError: If the student does not exist.
            CourseNotFoundError: If the course does not exist.
            CourseNotEnrollableError: If the course is not ongoing.
            SubjectNotFoundError: If a subject in the prerequisite chain is missing.
            PrerequisiteCycleError: If the prerequisite chain loops.
            PrerequisiteNotMetError: If a prerequisite subject is not completed.
            PasswordRequiredError: If a password is needed but not given.
            InvalidPasswordError: If the password does not match.
            InvalidStatusError: If the initial status is not pending or approved.
        """
        try:
            student = await self._get_student(request.student_id)
            course = await self._get_enrollable_course(request.course_id)
            await self._check_prerequisites(student, course, request.is_self)
            self.verify_password(course, request.method, request.password)
            status = self.resolve_initial_status(course, request.status)
        except EnrollmentServiceError as e:
            logger.info(
                "Admission rejected: student=%s, course=%s, method=%s, reason=%s",
                request.student_id,
                request.course_id,
                request.method.value,
                e.message,
            )
            raise

        return AdmissionDecision(
            status=status,
            role=request.role,
            method=request.method,
            note=request.note,
            student=student,
            course=course,
        )

    def verify_password(
        self,
        course: CourseInfo,
        method: EnrollmentMethod,
        password: str | None,
    ) -> None:
        """Check the enrollment password of a protected course.

        Only self enrollment is guarded; staff enroll without a password.

        Raises:
            PasswordRequiredError: If no password was supplied.
            InvalidPasswordError: If the password does not match.
        """
        if not course.enroll_password_hash or method != EnrollmentMethod.SELF:
            return
        if not password:
            raise PasswordRequiredError(messages.PASSWORD_REQUIRED)
        if not self.passwords.verify(password, course.enroll_password_hash):
            raise InvalidPasswordError(messages.INVALID_PASSWORD)

    @staticmethod
    def resolve_initial_status(
        course: CourseInfo,
        requested: EnrollmentStatus | None,
    ) -> EnrollmentStatus:
        """Pick the initial status: explicit request, else by approval setting."""
        if requested is None:
            return (
                EnrollmentStatus.PENDING
                if course.enroll_requires_approval
                else EnrollmentStatus.APPROVED
            )
        if requested not in INITIAL_STATUSES:
            raise InvalidStatusError(messages.invalid_initial_status(requested))
        return requested

    async def _get_student(self, student_id: str) -> StudentInfo:
        student = await self.students.find_by_id(student_id)
        if not student:
            raise StudentNotFoundError(messages.STUDENT_NOT_FOUND)
        return student

    async def _get_enrollable_course(self, course_id: str) -> CourseInfo:
        course = await self.courses.find_by_id(course_id)
        if not course:
            raise CourseNotFoundError(messages.COURSE_NOT_FOUND)
        if course.status != CourseStatus.ONGOING:
            raise CourseNotEnrollableError(messages.COURSE_NOT_ENROLLABLE)
        return course

    async def _check_prerequisites(
        self,
        student: StudentInfo,
        course: CourseInfo,
        is_self: bool,
    ) -> None:
        """Require a completed enrollment for every prerequisite subject.

        A prerequisite is satisfied by completing any course offering of
        that subject.
        """
        if not course.subject_id:
            return

        graph = await self._load_prerequisite_graph(course.subject_id)
        subject = graph[course.subject_id]

        missing: list[SubjectInfo] = []
        for prerequisite_id in subject.prerequisites:
            course_ids = await self.courses.find_ids_by_subject(prerequisite_id)
            if course_ids and await self.completions.has_completed_any(student.id, course_ids):
                continue
            missing.append(graph[prerequisite_id])

        if missing:
            raise PrerequisiteNotMetError(
                messages.prerequisite_not_met([s.name or s.id for s in missing], is_self),
                missing_subject_ids=[s.id for s in missing],
            )

    async def _load_prerequisite_graph(self, root_id: str) -> dict[str, SubjectInfo]:
        """Load every subject reachable from root_id, rejecting cycles.

        Iterative depth-first walk; a subject met again while still on the
        current path closes a cycle.

        Returns:
            Subjects keyed by id.
        """
        graph: dict[str, SubjectInfo] = {}
        on_path: set[str] = set()
        # (subject id, expanded)
        stack: list[tuple[str, bool]] = [(root_id, False)]

        while stack:
            subject_id, expanded = stack.pop()
            if expanded:
                on_path.discard(subject_id)
                continue
            if subject_id in on_path:
                raise PrerequisiteCycleError(messages.prerequisite_cycle(root_id))
            if subject_id in graph:
                continue

            subject = await self.subjects.find_by_id(subject_id)
            if not subject:
                raise SubjectNotFoundError(messages.subject_not_found(subject_id))
            graph[subject_id] = subject
            on_path.add(subject_id)
            stack.append((subject_id, True))
            for prerequisite_id in subject.prerequisites:
                stack.append((prerequisite_id, False))

        return graph
