"""
Read-side projections over store snapshots.

Every call takes a fresh snapshot, so results always reflect the latest
committed state and a single call never mixes two states. Nothing here writes.
References that no longer resolve are returned with ``resolved=False`` and a
placeholder label instead of being dropped.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from ..core.entities import Course
from ..core.enums import GradeTier, UNRESOLVED_PLACEHOLDER
from ..core.exceptions import NotFoundError
from ..core.session import SessionContext
from ..persistence.entity_store import EntityStore, StoreSnapshot
from .results_service import get_grade_tier


@dataclass(frozen=True)
class EnrolledCourse:
    """A course reached through one of the student's registrations."""
    registration_id: str
    course_id: str
    code: str
    title: str
    credits: Optional[int]
    instructor: str
    registration_date: date
    resolved: bool = True

    @property
    def credit_value(self) -> int:
        return self.credits if self.resolved and self.credits else 0


@dataclass(frozen=True)
class StudentResultView:
    """A grade row as a student sees it, with the course's current credits."""
    result_id: str
    student_number: str
    course_code: str
    course_name: str
    grade: str
    tier: GradeTier
    credits: Optional[int]
    resolved: bool = True

    @property
    def credits_label(self) -> str:
        return str(self.credits) if self.resolved else UNRESOLVED_PLACEHOLDER


@dataclass(frozen=True)
class StudentSummary:
    """Figures shown on a student's profile."""
    student_id: str
    student_number: str
    name: str
    email: str
    enrolled_count: int
    total_credits: int
    completed_count: int


@dataclass(frozen=True)
class RegistrationView:
    """A registration with both ends resolved to display labels."""
    registration_id: str
    student_id: str
    student_number: str
    student_name: str
    course_id: str
    course_code: str
    course_title: str
    registration_date: date
    student_resolved: bool = True
    course_resolved: bool = True


class ProjectionEngine:
    """Pure read-side computations scoped by the caller's session."""

    def __init__(self, store: EntityStore):
        self._store = store

    def enrolled_courses(self, session: SessionContext, student_id: str) -> List[EnrolledCourse]:
        snapshot = self._store.snapshot()
        self._authorize_student_id(session, snapshot, student_id)
        return self._enrolled(snapshot, student_id)

    def total_credits(self, session: SessionContext, student_id: str) -> int:
        snapshot = self._store.snapshot()
        self._authorize_student_id(session, snapshot, student_id)
        return sum(course.credit_value for course in self._enrolled(snapshot, student_id))

    def completed_count(self, session: SessionContext, student_number: str) -> int:
        session.require_view(student_number)
        return len(self._store.snapshot().results_for(student_number))

    def available_courses(self, session: SessionContext, student_id: str) -> List[Course]:
        snapshot = self._store.snapshot()
        self._authorize_student_id(session, snapshot, student_id)
        return self._available(snapshot, student_id)

    def student_results(self, session: SessionContext, student_number: str) -> List[StudentResultView]:
        session.require_view(student_number)
        snapshot = self._store.snapshot()
        views = []
        for result in snapshot.results_for(student_number):
            course = snapshot.course_by_code(result.course_code)
            views.append(StudentResultView(
                result_id=result.id,
                student_number=result.student_number,
                course_code=result.course_code,
                course_name=result.course_name,
                grade=result.grade,
                tier=get_grade_tier(result.grade),
                credits=course.credits if course else None,
                resolved=course is not None
            ))
        return views

    def student_summary(self, session: SessionContext, student_number: str) -> StudentSummary:
        session.require_view(student_number)
        snapshot = self._store.snapshot()
        student = snapshot.student_by_number(student_number)
        if student is None:
            raise NotFoundError(
                f"Student {student_number} not found",
                details={'student_number': student_number}
            )
        enrolled = self._enrolled(snapshot, student.id)
        return StudentSummary(
            student_id=student.id,
            student_number=student.student_number,
            name=student.name,
            email=student.email,
            enrolled_count=len(enrolled),
            total_credits=sum(course.credit_value for course in enrolled),
            completed_count=len(snapshot.results_for(student_number))
        )

    def registration_overview(self, session: SessionContext) -> List[RegistrationView]:
        session.require_admin()
        snapshot = self._store.snapshot()
        views = []
        for registration in snapshot.registrations:
            student = snapshot.student(registration.student_id)
            course = snapshot.course(registration.course_id)
            views.append(RegistrationView(
                registration_id=registration.id,
                student_id=registration.student_id,
                student_number=student.student_number if student else UNRESOLVED_PLACEHOLDER,
                student_name=student.name if student else UNRESOLVED_PLACEHOLDER,
                course_id=registration.course_id,
                course_code=course.code if course else UNRESOLVED_PLACEHOLDER,
                course_title=course.title if course else UNRESOLVED_PLACEHOLDER,
                registration_date=registration.registration_date,
                student_resolved=student is not None,
                course_resolved=course is not None
            ))
        return views

    def _authorize_student_id(self, session: SessionContext, snapshot: StoreSnapshot,
                              student_id: str) -> None:
        if session.is_admin:
            return
        student = snapshot.student(student_id)
        session.require_view(student.student_number if student else None)

    def _enrolled(self, snapshot: StoreSnapshot, student_id: str) -> List[EnrolledCourse]:
        enrolled = []
        for registration in snapshot.registrations_for(student_id):
            course = snapshot.course(registration.course_id)
            if course is None:
                enrolled.append(EnrolledCourse(
                    registration_id=registration.id,
                    course_id=registration.course_id,
                    code=UNRESOLVED_PLACEHOLDER,
                    title=UNRESOLVED_PLACEHOLDER,
                    credits=None,
                    instructor=UNRESOLVED_PLACEHOLDER,
                    registration_date=registration.registration_date,
                    resolved=False
                ))
                continue
            enrolled.append(EnrolledCourse(
                registration_id=registration.id,
                course_id=course.id,
                code=course.code,
                title=course.title,
                credits=course.credits,
                instructor=course.instructor,
                registration_date=registration.registration_date
            ))
        return enrolled

    def _available(self, snapshot: StoreSnapshot, student_id: str) -> List[Course]:
        enrolled_ids = {course.course_id for course in self._enrolled(snapshot, student_id)}
        return [course for course in snapshot.courses if course.id not in enrolled_ids]
