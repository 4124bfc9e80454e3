"""
Enrollment service: course registration and drop with uniqueness control.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Union

from ..core.entities import Course, Registration
from ..core.enums import EntityType
from ..core.exceptions import (
    NotFoundError, RegistrarException, UnknownCourseError, UnknownStudentError
)
from ..persistence.entity_store import EntityStore
from .catalog_service import CatalogService
from .concurrency_manager import ConcurrencyManager, LockType
from .roster_service import RosterService

logger = logging.getLogger(__name__)


def _pair_key(student_id: str, course_id: str) -> str:
    return f"registration_{student_id}_{course_id}"


class EnrollmentService:
    """Service for registering students in courses and dropping them."""

    def __init__(self, store: EntityStore, catalog: CatalogService, roster: RosterService,
                 concurrency_manager: ConcurrencyManager):
        self._store = store
        self._catalog = catalog
        self._roster = roster
        self._concurrency_manager = concurrency_manager

    def register(self, student_id: str, course_id: str,
                 registration_date: Union[date, str, None] = None) -> Registration:
        """
        Register a student in a course.

        The existence and duplicate checks run inside the store's insert, so
        of several racing calls for the same pair exactly one succeeds and
        the others raise DuplicateRegistrationError.
        """
        try:
            with self._concurrency_manager.lock(_pair_key(student_id, course_id), LockType.WRITE):
                registration = Registration(
                    student_id=student_id,
                    course_id=course_id,
                    registration_date=registration_date
                )
                self._store.insert(registration)
        except RegistrarException as e:
            logger.warning("Registration of %s in %s rejected: %s", student_id, course_id, e.error_code)
            raise

        logger.info("Registered student %s in course %s (%s)", student_id, course_id, registration.id)
        return registration

    def register_by_keys(self, student_number: str, course_code: str,
                         registration_date: Union[date, str, None] = None) -> Registration:
        """Register using the student number and course code instead of ids."""
        student = self._roster.find_student_by_number(student_number)
        if student is None:
            raise UnknownStudentError(
                f"Student {student_number} not found",
                details={'student_number': student_number}
            )
        course = self._catalog.find_course_by_code(course_code)
        if course is None:
            raise UnknownCourseError(
                f"Course {course_code} not found",
                details={'course_code': course_code}
            )
        return self.register(student.id, course.id, registration_date)

    def drop(self, student_id: str, course_id: str) -> None:
        """Drop a student from a course; NotFoundError if they are not registered."""
        with self._concurrency_manager.lock(_pair_key(student_id, course_id), LockType.WRITE):
            with self._store.transaction():
                registration = self._store.find_registration(student_id, course_id)
                if registration is None:
                    raise NotFoundError(
                        "Student is not registered in this course",
                        details={'student_id': student_id, 'course_id': course_id}
                    )
                self._store.delete(EntityType.REGISTRATION, registration.id)

        logger.info("Dropped student %s from course %s", student_id, course_id)

    def drop_registration(self, registration_id: str) -> None:
        """
        Drop by registration id.

        Only the registration with this id is removed; if the pair was dropped
        and registered again meanwhile, the newer row is left alone.
        """
        registration = self._store.require(EntityType.REGISTRATION, registration_id)
        student_id, course_id = registration.pair
        with self._concurrency_manager.lock(_pair_key(student_id, course_id), LockType.WRITE):
            with self._store.transaction():
                current = self._store.find_registration(student_id, course_id)
                if current is None or current.id != registration_id:
                    raise NotFoundError(
                        f"registration {registration_id} not found",
                        details={'id': registration_id}
                    )
                self._store.delete(EntityType.REGISTRATION, registration_id)

        logger.info("Dropped registration %s (%s in %s)", registration_id, student_id, course_id)

    def get_registration(self, registration_id: str) -> Registration:
        return self._store.require(EntityType.REGISTRATION, registration_id)

    def list_registrations(self) -> List[Registration]:
        return self._store.list_entities(EntityType.REGISTRATION)

    def list_registrations_for(self, student_id: str) -> List[Registration]:
        """Live registrations of one student."""
        return self._store.registrations_for_student(student_id)

    def available_courses_for(self, student_id: str) -> List[Course]:
        """All courses minus those the student is already registered in."""
        snapshot = self._store.snapshot()
        registered = {r.course_id for r in snapshot.registrations_for(student_id)}
        return [c for c in snapshot.courses if c.id not in registered]

    def is_registered(self, student_id: str, course_id: str) -> bool:
        return self._store.find_registration(student_id, course_id) is not None

    def get_statistics(self) -> Dict[str, Any]:
        snapshot = self._store.snapshot()
        return {
            'total_registrations': len(snapshot.registrations),
            'registered_students': len({r.student_id for r in snapshot.registrations}),
            'registered_courses': len({r.course_id for r in snapshot.registrations}),
        }
