"""
Grade results with natural-key references to students and courses.
"""

import logging
from typing import List, Optional

from ..core.entities import Course, Result, require_text
from ..core.enums import EntityType, GradeTier
from ..core.exceptions import RegistrarException, UnknownCourseError, UnknownStudentError
from ..persistence.entity_store import EntityStore
from .catalog_service import CatalogService
from .concurrency_manager import ConcurrencyManager, LockType
from .roster_service import RosterService

logger = logging.getLogger(__name__)

_TIERS_BY_LEADING_LETTER = {
    'A': GradeTier.EXCELLENT,
    'B': GradeTier.GOOD,
    'C': GradeTier.SATISFACTORY,
}


def get_grade_tier(grade: Optional[str]) -> GradeTier:
    """Classify a grade token by its first character; anything unrecognized is OTHER."""
    if not grade:
        return GradeTier.OTHER
    return _TIERS_BY_LEADING_LETTER.get(grade[0], GradeTier.OTHER)


def _result_key(student_number: str, course_code: str) -> str:
    return f"result_{student_number}_{course_code}"


class ResultsService:
    """Service for recording and editing grade results."""

    def __init__(self, store: EntityStore, catalog: CatalogService, roster: RosterService,
                 concurrency_manager: ConcurrencyManager):
        self._store = store
        self._catalog = catalog
        self._roster = roster
        self._concurrency_manager = concurrency_manager

    def record_result(self, student_number: str, course_code: str, grade: str,
                      result_id: Optional[str] = None) -> Result:
        """
        Record a grade.

        Both keys must resolve at write time. ``course_name`` is copied from
        the resolved course and is not refreshed if the course is renamed later.
        """
        student_number = require_text('student_number', student_number)
        course_code = require_text('course_code', course_code)
        grade = require_text('grade', grade)

        try:
            with self._concurrency_manager.lock(_result_key(student_number, course_code), LockType.WRITE):
                with self._store.transaction():
                    course = self._resolve(student_number, course_code)
                    result = Result(
                        student_number=student_number,
                        course_code=course_code,
                        grade=grade,
                        course_name=course.title,
                        entity_id=result_id
                    )
                    self._store.insert(result)
        except RegistrarException as e:
            logger.warning("Result for %s in %s rejected: %s", student_number, course_code, e.error_code)
            raise

        logger.info("Recorded %s for %s in %s (%s)", grade, student_number, course_code, result.id)
        return result

    def update_result(self, result_id: str, **fields) -> Result:
        """Edit a result; the (possibly new) keys are resolved again and course_name re-copied."""
        current = self.get_result(result_id)
        student_number = fields.get('student_number', current.student_number)
        course_code = fields.get('course_code', current.course_code)
        if isinstance(student_number, str):
            student_number = student_number.strip()
        if isinstance(course_code, str):
            course_code = course_code.strip()
        keys = {
            _result_key(current.student_number, current.course_code),
            _result_key(student_number, course_code),
        }

        try:
            with self._concurrency_manager.lock_many(keys, LockType.WRITE):
                with self._store.transaction():
                    current = self._store.require(EntityType.RESULT, result_id)
                    # validate first so a blank key is a ValidationError, not an unknown reference
                    changed = current.with_changes(**fields)
                    course = self._resolve(changed.student_number, changed.course_code)
                    updated = current.with_changes(**dict(fields, course_name=course.title))
                    self._store.replace(updated)
        except RegistrarException as e:
            logger.warning("Update of result %s rejected: %s", result_id, e.error_code)
            raise

        logger.info("Updated result %s to version %d", result_id, updated.version)
        return updated

    def delete_result(self, result_id: str) -> None:
        self._store.delete(EntityType.RESULT, result_id)
        logger.info("Deleted result %s", result_id)

    def get_result(self, result_id: str) -> Result:
        return self._store.require(EntityType.RESULT, result_id)

    def list_results(self) -> List[Result]:
        return self._store.list_entities(EntityType.RESULT)

    def _resolve(self, student_number: str, course_code: str) -> Course:
        if self._roster.find_student_by_number(student_number) is None:
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
        return course
