"""
Course catalog management.
"""

import logging
from typing import List, Optional

from ..core.entities import Course
from ..core.enums import EntityType
from ..core.exceptions import RegistrarException
from ..persistence.entity_store import EntityStore
from .concurrency_manager import ConcurrencyManager, LockType

logger = logging.getLogger(__name__)


def _code_key(code) -> str:
    return f"course_code_{code.strip() if isinstance(code, str) else code}"


class CatalogService:
    """Service for creating, editing and removing courses."""

    def __init__(self, store: EntityStore, concurrency_manager: ConcurrencyManager):
        self._store = store
        self._concurrency_manager = concurrency_manager

    def add_course(self, code: str, title: str, credits: int, instructor: str,
                   course_id: Optional[str] = None) -> Course:
        """Add a course; the code must not be used by another course."""
        course = Course(code=code, title=title, credits=credits, instructor=instructor,
                        entity_id=course_id)
        try:
            with self._concurrency_manager.lock(_code_key(code), LockType.WRITE):
                self._store.insert(course)
        except RegistrarException as e:
            logger.warning("Rejected course %r: %s", code, e.error_code)
            raise

        logger.info("Added course %s (%s)", course.code, course.id)
        return course

    def update_course(self, course_id: str, **fields) -> Course:
        """Apply a partial edit to a course."""
        current = self.get_course(course_id)
        keys = {f"course_{course_id}", _code_key(current.code)}
        if 'code' in fields:
            keys.add(_code_key(fields['code']))

        try:
            with self._concurrency_manager.lock_many(keys, LockType.WRITE):
                with self._store.transaction():
                    current = self._store.require(EntityType.COURSE, course_id)
                    updated = current.with_changes(**fields)
                    self._store.replace(updated)
        except RegistrarException as e:
            logger.warning("Rejected update of course %s: %s", course_id, e.error_code)
            raise

        logger.info("Updated course %s to version %d", updated.code, updated.version)
        return updated

    def delete_course(self, course_id: str) -> None:
        """
        Remove a course.

        Registrations and results that point at it are left in place and show
        up as unresolved in projections.
        """
        with self._concurrency_manager.lock(f"course_{course_id}", LockType.WRITE):
            removed = self._store.delete(EntityType.COURSE, course_id)
        logger.info("Deleted course %s (%s)", removed.code, course_id)

    def get_course(self, course_id: str) -> Course:
        return self._store.require(EntityType.COURSE, course_id)

    def find_course_by_code(self, code: str) -> Optional[Course]:
        return self._store.find_course_by_code(code.strip())

    def list_courses(self) -> List[Course]:
        """All courses in insertion order."""
        return self._store.list_entities(EntityType.COURSE)
