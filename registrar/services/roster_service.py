"""
Student roster management.
"""

import logging
from typing import List, Optional

from ..core.entities import Student
from ..core.enums import EntityType
from ..core.exceptions import RegistrarException
from ..persistence.entity_store import EntityStore
from .concurrency_manager import ConcurrencyManager, LockType

logger = logging.getLogger(__name__)


def _number_key(student_number) -> str:
    if isinstance(student_number, str):
        student_number = student_number.strip()
    return f"student_number_{student_number}"


class RosterService:
    """Service for creating, editing and removing students."""

    def __init__(self, store: EntityStore, concurrency_manager: ConcurrencyManager):
        self._store = store
        self._concurrency_manager = concurrency_manager

    def add_student(self, name: str, email: str, student_number: str,
                    student_id: Optional[str] = None) -> Student:
        """Add a student; fails with DuplicateKeyError if the student number is taken."""
        student = Student(name=name, email=email, student_number=student_number,
                          entity_id=student_id)
        try:
            with self._concurrency_manager.lock(_number_key(student_number), LockType.WRITE):
                self._store.insert(student)
        except RegistrarException as e:
            logger.warning("Rejected student %r: %s", student_number, e.error_code)
            raise

        logger.info("Added student %s (%s)", student.student_number, student.id)
        return student

    def update_student(self, student_id: str, **fields) -> Student:
        current = self.get_student(student_id)
        keys = {f"student_{student_id}", _number_key(current.student_number)}
        if 'student_number' in fields:
            keys.add(_number_key(fields['student_number']))

        try:
            with self._concurrency_manager.lock_many(keys, LockType.WRITE):
                with self._store.transaction():
                    current = self._store.require(EntityType.STUDENT, student_id)
                    updated = current.with_changes(**fields)
                    self._store.replace(updated)
        except RegistrarException as e:
            logger.warning("Rejected update of student %s: %s", student_id, e.error_code)
            raise

        logger.info("Updated student %s to version %d", updated.student_number, updated.version)
        return updated

    def delete_student(self, student_id: str) -> None:
        """Remove a student; their registrations and results are not cascaded."""
        with self._concurrency_manager.lock(f"student_{student_id}", LockType.WRITE):
            removed = self._store.delete(EntityType.STUDENT, student_id)
        logger.info("Deleted student %s (%s)", removed.student_number, student_id)

    def get_student(self, student_id: str) -> Student:
        return self._store.require(EntityType.STUDENT, student_id)

    def find_student_by_number(self, student_number: str) -> Optional[Student]:
        return self._store.find_student_by_number(student_number.strip())

    def list_students(self) -> List[Student]:
        return self._store.list_entities(EntityType.STUDENT)
