"""
Canonical store for students, courses, registrations and results.

Every mutation validates and writes while holding the store lock, so a failed
check never leaves a partial write behind and two racing writers cannot both
pass the same uniqueness check.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..core.entities import AbstractEntity, Course, ENTITY_CLASSES, Registration, Result, Student
from ..core.enums import EntityType
from ..core.exceptions import (
    DuplicateKeyError, DuplicateRegistrationError, NotFoundError, PersistenceError, ValidationError
)
from ..core.interfaces import SnapshotSource
from .repositories import EntityCollection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreSnapshot:
    """Immutable, point-in-time view of the whole store."""
    students: Tuple[Student, ...] = ()
    courses: Tuple[Course, ...] = ()
    registrations: Tuple[Registration, ...] = ()
    results: Tuple[Result, ...] = ()
    _students_by_id: Dict[str, Student] = field(init=False, repr=False, compare=False)
    _students_by_number: Dict[str, Student] = field(init=False, repr=False, compare=False)
    _courses_by_id: Dict[str, Course] = field(init=False, repr=False, compare=False)
    _courses_by_code: Dict[str, Course] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, '_students_by_id', {s.id: s for s in self.students})
        object.__setattr__(self, '_students_by_number', {s.student_number: s for s in self.students})
        object.__setattr__(self, '_courses_by_id', {c.id: c for c in self.courses})
        object.__setattr__(self, '_courses_by_code', {c.code: c for c in self.courses})

    def student(self, student_id: str) -> Optional[Student]:
        return self._students_by_id.get(student_id)

    def student_by_number(self, student_number: str) -> Optional[Student]:
        return self._students_by_number.get(student_number)

    def course(self, course_id: str) -> Optional[Course]:
        return self._courses_by_id.get(course_id)

    def course_by_code(self, code: str) -> Optional[Course]:
        return self._courses_by_code.get(code)

    def registrations_for(self, student_id: str) -> List[Registration]:
        return [r for r in self.registrations if r.student_id == student_id]

    def results_for(self, student_number: str) -> List[Result]:
        return [r for r in self.results if r.student_number == student_number]


class EntityStore(SnapshotSource):
    """Keyed collections for every entity type, guarded by one re-entrant lock."""

    def __init__(self):
        self._lock = threading.RLock()
        self._collections: Dict[EntityType, EntityCollection] = {
            EntityType.STUDENT: EntityCollection(
                EntityType.STUDENT, key_func=lambda s: s.student_number, key_name='student_number'
            ),
            EntityType.COURSE: EntityCollection(
                EntityType.COURSE, key_func=lambda c: c.code, key_name='code'
            ),
            EntityType.REGISTRATION: EntityCollection(
                EntityType.REGISTRATION, key_func=lambda r: r.pair, key_name='student/course pair',
                duplicate_error=DuplicateRegistrationError
            ),
            EntityType.RESULT: EntityCollection(EntityType.RESULT),
        }

    @contextmanager
    def transaction(self) -> Iterator["EntityStore"]:
        """Hold the store lock across a multi-step check-then-write."""
        with self._lock:
            yield self

    def _collection(self, entity_type: EntityType) -> EntityCollection:
        return self._collections[entity_type]

    # Generic operations

    def insert(self, entity: AbstractEntity) -> AbstractEntity:
        """Validate and add an entity; registrations also get their references checked."""
        with self._lock:
            entity.validate()
            if isinstance(entity, Registration):
                self._check_registration_references(entity)
            stored = self._collection(entity.entity_type).insert(entity)
            logger.debug("Inserted %s %s", entity.entity_type.value, entity.id)
            return stored

    def replace(self, entity: AbstractEntity) -> AbstractEntity:
        with self._lock:
            entity.validate()
            stored = self._collection(entity.entity_type).replace(entity)
            logger.debug("Replaced %s %s (v%d)", entity.entity_type.value, entity.id, entity.version)
            return stored

    def delete(self, entity_type: EntityType, entity_id: str) -> AbstractEntity:
        with self._lock:
            removed = self._collection(entity_type).delete(entity_id)
            if removed is None:
                raise NotFoundError(
                    f"{entity_type.value} {entity_id} not found",
                    details={'id': entity_id}
                )
            logger.debug("Deleted %s %s", entity_type.value, entity_id)
            return removed

    def get(self, entity_type: EntityType, entity_id: str) -> Optional[AbstractEntity]:
        return self._collection(entity_type).find_by_id(entity_id)

    def require(self, entity_type: EntityType, entity_id: str) -> AbstractEntity:
        entity = self.get(entity_type, entity_id)
        if entity is None:
            raise NotFoundError(
                f"{entity_type.value} {entity_id} not found",
                details={'id': entity_id}
            )
        return entity

    def list_entities(self, entity_type: EntityType) -> List[AbstractEntity]:
        return self._collection(entity_type).find_all()

    def count(self, entity_type: EntityType) -> int:
        return self._collection(entity_type).count()

    # Natural-key and relational lookups

    def find_student_by_number(self, student_number: str) -> Optional[Student]:
        return self._collection(EntityType.STUDENT).find_by_key(student_number)

    def find_course_by_code(self, code: str) -> Optional[Course]:
        return self._collection(EntityType.COURSE).find_by_key(code)

    def find_registration(self, student_id: str, course_id: str) -> Optional[Registration]:
        return self._collection(EntityType.REGISTRATION).find_by_key((student_id, course_id))

    def registrations_for_student(self, student_id: str) -> List[Registration]:
        return [r for r in self.list_entities(EntityType.REGISTRATION) if r.student_id == student_id]

    def results_for_student(self, student_number: str) -> List[Result]:
        return [r for r in self.list_entities(EntityType.RESULT) if r.student_number == student_number]

    def _check_registration_references(self, registration: Registration) -> None:
        if self.get(EntityType.STUDENT, registration.student_id) is None:
            raise NotFoundError(
                f"Student {registration.student_id} not found",
                details={'student_id': registration.student_id}
            )
        if self.get(EntityType.COURSE, registration.course_id) is None:
            raise NotFoundError(
                f"Course {registration.course_id} not found",
                details={'course_id': registration.course_id}
            )

    # Snapshots

    def snapshot(self) -> StoreSnapshot:
        """Capture every collection at once so projections see one consistent state."""
        with self._lock:
            return StoreSnapshot(
                students=tuple(self.list_entities(EntityType.STUDENT)),
                courses=tuple(self.list_entities(EntityType.COURSE)),
                registrations=tuple(self.list_entities(EntityType.REGISTRATION)),
                results=tuple(self.list_entities(EntityType.RESULT)),
            )

    def clear(self) -> None:
        with self._lock:
            for collection in self._collections.values():
                collection.clear()

    def export_records(self) -> Dict[str, List[Dict[str, Any]]]:
        with self._lock:
            return {
                entity_type.value: [entity.to_dict() for entity in collection.find_all()]
                for entity_type, collection in self._collections.items()
            }

    def import_records(self, records: Dict[str, List[Dict[str, Any]]]) -> None:
        """Replace the whole store; on any bad record the previous state is kept."""
        with self._lock:
            previous = self.export_records()
            self.clear()
            try:
                # Parents first so registration references resolve.
                for entity_type in (EntityType.STUDENT, EntityType.COURSE,
                                    EntityType.REGISTRATION, EntityType.RESULT):
                    entity_class = ENTITY_CLASSES[entity_type]
                    for data in records.get(entity_type.value, []):
                        entity = entity_class.from_dict(data)
                        entity.validate()
                        self._collection(entity_type).insert(entity)
            except (KeyError, ValueError, TypeError, ValidationError, DuplicateKeyError) as e:
                self.clear()
                for entity_type in EntityType:
                    entity_class = ENTITY_CLASSES[entity_type]
                    for data in previous.get(entity_type.value, []):
                        self._collection(entity_type).insert(entity_class.from_dict(data))
                raise PersistenceError(f"Failed to import records: {str(e)}")
            logger.info(
                "Imported %d students, %d courses, %d registrations, %d results",
                self.count(EntityType.STUDENT), self.count(EntityType.COURSE),
                self.count(EntityType.REGISTRATION), self.count(EntityType.RESULT)
            )
