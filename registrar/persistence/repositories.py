"""
Keyed in-memory collections with natural-key indexes.
"""

import threading
from typing import Callable, Dict, Generic, Hashable, List, Optional, Type, TypeVar

from ..core.entities import AbstractEntity
from ..core.enums import EntityType
from ..core.exceptions import DuplicateKeyError, NotFoundError
from ..core.interfaces import Repository

T = TypeVar('T', bound=AbstractEntity)


class EntityCollection(Repository[T], Generic[T]):
    """
    Entities of one type keyed by id, in insertion order.

    When ``key_func`` is given the collection also keeps a unique index from
    that natural key to the entity id and refuses a second entity with the
    same key, raising ``duplicate_error``.
    """

    def __init__(self, entity_type: EntityType,
                 key_func: Optional[Callable[[T], Hashable]] = None,
                 key_name: str = "",
                 duplicate_error: Type[DuplicateKeyError] = DuplicateKeyError):
        self._entity_type = entity_type
        self._key_func = key_func
        self._key_name = key_name
        self._duplicate_error = duplicate_error
        self._entities: Dict[str, T] = {}
        self._index: Dict[Hashable, str] = {}
        self._lock = threading.RLock()

    @property
    def entity_type(self) -> EntityType:
        return self._entity_type

    def insert(self, entity: T) -> T:
        with self._lock:
            if entity.id in self._entities:
                raise DuplicateKeyError(
                    f"{self._entity_type.value} with id {entity.id} already exists",
                    details={'id': entity.id}
                )
            key = self._key_of(entity)
            if key is not None and key in self._index:
                raise self._duplicate_error(
                    f"{self._entity_type.value} with {self._key_name} {key!r} already exists",
                    details={self._key_name: key}
                )
            self._entities[entity.id] = entity
            if key is not None:
                self._index[key] = entity.id
            return entity

    def replace(self, entity: T) -> T:
        with self._lock:
            current = self._entities.get(entity.id)
            if current is None:
                raise NotFoundError(
                    f"{self._entity_type.value} {entity.id} not found",
                    details={'id': entity.id}
                )
            old_key = self._key_of(current)
            new_key = self._key_of(entity)
            if new_key is not None and self._index.get(new_key, entity.id) != entity.id:
                raise self._duplicate_error(
                    f"{self._entity_type.value} with {self._key_name} {new_key!r} already exists",
                    details={self._key_name: new_key}
                )
            # dict assignment to an existing key keeps its position
            self._entities[entity.id] = entity
            if old_key is not None and old_key != new_key:
                self._index.pop(old_key, None)
            if new_key is not None:
                self._index[new_key] = entity.id
            return entity

    def find_by_id(self, entity_id: str) -> Optional[T]:
        with self._lock:
            return self._entities.get(entity_id)

    def find_by_key(self, key: Hashable) -> Optional[T]:
        """Look an entity up by its natural key."""
        with self._lock:
            entity_id = self._index.get(key)
            return self._entities.get(entity_id) if entity_id is not None else None

    def find_all(self) -> List[T]:
        with self._lock:
            return list(self._entities.values())

    def delete(self, entity_id: str) -> Optional[T]:
        with self._lock:
            entity = self._entities.pop(entity_id, None)
            if entity is not None:
                key = self._key_of(entity)
                if key is not None and self._index.get(key) == entity_id:
                    del self._index[key]
            return entity

    def count(self) -> int:
        with self._lock:
            return len(self._entities)

    def clear(self) -> None:
        with self._lock:
            self._entities.clear()
            self._index.clear()

    def _key_of(self, entity: T) -> Optional[Hashable]:
        return self._key_func(entity) if self._key_func else None

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, entity_id: object) -> bool:
        with self._lock:
            return entity_id in self._entities
