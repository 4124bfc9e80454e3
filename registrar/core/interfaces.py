"""
Core interfaces and abstract base classes for the Registrar domain.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, TypeVar, Generic


T = TypeVar('T')


class Repository(ABC, Generic[T]):
    """Abstract base class for keyed entity collections."""

    @abstractmethod
    def insert(self, entity: T) -> T:
        """Add a new entity; fails if its id is already present."""
        pass

    @abstractmethod
    def replace(self, entity: T) -> T:
        """Swap the stored entity with the same id for this one."""
        pass

    @abstractmethod
    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Find entity by ID."""
        pass

    @abstractmethod
    def find_all(self) -> List[T]:
        """All entities in insertion order."""
        pass

    @abstractmethod
    def delete(self, entity_id: str) -> Optional[T]:
        """Delete an entity by ID and return it, or None if it was absent."""
        pass


class SnapshotSource(ABC):
    """Anything that can hand out and accept whole-store snapshots."""

    @abstractmethod
    def export_records(self) -> Dict[str, List[Dict[str, Any]]]:
        """Every entity as a dictionary, grouped by entity type."""
        pass

    @abstractmethod
    def import_records(self, records: Dict[str, List[Dict[str, Any]]]) -> None:
        """Replace all state with the given records."""
        pass
