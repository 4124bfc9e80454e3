"""
Saves and restores whole-store snapshots through a database.
"""

import json
import logging
import threading
from typing import Any, Dict, List

from ..core.enums import EntityType
from ..core.exceptions import PersistenceError
from ..core.interfaces import SnapshotSource
from .database import DatabaseManager

logger = logging.getLogger(__name__)


class SnapshotManager:
    """Writes every record of a store into the ``entities`` table and reads it back."""

    def __init__(self, database: DatabaseManager):
        self._database = database
        self._lock = threading.RLock()

    def save(self, source: SnapshotSource) -> int:
        """Replace the stored rows with the current state; returns the number of rows written."""
        with self._lock:
            records = source.export_records()
            queries: List[tuple] = [("DELETE FROM entities", None)]
            position = 0
            for entity_type in EntityType:
                for data in records.get(entity_type.value, []):
                    queries.append((
                        """
                        INSERT INTO entities (id, type, data, position, created_at, updated_at, version)
                        VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            data['id'],
                            entity_type.value,
                            json.dumps(data),
                            position,
                            data.get('created_at'),
                            data.get('updated_at'),
                            data.get('version', 1),
                        )
                    ))
                    position += 1
            self._database.execute_transaction(queries)
            logger.info("Saved snapshot with %d records", position)
            return position

    def load(self, source: SnapshotSource) -> int:
        """Replace the source's state with what was last saved; returns the number of rows read."""
        with self._lock:
            rows = self._database.execute_query(
                "SELECT type, data FROM entities ORDER BY position"
            )
            records: Dict[str, List[Dict[str, Any]]] = {t.value: [] for t in EntityType}
            for row in rows:
                if row["type"] not in records:
                    raise PersistenceError(f"Unknown entity type in snapshot: {row['type']}")
                try:
                    records[row["type"]].append(json.loads(row["data"]))
                except json.JSONDecodeError as e:
                    raise PersistenceError(f"Corrupt snapshot row: {str(e)}")
            source.import_records(records)
            logger.info("Loaded snapshot with %d records", len(rows))
            return len(rows)
