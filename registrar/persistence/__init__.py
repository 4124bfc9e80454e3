"""
Persistence module: the canonical entity store and its database snapshots.
"""

from .database import DatabaseManager, SQLiteDatabase, DatabaseFactory
from .entity_store import EntityStore, StoreSnapshot
from .repositories import EntityCollection
from .snapshot_manager import SnapshotManager

__all__ = [
    "DatabaseManager",
    "SQLiteDatabase",
    "DatabaseFactory",
    "EntityStore",
    "StoreSnapshot",
    "EntityCollection",
    "SnapshotManager",
]
