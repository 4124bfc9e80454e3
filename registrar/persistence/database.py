"""
Database management and connection handling.
"""

import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from ..core.exceptions import PersistenceError, ConfigurationError


class DatabaseManager(ABC):
    """Abstract base class for database management."""

    @abstractmethod
    def execute_query(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """Execute a query and return results."""
        pass

    @abstractmethod
    def execute_update(self, query: str, params: Optional[tuple] = None) -> int:
        """Execute an update query and return affected rows."""
        pass

    @abstractmethod
    def execute_transaction(self, queries: List[tuple]) -> bool:
        """Execute multiple queries in a transaction."""
        pass


class SQLiteDatabase(DatabaseManager):
    """SQLite database implementation."""

    def __init__(self, database_path: str = "registrar.db"):
        self._database_path = database_path
        self._lock = threading.RLock()
        self._initialize_database()

    def _initialize_database(self) -> None:
        """Initialize the database with basic schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS entities (
                    id TEXT PRIMARY KEY,
                    type TEXT NOT NULL,
                    data TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    version INTEGER DEFAULT 1
                )
            """)
            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper cleanup."""
        conn = None
        try:
            conn = sqlite3.connect(self._database_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            raise PersistenceError(f"Database connection error: {str(e)}")
        finally:
            if conn:
                conn.close()

    def execute_query(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        with self._lock, self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params or ())
            columns = [description[0] for description in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def execute_update(self, query: str, params: Optional[tuple] = None) -> int:
        with self._lock, self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params or ())
            conn.commit()
            return cursor.rowcount

    def execute_transaction(self, queries: List[tuple]) -> bool:
        """Execute multiple (query, params) pairs atomically."""
        with self._lock, self._get_connection() as conn:
            try:
                cursor = conn.cursor()
                for query, params in queries:
                    cursor.execute(query, params or ())
                conn.commit()
                return True
            except sqlite3.Error as e:
                conn.rollback()
                raise PersistenceError(f"Transaction failed: {str(e)}")


class DatabaseFactory:
    """Factory for creating database instances."""

    @staticmethod
    def create_database(database_type: str, **kwargs) -> DatabaseManager:
        if database_type.lower() == "sqlite":
            return SQLiteDatabase(**kwargs)
        raise ConfigurationError(f"Unsupported database type: {database_type}")
