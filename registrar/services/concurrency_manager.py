"""
Per-key locking used to serialize check-then-write sequences.
"""

import threading
import time
import uuid
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Set

from ..core.exceptions import ConcurrencyError


class LockType(Enum):
    """Types of locks available."""
    READ = "read"
    WRITE = "write"


@dataclass
class LockInfo:
    """Information about a held lock."""
    lock_id: str
    resource_id: str
    lock_type: LockType
    holder_id: str
    acquired_at: float


def current_holder() -> str:
    return f"thread_{threading.get_ident()}"


class ConcurrencyManager:
    """
    Reader/writer locks keyed by resource id.

    Unlike a try-lock, ``acquire_lock`` waits for a conflicting holder to
    release, up to ``timeout`` seconds, and only then raises
    ``ConcurrencyError``. A holder that already has a lock on a resource may
    take another one on it without waiting.
    """

    def __init__(self, default_timeout: float = 5.0):
        self._default_timeout = default_timeout
        self._locks: Dict[str, Dict[LockType, Set[str]]] = defaultdict(lambda: defaultdict(set))
        self._lock_holders: Dict[str, LockInfo] = {}
        self._condition = threading.Condition(threading.Lock())

    def acquire_lock(self, resource_id: str, lock_type: LockType,
                     holder_id: Optional[str] = None, timeout: Optional[float] = None) -> str:
        """Acquire a lock on a resource, blocking until it is free or the timeout expires."""
        holder_id = holder_id or current_holder()
        timeout = self._default_timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout

        with self._condition:
            while not self._can_acquire_lock(resource_id, lock_type, holder_id):
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ConcurrencyError(
                        f"Timed out acquiring {lock_type.value} lock on {resource_id}",
                        details={'resource_id': resource_id, 'timeout': timeout}
                    )
                self._condition.wait(remaining)

            lock_id = str(uuid.uuid4())
            self._locks[resource_id][lock_type].add(lock_id)
            self._lock_holders[lock_id] = LockInfo(
                lock_id=lock_id,
                resource_id=resource_id,
                lock_type=lock_type,
                holder_id=holder_id,
                acquired_at=time.time()
            )
            return lock_id

    def release_lock(self, lock_id: str) -> bool:
        """Release a lock and wake any waiters."""
        with self._condition:
            lock_info = self._lock_holders.pop(lock_id, None)
            if lock_info is None:
                return False

            resource_locks = self._locks[lock_info.resource_id]
            resource_locks[lock_info.lock_type].discard(lock_id)
            if not resource_locks[lock_info.lock_type]:
                del resource_locks[lock_info.lock_type]
            if not resource_locks:
                del self._locks[lock_info.resource_id]

            self._condition.notify_all()
            return True

    def _can_acquire_lock(self, resource_id: str, lock_type: LockType, holder_id: str) -> bool:
        existing_locks = self._locks.get(resource_id)
        if not existing_locks:
            return True

        holders = {
            self._lock_holders[lock_id].holder_id
            for lock_ids in existing_locks.values()
            for lock_id in lock_ids
        }
        if holders == {holder_id}:
            return True

        if lock_type == LockType.READ:
            return LockType.WRITE not in existing_locks
        return False

    @contextmanager
    def lock(self, resource_id: str, lock_type: LockType = LockType.WRITE,
             holder_id: Optional[str] = None, timeout: Optional[float] = None) -> Iterator[str]:
        """Context manager for acquiring and releasing one lock."""
        lock_id = self.acquire_lock(resource_id, lock_type, holder_id, timeout)
        try:
            yield lock_id
        finally:
            self.release_lock(lock_id)

    @contextmanager
    def lock_many(self, resource_ids: Iterable[str], lock_type: LockType = LockType.WRITE,
                  holder_id: Optional[str] = None, timeout: Optional[float] = None) -> Iterator[List[str]]:
        """Lock several resources, always in sorted order so two callers cannot deadlock."""
        holder_id = holder_id or current_holder()
        acquired: List[str] = []
        try:
            for resource_id in sorted(set(resource_ids)):
                acquired.append(self.acquire_lock(resource_id, lock_type, holder_id, timeout))
            yield acquired
        finally:
            for lock_id in reversed(acquired):
                self.release_lock(lock_id)

    def get_lock_info(self, resource_id: str) -> List[LockInfo]:
        """Get information about all locks on a resource."""
        with self._condition:
            return [
                self._lock_holders[lock_id]
                for lock_ids in self._locks.get(resource_id, {}).values()
                for lock_id in lock_ids
            ]

    def get_holder_locks(self, holder_id: str) -> List[LockInfo]:
        with self._condition:
            return [info for info in self._lock_holders.values() if info.holder_id == holder_id]

    def active_lock_count(self) -> int:
        with self._condition:
            return len(self._lock_holders)
