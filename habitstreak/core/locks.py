"""In-process mutual exclusion keyed by entity id."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class KeyedLocks:
    """Registry of re-entrant locks, one per key (``user:<id>``, ``group:<id>``)."""

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._lock_for(key)
        with lock:
            yield

    def user(self, user_id: str):
        return self.hold(f"user:{user_id}")

    def group(self, group_id: str):
        return self.hold(f"group:{group_id}")

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Shared registry for the process
entity_locks = KeyedLocks()
