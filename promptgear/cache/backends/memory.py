"""In-memory storage backend for TransformCache.

This is the default backend. Data is local to the process and lost when it
exits, so each worker process keeps its own cache.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..store import CacheEntry


class InMemoryBackend:
    """Thread-safe in-memory storage backend.

    Characteristics:
    - Fast: O(1) get/set/delete operations
    - Volatile: Data lost on process exit
    - Bounded: once ``max_entries`` is reached, expired entries are purged
      and then the oldest insertions are evicted

    Usage:
        backend = InMemoryBackend()
        backend.set("abc123", entry)
        entry = backend.get("abc123")
    """

    def __init__(self, max_entries: int = 10_000) -> None:
        self.max_entries = max_entries
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            return self._store.get(key)

    def set(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            self._store.pop(key, None)
            if len(self._store) >= self.max_entries:
                self._evict_locked()
            self._store[key] = entry

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._store)

    def _evict_locked(self) -> None:
        now = time.time()
        for key in [k for k, e in self._store.items() if e.is_expired(now)]:
            del self._store[key]
        # dicts keep insertion order: the first keys are the oldest
        while len(self._store) >= self.max_entries:
            del self._store[next(iter(self._store))]
