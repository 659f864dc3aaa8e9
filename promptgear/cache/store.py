"""TTL-bounded cache of successful transforms.

``TransformCache`` sits between the service and a pluggable storage
backend. Backends only do CRUD; this class owns TTL enforcement,
serialization and fault isolation:

- An entry past its ``expires_at`` is never returned, whether or not the
  backend has evicted it yet.
- A backend fault on read is logged and treated as a miss.
- A backend fault on write is logged and dropped; the transform itself
  already succeeded.

The store is possibly shared and not transactional. Two concurrent misses
for the same key both reach the upstream provider and both write. Since the
key is a pure function of the request content the second write is an
equivalent overwrite, not a correctness problem.

Usage:
    cache = TransformCache(InMemoryBackend(), ttl_seconds=3600)
    key = build_cache_key(prompt, mode, model)
    record = cache.get(key)
    if record is None:
        ...
        cache.put(key, CachedTransformRecord(...))
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..config import CACHE_TTL_SECONDS
from ..models import CachedTransformRecord

if TYPE_CHECKING:
    from .backends import TransformCacheBackend

logger = logging.getLogger("promptgear.cache")


@dataclass(frozen=True)
class CacheEntry:
    """Serialized record plus its absolute expiry (epoch seconds)."""

    payload: str
    expires_at: float

    def is_expired(self, now: float | None = None) -> bool:
        return (time.time() if now is None else now) >= self.expires_at


class TransformCache:
    """Read/write transform records with an implicit TTL."""

    def __init__(
        self,
        backend: TransformCacheBackend,
        ttl_seconds: int = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._backend = backend
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @property
    def backend(self) -> TransformCacheBackend:
        return self._backend

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def get(self, key: str) -> CachedTransformRecord | None:
        """Return the live record for ``key`` or None."""
        try:
            entry = self._backend.get(key)
        except Exception as e:
            logger.warning(f"Failed to read cache entry {key[:12]}: {e}")
            return None

        if entry is None or entry.is_expired(self._clock()):
            return None

        try:
            record = CachedTransformRecord.from_dict(json.loads(entry.payload))
        except (ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable cache entry {key[:12]}: {e}")
            return None

        if record is None:
            logger.warning(f"Discarding malformed cache entry {key[:12]}")
        return record

    def put(self, key: str, record: CachedTransformRecord) -> None:
        """Store ``record`` under ``key`` for ``ttl_seconds``."""
        entry = CacheEntry(
            payload=json.dumps(record.to_dict()),
            expires_at=self._clock() + self._ttl_seconds,
        )
        try:
            self._backend.set(key, entry)
        except Exception as e:
            logger.warning(f"Failed to write cache entry {key[:12]}: {e}")
