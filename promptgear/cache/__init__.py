"""Content-addressed, TTL-bounded cache of transform results."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .backends import InMemoryBackend, SQLiteBackend, TransformCacheBackend
from .keys import build_cache_key
from .store import CacheEntry, TransformCache

if TYPE_CHECKING:
    from ..config import ServiceConfig


def create_cache(config: ServiceConfig) -> TransformCache:
    """Build the cache selected by ``config.cache_backend``."""
    backend: TransformCacheBackend
    if config.cache_backend == "sqlite":
        backend = SQLiteBackend(config.cache_path)
    else:
        backend = InMemoryBackend()
    return TransformCache(backend, ttl_seconds=config.cache_ttl_seconds)


__all__ = [
    "CacheEntry",
    "InMemoryBackend",
    "SQLiteBackend",
    "TransformCache",
    "TransformCacheBackend",
    "build_cache_key",
    "create_cache",
]
