"""Storage backends for TransformCache.

The default is in-memory storage. ``SQLiteBackend`` shares one cache file
between the worker processes of a host. Other stores (Redis, a CDN cache
API...) only need to implement ``TransformCacheBackend``.

Usage:
    from promptgear.cache import TransformCache
    from promptgear.cache.backends import InMemoryBackend, SQLiteBackend

    cache = TransformCache(InMemoryBackend())
    cache = TransformCache(SQLiteBackend("promptgear_cache.db"))
"""

from .base import TransformCacheBackend
from .memory import InMemoryBackend
from .sqlite import SQLiteBackend

__all__ = [
    "InMemoryBackend",
    "SQLiteBackend",
    "TransformCacheBackend",
]
