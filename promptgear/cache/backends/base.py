"""Base protocol for TransformCache backends.

Backends handle CRUD on serialized entries only. TTL enforcement,
serialization and fault isolation belong to ``TransformCache``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..store import CacheEntry


@runtime_checkable
class TransformCacheBackend(Protocol):
    """Protocol for TransformCache storage backends.

    Implementations can use any storage mechanism: process memory, a SQLite
    file shared across workers, Redis, etc.

    Design Principles:
    - Simple CRUD operations only
    - get() does NOT check expiry, TransformCache does
    - Thread-safety is the implementation's responsibility
    - Raise CacheError (or let the driver error propagate) on storage faults
    """

    def get(self, key: str) -> CacheEntry | None:
        """Retrieve an entry by key, expired or not."""
        ...

    def set(self, key: str, entry: CacheEntry) -> None:
        """Store an entry, overwriting any existing entry for the key."""
        ...

    def delete(self, key: str) -> bool:
        """Delete an entry. Returns True if it existed."""
        ...

    def clear(self) -> None:
        """Remove all entries."""
        ...

    def count(self) -> int:
        """Number of stored entries, including expired ones not yet evicted."""
        ...
