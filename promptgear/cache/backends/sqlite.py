"""SQLite storage backend for TransformCache.

Lets every worker process on a host share one cache file. Rows carry their
absolute expiry; reads return expired rows like any other backend (the
TransformCache filters them). Expired rows are purged when the backend is
opened.
"""

from __future__ import annotations

import sqlite3
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from ...exceptions import CacheError
from ..store import CacheEntry


class SQLiteBackend:
    """File-backed storage backend.

    A connection is opened per operation, so the backend is safe to use
    from several threads and processes. WAL mode keeps readers from
    blocking the writer.
    """

    def __init__(self, db_path: str | Path = "promptgear_cache.db") -> None:
        self._db_path = Path(db_path)
        self._lock = threading.Lock()
        self._init_db()
        self.purge_expired()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self._db_path), timeout=5.0)
        except sqlite3.Error as e:
            raise CacheError(
                "Cannot open cache database", details={"path": str(self._db_path), "error": e}
            ) from e
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._lock, self._connect() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS transform_cache (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    expires_at REAL NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_transform_cache_expires "
                "ON transform_cache(expires_at)"
            )

    def get(self, key: str) -> CacheEntry | None:
        with self._lock, self._connect() as conn:
            row = conn.execute(
                "SELECT payload, expires_at FROM transform_cache WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return CacheEntry(payload=row["payload"], expires_at=row["expires_at"])

    def set(self, key: str, entry: CacheEntry) -> None:
        with self._lock, self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO transform_cache (key, payload, expires_at) "
                "VALUES (?, ?, ?)",
                (key, entry.payload, entry.expires_at),
            )

    def delete(self, key: str) -> bool:
        with self._lock, self._connect() as conn:
            cursor = conn.execute("DELETE FROM transform_cache WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def clear(self) -> None:
        with self._lock, self._connect() as conn:
            conn.execute("DELETE FROM transform_cache")

    def count(self) -> int:
        with self._lock, self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM transform_cache").fetchone()[0]

    def purge_expired(self, now: float | None = None) -> int:
        """Delete expired rows. Returns how many were removed."""
        cutoff = time.time() if now is None else now
        with self._lock, self._connect() as conn:
            cursor = conn.execute("DELETE FROM transform_cache WHERE expires_at <= ?", (cutoff,))
            return cursor.rowcount
