"""Content-addressed cache keys for transform requests."""

from __future__ import annotations

import hashlib
import json


def build_cache_key(prompt: str, mode: str | None, model: str) -> str:
    """Derive the cache key for a ``(prompt, mode, model)`` triple.

    The triple is serialized as canonical JSON, so an absent mode (``null``)
    never collides with any string mode, including ``""``. The SHA-256
    digest is returned as 64 lowercase hex characters.
    """
    canonical = json.dumps(
        {"prompt": prompt, "mode": mode, "model": model},
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
