"""Configuration models for the PromptGear transform service.

Configuration is environment-provided and read once at startup into an
immutable ``ServiceConfig``. Request handlers consume it read-only.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

from .cors import parse_allowed_origins
from .exceptions import ConfigurationError
from .mock import is_mock_enabled

DEFAULT_MODEL = "gpt-4o-mini"
OPENAI_RESPONSES_URL = "https://api.openai.com/v1/responses"
CACHE_TTL_SECONDS = 60 * 60 * 24 * 15  # 15 days

CacheBackendName = Literal["memory", "sqlite"]


@dataclass(frozen=True)
class UpstreamConfig:
    """Configuration for the upstream LLM caller.

    Timeouts escalate per attempt: attempt ``i`` (0-based) gets
    ``timeout_seconds + i * timeout_step_seconds``.

    GOTCHAS:
    - There is no overall deadline unless ``deadline_seconds`` is set. The
      worst case is then the sum of all attempt timeouts and backoff delays
      (25 + 30 + 35 seconds of timeouts plus up to 12 seconds of backoff).
    - ``max_backoff_seconds`` also caps Retry-After: a provider asking for
      60 seconds still gets retried after 6.
    """

    api_key: str = ""
    endpoint: str = OPENAI_RESPONSES_URL

    # Attempts = 1 + max_retries
    max_retries: int = 2

    # Per-attempt timeouts
    timeout_seconds: float = 25.0
    timeout_step_seconds: float = 5.0
    connect_timeout_seconds: float = 10.0

    # Backoff between retries
    initial_backoff_seconds: float = 0.4
    max_backoff_seconds: float = 6.0
    jitter_seconds: float = 0.2

    # Overall budget across the whole retry sequence (None = unbounded)
    deadline_seconds: float | None = None

    def attempt_timeout(self, attempt: int) -> float:
        """Timeout for the given 0-based attempt index."""
        return self.timeout_seconds + attempt * self.timeout_step_seconds


@dataclass(frozen=True)
class ServiceConfig:
    """Transform service configuration."""

    # Server
    host: str = "127.0.0.1"
    port: int = 8787
    log_level: str = "INFO"

    # Upstream
    default_model: str = DEFAULT_MODEL
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)

    # Mock mode: MOCK_TRANSFORM == "true" or OPENAI_API_KEY == "MOCK"
    mock_transform: str | None = None

    # CORS allow-list, empty = deny every cross-origin request
    allowed_origins: frozenset[str] = field(default_factory=frozenset)

    # Cache
    cache_backend: CacheBackendName = "memory"
    cache_path: str = "promptgear_cache.db"
    cache_ttl_seconds: int = CACHE_TTL_SECONDS

    @property
    def api_key(self) -> str:
        return self.upstream.api_key

    @property
    def mock_mode(self) -> bool:
        return is_mock_enabled(self.mock_transform, self.upstream.api_key)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> ServiceConfig:
        """Build a config from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.
            **overrides: Field values that take precedence over the
                environment (used by the CLI for --host/--port).

        Raises:
            ConfigurationError: If a numeric variable does not parse or the
                cache backend name is unknown.
        """
        env = os.environ if environ is None else environ

        backend = env.get("PROMPTGEAR_CACHE_BACKEND", "memory").strip().lower() or "memory"
        if backend not in ("memory", "sqlite"):
            raise ConfigurationError(
                "Unknown cache backend",
                details={"PROMPTGEAR_CACHE_BACKEND": backend, "valid": ["memory", "sqlite"]},
            )

        upstream = UpstreamConfig(
            api_key=env.get("OPENAI_API_KEY", ""),
            endpoint=env.get("PROMPTGEAR_UPSTREAM_URL") or OPENAI_RESPONSES_URL,
            deadline_seconds=_optional_float(env, "PROMPTGEAR_DEADLINE_SECONDS"),
        )

        values = {
            "default_model": env.get("DEFAULT_MODEL") or DEFAULT_MODEL,
            "upstream": upstream,
            "mock_transform": env.get("MOCK_TRANSFORM"),
            "allowed_origins": parse_allowed_origins(env.get("ALLOWED_ORIGINS")),
            "cache_backend": backend,
            "cache_path": env.get("PROMPTGEAR_CACHE_PATH") or "promptgear_cache.db",
            "cache_ttl_seconds": _int(env, "PROMPTGEAR_CACHE_TTL_SECONDS", CACHE_TTL_SECONDS),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid value for {name}", details={"value": raw}) from None


def _optional_float(env: Mapping[str, str], name: str) -> float | None:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid value for {name}", details={"value": raw}) from None
