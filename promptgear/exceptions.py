"""Custom exceptions for PromptGear.

All exceptions inherit from PromptGearError, making it easy to catch every
PromptGear-related error in one place.

Upstream provider failures are deliberately NOT exceptions: the upstream
client returns an ``UpstreamFailure`` value that the service maps into the
outward error shape (see ``promptgear.service.errors``).

Example:
    from promptgear.config import ServiceConfig
    from promptgear.exceptions import ConfigurationError

    try:
        config = ServiceConfig.from_env()
    except ConfigurationError as e:
        print(f"Configuration problem: {e}")
"""

from __future__ import annotations

from typing import Any


class PromptGearError(Exception):
    """Base exception for all PromptGear errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class ConfigurationError(PromptGearError):
    """Raised when the service is misconfigured.

    This includes:
    - Non-numeric values for numeric environment variables
    - Unknown cache backend names
    - A missing upstream credential while mock mode is disabled

    Example:
        ConfigurationError(
            "Invalid value for PROMPTGEAR_CACHE_TTL_SECONDS",
            details={"value": "soon"}
        )
    """

    pass


class RequestValidationError(PromptGearError):
    """Raised when an incoming transform request is malformed.

    Always surfaced as HTTP 400 with ``message`` as the error text. Never
    retried and never recorded as a health failure.
    """

    pass


class CacheError(PromptGearError):
    """Raised by cache backends when the underlying storage fails.

    The transform cache catches these, logs them, and treats the operation
    as a miss (reads) or a no-op (writes).

    Example:
        CacheError(
            "Cannot open cache database",
            details={"path": "promptgear_cache.db", "error": "disk I/O error"}
        )
    """

    pass
