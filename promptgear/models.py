"""Data models shared across the transform service."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import RequestValidationError

MISSING_PROMPT_MESSAGE = "Missing required field: prompt"

# Statuses considered transient. Status 0 (transport failure) is handled
# separately by ``is_retryable_status``.
RETRYABLE_STATUS: frozenset[int] = frozenset({408, 409, 425, 429, 500, 502, 503, 504, 524})


def is_retryable_status(status: int) -> bool:
    """Whether a failure with this status is worth another attempt."""
    return status == 0 or status in RETRYABLE_STATUS


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class TransformRequest:
    """A validated ``POST /transform`` body.

    ``prompt`` is already trimmed and guaranteed non-empty.
    """

    prompt: str
    mode: str | None = None
    model: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> TransformRequest:
        """Validate a decoded JSON body.

        Raises:
            RequestValidationError: If the prompt is missing, not a string,
                or blank, or if mode/model are present but not strings.
        """
        if not isinstance(payload, dict):
            raise RequestValidationError(MISSING_PROMPT_MESSAGE)

        prompt = payload.get("prompt")
        if not isinstance(prompt, str) or not prompt.strip():
            raise RequestValidationError(MISSING_PROMPT_MESSAGE)

        mode = payload.get("mode")
        if mode is not None and not isinstance(mode, str):
            raise RequestValidationError("Invalid field: mode must be a string")

        model = payload.get("model")
        if model is not None and not isinstance(model, str):
            raise RequestValidationError("Invalid field: model must be a string")

        return cls(prompt=prompt.strip(), mode=mode, model=model or None)


@dataclass(frozen=True)
class CachedTransformRecord:
    """A successful transform as stored in the cache.

    Immutable once written. ``cached_at`` is epoch milliseconds.
    """

    structured_prompt: str
    model: str
    usage: int | None = None
    mocked: bool | None = None
    cached_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "structuredPrompt": self.structured_prompt,
            "model": self.model,
            "usage": self.usage,
            "cachedAt": self.cached_at,
        }
        if self.mocked is not None:
            data["mocked"] = self.mocked
        return data

    @classmethod
    def from_dict(cls, data: Any) -> CachedTransformRecord | None:
        """Rebuild a record, or return None for payloads that are not one."""
        if not isinstance(data, dict) or not isinstance(data.get("structuredPrompt"), str):
            return None
        usage = data.get("usage")
        return cls(
            structured_prompt=data["structuredPrompt"],
            model=str(data.get("model") or ""),
            usage=usage if isinstance(usage, int) else None,
            mocked=data.get("mocked"),
            cached_at=int(data.get("cachedAt") or 0),
        )


class FailureKind(str, Enum):
    """Why an upstream call sequence ended without a structured prompt."""

    TRANSPORT = "transport"  # connection refused, DNS, reset...
    TIMEOUT = "timeout"  # per-attempt timeout elapsed
    HTTP = "http"  # provider answered with a non-2xx status
    NO_CONTENT = "no_content"  # 2xx but nothing extractable


@dataclass(frozen=True)
class UpstreamFailure:
    """Terminal outcome of a failed upstream call sequence.

    ``status`` is the last attempt's HTTP status, 0 for transport failures.
    ``body`` is the raw provider response body (or the transport error text).
    """

    status: int
    body: str
    kind: FailureKind = FailureKind.HTTP
    message: str = ""
    attempts: int = 1

    @property
    def retryable(self) -> bool:
        if self.kind is FailureKind.NO_CONTENT:
            return False
        return is_retryable_status(self.status)


@dataclass(frozen=True)
class UpstreamSuccess:
    """Structured prompt returned by the provider."""

    structured_prompt: str
    usage: int | None = None
    attempts: int = 1


UpstreamResult = UpstreamSuccess | UpstreamFailure
