"""Outward error shape for failed transforms.

Every failure that reaches the transform handler is reduced to::

    {"error": <message>, "status": <http status>, "retryable": <bool>,
     "details": <provider JSON payload, optional>}

``retryable`` is informational for the caller. Retries have already been
exhausted by the time the error is rendered.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from ..exceptions import ConfigurationError
from ..models import FailureKind, UpstreamFailure

DEFAULT_ERROR_MESSAGE = "Unexpected error"
TRANSPORT_FAILURE_STATUS = 502


@dataclass(frozen=True)
class ErrorPayload:
    error: str
    status: int
    retryable: bool = False
    details: dict[str, Any] | list[Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "error": self.error,
            "status": self.status,
            "retryable": self.retryable,
        }
        if self.details:
            body["details"] = self.details
        return body


def parse_error_body(body: str) -> Any:
    """Decode a provider error body: JSON when possible, else the raw text."""
    if not body:
        return None
    try:
        return json.loads(body)
    except ValueError:
        return body


def _provider_message(details: Any) -> str | None:
    """``error.message`` from an OpenAI-style error payload."""
    if not isinstance(details, dict):
        return None
    error = details.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    if isinstance(error, str) and error.strip():
        return error
    return None


def normalize_upstream_failure(failure: UpstreamFailure) -> ErrorPayload:
    """Map an upstream failure to the outward error.

    Status 0 (no HTTP response at all) is reported as 502.
    """
    status = TRANSPORT_FAILURE_STATUS if failure.status == 0 else failure.status
    details = parse_error_body(failure.body)

    # A 2xx body without usable text (an HTML page, say) is not an error message
    if failure.kind is FailureKind.NO_CONTENT:
        message = failure.message or DEFAULT_ERROR_MESSAGE
    else:
        message = _provider_message(details)
    if message is None:
        if isinstance(details, str) and details.strip():
            message = details.strip()
        elif failure.body.strip() and not isinstance(details, dict):
            message = failure.body.strip()
        else:
            message = failure.message or DEFAULT_ERROR_MESSAGE

    return ErrorPayload(
        error=message,
        status=status,
        retryable=failure.retryable,
        details=details if isinstance(details, (dict, list)) else None,
    )


def normalize_exception(exc: BaseException) -> ErrorPayload:
    """Map an unexpected exception to the outward error. Never retryable."""
    if isinstance(exc, ConfigurationError):
        return ErrorPayload(error=exc.message, status=500)
    return ErrorPayload(error=str(exc) or DEFAULT_ERROR_MESSAGE, status=502)
