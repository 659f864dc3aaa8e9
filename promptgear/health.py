"""Coarse liveness signal derived from recent transform outcomes.

The state lives on the ``HealthMonitor`` instance owned by the service. It
is per process, starts empty (reported as degraded until the first
completed transform) and resets on restart. Concurrent requests overwrite
the state wholesale without locking, so a read may reflect a request that
is completing at the same moment. Treat it as a diagnostic, never as an
authoritative record.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .models import now_ms


@dataclass(frozen=True)
class ErrorRecord:
    """Most recent failed transform."""

    at: int  # epoch ms
    message: str
    http_status: int | None = None
    seq: int = 0


@dataclass(frozen=True)
class HealthState:
    last_success_at: int | None = None  # epoch ms
    last_error: ErrorRecord | None = None
    success_seq: int = 0

    @property
    def healthy(self) -> bool:
        """A success was recorded and nothing failed after it.

        Ordering uses the recording sequence rather than the timestamps so
        that a success and a failure inside the same millisecond still
        compare correctly.
        """
        if self.last_success_at is None:
            return False
        return self.last_error is None or self.success_seq >= self.last_error.seq


def _iso(epoch_ms: int | None) -> str | None:
    if epoch_ms is None:
        return None
    dt = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class HealthMonitor:
    """Tracks the last success and the last error of the transform path."""

    def __init__(self, clock: Callable[[], int] = now_ms):
        self._clock = clock
        self._seq = itertools.count(1)
        self._state = HealthState()

    @property
    def state(self) -> HealthState:
        return self._state

    def record_success(self) -> None:
        """A transform completed: clears any recorded error."""
        self._state = HealthState(last_success_at=self._clock(), success_seq=next(self._seq))

    def record_failure(self, message: str, http_status: int | None = None) -> None:
        """A transform failed: keeps the last success for comparison."""
        self._state = HealthState(
            last_success_at=self._state.last_success_at,
            success_seq=self._state.success_seq,
            last_error=ErrorRecord(
                at=self._clock(),
                message=message,
                http_status=http_status,
                seq=next(self._seq),
            ),
        )

    def report(self, mock_mode: bool) -> tuple[dict[str, Any], int]:
        """Render ``GET /health``.

        Returns:
            (payload, http_status) where http_status is 200 when healthy and
            503 otherwise.
        """
        state = self._state
        error = state.last_error
        payload = {
            "status": "ok" if state.healthy else "degraded",
            "mockMode": mock_mode,
            "lastSuccessfulTransform": _iso(state.last_success_at),
            "lastError": (
                {
                    "timestamp": _iso(error.at),
                    "message": error.message,
                    "httpStatus": error.http_status,
                }
                if error
                else None
            ),
            "timestamp": _iso(self._clock()),
        }
        return payload, 200 if state.healthy else 503
