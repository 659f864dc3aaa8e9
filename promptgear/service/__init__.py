"""HTTP transform service."""

from .app import create_app, run_server
from .errors import ErrorPayload, normalize_exception, normalize_upstream_failure
from .transform import TransformOutcome, TransformService

__all__ = [
    "ErrorPayload",
    "TransformOutcome",
    "TransformService",
    "create_app",
    "normalize_exception",
    "normalize_upstream_failure",
    "run_server",
]
