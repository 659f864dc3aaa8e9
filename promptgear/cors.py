"""Cross-origin access policy.

Resolves, per request, whether the caller's Origin may use the service and
which CORS headers to emit. Rules are evaluated in order, first match wins:

1. Empty allow-list: deny (fail closed).
2. ``*`` configured: allow, echo the Origin (or ``*`` when absent).
3. No Origin header: allow only when ``<no-origin>`` is configured.
4. Exact match: allow.
5. ``prefix*`` entry whose prefix starts the Origin: allow.
6. Otherwise deny.

The decision is only advisory to browsers. Handlers must also enforce it,
otherwise non-browser clients are unaffected by the policy.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

NO_ORIGIN_TOKEN = "<no-origin>"
WILDCARD = "*"

ALLOW_HEADERS = "content-type, authorization"
ALLOW_METHODS = "POST, OPTIONS"

_SPLIT_RE = re.compile(r"[,\s]+")


@dataclass(frozen=True)
class CorsDecision:
    """Per-request outcome of the origin policy."""

    allowed: bool
    origin_to_echo: str | None = None
    vary_by_origin: bool = True


def parse_allowed_origins(raw: str | None) -> frozenset[str]:
    """Parse a comma and/or whitespace separated allow-list."""
    if not raw or not raw.strip():
        return frozenset()
    return frozenset(entry.strip() for entry in _SPLIT_RE.split(raw) if entry.strip())


def resolve_cors(origin: str | None, allowed_origins: frozenset[str] | set[str]) -> CorsDecision:
    """Decide whether ``origin`` may access the service."""
    if not allowed_origins:
        return CorsDecision(allowed=False)

    if WILDCARD in allowed_origins:
        return CorsDecision(allowed=True, origin_to_echo=origin or WILDCARD)

    if not origin:
        # Nothing to echo even when allowed: no browser is asking
        return CorsDecision(allowed=NO_ORIGIN_TOKEN in allowed_origins)

    if origin in allowed_origins:
        return CorsDecision(allowed=True, origin_to_echo=origin)

    for candidate in allowed_origins:
        if candidate.endswith(WILDCARD) and candidate != WILDCARD:
            if origin.startswith(candidate[:-1]):
                return CorsDecision(allowed=True, origin_to_echo=origin)

    return CorsDecision(allowed=False)


def cors_headers(decision: CorsDecision) -> dict[str, str]:
    """Headers to attach to an allowed response.

    Denied decisions get no Access-Control headers at all, only ``Vary``.
    """
    headers: dict[str, str] = {}
    if decision.allowed:
        if decision.origin_to_echo:
            headers["Access-Control-Allow-Origin"] = decision.origin_to_echo
        headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
        headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
    if decision.vary_by_origin:
        headers["Vary"] = "Origin"
    return headers
