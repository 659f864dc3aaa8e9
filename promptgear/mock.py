"""Deterministic prompt structuring for local/dev mode.

When mock mode is enabled the service never calls the upstream provider.
Instead it builds the five-section scaffold locally from a keyword table:

    Role: cybersecurity analyst.
    Task: Analyze network security logs
    Context:
    - Mode: research. This scaffold was generated ...
    Reasoning:
    - ...
    Stop Conditions:
    - ...

The output is a pure function of (prompt, mode), so tests can assert on it.
"""

from __future__ import annotations

import re

MOCK_API_KEY = "MOCK"
DEFAULT_ROLE = "subject specialist"

# Ordered: first matching entry wins
MOCK_ROLE_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("neuroscientist", ("neuro", "brain", "cortex")),
    ("data scientist", ("data", "model", "analytics")),
    ("software engineer", ("code", "bug", "script", "refactor")),
    ("cybersecurity analyst", ("security", "threat", "breach", "malware")),
    ("financial analyst", ("finance", "investment", "budget", "valuation")),
    ("medical doctor", ("patient", "symptom", "diagnosis", "treatment")),
]

EMPTY_PROMPT_SCAFFOLD = "\n".join(
    [
        "Role: subject-matter expert.",
        "Task: Await further instructions.",
        "Context: No request provided.",
        "Reasoning:\n- Ask the user for a concrete objective.",
        "Stop Conditions:\n- Stop until the user supplies a prompt.",
    ]
)

_TOKEN_RE = re.compile(r"[a-z0-9-]+")
_MIN_NOUN_LENGTH = 5


def is_mock_enabled(mock_flag: str | None, api_key: str | None) -> bool:
    """Mock mode is on iff the flag is exactly "true" or the key is "MOCK"."""
    return mock_flag == "true" or api_key == MOCK_API_KEY


def infer_role(prompt: str) -> str:
    lower = prompt.lower()
    for role, keywords in MOCK_ROLE_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return role

    noun = next((t for t in _TOKEN_RE.findall(lower) if len(t) >= _MIN_NOUN_LENGTH), None)
    return f"{noun} specialist" if noun else DEFAULT_ROLE


def build_mock_structured_prompt(prompt: str, mode: str | None = None) -> str:
    """Build the local scaffold for ``prompt``.

    An empty or whitespace-only prompt yields a placeholder scaffold asking
    for more detail instead of failing.
    """
    trimmed = (prompt or "").strip()
    if not trimmed:
        return EMPTY_PROMPT_SCAFFOLD

    role = infer_role(trimmed)
    mode_note = f"Mode: {mode}. " if mode else ""

    return "\n".join(
        [
            f"Role: {role}.",
            f"Task: {trimmed}",
            f"Context:\n- {mode_note}This scaffold was generated from the raw prompt "
            "while running in local mock mode.",
            "Reasoning:\n"
            "- Highlight missing details before proceeding.\n"
            "- Outline the major steps required to satisfy the request.\n"
            "- Note any assumptions that must be validated.",
            "Stop Conditions:\n"
            "- Pause if critical information is missing.\n"
            "- Finish once all deliverables from the task statement are complete.",
        ]
    )
