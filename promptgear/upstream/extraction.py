"""Structured-prompt extraction from provider responses.

The Responses API has shipped more than one shape. Each strategy below
handles one shape and returns "" when it does not apply; the first
non-empty result wins. Add a strategy here when the provider changes its
output, without touching retry or cache logic.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

Strategy = Callable[[dict[str, Any]], str]

TEXT_PART_TYPES = ("output_text", "text")


def from_output_text(data: dict[str, Any]) -> str:
    """Flat ``output_text`` list, as returned by the SDK convenience field."""
    output_text = data.get("output_text")
    if isinstance(output_text, list) and output_text:
        return "\n".join(str(item) for item in output_text).strip()
    return ""


def from_output_items(data: dict[str, Any]) -> str:
    """First ``message`` item of ``output`` (or the first item at all)."""
    output = data.get("output")
    if not isinstance(output, list) or not output:
        return ""

    entry = next(
        (item for item in output if isinstance(item, dict) and item.get("type") == "message"),
        output[0],
    )
    if not isinstance(entry, dict):
        return ""

    content = entry.get("content")
    if isinstance(content, list):
        return "".join(
            part.get("text") or ""
            for part in content
            if isinstance(part, dict) and part.get("type") in TEXT_PART_TYPES
        ).strip()

    text = entry.get("text")
    if isinstance(text, str):
        return text.strip()
    return ""


STRATEGIES: tuple[Strategy, ...] = (from_output_text, from_output_items)


def extract_structured_prompt(data: Any, strategies: tuple[Strategy, ...] = STRATEGIES) -> str:
    """Return the generated text, or "" when no strategy finds any."""
    if not isinstance(data, dict):
        return ""
    for strategy in strategies:
        text = strategy(data)
        if text:
            return text
    return ""


def extract_usage(data: Any) -> int | None:
    """``usage.total_tokens`` when present."""
    if not isinstance(data, dict):
        return None
    usage = data.get("usage")
    if isinstance(usage, dict) and isinstance(usage.get("total_tokens"), int):
        return usage["total_tokens"]
    return None
