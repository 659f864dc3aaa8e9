"""Upstream LLM provider access: prompt building, retries, extraction."""

from .client import UpstreamClient, retry_after_seconds
from .extraction import STRATEGIES, extract_structured_prompt, extract_usage
from .prompts import MODE_HINTS, SYSTEM_PROMPT_BASE, build_payload, build_system_prompt

__all__ = [
    "MODE_HINTS",
    "STRATEGIES",
    "SYSTEM_PROMPT_BASE",
    "UpstreamClient",
    "build_payload",
    "build_system_prompt",
    "extract_structured_prompt",
    "extract_usage",
    "retry_after_seconds",
]
