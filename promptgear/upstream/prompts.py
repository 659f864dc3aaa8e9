"""System instruction sent to the upstream provider."""

from __future__ import annotations

SYSTEM_PROMPT_BASE = """You are Prompt Structurer, a meta-assistant that tidies raw prompts so the responding model can do focused work.
Review the user's request carefully and respond with short, plain-text sections.

Role: Choose the most relevant expert identity for the request (keep it specific whenever possible).
Task: Restate the user's objective in one sentence and mention missing details if they matter.
Context: Highlight key constraints, background, assumptions, audience hints, or timelines from the prompt (2-3 bullets or short sentences).
Reasoning: List the main checks or thought steps the assistant should follow so the answer stays accurate and useful (2-4 bullets).
Stop Conditions: Explain when the assistant should stop (e.g., once goals are met, if more info is required, or when policy/safety issues arise).

Keep the tone practical, avoid inventing facts, and be concise. No extra sections are required."""  # noqa: E501

MODE_HINTS: dict[str, str] = {
    "coding": (
        "When crafting sections, emphasize debugging steps, code safety checks, "
        "and preferred languages."
    ),
    "research": (
        "Prioritize primary sources, methodologies, and clear criteria for evaluating evidence."
    ),
    "travel": "Highlight location details, logistics, and user preferences for destinations.",
    "writing": (
        "Focus on tone, narrative structure, and revision guidelines to elevate written outputs."
    ),
}


def mode_hint(mode: str) -> str:
    """Guidance for ``mode``; unknown modes get a generic hint naming them."""
    return MODE_HINTS.get(
        mode.lower(), f'Incorporate requirements relevant to the "{mode}" domain.'
    )


def build_system_prompt(mode: str | None = None) -> str:
    if not mode:
        return SYSTEM_PROMPT_BASE
    return f"{SYSTEM_PROMPT_BASE}\nMode guidance: {mode_hint(mode)}"


def build_payload(prompt: str, mode: str | None, model: str) -> dict:
    """Request body for the Responses API."""
    return {
        "model": model,
        "input": [
            {
                "role": "system",
                "content": [{"type": "input_text", "text": build_system_prompt(mode)}],
            },
            {
                "role": "user",
                "content": [{"type": "input_text", "text": prompt}],
            },
        ],
    }
