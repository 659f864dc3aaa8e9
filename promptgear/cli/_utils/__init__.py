"""CLI utilities for formatting."""

from .formatting import console, print_error, print_structured_prompt

__all__ = [
    "console",
    "print_error",
    "print_structured_prompt",
]
