"""Formatting utilities for CLI output using Rich."""

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

# Shared console instance for consistent output
console = Console()


def print_structured_prompt(body: dict[str, Any]) -> None:
    """Print a successful transform response.

    Args:
        body: The JSON body returned by the transform service.
    """
    flags = [flag for flag in ("mocked", "cached") if body.get(flag)]
    subtitle = f"model: {body.get('model')}"
    if flags:
        subtitle += f" ({', '.join(flags)})"
    panel = Panel(
        Text(body["structuredPrompt"]),
        title="Structured prompt",
        subtitle=escape(subtitle),
    )
    console.print(panel)


def print_error(msg: str) -> None:
    """Print an error message in red.

    Args:
        msg: The error message to display.
    """
    console.print(f"[bold red]Error:[/bold red] {escape(msg)}")
