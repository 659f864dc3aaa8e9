"""Command-line interface for PromptGear."""

from .main import main

__all__ = ["main"]
