"""Shared Rich console instance for CLI output."""

from rich.console import Console

console = Console(highlight=False)

__all__ = ["console"]
