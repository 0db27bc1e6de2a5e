"""Shared console utilities for CLI commands."""

import json
from typing import Any

from rich.console import Console

# Shared console instance for all CLI commands
console = Console()


def error(msg: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]{msg}[/red]", highlight=False)


def success(msg: str) -> None:
    """Print a success message in green."""
    console.print(f"[green]{msg}[/green]", highlight=False)


def dim(msg: str) -> None:
    """Print a dimmed message."""
    console.print(f"[dim]{msg}[/dim]", highlight=False)


def print_json(data: Any) -> None:
    """Print a JSON value with syntax highlighting."""
    console.print_json(json.dumps(data, ensure_ascii=False))
