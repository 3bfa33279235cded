"""CLI utility functions shared across commands.

This module contains generic CLI utilities for:
- Import path setup
- Loading application modules
- Console output
"""

import sys
from pathlib import Path

import typer
from rich.console import Console

from service_kit.bootstrap import autodiscover, load_application

console = Console()


def add_import_path(path: Path) -> None:
    """Make application packages below ``path`` importable.

    Raises:
        typer.Exit: If path does not exist
    """
    if not path.is_dir():
        console.print(f"[red]Error: Application directory does not exist: {path}[/red]")
        raise typer.Exit(1)

    resolved = str(path.resolve())
    if resolved not in sys.path:
        sys.path.insert(0, resolved)


def load_modules(services: list[str] | None, events: list[str] | None) -> None:
    """Import the given packages, or the configured ones when none is given.

    Raises:
        typer.Exit: If a package cannot be imported
    """
    try:
        if not services and not events:
            load_application()
            return
        for package in [*(services or []), *(events or [])]:
            autodiscover(package)
    except ImportError as e:
        console.print(f"[red]Error: Cannot import application modules: {e}[/red]")
        raise typer.Exit(1) from e
