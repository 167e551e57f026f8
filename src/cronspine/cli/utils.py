"""
CLI utility helpers: consoles and error output.
"""

from __future__ import annotations

from typing import NoReturn

import typer
from rich.console import Console

from cronspine.core.errors import CronSpineError

console = Console()
err_console = Console(stderr=True)


def fail(error: CronSpineError | str, *, code: int = 1) -> NoReturn:
    """Print an error to stderr and exit with ``code``."""
    if isinstance(error, CronSpineError):
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    else:
        err_console.print(f"[bold red]Error[/bold red]: {error}")
    raise typer.Exit(code=code)
