"""
CLI: ``cronspine config`` - configuration inspection.
"""

from __future__ import annotations

import typer

from cronspine.cli.utils import console, fail

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env"),
) -> None:
    """Show current configuration."""
    from pydantic import ValidationError

    from cronspine.core.settings import get_settings

    try:
        settings = get_settings(_force_reload=True)
    except ValidationError as e:
        fail(f"Configuration error: {e}")

    if format == "json":
        console.print_json(settings.model_dump_json())
        return

    if format == "env":
        for key, value in sorted(settings.model_dump().items()):
            console.print(f"CRONSPINE_{key.upper()}={value}")
        return

    if format != "table":
        fail(f"Unknown format: {format!r}")

    from rich.table import Table

    table = Table(title="cronspine settings")
    table.add_column("Setting")
    table.add_column("Value")
    for key, value in sorted(settings.model_dump().items()):
        table.add_row(key, str(value))
    console.print(table)
