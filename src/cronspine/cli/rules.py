"""
CLI: ``cronspine upcoming`` / ``cronspine validate`` - cron rule previews.
"""

from __future__ import annotations

import json
from itertools import islice

import typer

from cronspine.cli.utils import console, fail
from cronspine.core.errors import CronSpineError


def _build_rule(expression: str, timezone: str | None):
    """Build a ``CronRule``, exiting through :func:`fail` on bad input or environment."""
    from pydantic import ValidationError

    from cronspine.core.settings import get_settings
    from cronspine.scheduling import CronRule

    if timezone is None:
        try:
            timezone = get_settings().default_timezone
        except ValidationError as e:
            fail(f"Configuration error: {e}")

    try:
        return CronRule(expression, timezone=timezone)
    except CronSpineError as e:
        fail(e)


def upcoming(
    expression: str = typer.Argument(..., help="Cron expression, e.g. '*/5 * * * *'"),
    count: int = typer.Option(5, "--count", "-n", min=1, max=1000, help="Occurrences to show"),
    after: str | None = typer.Option(None, "--after", help="ISO 8601 start instant (default: now)"),
    timezone: str | None = typer.Option(None, "--timezone", "--tz", help="Rule timezone"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the next occurrences of a cron expression."""
    from cronspine.core.timestamps import from_iso8601, utc_now

    rule = _build_rule(expression, timezone)

    try:
        start = from_iso8601(after) if after else utc_now()
    except ValueError:
        fail(f"Invalid --after instant: {after!r}")

    occurrences = list(islice(rule.after(start), count))

    if json_out:
        payload = {
            "expression": rule.expression,
            "timezone": rule.timezone,
            "after": start.isoformat(),
            "occurrences": [t.isoformat() for t in occurrences],
        }
        console.print_json(json.dumps(payload))
        return

    if not occurrences:
        console.print("[dim]No upcoming occurrences.[/dim]")
        return

    from rich.table import Table

    table = Table(title=f"{rule.expression} ({rule.timezone})", pad_edge=False)
    table.add_column("#", justify="right")
    table.add_column("UTC")
    table.add_column("Local")
    for i, occurrence in enumerate(occurrences, start=1):
        local = occurrence.astimezone(rule.tzinfo)
        table.add_row(str(i), occurrence.isoformat(), local.isoformat())
    console.print(table)


def validate(
    expression: str = typer.Argument(..., help="Cron expression to check"),
    timezone: str | None = typer.Option(None, "--timezone", "--tz", help="Rule timezone"),
) -> None:
    """Check that a cron expression (and timezone) can be evaluated."""
    rule = _build_rule(expression, timezone)
    console.print(f"[green]Valid:[/green] {rule.expression} ({rule.timezone})")
