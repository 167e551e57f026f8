"""
Root Typer application for the cronspine CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="cronspine",
    help="cronspine: preview cron rules and inspect scheduler settings.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from cronspine import __version__

        typer.echo(f"cronspine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """cronspine CLI: cron rule previews and configuration."""


# ── Sub-command registration ─────────────────────────────────────────────

from cronspine.cli.config import app as config_app  # noqa: E402
from cronspine.cli.rules import upcoming, validate  # noqa: E402

app.command("upcoming")(upcoming)
app.command("validate")(validate)
app.add_typer(config_app, name="config", help="Configuration inspection.")
