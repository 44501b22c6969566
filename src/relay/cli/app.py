"""
Root Typer application for the relay CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="relay",
    help="relay — run shell commands through chains and groups.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from relay import __version__

        typer.echo(f"relay-core {__version__}")
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
    """relay CLI — sequential and parallel shell command runs."""


# ── Sub-command registration ─────────────────────────────────────────────

from relay.cli.config import app as config_app  # noqa: E402
from relay.cli.run import run_command  # noqa: E402

app.command("run")(run_command)
app.add_typer(config_app, name="config", help="Configuration inspection.")
