"""
CLI: ``relay config`` — configuration inspection.
"""

from __future__ import annotations

import typer
from rich.markup import escape

from relay.cli.utils import console, err_console, output_dict
from relay.core.errors import ConfigError

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env"),
) -> None:
    """Show the resolved configuration."""
    from relay.core.settings import get_settings

    try:
        settings = get_settings()
    except ConfigError as e:
        detail = escape(str(e.cause or e.message))
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {detail}")
        raise typer.Exit(code=2)

    if format == "json":
        console.print_json(settings.model_dump_json())
        return

    if format == "env":
        for key, value in sorted(settings.model_dump().items()):
            console.print(f"RELAY_{key.upper()}={value}", highlight=False)
        return

    if format != "table":
        err_console.print(f"[bold red]Error[/bold red]: unknown format {format!r}")
        raise typer.Exit(code=2)

    output_dict(settings.model_dump(), title="Relay settings")
