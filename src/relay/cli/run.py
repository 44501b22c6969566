"""
CLI: ``relay run`` — run shell commands through a chain or a group.
"""

from __future__ import annotations

import asyncio

import typer
from rich.markup import escape

from relay.cli.utils import err_console, output_items
from relay.coordination.models import ErrorPolicy
from relay.core.errors import ConfigError
from relay.core.logging import configure_from_settings
from relay.core.settings import get_settings
from relay.ops.shell import execute_commands

_TABLE_COLUMNS = ["command", "status", "returncode", "error"]


def run_command(
    commands: list[str] = typer.Argument(..., help="Shell commands, run in the given order"),
    parallel: bool = typer.Option(False, "--parallel", "-p", help="Run every command at once"),
    keep_going: bool = typer.Option(
        False, "--keep-going", "-k", help="Do not stop the chain at a failing command"
    ),
    allow_stderr: bool | None = typer.Option(  # noqa: UP007
        None,
        "--allow-stderr/--fail-on-stderr",
        help="Whether stderr output alone fails a command (default from RELAY_FAIL_ON_STDERR)",
    ),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run shell commands in order, stopping at the first failure."""
    try:
        settings = get_settings()
    except ConfigError as e:
        detail = escape(str(e.cause or e.message))
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {detail}")
        raise typer.Exit(code=2)

    configure_from_settings(settings)
    fail_on_stderr = settings.fail_on_stderr if allow_stderr is None else not allow_stderr

    error_policy = ErrorPolicy(settings.error_policy)
    if keep_going and error_policy is ErrorPolicy.ABORT_ON_ERROR:
        err_console.print(
            "[yellow]Warning[/yellow]: --keep-going overrides RELAY_ERROR_POLICY=abort_on_error"
        )
        error_policy = ErrorPolicy.IGNORE

    outcomes, aborted = asyncio.run(
        execute_commands(
            commands,
            parallel=parallel,
            stop_on_failure=not keep_going,
            fail_on_stderr=fail_on_stderr,
            error_policy=error_policy,
        )
    )

    output_items(
        outcomes,
        as_json=json_out,
        title="Parallel run" if parallel else "Sequential run",
        columns=_TABLE_COLUMNS,
    )

    failed = [o for o in outcomes if o.status == "failed"]
    if aborted:
        skipped = sum(1 for o in outcomes if o.status == "pending")
        err_console.print(f"[bold red]Aborted[/bold red]: {skipped} command(s) not run")
    if failed:
        raise typer.Exit(code=1)
