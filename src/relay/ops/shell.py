"""Shell command runner built on the coordination kernel.

WHY
───
Build and scaffolding scripts run lists of shell commands: in order,
stopping at the first failure, or all together when they are independent.
Those are exactly a Chain and a Group of one callback-last operation,
``exec_command``.

ARCHITECTURE
────────────
::

    exec_command(cmd, callback)           ─ callback(error, stdout, stderr)
    run_commands([...])                   ─ AsyncChain, abort on failure
    run_commands_parallel([...])          ─ AsyncGroup, every command runs
    execute_commands([...], parallel=..)  ─ awaitable wrapper used by the CLI

    CommandOutcome  ─ command, status (pending/ok/failed), returncode,
                      stdout, stderr, error

A command fails when it exits non-zero, or, with ``fail_on_stderr``, when
it writes anything to stderr.

Example::

    async def build():
        outcomes, aborted = await execute_commands(["make lint", "make test"])
        if aborted:
            print("stopped at", next(o.command for o in outcomes if o.status == "failed"))
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from relay.coordination.aio import from_coroutine, run_chain, run_group
from relay.coordination.chain import AsyncChain, ChainControl
from relay.coordination.group import AsyncGroup
from relay.coordination.models import AsyncCall, ErrorPolicy
from relay.core.errors import ChainAbortedError, CommandError, OperationError
from relay.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CommandOutcome:
    """What happened to one command."""

    command: str
    status: str = "pending"  # "pending", "ok", "failed"
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "status": self.status,
            "returncode": self.returncode,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "error": self.error,
        }


async def _run_shell(command: str) -> tuple[int, str, str]:
    proc = await asyncio.create_subprocess_shell(
        command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    out, err = await proc.communicate()
    return proc.returncode, out.decode(errors="replace"), err.decode(errors="replace")


_run_shell_op = from_coroutine(_run_shell)


def exec_command(command: str, callback: Callable[[Exception | None, str, str], Any]) -> Any:
    """Run ``command`` in a shell; callback-last.

    Invokes ``callback(error, stdout, stderr)``.  ``error`` is a
    :class:`CommandError` for a non-zero exit, an :class:`OperationError`
    if the shell could not be spawned, otherwise ``None``.
    """

    def _settle(exc: BaseException | None, result: tuple[int, str, str] | None) -> None:
        if exc is not None:
            callback(OperationError(f"Cannot run command: {command}", cause=exc), "", "")
            return
        returncode, out, err = result
        error = CommandError(command, returncode, err) if returncode != 0 else None
        callback(error, out, err)

    return _run_shell_op(command, _settle)


def _record(
    outcome: CommandOutcome,
    error: Exception | None,
    stdout: str,
    stderr: str,
    fail_on_stderr: bool,
) -> None:
    outcome.stdout = stdout
    outcome.stderr = stderr
    if isinstance(error, CommandError):
        outcome.returncode = error.returncode
    elif error is None:
        outcome.returncode = 0

    if error is not None:
        outcome.status = "failed"
        outcome.error = str(error)
    elif fail_on_stderr and stderr.strip():
        outcome.status = "failed"
        outcome.error = "Command wrote to stderr"
    else:
        outcome.status = "ok"

    if not outcome.ok:
        logger.error(
            "shell.command_failed",
            command=outcome.command,
            returncode=outcome.returncode,
            error=outcome.error,
        )


def run_commands(
    commands: Sequence[str],
    callback: Callable[[list[CommandOutcome]], Any] | None = None,
    *,
    stop_on_failure: bool = True,
    fail_on_stderr: bool = True,
    error_policy: ErrorPolicy | str = ErrorPolicy.IGNORE,
) -> tuple[AsyncChain, list[CommandOutcome]]:
    """Build a chain running ``commands`` one after another.

    The chain is returned unstarted, together with the outcome list it
    fills in.  ``callback(outcomes)`` becomes the terminal hook; it does not
    fire if the chain aborts.
    """
    outcomes = [CommandOutcome(command=command) for command in commands]

    def _on_done(outcome: CommandOutcome) -> Callable[..., None]:
        def on_done(chain: ChainControl, error: Exception | None, stdout: str, stderr: str) -> None:
            _record(outcome, error, stdout, stderr, fail_on_stderr)
            if not outcome.ok and stop_on_failure:
                chain.abort()

        return on_done

    chain = AsyncChain(
        [AsyncCall(exec_command, (o.command,), _on_done(o), name=o.command) for o in outcomes],
        name="shell",
        error_policy=error_policy,
    )
    if callback is not None:
        chain.set_last(lambda *_values: callback(outcomes))
    return chain, outcomes


def run_commands_parallel(
    commands: Sequence[str],
    callback: Callable[[list[CommandOutcome]], Any] | None = None,
    *,
    fail_on_stderr: bool = True,
) -> tuple[AsyncGroup, list[CommandOutcome]]:
    """Build a group running every command at once.

    Outcomes keep the order of ``commands``, not completion order.
    """
    outcomes = [CommandOutcome(command=command) for command in commands]

    def _on_done(outcome: CommandOutcome) -> Callable[..., None]:
        def on_done(error: Exception | None, stdout: str, stderr: str) -> None:
            _record(outcome, error, stdout, stderr, fail_on_stderr)

        return on_done

    group = AsyncGroup(
        [AsyncCall(exec_command, (o.command,), _on_done(o), name=o.command) for o in outcomes],
        name="shell",
    )
    if callback is not None:
        group.set_last(lambda: callback(outcomes))
    return group, outcomes


async def execute_commands(
    commands: Sequence[str],
    *,
    parallel: bool = False,
    stop_on_failure: bool = True,
    fail_on_stderr: bool = True,
    error_policy: ErrorPolicy | str = ErrorPolicy.IGNORE,
) -> tuple[list[CommandOutcome], bool]:
    """Run ``commands`` and wait for them.

    Returns the outcomes and whether the chain aborted (always ``False``
    when ``parallel``).
    """
    if parallel:
        group, outcomes = run_commands_parallel(commands, fail_on_stderr=fail_on_stderr)
        await run_group(group)
        return outcomes, False

    chain, outcomes = run_commands(
        commands,
        stop_on_failure=stop_on_failure,
        fail_on_stderr=fail_on_stderr,
        error_policy=error_policy,
    )
    try:
        await run_chain(chain)
    except ChainAbortedError:
        return outcomes, True
    return outcomes, False


__all__ = [
    "CommandOutcome",
    "exec_command",
    "run_commands",
    "run_commands_parallel",
    "execute_commands",
]
