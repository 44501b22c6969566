"""Operations built on the coordination kernel."""

from relay.ops.shell import (
    CommandOutcome,
    exec_command,
    execute_commands,
    run_commands,
    run_commands_parallel,
)

__all__ = [
    "CommandOutcome",
    "exec_command",
    "execute_commands",
    "run_commands",
    "run_commands_parallel",
]
