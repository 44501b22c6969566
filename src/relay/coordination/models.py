"""Coordination models — operation descriptors and run states.

An ``AsyncCall`` binds a callback-last operation to its fixed arguments and
an optional completion callback.  Chains and groups own lists of them.

Callback-last convention::

    def read_config(path, callback):        # operation
        ...
        callback(None, data)                # continuation, exactly once

    AsyncCall(read_config, ("app.toml",), on_config)

Related modules:
    chain.py  — runs AsyncCalls one at a time
    group.py  — runs AsyncCalls concurrently and joins
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from relay.core.errors import DescriptorError


class RunStatus(str, Enum):
    """Lifecycle state of a chain or group."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    SHORT_CIRCUITED = "short_circuited"  # Chain only
    ABORTED = "aborted"  # Chain only

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.SHORT_CIRCUITED, RunStatus.ABORTED)


class ErrorPolicy(str, Enum):
    """How a chain treats an error-shaped first continuation value.

    IGNORE leaves error handling to each step callback.  ABORT_ON_ERROR
    aborts the chain after the step callback returns when the first value
    is an exception instance, unless the callback short-circuited.
    """

    IGNORE = "ignore"
    ABORT_ON_ERROR = "abort_on_error"


@dataclass(frozen=True)
class AsyncCall:
    """
    Operation descriptor.

    Attributes:
        operation: Callable taking ``*args`` plus a trailing continuation
        args: Fixed positional arguments, stored as a tuple
        callback: Optional completion callback
        name: Optional label for log events
    """

    operation: Callable[..., Any]
    args: tuple[Any, ...] = ()
    callback: Callable[..., Any] | None = None
    name: str | None = None

    def __post_init__(self):
        if not callable(self.operation):
            raise DescriptorError(f"Operation is not callable: {self.operation!r}")
        if self.callback is not None and not callable(self.callback):
            raise DescriptorError(f"Callback is not callable: {self.callback!r}")
        if isinstance(self.args, (str, bytes)) or not isinstance(self.args, Iterable):
            raise DescriptorError(f"Args must be a sequence, got {type(self.args).__name__}")
        object.__setattr__(self, "args", tuple(self.args))

    @property
    def label(self) -> str:
        """Name used in log events."""
        if self.name:
            return self.name
        return getattr(self.operation, "__qualname__", None) or repr(self.operation)

    def invoke(self, continuation: Callable[..., Any]) -> Any:
        """Call the operation with its arguments plus ``continuation``."""
        return self.operation(*self.args, continuation)

    @classmethod
    def from_value(cls, value: Any) -> AsyncCall:
        """Coerce a descriptor-like value into an ``AsyncCall``.

        Accepted forms:

        ============= ====================================================
        Type          Behaviour
        ============= ====================================================
        AsyncCall     Returned as-is.
        Mapping       Keys ``operation`` (or ``func``), ``args``,
                      ``callback``, ``name``.
        tuple         ``(operation, args)`` or ``(operation, args, callback)``.
        ============= ====================================================
        """
        if isinstance(value, AsyncCall):
            return value
        if isinstance(value, Mapping):
            operation = value.get("operation", value.get("func"))
            if operation is None:
                raise DescriptorError("Descriptor mapping needs an 'operation' key")
            return cls(
                operation=operation,
                args=value.get("args") or (),
                callback=value.get("callback"),
                name=value.get("name"),
            )
        if isinstance(value, tuple) and len(value) in (2, 3):
            return cls(*value)
        raise DescriptorError(f"Cannot build an operation descriptor from {value!r}")


def noop(*args: Any) -> None:
    """Default terminal hook."""
    return None


def coerce_calls(items: Iterable[Any]) -> list[AsyncCall]:
    """Coerce each item with :meth:`AsyncCall.from_value`, keeping order."""
    return [AsyncCall.from_value(item) for item in items]


__all__ = ["AsyncCall", "ErrorPolicy", "RunStatus", "coerce_calls", "noop"]
