"""
Structured error types for the Relay kernel.

The coordination kernel itself is value-agnostic: it never inspects the
values a continuation carries and never synthesizes an aggregate error.
The types below cover the other side of the contract, misuse of a Chain
or Group (running it twice, firing a continuation twice, malformed
descriptors) and failures reported by the operations shipped in
``relay.ops``.

Manifesto:
    - **Typed Error Hierarchy:** Coordination misuse and operation failures
      are distinct families
    - **Rich Context:** Errors carry chain/group ids and the step involved
    - **Error Chaining:** The original exception survives as ``cause``

Architecture:
    ::

        ┌───────────────────────────────────────────────────────────┐
        │                       RelayError                           │
        │  (category, retryable, context, cause)                     │
        ├───────────────────────────────────────────────────────────┤
        │  CoordinationError        OperationError     ConfigError   │
        │  (COORDINATION)           (OPERATION)        (CONFIG)      │
        │       │                        │                  │        │
        │  RunStateError            CommandError                     │
        │  ContinuationError                                         │
        │  DescriptorError                                           │
        │  ChainAbortedError                                         │
        └───────────────────────────────────────────────────────────┘

Examples:
    >>> error = RunStateError("Chain already started")
    >>> error.with_context(chain_id="3f2a").context.chain_id
    '3f2a'
    >>> error.category.value
    'COORDINATION'

Tags:
    error-handling, exception-hierarchy, error-context, relay-core
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories for classification and routing.

    Attributes:
        COORDINATION: Chain/Group contract misuse
        OPERATION: An orchestrated operation reported a failure
        CONFIG: Missing or invalid settings
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    COORDINATION = "COORDINATION"
    OPERATION = "OPERATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Only set what's relevant; ``to_dict()`` drops ``None`` fields and
    merges ``metadata`` in for logging.

    Attributes:
        chain_id: Identifier of the chain involved
        group_id: Identifier of the group involved
        step: Label of the descriptor involved
        step_index: 0-based position of the descriptor
        operation: Qualified name of the operation
        metadata: Additional key-value pairs
    """

    chain_id: str | None = None
    group_id: str | None = None
    step: str | None = None
    step_index: int | None = None
    operation: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["chain_id", "group_id", "step", "step_index", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RelayError(Exception):
    """
    Base exception for all Relay errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can
    be overridden per instance.

    Usage:
        raise RelayError("Unexpected state", category=ErrorCategory.INTERNAL)

        try:
            proc = await asyncio.create_subprocess_shell(cmd)
        except OSError as e:
            raise OperationError("Cannot spawn shell", cause=e)
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RelayError:
        """
        Add context to this error (fluent API).

        Usage:
            raise RunStateError("Chain already started").with_context(
                chain_id=chain.chain_id,
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# COORDINATION ERRORS
# =============================================================================


class CoordinationError(RelayError):
    """Chain or Group used outside its contract. Never retryable."""

    default_category = ErrorCategory.COORDINATION
    default_retryable = False


class RunStateError(CoordinationError):
    """Operation not allowed in the current run state (e.g. ``run()`` twice)."""

    pass


class ContinuationError(CoordinationError):
    """A continuation was invoked more than once."""

    pass


class DescriptorError(CoordinationError):
    """An operation descriptor could not be built from the given value."""

    pass


class ChainAbortedError(CoordinationError):
    """Raised by the asyncio bridge when an awaited chain aborts."""

    def __init__(self, chain_id: str, message: str | None = None):
        self.chain_id = chain_id
        super().__init__(
            message or f"Chain aborted: {chain_id}",
            context=ErrorContext(chain_id=chain_id),
        )


# =============================================================================
# OPERATION ERRORS
# =============================================================================


class OperationError(RelayError):
    """An orchestrated operation reported a failure."""

    default_category = ErrorCategory.OPERATION
    default_retryable = False


class CommandError(OperationError):
    """A shell command exited with a non-zero status."""

    def __init__(self, command: str, returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"Command failed with exit code {returncode}: {command}",
            context=ErrorContext(metadata={"command": command, "returncode": returncode}),
        )


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(RelayError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_error_value(value: Any) -> bool:
    """Check whether a continuation value is error-shaped (an exception instance)."""
    return isinstance(value, BaseException)


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RelayError",
    "CoordinationError",
    "RunStateError",
    "ContinuationError",
    "DescriptorError",
    "ChainAbortedError",
    "OperationError",
    "CommandError",
    "ConfigError",
    "is_error_value",
]
