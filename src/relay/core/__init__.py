"""Relay Core -- errors, logging and settings shared by every Relay module.

Architecture::

    errors.py      Structured error hierarchy (RelayError, CoordinationError)
    logging.py     structlog configuration + get_logger
    settings.py    RelaySettings (pydantic-settings) + cached get_settings
"""

from relay.core.errors import (
    ChainAbortedError,
    CommandError,
    ConfigError,
    ContinuationError,
    CoordinationError,
    DescriptorError,
    ErrorCategory,
    ErrorContext,
    OperationError,
    RelayError,
    RunStateError,
    is_error_value,
)
from relay.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)

__all__ = [
    # Errors
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
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
