"""
Relay Logging - structured logging for the coordination kernel.

Manifesto:
    A chain that stalls or aborts is only debuggable if every step left a
    trace. This module configures structlog once and hands out loggers that
    every Relay module uses:

    - **Structures:** JSON output for log aggregation
    - **Correlates:** chain_id / group_id travel with every event
    - **Flexes:** Console output for development, JSON for production

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="relay")
            ↓
        structlog processor chain:
          1. TimeStamper (iso)
          2. merge_contextvars
          3. add_log_level
          4. add_service_metadata
          5. JSONRenderer (or ConsoleRenderer for dev)

        Until configure_logging runs, output is discarded.

        logger = get_logger(__name__)
        logger.info("chain.completed", chain_id="3f2a", steps=4)

Examples:
    >>> from relay.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.debug("chain.step_started", chain_id="3f2a", step_index=0)

Tags:
    logging, structlog, observability, relay-core
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Store service name for metadata
_SERVICE_NAME = "relay"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "relay",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stderr.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        # Log to stderr so command output on stdout stays clean.
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def configure_from_settings(settings: Any) -> None:
    """Configure logging from a :class:`~relay.core.settings.RelaySettings`."""
    json_format = {"json": True, "console": False}.get(settings.log_format)
    configure_logging(
        level=settings.log_level,
        json_format=json_format,
        service=settings.service_name,
    )


def install_quiet_default() -> None:
    """Discard log output until :func:`configure_logging` runs.

    Leaves an application's own structlog configuration alone.
    """
    if not structlog.is_configured():
        structlog.configure(logger_factory=structlog.ReturnLoggerFactory())


def reset_logging() -> None:
    """Drop the current configuration and reinstall the quiet default."""
    structlog.reset_defaults()
    install_quiet_default()


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger.

    The name is bound as ``logger_name`` when the logger is first used.

    Args:
        name: Logger name (usually __name__)
    """
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs.

    Example:
        bind_context(chain_id="3f2a")
        logger.info("chain.step_started")  # Includes chain_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


def get_context() -> dict[str, Any]:
    """Return the currently bound context."""
    return dict(structlog.contextvars.get_contextvars())


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(run="deploy"):
            chain.run()
        # Context cleared here
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())

    async def __aenter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    async def __aexit__(self, *args) -> None:
        unbind_context(*self._context.keys())


install_quiet_default()


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "install_quiet_default",
    "reset_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "get_context",
    "LogContext",
]
