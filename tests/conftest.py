"""
Shared pytest fixtures and configuration for relay-core tests.

This module provides:
- Settings and logging-context cleanup for test isolation
- An ``EventLog`` fixture that records callback/hook activity in order
- A ``PendingOps`` fixture whose operations park their continuations
"""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from typing import Any

import pytest

from relay.core.logging import clear_context, reset_logging
from relay.core.settings import clear_settings_cache


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_fixture(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop RELAY_* env vars and the settings cache around each test."""
    for key in list(os.environ):
        if key.startswith("RELAY_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(autouse=True)
def clean_logging_fixture() -> Generator[None, None, None]:
    """Restore the quiet logging default and clear bound context after each test."""
    yield
    clear_context()
    reset_logging()


# =============================================================================
# Recording helpers
# =============================================================================


class EventLog:
    """Ordered record of (label, values) pairs."""

    def __init__(self) -> None:
        self.events: list[tuple[str, tuple[Any, ...]]] = []

    def add(self, label: str, *values: Any) -> None:
        self.events.append((label, values))

    def labels(self) -> list[str]:
        return [label for label, _ in self.events]

    def count(self, label: str) -> int:
        return sum(1 for name, _ in self.events if name == label)

    def values_of(self, label: str) -> list[tuple[Any, ...]]:
        return [values for name, values in self.events if name == label]

    def hook(self, label: str) -> Callable[..., None]:
        """A callable recording every call under ``label``."""
        return lambda *values: self.add(label, *values)


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


class PendingOps:
    """Operations that park their continuation until the test fires it.

    ``ops.operation`` is callback-last; each call appends
    ``(args, continuation)`` to ``ops.calls``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[tuple[Any, ...], Callable[..., Any]]] = []

    def operation(self, *args: Any) -> None:
        *call_args, continuation = args
        self.calls.append((tuple(call_args), continuation))

    def fire(self, index: int, *values: Any) -> None:
        self.calls[index][1](*values)


@pytest.fixture
def pending_ops() -> PendingOps:
    return PendingOps()
