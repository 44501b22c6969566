"""Async Group — launch callback-style operations together and join.

A group starts every descriptor at once and calls its terminal hook exactly
once, when the last continuation has fired.  Completion order is whatever
the operations produce.  There is no short-circuit, no abort and no
aggregated result: an item that fails is only visible to its own callback,
and it still counts toward the join.

Example::

    group = AsyncGroup([
        AsyncCall(exec_command, ("make docs",), on_docs),
        AsyncCall(exec_command, ("make wheel",), on_wheel),
    ])
    group.set_last(lambda: print("both done"))
    group.run()
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable
from typing import Any

from relay.coordination.models import AsyncCall, RunStatus, coerce_calls, noop
from relay.core.errors import ContinuationError, RunStateError
from relay.core.logging import get_logger

logger = get_logger(__name__)


class AsyncGroup:
    """Concurrent fan-out with an all-complete join."""

    def __init__(self, calls: Iterable[Any], *, name: str | None = None) -> None:
        self._calls: tuple[AsyncCall, ...] = tuple(coerce_calls(calls))
        self._outstanding = len(self._calls)
        self.group_id = uuid.uuid4().hex[:12]
        self.name = name
        self._status = RunStatus.PENDING
        self._last: Callable[[], Any] = noop

    @property
    def last(self) -> Callable[[], Any]:
        """Terminal hook, called with no arguments once every item completed."""
        return self._last

    @last.setter
    def last(self, hook: Callable[[], Any]) -> None:
        self.set_last(hook)

    def set_last(self, hook: Callable[[], Any]) -> AsyncGroup:
        if not callable(hook):
            raise TypeError(f"Terminal hook must be callable, got {hook!r}")
        if self._status.is_terminal:
            raise RunStateError("Cannot set terminal hook on a finished group").with_context(
                group_id=self.group_id
            )
        self._last = hook
        return self

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def outstanding(self) -> int:
        """Items whose continuation has not fired yet."""
        return self._outstanding

    @property
    def calls(self) -> tuple[AsyncCall, ...]:
        return self._calls

    @property
    def is_done(self) -> bool:
        return self._status.is_terminal

    def __len__(self) -> int:
        return len(self._calls)

    def __repr__(self) -> str:
        return (
            f"AsyncGroup(group_id={self.group_id!r}, status={self._status.value}, "
            f"items={len(self._calls)}, outstanding={self._outstanding})"
        )

    def run(self) -> None:
        """Launch every item.  A group runs at most once.

        An exception from launching an item, or from a callback it fired
        synchronously, does not stop the remaining launches.  The first
        such exception is raised after every item has been started.
        """
        if self._status is not RunStatus.PENDING:
            raise RunStateError(
                f"Group already started (status={self._status.value})"
            ).with_context(group_id=self.group_id)

        self._status = RunStatus.RUNNING
        logger.debug(
            "group.started",
            group_id=self.group_id,
            group=self.name,
            items=len(self._calls),
        )

        if not self._calls:
            self._finish()
            return

        first_error: Exception | None = None
        for index, item in enumerate(self._calls):
            try:
                item.invoke(self._continuation_for(item, index))
            except Exception as exc:
                logger.error(
                    "group.item_failed",
                    group_id=self.group_id,
                    item=item.label,
                    item_index=index,
                    error=repr(exc),
                )
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    def _continuation_for(self, item: AsyncCall, index: int) -> Callable[..., None]:
        fired = False

        def continuation(*values: Any) -> None:
            nonlocal fired
            if fired:
                raise ContinuationError(
                    "Continuation invoked more than once"
                ).with_context(group_id=self.group_id, step=item.label, step_index=index)
            fired = True
            try:
                if item.callback is not None:
                    item.callback(*values)
            finally:
                # The item counts toward the join even if its callback raised.
                self._item_done(item, index)

        return continuation

    def _item_done(self, item: AsyncCall, index: int) -> None:
        self._outstanding -= 1
        logger.debug(
            "group.item_completed",
            group_id=self.group_id,
            item=item.label,
            item_index=index,
            outstanding=self._outstanding,
        )
        if self._outstanding == 0:
            self._finish()

    def _finish(self) -> None:
        self._status = RunStatus.COMPLETED
        logger.info(
            "group.completed",
            group_id=self.group_id,
            group=self.name,
            items=len(self._calls),
        )
        self._last()


__all__ = ["AsyncGroup"]
