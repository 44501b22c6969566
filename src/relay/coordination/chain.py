"""Async Chain — run callback-style operations strictly one at a time.

WHY
───
Callback-last operations (``op(*args, callback)``) compose badly by hand:
each step has to start the next one from inside its own callback.  An
``AsyncChain`` takes an ordered list of descriptors and does the sequencing,
with two escape hatches for step callbacks: ``short_circuit`` (jump straight
to the terminal hook with chosen values) and ``abort`` (stop silently).

ARCHITECTURE
────────────
::

    AsyncChain([AsyncCall, ...])
      ├── .set_last(hook)     ─ terminal hook (default no-op)
      ├── .set_on_abort(fn)   ─ abort listener
      └── .run()              ─ start the first step

    step k:  operation(*args, continuation)
               └── continuation(*values)
                     └── callback(control, *values)
                           ├── control.short_circuit(*v) → last(*v)
                           ├── control.abort()           → stop
                           └── (neither)                 → step k+1

    RunStatus: pending → running → completed | short_circuited | aborted

Advance is trampolined: an operation that fires its continuation before
returning does not nest the next step inside the current call frame, so a
chain of synchronous operations runs in constant stack depth.

Related modules:
    models.py  — AsyncCall, RunStatus, ErrorPolicy
    group.py   — the concurrent counterpart
    aio.py     — await a chain from asyncio code

Example::

    def on_listing(chain, err, names):
        if err:
            chain.abort()
        elif "done.flag" in names:
            chain.short_circuit("already built")

    chain = AsyncChain([
        {"operation": list_dir, "args": ["build/"], "callback": on_listing},
        {"operation": exec_command, "args": ["make all"]},
    ])
    chain.set_last(lambda *why: print("finished", why))
    chain.run()
"""

from __future__ import annotations

import uuid
from collections import deque
from collections.abc import Callable, Iterable
from typing import Any

from relay.coordination.models import AsyncCall, ErrorPolicy, RunStatus, coerce_calls, noop
from relay.core.errors import ContinuationError, RunStateError, is_error_value
from relay.core.logging import get_logger

logger = get_logger(__name__)


class ChainControl:
    """Control handle passed as the first argument to every step callback.

    Valid only while that callback runs.
    """

    __slots__ = ("_chain", "_step_index", "_active")

    def __init__(self, chain: AsyncChain, step_index: int) -> None:
        self._chain = chain
        self._step_index = step_index
        self._active = True

    @property
    def chain_id(self) -> str:
        return self._chain.chain_id

    @property
    def step_index(self) -> int:
        """0-based index of the step whose callback holds this handle."""
        return self._step_index

    @property
    def active(self) -> bool:
        return self._active

    def short_circuit(self, *values: Any) -> None:
        """Skip the remaining steps and call the terminal hook with ``values``."""
        self._check_active("short_circuit")
        self._chain._mark_short_circuited(values)

    def abort(self) -> None:
        """Stop the chain; the terminal hook will not be called."""
        self._check_active("abort")
        self._chain._mark_aborted()

    def _close(self) -> None:
        self._active = False

    def _check_active(self, action: str) -> None:
        if not self._active:
            raise RunStateError(
                f"Cannot {action}: control handle used after its step callback returned"
            ).with_context(chain_id=self.chain_id, step_index=self._step_index)

    def __repr__(self) -> str:
        state = "active" if self._active else "closed"
        return f"ChainControl(chain_id={self.chain_id!r}, step_index={self._step_index}, {state})"


class AsyncChain:
    """Sequential coordinator for callback-last operations.

    Parameters
    ----------
    calls : iterable
        Descriptors (``AsyncCall``, mappings or tuples), run in order.
    name : str, optional
        Label included in log events.
    error_policy : ErrorPolicy
        ``IGNORE`` (default) forwards values untouched; ``ABORT_ON_ERROR``
        aborts when a step's first value is an exception instance.
    """

    def __init__(
        self,
        calls: Iterable[Any],
        *,
        name: str | None = None,
        error_policy: ErrorPolicy | str = ErrorPolicy.IGNORE,
    ) -> None:
        self._calls: tuple[AsyncCall, ...] = tuple(coerce_calls(calls))
        self._queue: deque[AsyncCall] = deque(self._calls)
        self.chain_id = uuid.uuid4().hex[:12]
        self.name = name
        self.error_policy = ErrorPolicy(error_policy)

        self._status = RunStatus.PENDING
        self._current: AsyncCall | None = None
        self._step_index = -1
        self._completed_steps = 0

        self._short_circuited = False
        self._short_circuit_values: tuple[Any, ...] = ()
        self._aborted = False

        self._last: Callable[..., Any] = noop
        self._on_abort: Callable[[], Any] | None = None

        # Trampoline state
        self._advancing = False
        self._advance_requested = False

    # ── Hooks ────────────────────────────────────────────────────────

    @property
    def last(self) -> Callable[..., Any]:
        """Terminal hook.  Called with no arguments on normal completion,
        or with the short-circuit values."""
        return self._last

    @last.setter
    def last(self, hook: Callable[..., Any]) -> None:
        self.set_last(hook)

    def set_last(self, hook: Callable[..., Any]) -> AsyncChain:
        """Install the terminal hook.  Returns ``self`` for fluent use."""
        if not callable(hook):
            raise TypeError(f"Terminal hook must be callable, got {hook!r}")
        if self._status.is_terminal:
            raise RunStateError("Cannot set terminal hook on a finished chain").with_context(
                chain_id=self.chain_id
            )
        self._last = hook
        return self

    @property
    def on_abort(self) -> Callable[[], Any] | None:
        return self._on_abort

    def set_on_abort(self, hook: Callable[[], Any] | None) -> AsyncChain:
        """Install a zero-argument listener fired once if the chain aborts."""
        if hook is not None and not callable(hook):
            raise TypeError(f"Abort listener must be callable, got {hook!r}")
        self._on_abort = hook
        return self

    # ── Introspection ────────────────────────────────────────────────

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def current(self) -> AsyncCall | None:
        """Descriptor in flight, if any."""
        return self._current

    @property
    def calls(self) -> tuple[AsyncCall, ...]:
        return self._calls

    @property
    def completed_steps(self) -> int:
        """Number of steps whose continuation has fired."""
        return self._completed_steps

    @property
    def remaining(self) -> int:
        """Number of steps not yet started."""
        return len(self._queue)

    @property
    def is_done(self) -> bool:
        return self._status.is_terminal

    @property
    def short_circuit_values(self) -> tuple[Any, ...]:
        return self._short_circuit_values

    def __len__(self) -> int:
        return len(self._calls)

    def __repr__(self) -> str:
        return (
            f"AsyncChain(chain_id={self.chain_id!r}, status={self._status.value}, "
            f"steps={len(self._calls)}, remaining={len(self._queue)})"
        )

    # ── Execution ────────────────────────────────────────────────────

    def run(self) -> None:
        """Start the chain.  A chain runs at most once."""
        if self._status is not RunStatus.PENDING:
            raise RunStateError(
                f"Chain already started (status={self._status.value})"
            ).with_context(chain_id=self.chain_id)

        self._status = RunStatus.RUNNING
        logger.debug(
            "chain.started",
            chain_id=self.chain_id,
            chain=self.name,
            steps=len(self._calls),
        )
        self._advance()

    def _advance(self) -> None:
        # Re-entrant calls (a continuation fired before its operation
        # returned) only leave a request for the loop below.
        if self._advancing:
            self._advance_requested = True
            return

        self._advancing = True
        try:
            self._advance_requested = True
            while self._advance_requested:
                self._advance_requested = False
                if not self._queue:
                    self._finish()
                    return
                self._start_next()
        finally:
            self._advancing = False

    def _start_next(self) -> None:
        item = self._queue.popleft()
        self._step_index += 1
        self._current = item
        logger.debug(
            "chain.step_started",
            chain_id=self.chain_id,
            step=item.label,
            step_index=self._step_index,
        )
        item.invoke(self._continuation_for(item, self._step_index))

    def _continuation_for(self, item: AsyncCall, index: int) -> Callable[..., None]:
        fired = False

        def continuation(*values: Any) -> None:
            nonlocal fired
            if fired:
                raise ContinuationError(
                    "Continuation invoked more than once"
                ).with_context(chain_id=self.chain_id, step=item.label, step_index=index)
            fired = True
            self._complete_step(item, index, values)

        return continuation

    def _complete_step(self, item: AsyncCall, index: int, values: tuple[Any, ...]) -> None:
        self._current = None
        self._completed_steps += 1
        logger.debug(
            "chain.step_completed",
            chain_id=self.chain_id,
            step=item.label,
            step_index=index,
        )

        if item.callback is not None:
            control = ChainControl(self, index)
            try:
                item.callback(control, *values)
            finally:
                control._close()

        if (
            self.error_policy is ErrorPolicy.ABORT_ON_ERROR
            and not self._short_circuited
            and values
            and is_error_value(values[0])
        ):
            logger.debug(
                "chain.error_value",
                chain_id=self.chain_id,
                step=item.label,
                error=repr(values[0]),
            )
            self._mark_aborted()

        if self._short_circuited:
            self._status = RunStatus.SHORT_CIRCUITED
            logger.info(
                "chain.short_circuited",
                chain_id=self.chain_id,
                chain=self.name,
                step=item.label,
                skipped=len(self._queue),
            )
            self._last(*self._short_circuit_values)
        elif self._aborted:
            self._status = RunStatus.ABORTED
            logger.warning(
                "chain.aborted",
                chain_id=self.chain_id,
                chain=self.name,
                step=item.label,
                skipped=len(self._queue),
            )
            if self._on_abort is not None:
                self._on_abort()
        else:
            self._advance()

    def _finish(self) -> None:
        self._status = RunStatus.COMPLETED
        logger.info(
            "chain.completed",
            chain_id=self.chain_id,
            chain=self.name,
            steps=self._completed_steps,
        )
        self._last()

    # ── Control (via ChainControl) ───────────────────────────────────

    def _mark_short_circuited(self, values: tuple[Any, ...]) -> None:
        self._short_circuit_values = values
        self._short_circuited = True

    def _mark_aborted(self) -> None:
        self._aborted = True


__all__ = ["AsyncChain", "ChainControl"]
