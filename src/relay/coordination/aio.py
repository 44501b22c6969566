"""asyncio bridge — drive chains and groups from coroutine code.

The kernel speaks continuations; the rest of a Python service speaks
``await``.  This module converts in both directions without changing the
completion contract:

    from_coroutine(fn)   async def  → callback-last operation
    call_later(d, v, cb) timer-backed callback-last operation
    run_chain(chain)     AsyncChain → awaitable of the terminal-hook values
    run_group(group)     AsyncGroup → awaitable of the join

Operations produced by ``from_coroutine`` report error-first:
``callback(None, result)`` on success, ``callback(exc, None)`` if the
coroutine raised.  A cancelled task never fires its continuation, which
stalls a chain exactly like any other operation that never completes.

An exception raised by a callback fired from the event loop is handed to
the ``run_chain``/``run_group`` awaiting that run, so the await fails
instead of waiting for a terminal hook that will never come.

Example::

    fetch = from_coroutine(fetch_json)

    async def main():
        chain = AsyncChain([
            AsyncCall(fetch, ("https://example.org/a",), on_a),
            AsyncCall(fetch, ("https://example.org/b",), on_b),
        ], error_policy=ErrorPolicy.ABORT_ON_ERROR)
        values = await run_chain(chain)
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Awaitable, Callable
from contextvars import ContextVar
from typing import Any

from relay.coordination.chain import AsyncChain
from relay.coordination.group import AsyncGroup
from relay.core.errors import ChainAbortedError

# Strong references to in-flight tasks; the event loop only keeps weak ones.
_background_tasks: set[asyncio.Task] = set()

# Receives exceptions raised by continuations fired from the event loop.
# Set by run_chain/run_group; copied into every task and timer they spawn.
_failure_sink: ContextVar[Callable[[Exception], None] | None] = ContextVar(
    "relay_failure_sink", default=None
)


def _deliver(callback: Callable[..., Any], *values: Any) -> None:
    """Fire ``callback`` from an event-loop callback.

    An exception it raises goes to the awaiting ``run_chain``/``run_group``
    when there is one, otherwise to the loop's exception handler.
    """
    try:
        callback(*values)
    except Exception as exc:
        sink = _failure_sink.get()
        if sink is None:
            raise
        sink(exc)


def from_coroutine(fn: Callable[..., Awaitable[Any]]) -> Callable[..., asyncio.Task]:
    """Wrap an async function as a callback-last operation.

    Must be invoked while an event loop is running.
    """

    @functools.wraps(fn)
    def operation(*args: Any) -> asyncio.Task:
        if not args:
            raise TypeError(f"{fn.__qualname__} operation needs a trailing continuation")
        *call_args, callback = args
        task = asyncio.get_running_loop().create_task(fn(*call_args))
        _background_tasks.add(task)

        def _settle(done: asyncio.Task) -> None:
            _background_tasks.discard(done)
            if done.cancelled():
                return
            exc = done.exception()
            if exc is not None:
                _deliver(callback, exc, None)
            else:
                _deliver(callback, None, done.result())

        task.add_done_callback(_settle)
        return task

    return operation


def call_later(delay: float, value: Any, callback: Callable[[Any], Any]) -> asyncio.TimerHandle:
    """Callback-last operation firing ``callback(value)`` after ``delay`` seconds."""
    return asyncio.get_running_loop().call_later(delay, _deliver, callback, value)


async def _await_run(run: Callable[[], None], done: asyncio.Future) -> Any:
    failures: list[Exception] = []

    def _failed(exc: Exception) -> None:
        failures.append(exc)
        if not done.done():
            done.set_exception(exc)

    token = _failure_sink.set(_failed)
    try:
        run()
        result = await done
    finally:
        _failure_sink.reset(token)
    # A group may complete its join in the same continuation that raised.
    if failures:
        raise failures[0]
    return result


async def run_chain(chain: AsyncChain) -> tuple[Any, ...]:
    """Run ``chain`` and wait for its terminal hook.

    Returns the values the terminal hook received: ``()`` on normal
    completion, the short-circuit values otherwise.  Any hook installed
    before the call still runs first.

    Raises:
        ChainAbortedError: the chain aborted.
        Exception: whatever a step callback raised from a deferred
            continuation; the chain is left stalled.
    """
    done: asyncio.Future[tuple[Any, ...]] = asyncio.get_running_loop().create_future()
    previous_last = chain.last
    previous_on_abort = chain.on_abort

    def _last(*values: Any) -> None:
        try:
            previous_last(*values)
        finally:
            if not done.done():
                done.set_result(values)

    def _aborted() -> None:
        try:
            if previous_on_abort is not None:
                previous_on_abort()
        finally:
            if not done.done():
                done.set_exception(ChainAbortedError(chain.chain_id))

    chain.set_last(_last)
    chain.set_on_abort(_aborted)
    return await _await_run(chain.run, done)


async def run_group(group: AsyncGroup) -> None:
    """Run ``group`` and wait until every item has completed.

    An exception raised by an item callback from a deferred continuation is
    re-raised here, at the latest once the join has happened.
    """
    done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
    previous_last = group.last

    def _last() -> None:
        try:
            previous_last()
        finally:
            if not done.done():
                done.set_result(None)

    group.set_last(_last)
    await _await_run(group.run, done)


__all__ = ["from_coroutine", "call_later", "run_chain", "run_group"]
