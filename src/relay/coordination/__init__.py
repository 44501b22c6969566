"""
Relay Coordination — sequential and parallel composition of callback-style
operations.

ARCHITECTURE
────────────
::

    AsyncCall          ─ operation + fixed args + optional callback
    AsyncChain         ─ one at a time, in order; short-circuit / abort
    AsyncGroup         ─ all at once; terminal hook on the last completion
    ChainControl       ─ handle given to chain step callbacks

    aio.py             ─ asyncio bridge (from_coroutine, run_chain, run_group)

MODULE MAP
──────────
1. models.py  ─ AsyncCall, RunStatus, ErrorPolicy
2. chain.py   ─ AsyncChain + ChainControl
3. group.py   ─ AsyncGroup
4. aio.py     ─ asyncio adapters
"""

from relay.coordination.aio import call_later, from_coroutine, run_chain, run_group
from relay.coordination.chain import AsyncChain, ChainControl
from relay.coordination.group import AsyncGroup
from relay.coordination.models import AsyncCall, ErrorPolicy, RunStatus, coerce_calls

__all__ = [
    "AsyncCall",
    "AsyncChain",
    "AsyncGroup",
    "ChainControl",
    "ErrorPolicy",
    "RunStatus",
    "coerce_calls",
    "call_later",
    "from_coroutine",
    "run_chain",
    "run_group",
]
