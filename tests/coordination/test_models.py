"""Tests for coordination models — AsyncCall coercion, RunStatus, ErrorPolicy."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from relay.coordination.models import AsyncCall, ErrorPolicy, RunStatus, coerce_calls, noop
from relay.core.errors import DescriptorError


def _op(x, k):
    k(x)


def _cb(*values):
    return values


class TestAsyncCall:
    """Construction and validation."""

    def test_defaults(self):
        call = AsyncCall(_op)
        assert call.args == ()
        assert call.callback is None
        assert call.name is None

    def test_args_stored_as_tuple(self):
        call = AsyncCall(_op, [1, 2])
        assert call.args == (1, 2)

    def test_frozen(self):
        call = AsyncCall(_op, (1,))
        with pytest.raises(FrozenInstanceError):
            call.args = (2,)  # type: ignore[misc]

    def test_operation_must_be_callable(self):
        with pytest.raises(DescriptorError, match="not callable"):
            AsyncCall("not-a-function")  # type: ignore[arg-type]

    def test_callback_must_be_callable(self):
        with pytest.raises(DescriptorError, match="Callback"):
            AsyncCall(_op, (), callback=42)  # type: ignore[arg-type]

    def test_string_args_rejected(self):
        with pytest.raises(DescriptorError, match="sequence"):
            AsyncCall(_op, "abc")  # type: ignore[arg-type]

    def test_label_defaults_to_qualname(self):
        assert AsyncCall(_op).label == "_op"

    def test_label_uses_name(self):
        assert AsyncCall(_op, name="fetch").label == "fetch"

    def test_invoke_appends_continuation(self):
        seen = []
        call = AsyncCall(lambda a, b, k: k(a + b), (2, 3))
        call.invoke(seen.append)
        assert seen == [5]


class TestFromValue:
    """Coercion of descriptor-like values."""

    def test_async_call_passthrough(self):
        call = AsyncCall(_op)
        assert AsyncCall.from_value(call) is call

    def test_mapping_with_operation(self):
        call = AsyncCall.from_value({"operation": _op, "args": [1], "callback": _cb, "name": "n"})
        assert call == AsyncCall(_op, (1,), _cb, "n")

    def test_mapping_with_func_alias(self):
        call = AsyncCall.from_value({"func": _op, "args": [1]})
        assert call.operation is _op
        assert call.callback is None

    def test_mapping_with_null_args_and_callback(self):
        call = AsyncCall.from_value({"func": _op, "args": None, "callback": None})
        assert call.args == ()
        assert call.callback is None

    def test_mapping_without_operation(self):
        with pytest.raises(DescriptorError, match="operation"):
            AsyncCall.from_value({"args": [1]})

    def test_tuple_forms(self):
        assert AsyncCall.from_value((_op, [1])).args == (1,)
        assert AsyncCall.from_value((_op, [1], _cb)).callback is _cb

    def test_unsupported_value(self):
        with pytest.raises(DescriptorError):
            AsyncCall.from_value(_op)

    def test_coerce_calls_keeps_order(self):
        calls = coerce_calls([{"func": _op, "args": [i]} for i in range(5)])
        assert [c.args[0] for c in calls] == [0, 1, 2, 3, 4]


class TestEnums:
    def test_terminal_states(self):
        assert not RunStatus.PENDING.is_terminal
        assert not RunStatus.RUNNING.is_terminal
        assert RunStatus.COMPLETED.is_terminal
        assert RunStatus.SHORT_CIRCUITED.is_terminal
        assert RunStatus.ABORTED.is_terminal

    def test_error_policy_from_string(self):
        assert ErrorPolicy("abort_on_error") is ErrorPolicy.ABORT_ON_ERROR
        assert ErrorPolicy("ignore") is ErrorPolicy.IGNORE

    def test_noop_accepts_anything(self):
        assert noop() is None
        assert noop(1, 2, 3) is None
