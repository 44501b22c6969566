"""Tests for relay.core.errors — hierarchy, context, serialization."""

from __future__ import annotations

import pytest

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


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls",
        [RunStateError, ContinuationError, DescriptorError],
    )
    def test_coordination_family(self, cls):
        err = cls("misuse")
        assert isinstance(err, CoordinationError)
        assert isinstance(err, RelayError)
        assert err.category is ErrorCategory.COORDINATION
        assert err.retryable is False

    def test_operation_family(self):
        err = CommandError("false", 1)
        assert isinstance(err, OperationError)
        assert err.category is ErrorCategory.OPERATION

    def test_config_error(self):
        assert ConfigError("bad").category is ErrorCategory.CONFIG

    def test_category_override(self):
        err = RelayError("x", category=ErrorCategory.UNKNOWN, retryable=True)
        assert err.category is ErrorCategory.UNKNOWN
        assert err.retryable is True


class TestContext:
    def test_with_context_sets_known_fields(self):
        err = RunStateError("already started").with_context(chain_id="abc", step_index=2)
        assert err.context.chain_id == "abc"
        assert err.context.step_index == 2
        assert err.context.metadata == {}

    def test_with_context_unknown_keys_go_to_metadata(self):
        err = RelayError("x").with_context(attempt=3)
        assert err.context.metadata == {"attempt": 3}

    def test_context_to_dict_drops_none(self):
        ctx = ErrorContext(group_id="g1", metadata={"k": "v"})
        assert ctx.to_dict() == {"group_id": "g1", "k": "v"}


class TestSerialization:
    def test_to_dict(self):
        cause = OSError("no such file")
        err = OperationError("spawn failed", cause=cause).with_context(operation="exec")
        data = err.to_dict()
        assert data["error_type"] == "OperationError"
        assert data["message"] == "spawn failed"
        assert data["category"] == "OPERATION"
        assert data["context"] == {"operation": "exec"}
        assert data["cause"] == "no such file"
        assert err.__cause__ is cause

    def test_to_dict_without_context(self):
        assert "context" not in RelayError("plain").to_dict()

    def test_repr(self):
        assert repr(ConfigError("bad")) == "ConfigError('bad', category=CONFIG)"


class TestSpecificErrors:
    def test_command_error(self):
        err = CommandError("make test", 2, stderr="boom")
        assert str(err) == "Command failed with exit code 2: make test"
        assert err.returncode == 2
        assert err.stderr == "boom"
        assert err.context.metadata == {"command": "make test", "returncode": 2}

    def test_chain_aborted_error(self):
        err = ChainAbortedError("c0ffee")
        assert err.chain_id == "c0ffee"
        assert err.context.chain_id == "c0ffee"
        assert "c0ffee" in str(err)

    def test_chain_aborted_custom_message(self):
        assert str(ChainAbortedError("c1", "stopped by user")) == "stopped by user"


class TestHelpers:
    def test_is_error_value(self):
        assert is_error_value(ValueError("x"))
        assert is_error_value(KeyboardInterrupt())
        assert not is_error_value(None)
        assert not is_error_value(ValueError)
        assert not is_error_value("error")
