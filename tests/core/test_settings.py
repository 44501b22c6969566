"""Tests for relay.core.settings."""

from __future__ import annotations

import pytest

from relay.core.errors import ConfigError
from relay.core.settings import RelaySettings, clear_settings_cache, get_settings


class TestRelaySettings:
    def test_defaults(self):
        settings = RelaySettings(_env_file=None)
        assert settings.log_level == "INFO"
        assert settings.log_format == "auto"
        assert settings.service_name == "relay"
        assert settings.error_policy == "ignore"
        assert settings.fail_on_stderr is True

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("RELAY_LOG_LEVEL", "debug")
        monkeypatch.setenv("RELAY_ERROR_POLICY", "abort_on_error")
        monkeypatch.setenv("RELAY_FAIL_ON_STDERR", "false")
        settings = RelaySettings(_env_file=None)
        assert settings.log_level == "DEBUG"
        assert settings.error_policy == "abort_on_error"
        assert settings.fail_on_stderr is False

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("RELAY_SERVICE_NAME=builder\nRELAY_LOG_FORMAT=json\n")
        settings = RelaySettings(_env_file=env_file)
        assert settings.service_name == "builder"
        assert settings.log_format == "json"


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("RELAY_SERVICE_NAME", "other")
        assert get_settings().service_name == first.service_name
        assert get_settings(_force_reload=True).service_name == "other"

    def test_clear_cache(self, monkeypatch):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first

    @pytest.mark.parametrize(
        "key, value",
        [
            ("RELAY_LOG_LEVEL", "LOUD"),
            ("RELAY_LOG_FORMAT", "xml"),
            ("RELAY_ERROR_POLICY", "retry"),
        ],
    )
    def test_invalid_values_raise_config_error(self, monkeypatch, key, value):
        monkeypatch.setenv(key, value)
        with pytest.raises(ConfigError, match="Invalid relay settings") as exc_info:
            get_settings()
        assert exc_info.value.cause is not None
