"""
Centralized settings for relay-core.

Manifesto:
    One validated, cached settings object so the CLI and the operations in
    ``relay.ops`` resolve log level, log format and chain error policy the
    same way.  The coordination kernel itself never reads settings; callers
    pass policy in explicitly.

All fields can be set via ``RELAY_*`` environment variables (e.g.
``RELAY_LOG_LEVEL=DEBUG``) or a ``.env`` file in the working directory.

Tags:
    relay-core, configuration, settings, pydantic, caching, validation
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from relay.core.errors import ConfigError

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RelaySettings(BaseSettings):
    """Relay configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console", "auto"] = Field(default="auto")
    service_name: str = Field(default="relay")

    # ── Coordination ─────────────────────────────────────────────
    error_policy: Literal["ignore", "abort_on_error"] = Field(
        default="ignore",
        description="Chain policy for error-shaped continuation values",
    )

    # ── Shell runner ─────────────────────────────────────────────
    fail_on_stderr: bool = Field(
        default=True,
        description="Treat stderr output of a zero-exit command as a failure",
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return upper


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, RelaySettings] = {}


def get_settings(*, _force_reload: bool = False) -> RelaySettings:
    """Load, validate, and cache a :class:`RelaySettings` instance.

    Parameters
    ----------
    _force_reload:
        Bypass cache and reload from the environment.
    """
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    try:
        settings = RelaySettings()
    except ValidationError as exc:
        raise ConfigError("Invalid relay settings", cause=exc) from exc
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["RelaySettings", "get_settings", "clear_settings_cache"]
