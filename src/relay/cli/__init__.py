"""
CLI layer for relay-core.

Provides a Typer application whose commands delegate to ``relay.ops``.
This package handles only terminal transport: argument parsing,
coloured output, and table formatting.

Entry point::

    relay --help
"""

from relay.cli.app import app

__all__ = ["app"]
