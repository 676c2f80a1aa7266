"""Command-line interface for mysql_auth_state."""

from mysql_auth_state.cli.app import app, cli

__all__ = ["app", "cli"]
