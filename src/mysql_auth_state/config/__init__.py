"""Configuration for the auth state store."""

from .settings import (
    AuthStateSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "AuthStateSettings",
    "clear_settings_cache",
    "get_settings",
]
