"""Relational persistence for end-to-end-encrypted messaging auth state.

Stores the long-lived credential bundle and the derived key material of a
messaging session in a single ``id``/``value`` table, so a client can
resume its session after a restart.

Architecture:
    mysql_auth_state/
    ├── codec.py            # Binary-safe JSON (bytes <-> Buffer markers)
    ├── keys.py             # Key categories and row naming
    ├── models.py           # Typed protocol objects (app-state sync keys)
    ├── credentials.py      # Fresh credential bundle
    ├── config/             # pydantic-settings configuration
    ├── repositories/       # Abstract key-value interface
    ├── persistence/        # SQLAlchemy implementation
    ├── state.py            # Public facade
    └── cli/                # Operator commands

Usage:
    from mysql_auth_state import use_mysql_auth_state

    auth = await use_mysql_auth_state(host="db", password="secret")
    creds = auth.state.creds
    sessions = await auth.state.keys.get("session", ["1234.0"])
    await auth.save_creds()
"""

from mysql_auth_state.config import AuthStateSettings, get_settings
from mysql_auth_state.credentials import init_auth_creds
from mysql_auth_state.exceptions import (
    AuthStateError,
    InvalidKeyError,
    RetriesExhaustedError,
    StoreConnectionError,
    UnsupportedDialectError,
)
from mysql_auth_state.keys import CREDS_KEY, KeyCategory
from mysql_auth_state.models import AppStateSyncKeyData
from mysql_auth_state.persistence.sqlalchemy import QueryResult
from mysql_auth_state.state import (
    AuthenticationState,
    MySQLAuthState,
    SignalKeyStore,
    use_mysql_auth_state,
)

__all__ = [
    # Facade
    "use_mysql_auth_state",
    "MySQLAuthState",
    "AuthenticationState",
    "SignalKeyStore",
    "QueryResult",
    # Configuration
    "AuthStateSettings",
    "get_settings",
    # Domain
    "CREDS_KEY",
    "KeyCategory",
    "AppStateSyncKeyData",
    "init_auth_creds",
    # Exceptions
    "AuthStateError",
    "StoreConnectionError",
    "RetriesExhaustedError",
    "InvalidKeyError",
    "UnsupportedDialectError",
]
