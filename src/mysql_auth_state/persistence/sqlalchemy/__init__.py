"""SQLAlchemy implementation of auth state persistence.

Provides:
- ConnectionManager: lazily created, self-healing single connection
- RetryingExecutor / QueryResult: bounded retries with an explicit outcome
- AuthStateRepositorySQLAlchemy: key-value operations on the auth table
- auth_table / upsert_statement: table definition and upsert per dialect
"""

from mysql_auth_state.persistence.sqlalchemy.connection import ConnectionManager
from mysql_auth_state.persistence.sqlalchemy.executor import (
    QueryResult,
    RetryingExecutor,
)
from mysql_auth_state.persistence.sqlalchemy.repositories import (
    AuthStateRepositorySQLAlchemy,
)
from mysql_auth_state.persistence.sqlalchemy.tables import auth_table, upsert_statement

__all__ = [
    "AuthStateRepositorySQLAlchemy",
    "ConnectionManager",
    "QueryResult",
    "RetryingExecutor",
    "auth_table",
    "upsert_statement",
]
