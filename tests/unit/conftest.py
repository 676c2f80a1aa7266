"""
Pytest fixtures for unit tests.

Store and facade tests run against a SQLite file per test (aiosqlite),
so no database server is needed. MYSQL_* variables from the developer's
environment are removed to keep defaults deterministic.
"""

import os

import pytest
import pytest_asyncio

from mysql_auth_state.config import AuthStateSettings
from mysql_auth_state.persistence.sqlalchemy import (
    AuthStateRepositorySQLAlchemy,
    ConnectionManager,
    RetryingExecutor,
    auth_table,
)


@pytest.fixture(autouse=True)
def clean_mysql_env(monkeypatch):
    """Remove MYSQL_* environment variables for the duration of a test."""
    for name in list(os.environ):
        if name.startswith("MYSQL_"):
            monkeypatch.delenv(name)


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}"


@pytest.fixture
def settings(sqlite_url) -> AuthStateSettings:
    """Settings for a throwaway SQLite store with a small, fast retry budget."""
    return AuthStateSettings(
        url=sqlite_url,
        max_retries=3,
        retry_request_delay_ms=0,
    )


@pytest.fixture
def table(settings):
    return auth_table(settings.table_name, mysql_engine=settings.table_engine)


@pytest_asyncio.fixture
async def connections(settings, table):
    manager = ConnectionManager(settings, table)
    yield manager
    await manager.close()


@pytest.fixture
def executor(connections, settings):
    return RetryingExecutor(
        connections,
        max_attempts=settings.max_retries,
        delay_ms=settings.retry_request_delay_ms,
    )


@pytest.fixture
def repository(executor, table, connections):
    return AuthStateRepositorySQLAlchemy(executor, table, connections.dialect_name)
