"""Fixtures for tests against a real MySQL server.

The server comes from MYSQL_TEST_URL, or from the usual MYSQL_* variables
when it is not set. Every test gets its own table, dropped afterwards.
"""

import os
from uuid import uuid4

import pytest
import pytest_asyncio

from mysql_auth_state import AuthStateSettings, MySQLAuthState


@pytest.fixture
def mysql_settings() -> AuthStateSettings:
    table_name = f"auth_test_{uuid4().hex[:12]}"
    url = os.getenv("MYSQL_TEST_URL")
    if url:
        return AuthStateSettings(url=url, table_name=table_name, max_retries=3)
    return AuthStateSettings(table_name=table_name, max_retries=3)


@pytest_asyncio.fixture
async def mysql_auth(mysql_settings):
    auth = await MySQLAuthState.open(mysql_settings)
    yield auth
    await auth.drop_table()
    await auth.close()
