"""Shared pytest configuration: integration opt-in and settings isolation.

Test Structure:
    tests/
    ├── unit/              # Fast tests (mocks and SQLite via aiosqlite)
    └── integration/       # Tests against a real MySQL server

Environment Variables:
    RUN_INTEGRATION=1    Run @pytest.mark.integration tests
    MYSQL_TEST_URL       SQLAlchemy URL of the MySQL test database

Pytest Options:
    --run-integration    Run integration tests
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

from mysql_auth_state.config import clear_settings_cache

PROJECT_ROOT = Path(__file__).resolve().parents[1]

# Optional local settings for integration runs
if (PROJECT_ROOT / ".env.test").exists():
    load_dotenv(PROJECT_ROOT / ".env.test")


def pytest_addoption(parser):
    """Add the integration opt-in flag."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Also run the MySQL integration tests",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: Tests against a real MySQL server (auto-skipped)",
    )


def pytest_collection_modifyitems(config, items):
    """Auto-skip integration tests unless explicitly enabled."""
    run_integration = config.getoption("--run-integration") or os.environ.get(
        "RUN_INTEGRATION",
        "",
    ).lower() in ("1", "true", "yes")

    if run_integration:
        return

    skip_integration = pytest.mark.skip(
        reason="Needs a MySQL server (use --run-integration or RUN_INTEGRATION=1)",
    )
    for item in items:
        if "integration" in {mark.name for mark in item.iter_markers()}:
            item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Every test starts without cached settings."""
    clear_settings_cache()
    yield
    clear_settings_cache()
