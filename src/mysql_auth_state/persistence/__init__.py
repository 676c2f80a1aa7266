"""Persistence implementations for mysql_auth_state.

This package contains database-specific implementations of the
repository interface defined in mysql_auth_state.repositories.

Structure:
    persistence/
    └── sqlalchemy/     # SQLAlchemy implementation (MySQL, PostgreSQL, SQLite)
"""
