"""SQLAlchemy table definition for auth state rows.

The table name is configurable, so the table is built per store instead
of being declared once on a declarative base.
"""

from typing import Any

from sqlalchemy import JSON, Column, MetaData, String, Table
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.sql.dml import Insert

from mysql_auth_state.exceptions import UnsupportedDialectError
from mysql_auth_state.keys import KEY_MAX_LENGTH


def auth_table(
    name: str = "auth",
    *,
    mysql_engine: str | None = None,
    metadata: MetaData | None = None,
) -> Table:
    """Build the two-column ``id``/``value`` table."""
    kwargs: dict[str, Any] = {}
    if mysql_engine:
        kwargs["mysql_engine"] = mysql_engine

    return Table(
        name,
        metadata if metadata is not None else MetaData(),
        Column("id", String(KEY_MAX_LENGTH), primary_key=True, nullable=False),
        Column("value", JSON(none_as_null=True), nullable=True),
        **kwargs,
    )


def upsert_statement(table: Table, dialect_name: str, key: str, value: Any) -> Insert:
    """Insert a row, replacing the value when the id already exists."""
    if dialect_name in ("mysql", "mariadb"):
        stmt = mysql.insert(table).values(id=key, value=value)
        return stmt.on_duplicate_key_update(value=stmt.inserted.value)

    if dialect_name in ("postgresql", "sqlite"):
        insert = postgresql.insert if dialect_name == "postgresql" else sqlite.insert
        stmt = insert(table).values(id=key, value=value)
        return stmt.on_conflict_do_update(
            index_elements=[table.c.id],
            set_={"value": stmt.excluded.value},
        )

    raise UnsupportedDialectError(dialect_name)
