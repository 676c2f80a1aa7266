"""SQLAlchemy implementation of AuthStateRepository."""

import logging
from typing import Any

from sqlalchemy import Table, delete, select
from sqlalchemy.schema import DropTable

from mysql_auth_state.codec import is_absent, load_stored
from mysql_auth_state.exceptions import InvalidKeyError
from mysql_auth_state.keys import CREDS_KEY, KEY_MAX_LENGTH
from mysql_auth_state.persistence.sqlalchemy.executor import RetryingExecutor
from mysql_auth_state.persistence.sqlalchemy.tables import upsert_statement
from mysql_auth_state.repositories import AuthStateRepository

logger = logging.getLogger(__name__)


class AuthStateRepositorySQLAlchemy(AuthStateRepository):
    """
    SQLAlchemy implementation of AuthStateRepository.

    Every operation is a single statement run through the retrying
    executor; there are no transactions spanning several rows.
    """

    def __init__(self, executor: RetryingExecutor, table: Table, dialect_name: str):
        """Initialize repository.

        Parameters
        ----------
        executor
            Retrying executor bound to the store's connection
        table
            The auth state table
        dialect_name
            Backend name, selects the upsert flavour
        """
        self._executor = executor
        self._table = table
        self._dialect_name = dialect_name

    async def read(self, key: str) -> Any | None:
        stmt = select(self._table.c.value).where(self._table.c.id == key)
        result = await self._executor.execute(stmt)

        row = result.first
        if row is None or is_absent(row["value"]):
            return None
        return load_stored(row["value"])

    async def write(self, key: str, value: Any) -> bool:
        if len(key) > KEY_MAX_LENGTH:
            raise InvalidKeyError(key, KEY_MAX_LENGTH)

        stmt = upsert_statement(self._table, self._dialect_name, key, value)
        result = await self._executor.execute(stmt)
        if result.exhausted:
            logger.warning("Write of '%s' was lost", key)
        return not result.exhausted

    async def remove(self, key: str) -> bool:
        stmt = delete(self._table).where(self._table.c.id == key)
        result = await self._executor.execute(stmt)
        return not result.exhausted

    async def clear_except_credentials(self) -> bool:
        stmt = delete(self._table).where(self._table.c.id != CREDS_KEY)
        result = await self._executor.execute(stmt)
        if not result.exhausted:
            logger.info("Cleared key material from '%s'", self._table.name)
        return not result.exhausted

    async def remove_all(self) -> bool:
        result = await self._executor.execute(delete(self._table))
        if not result.exhausted:
            logger.info("Removed all rows from '%s'", self._table.name)
        return not result.exhausted

    async def drop_table(self) -> bool:
        result = await self._executor.execute(DropTable(self._table, if_exists=True))
        if not result.exhausted:
            logger.info("Dropped table '%s'", self._table.name)
        return not result.exhausted

    async def list_ids(self) -> list[str]:
        stmt = select(self._table.c.id).order_by(self._table.c.id)
        result = await self._executor.execute(stmt)
        return [row["id"] for row in result.rows]
