"""Retrying statement execution over the store's single connection."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.base import Executable

from mysql_auth_state.exceptions import RetriesExhaustedError, StoreConnectionError
from mysql_auth_state.persistence.sqlalchemy.connection import ConnectionManager

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_DELAY_MS = 200


@dataclass(frozen=True)
class QueryResult:
    """Outcome of a retried statement.

    An exhausted result has no rows, like a query that matched nothing.
    ``exhausted`` tells the two apart.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    attempts: int = 1
    error: BaseException | None = None

    @property
    def exhausted(self) -> bool:
        return self.error is not None

    @property
    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None


class RetryingExecutor:
    """
    Runs statements with a bounded number of attempts and a fixed delay.

    Statements on the shared connection are serialized by a lock; the delay
    between attempts is spent outside of it so other callers can proceed.
    """

    def __init__(
        self,
        connections: ConnectionManager,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delay_ms: int = DEFAULT_DELAY_MS,
        raise_on_exhausted: bool = False,
    ):
        if max_attempts < 1:
            msg = f"max_attempts must be at least 1, got {max_attempts}"
            raise ValueError(msg)
        self._connections = connections
        self._max_attempts = max_attempts
        self._delay = delay_ms / 1000
        self._raise_on_exhausted = raise_on_exhausted
        self._lock = asyncio.Lock()

    async def execute(
        self,
        statement: Executable | str,
        params: Mapping[str, Any] | None = None,
    ) -> QueryResult:
        """
        Execute a statement, retrying failed attempts.

        Parameters
        ----------
        statement
            SQLAlchemy executable, or raw SQL with ``:name`` placeholders
        params
            Bound parameters

        Returns
        -------
        The rows on success; an empty, exhausted result once every attempt
        failed

        Raises
        ------
        StoreConnectionError
            If the store has never been connected and connecting fails;
            a failed reconnect counts as a failed attempt
        RetriesExhaustedError
            If every attempt failed and ``raise_on_exhausted`` is set
        """
        if isinstance(statement, str):
            statement = text(statement)

        last_error: BaseException | None = None
        force_reconnect = False

        for attempt in range(1, self._max_attempts + 1):
            async with self._lock:
                try:
                    connection = await self._connections.get_connection(
                        force=force_reconnect,
                    )
                    result = await connection.execute(statement, params)
                    rows = (
                        [dict(row) for row in result.mappings()]
                        if result.returns_rows
                        else []
                    )
                    return QueryResult(rows=rows, attempts=attempt)
                except StoreConnectionError as e:
                    if not self._connections.has_connected:
                        raise
                    last_error = e
                    force_reconnect = True
                except (SQLAlchemyError, OSError) as e:
                    last_error = e
                    force_reconnect = bool(getattr(e, "connection_invalidated", False))

            logger.debug(
                "Query attempt %d/%d failed: %s",
                attempt,
                self._max_attempts,
                last_error,
            )
            await asyncio.sleep(self._delay)

        logger.warning(
            "Query failed after %d attempts, treating as empty result: %s",
            self._max_attempts,
            last_error,
        )
        if self._raise_on_exhausted:
            raise RetriesExhaustedError(self._max_attempts, last_error) from last_error
        return QueryResult(rows=[], attempts=self._max_attempts, error=last_error)

    async def query(
        self,
        sql: Executable | str,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Execute a statement and return only its rows (empty on failure)."""
        result = await self.execute(sql, params)
        return result.rows
