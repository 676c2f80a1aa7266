"""Single-connection lifecycle for the auth state store.

One store talks to the database over exactly one connection. The
connection is created on first use, checked before every later use, and
replaced when it turns out to be closed, invalidated or unresponsive.
"""

import logging
import time

from sqlalchemy import Table, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool
from sqlalchemy.schema import CreateTable

from mysql_auth_state.codec import serialize
from mysql_auth_state.config import AuthStateSettings
from mysql_auth_state.exceptions import StoreConnectionError

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Owns the engine and the one connection used by a store.

    Connections run in autocommit mode; every statement is durable on its
    own. JSON columns are rendered with the buffer-aware codec.
    """

    def __init__(self, settings: AuthStateSettings, table: Table):
        """Initialize the manager without connecting.

        Parameters
        ----------
        settings
            Connection and keep-alive configuration
        table
            Table that must exist once a brand-new connection is opened
        """
        self._settings = settings
        self._table = table
        self._engine: AsyncEngine | None = None
        self._connection: AsyncConnection | None = None
        self._last_used = 0.0
        self._has_connected = False

    @property
    def dialect_name(self) -> str:
        """Backend name of the configured URL (no connection needed)."""
        return self._settings.database_url.get_backend_name()

    @property
    def is_connected(self) -> bool:
        return not self._is_closed()

    @property
    def has_connected(self) -> bool:
        """Whether a connection was established since creation or ``close()``."""
        return self._has_connected

    def _create_engine(self) -> AsyncEngine:
        unsupported = self._settings.unsupported_options()
        if unsupported:
            logger.warning(
                "Ignoring options not supported by the database driver: %s",
                ", ".join(unsupported),
            )

        return create_async_engine(
            self._settings.database_url,
            echo=self._settings.echo,
            poolclass=NullPool,
            isolation_level="AUTOCOMMIT",
            json_serializer=serialize,
            connect_args=self._settings.connect_args(),
        )

    def _is_closed(self) -> bool:
        connection = self._connection
        return connection is None or connection.closed or connection.invalidated

    async def _is_unresponsive(self) -> bool:
        """Probe a connection that has been idle past the keep-alive delay."""
        if not self._settings.keep_alive or self._connection is None:
            return False

        idle = time.monotonic() - self._last_used
        if idle < self._settings.keep_alive_delay_seconds:
            return False

        try:
            await self._connection.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.info("Idle connection did not answer keep-alive probe: %s", e)
            return True
        return False

    async def _connect(self) -> AsyncConnection:
        if self._engine is None:
            self._engine = self._create_engine()

        try:
            return await self._engine.connect()
        except (SQLAlchemyError, OSError) as e:
            # Dispose inside the running loop, the driver may still hold a thread
            await self._engine.dispose()
            self._engine = None
            msg = f"Could not connect to {self._display_url()}: {e}"
            raise StoreConnectionError(msg) from e

    async def _discard(self) -> None:
        """Close the current connection, tolerating an already dead one."""
        connection, self._connection = self._connection, None
        if connection is None or connection.closed:
            return
        try:
            await connection.close()
        except (SQLAlchemyError, OSError) as e:
            logger.debug("Error while closing stale connection: %s", e)

    def _display_url(self) -> str:
        return self._settings.database_url.render_as_string(hide_password=True)

    async def get_connection(self, force: bool = False) -> AsyncConnection:
        """
        Return a live connection, (re-)connecting when needed.

        Parameters
        ----------
        force
            Replace the current connection even if it looks alive

        Returns
        -------
        The open connection

        Raises
        ------
        StoreConnectionError
            If no connection can be established or the table cannot be
            ensured on a brand-new connection
        """
        new_connection = self._connection is None
        stale = force or self._is_closed() or await self._is_unresponsive()
        if new_connection or stale:
            if not new_connection:
                logger.info("Reconnecting to %s", self._display_url())
            await self._discard()
            self._connection = await self._connect()
            if new_connection:
                try:
                    await self.ensure_table()
                except StoreConnectionError:
                    await self._discard()
                    raise

        self._has_connected = True
        self._last_used = time.monotonic()
        return self._connection

    async def ensure_table(self) -> None:
        """Create the table if it is missing; existing data is untouched."""
        if self._connection is None:
            msg = "ensure_table() requires an open connection"
            raise StoreConnectionError(msg)

        try:
            await self._connection.execute(
                CreateTable(self._table, if_not_exists=True),
            )
        except (SQLAlchemyError, OSError) as e:
            msg = f"Could not ensure table '{self._table.name}': {e}"
            raise StoreConnectionError(msg) from e
        logger.debug("Ensured table '%s' exists", self._table.name)

    async def close(self) -> None:
        """Close the connection and dispose the engine."""
        await self._discard()
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
        self._has_connected = False
        logger.debug("Closed connection to %s", self._display_url())
