"""Auth state backed by a relational table.

The protocol layer gets an ``AuthenticationState`` (credentials plus a key
store) and lifecycle operations on the backing table::

    async with await use_mysql_auth_state(table_name="session_1") as auth:
        socket = make_socket(auth.state)
        ...
        await auth.save_creds()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from mysql_auth_state.codec import is_absent
from mysql_auth_state.config import AuthStateSettings, get_settings
from mysql_auth_state.credentials import AuthenticationCreds, init_auth_creds
from mysql_auth_state.keys import CREDS_KEY, KeyCategory, storage_key
from mysql_auth_state.persistence.sqlalchemy import (
    AuthStateRepositorySQLAlchemy,
    ConnectionManager,
    RetryingExecutor,
    auth_table,
)
from mysql_auth_state.repositories import AuthStateRepository

logger = logging.getLogger(__name__)


class SignalKeyStore:
    """Batched access to key material, namespaced by category."""

    def __init__(self, repository: AuthStateRepository):
        self._repository = repository

    async def get(
        self,
        category: KeyCategory | str,
        ids: Iterable[Any],
    ) -> dict[Any, Any]:
        """
        Read key material for several ids of one category.

        Parameters
        ----------
        category
            The key category
        ids
            Ids within the category

        Returns
        -------
        Mapping of every requested id to its value, or None if not stored
        """
        category = KeyCategory(category)
        data: dict[Any, Any] = {}
        for key_id in ids:
            value = await self._repository.read(storage_key(category, key_id))
            data[key_id] = category.reconstruct(value)
        return data

    async def set(self, data: Mapping[KeyCategory | str, Mapping[Any, Any]]) -> None:
        """
        Write or delete key material.

        Each id is its own statement; a failure part-way leaves the earlier
        writes in place.

        Parameters
        ----------
        data
            category -> id -> value; absent values delete the row
        """
        for category, entries in data.items():
            category = KeyCategory(category)
            for key_id, value in entries.items():
                key = storage_key(category, key_id)
                if is_absent(value):
                    await self._repository.remove(key)
                else:
                    await self._repository.write(key, value)


@dataclass
class AuthenticationState:
    """What the protocol layer reads and mutates during a session."""

    creds: AuthenticationCreds
    keys: SignalKeyStore


class MySQLAuthState:
    """
    Auth state persisted in one table.

    Owns the connection; call ``close()`` or use it as an async context
    manager when done.
    """

    def __init__(
        self,
        state: AuthenticationState,
        repository: AuthStateRepository,
        executor: RetryingExecutor,
        connections: ConnectionManager,
        creds_persisted: bool = False,
    ):
        self.state = state
        self._repository = repository
        self._executor = executor
        self._connections = connections
        self._creds_persisted = creds_persisted

    @classmethod
    async def open(
        cls,
        settings: AuthStateSettings | None = None,
        *,
        creds_factory: Callable[[], AuthenticationCreds] = init_auth_creds,
    ) -> MySQLAuthState:
        """
        Connect, ensure the table and load (or create) the credentials.

        Parameters
        ----------
        settings
            Store configuration; the cached environment settings if omitted
        creds_factory
            Builds a fresh credential bundle when none is stored

        Raises
        ------
        StoreConnectionError
            If the database cannot be reached
        """
        settings = settings or get_settings()
        table = auth_table(settings.table_name, mysql_engine=settings.table_engine)
        connections = ConnectionManager(settings, table)
        try:
            await connections.get_connection()
        except Exception:
            await connections.close()
            raise

        executor = RetryingExecutor(
            connections,
            max_attempts=settings.max_retries,
            delay_ms=settings.retry_request_delay_ms,
            raise_on_exhausted=settings.raise_on_exhausted,
        )
        repository = AuthStateRepositorySQLAlchemy(
            executor,
            table,
            connections.dialect_name,
        )

        creds = await repository.read(CREDS_KEY)
        persisted = creds is not None
        if creds is None:
            logger.info("No credentials stored in '%s', using fresh ones", table.name)
            creds = creds_factory()

        state = AuthenticationState(creds=creds, keys=SignalKeyStore(repository))
        return cls(state, repository, executor, connections, persisted)

    @property
    def creds_persisted(self) -> bool:
        """Whether the current credentials are known to be stored."""
        return self._creds_persisted

    async def save_creds(self) -> bool:
        """Write the in-memory credentials to the ``creds`` row.

        Returns False when the write was lost after exhausting all retries.
        """
        self._creds_persisted = await self._repository.write(
            CREDS_KEY,
            self.state.creds,
        )
        return self._creds_persisted

    async def clear(self) -> bool:
        """Delete all key material, keeping the credentials."""
        return await self._repository.clear_except_credentials()

    async def remove_creds(self) -> bool:
        """Delete all rows, credentials included."""
        removed = await self._repository.remove_all()
        if removed:
            self._creds_persisted = False
        return removed

    async def drop_table(self) -> bool:
        """Drop the backing table."""
        dropped = await self._repository.drop_table()
        if dropped:
            self._creds_persisted = False
        return dropped

    async def query(
        self,
        sql: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Run raw SQL through the retrying executor."""
        return await self._executor.query(sql, params)

    async def list_ids(self) -> list[str]:
        return await self._repository.list_ids()

    async def close(self) -> None:
        await self._connections.close()

    async def __aenter__(self) -> MySQLAuthState:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


async def use_mysql_auth_state(
    settings: AuthStateSettings | None = None,
    *,
    creds_factory: Callable[[], AuthenticationCreds] = init_auth_creds,
    **overrides: Any,
) -> MySQLAuthState:
    """
    Open the auth state store.

    Parameters
    ----------
    settings
        Complete settings; takes precedence over ``overrides``
    creds_factory
        Builds a fresh credential bundle when none is stored
    **overrides
        Individual settings (e.g. ``table_name``) on top of the environment

    Returns
    -------
    The opened store
    """
    if settings is None:
        settings = AuthStateSettings(**overrides) if overrides else get_settings()
    return await MySQLAuthState.open(settings, creds_factory=creds_factory)
