"""Abstract repository interface for auth state rows.

This interface defines the contract for auth state persistence.
Implementations can use SQLAlchemy or any other storage.
"""

from abc import ABC, abstractmethod
from typing import Any


class AuthStateRepository(ABC):
    """
    Key-value access to the auth state table.

    Mutating methods return True when the statement ran and False when the
    store could not be reached within the retry budget. Reads cannot make
    that distinction: an unreachable store reads as a missing row.
    """

    @abstractmethod
    async def read(self, key: str) -> Any | None:
        """
        Read a value by row id.

        Parameters
        ----------
        key
            The row id

        Returns
        -------
        The decoded value, or None if there is no row or it is empty
        """

    @abstractmethod
    async def write(self, key: str, value: Any) -> bool:
        """
        Insert or replace the value of a row.

        Parameters
        ----------
        key
            The row id
        value
            Any JSON-compatible structure; byte sequences are allowed

        Returns
        -------
        True if the write ran
        """

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """Delete a row; removing a missing row is not an error."""

    @abstractmethod
    async def clear_except_credentials(self) -> bool:
        """Delete every row except the credential bundle."""

    @abstractmethod
    async def remove_all(self) -> bool:
        """Delete every row, including the credential bundle."""

    @abstractmethod
    async def drop_table(self) -> bool:
        """Drop the table; dropping a missing table is not an error."""

    @abstractmethod
    async def list_ids(self) -> list[str]:
        """Return all stored row ids, sorted."""
