"""Auth state persistence exceptions.

These exceptions are raised by the mysql_auth_state package. Transient
query failures are retried and never raised unless the executor is
configured with ``raise_on_exhausted``.
"""


class AuthStateError(Exception):
    """Base exception for all auth state persistence errors."""

    def __init__(self, message: str = "Auth state error"):
        self.message = message
        super().__init__(self.message)


class StoreConnectionError(AuthStateError):
    """Raised when the database connection cannot be (re-)established."""

    def __init__(self, message: str = "Could not connect to the auth state store"):
        super().__init__(message)


class RetriesExhaustedError(AuthStateError):
    """Raised when a statement failed on every attempt of its retry budget."""

    def __init__(self, attempts: int, last_error: BaseException | None = None):
        self.attempts = attempts
        self.last_error = last_error
        message = f"Query failed after {attempts} attempts"
        if last_error is not None:
            message = f"{message}: {last_error}"
        super().__init__(message)


class InvalidKeyError(AuthStateError):
    """Raised when a storage key does not fit the id column."""

    def __init__(self, key: str, max_length: int):
        self.key = key
        super().__init__(
            f"Storage key is {len(key)} characters long, maximum is {max_length}",
        )


class UnsupportedDialectError(AuthStateError):
    """Raised when no upsert statement is known for the database backend."""

    def __init__(self, dialect_name: str):
        self.dialect_name = dialect_name
        super().__init__(f"Upsert is not supported for dialect '{dialect_name}'")
