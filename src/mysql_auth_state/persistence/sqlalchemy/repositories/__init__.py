from mysql_auth_state.persistence.sqlalchemy.repositories.auth_state_repository import (
    AuthStateRepositorySQLAlchemy,
)

__all__ = ["AuthStateRepositorySQLAlchemy"]
