from mysql_auth_state.repositories.auth_state_repository import AuthStateRepository

__all__ = ["AuthStateRepository"]
