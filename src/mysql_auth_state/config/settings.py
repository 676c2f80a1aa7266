"""Auth state settings loaded from environment variables.

Configuration file discovery (in priority order):
1. OS environment variables (always highest priority)
2. MYSQL_AUTH_ENV_FILE environment variable (path to a .env file)
3. .env in the current working directory

All variables use the ``MYSQL_`` prefix, e.g. ``MYSQL_HOST`` or
``MYSQL_TABLE_NAME``. Uses pydantic-settings for type coercion and
validation.
"""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from ssl import CERT_NONE, SSLContext, create_default_context
from typing import Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

_TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]{0,63}$")


def _resolve_env_file_path() -> Path | None:
    """Resolve the .env file path.

    Priority:
    1. MYSQL_AUTH_ENV_FILE env var
    2. .env in the working directory
    """
    env_file_path = os.environ.get("MYSQL_AUTH_ENV_FILE")
    if env_file_path:
        path = Path(env_file_path)
        if path.exists():
            return path

    local_env = Path.cwd() / ".env"
    if local_env.exists():
        return local_env

    return None


class AuthStateSettings(BaseSettings):
    """Connection, table and retry configuration for the auth state store.

    Values are loaded from:
    1. OS environment variables (highest priority)
    2. .env file
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_resolve_env_file_path(),
        env_file_encoding="utf-8",
        env_prefix="MYSQL_",
        extra="ignore",
    )

    # Connection
    database: str = "base"
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: SecretStr | None = None
    # Multi-factor authentication passwords
    password2: SecretStr | None = None
    password3: SecretStr | None = None
    local_address: str | None = None
    socket_path: str | None = None
    insecure_auth: bool = False
    is_server: bool = False
    connect_timeout: int = 10

    # TLS
    ssl: bool = False
    ssl_ca: Path | None = None
    ssl_cert: Path | None = None
    ssl_key: Path | None = None
    ssl_verify: bool = True

    # Liveness probing of an idle connection
    keep_alive: bool = True
    keep_alive_initial_delay_ms: int = Field(default=5000, ge=0)

    # Full SQLAlchemy URL, overrides the connection fields above
    url: SecretStr | None = None
    echo: bool = False

    # Table
    table_name: str = "auth"
    table_engine: str | None = "MyISAM"

    # Retries
    retry_request_delay_ms: int = Field(default=200, ge=0)
    max_retries: int = Field(default=10, ge=1)
    raise_on_exhausted: bool = False

    # Logging
    log_level: str = "INFO"

    @field_validator("table_name")
    @classmethod
    def _validate_table_name(cls, v: str) -> str:
        """Only plain identifiers are accepted as table names."""
        if not _TABLE_NAME_PATTERN.match(v):
            msg = f"Invalid table name: {v!r}"
            raise ValueError(msg)
        return v

    @property
    def database_url(self) -> URL:
        """Construct the database URL from components."""
        if self.url is not None:
            return make_url(self.url.get_secret_value())

        query: dict[str, str] = {}
        if self.socket_path:
            query["unix_socket"] = self.socket_path

        return URL.create(
            "mysql+aiomysql",
            username=self.user,
            password=self.password.get_secret_value() if self.password else None,
            host=self.host,
            port=self.port,
            database=self.database,
            query=query,
        )

    @property
    def is_mysql(self) -> bool:
        return self.database_url.get_backend_name() in ("mysql", "mariadb")

    @property
    def keep_alive_delay_seconds(self) -> float:
        return self.keep_alive_initial_delay_ms / 1000

    def ssl_context(self) -> SSLContext | None:
        """Build the TLS context for the driver, if TLS is enabled."""
        if not self.ssl:
            return None

        context = create_default_context(
            cafile=str(self.ssl_ca) if self.ssl_ca else None,
        )
        if not self.ssl_verify:
            context.check_hostname = False
            context.verify_mode = CERT_NONE
        if self.ssl_cert:
            context.load_cert_chain(
                str(self.ssl_cert),
                keyfile=str(self.ssl_key) if self.ssl_key else None,
            )
        return context

    def connect_args(self) -> dict[str, Any]:
        """Driver keyword arguments; only MySQL URLs get any."""
        if not self.is_mysql:
            return {}

        args: dict[str, Any] = {"connect_timeout": self.connect_timeout}
        context = self.ssl_context()
        if context is not None:
            args["ssl"] = context
        return args

    def unsupported_options(self) -> list[str]:
        """Names of options that are set but have no driver counterpart."""
        candidates = {
            "password2": self.password2,
            "password3": self.password3,
            "local_address": self.local_address,
            "insecure_auth": self.insecure_auth,
            "is_server": self.is_server,
        }
        return [name for name, value in candidates.items() if value]


@lru_cache()
def get_settings() -> AuthStateSettings:
    """Return cached settings."""
    return AuthStateSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for tests)."""
    get_settings.cache_clear()
