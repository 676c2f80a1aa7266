"""Logging setup for command-line use.

The library itself only creates module loggers; applications configure
handlers. The CLI calls :func:`configure_logging`.
"""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure console logging.

    - Timestamps and module names on every line
    - Configurable level for mysql_auth_state modules
    - WARNING level for noisy third-party libraries
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger("mysql_auth_state").setLevel(log_level)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiomysql").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
