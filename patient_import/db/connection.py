from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2

from patient_import.models.config_models import DatabaseConfig

from .store import StoreUnavailableError

"""psycopg2 connection handling.

Connection resolution order:
    1. DATABASE_URL / PGDSN environment variables (a .env file is loaded by the CLI first)
    2. config `database.dsn`
    3. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    4. config `database` host/port/user/password/database
    5. libpq defaults (localhost:5432, user postgres)
"""

__all__ = [
    "resolve_dsn",
    "open_connection",
]

logger = logging.getLogger(__name__)


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def open_connection(db_cfg: DatabaseConfig) -> Iterator[Any]:
    """Yield an open psycopg2 connection; always closed on exit.

    Raises StoreUnavailableError when the server cannot be reached.
    """
    try:
        conn = psycopg2.connect(resolve_dsn(db_cfg))
    except psycopg2.Error as e:
        raise StoreUnavailableError(f"cannot connect to database: {e}") from e
    logger.debug("database connection opened")
    try:
        yield conn
    finally:
        conn.close()
