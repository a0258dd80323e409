"""
Database engine initialization for the local store.

This module contains *only* the connection setup: it reads configuration from
the environment (a `.env` file in the project directory is loaded first),
builds a single SQLAlchemy engine over SQLite, and exposes the unit-of-work
helper that every write path uses.

Environment variables (all optional):
- POS_DATABASE_URL: SQLAlchemy URL (default: sqlite:///<project>/data/tienda.db)
- POS_DB_TIMEOUT_SECONDS: SQLite busy timeout, so a locked store fails instead of hanging (default: 5)
- POS_TAX_RATE: Tax rate applied to every sale (default: 0.18)
- POS_BACKUP_DIR: Directory for database backups (default: <database dir>/backups)
- POS_SQL_ECHO: "1" to log every SQL statement
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path
from typing import Iterator, Optional

from dotenv import load_dotenv
from sqlalchemy import Connection, Engine, create_engine, event, text
from sqlalchemy.engine import make_url

from domain.money import DEFAULT_TAX_RATE, to_tax_rate

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent

# Load environment variables from .env in the project directory
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")

DEFAULT_DATABASE_URL = f"sqlite:///{PROJECT_ROOT / 'data' / 'tienda.db'}"

_engine: Optional[Engine] = None


def get_database_url() -> str:
    return os.getenv("POS_DATABASE_URL") or DEFAULT_DATABASE_URL


def get_timeout_seconds() -> float:
    raw = os.getenv("POS_DB_TIMEOUT_SECONDS", "5")
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(
            f"Invalid POS_DB_TIMEOUT_SECONDS: {raw!r}. Set it to a number of seconds."
        ) from None
    if value <= 0:
        raise RuntimeError("POS_DB_TIMEOUT_SECONDS must be greater than zero.")
    return value


def get_tax_rate() -> Decimal:
    raw = os.getenv("POS_TAX_RATE")
    if not raw:
        return DEFAULT_TAX_RATE
    try:
        return to_tax_rate(raw)
    except ValueError:
        raise RuntimeError(
            f"Invalid POS_TAX_RATE: {raw!r}. Set it to a decimal in [0, 1), e.g. 0.18."
        ) from None


def get_backup_dir() -> Path:
    configured = os.getenv("POS_BACKUP_DIR")
    if configured:
        return Path(configured)
    database = get_database_path()
    if database is None:
        raise RuntimeError("POS_BACKUP_DIR must be set when the database is not a SQLite file.")
    return database.parent / "backups"


def get_database_path() -> Optional[Path]:
    """Filesystem path of the SQLite database, or None for in-memory/other backends."""

    url = make_url(str(get_engine().url))
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return None
    return Path(url.database)


LIKE_ESCAPE = "\\"


def contains_pattern(term: str) -> str:
    """
    Lower-cased LIKE pattern matching `term` as a literal substring.

    `\\`, `%` and `_` in the term are escaped; use with `.like(pattern, escape=LIKE_ESCAPE)`.

    Example:
        contains_pattern("50%_off")  # "%50\\%\\_off%"
    """

    escaped = (
        term.lower()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.execute("PRAGMA journal_mode = WAL")
        cursor.execute("PRAGMA synchronous = NORMAL")
    finally:
        cursor.close()


def create_store_engine(url: str, *, echo: bool = False) -> Engine:
    """Build an engine for `url`; SQLite files get their directory created and pragmas set."""

    parsed = make_url(url)
    connect_args = {}
    if parsed.get_backend_name() == "sqlite":
        connect_args["timeout"] = get_timeout_seconds()
        # Commits may run from worker threads; they are serialized by the sale commit lock
        connect_args["check_same_thread"] = False
        if parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, echo=echo, future=True, connect_args=connect_args)

    if parsed.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _set_sqlite_pragmas)

    return engine


def configure(url: Optional[str] = None) -> Engine:
    """
    (Re)build the process engine, optionally for an explicit URL.

    Tests and scripts call this to point the store at another database.
    """

    global _engine

    if _engine is not None:
        _engine.dispose()

    database_url = url or get_database_url()
    _engine = create_store_engine(database_url, echo=os.getenv("POS_SQL_ECHO") == "1")
    logger.info("Database engine configured for %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        return configure()
    return _engine


@contextmanager
def unit_of_work() -> Iterator[Connection]:
    """
    Transaction-scoped connection: commits on success, rolls back on any exception.

    Example:
        with unit_of_work() as conn:
            conn.execute(insert(sales).values(...))
            conn.execute(insert(sale_details).values(...))
    """

    with get_engine().begin() as connection:
        yield connection


@contextmanager
def read_connection() -> Iterator[Connection]:
    with get_engine().connect() as connection:
        yield connection


def check_integrity() -> bool:
    """Run SQLite's integrity check; True when the database reports 'ok'."""

    with read_connection() as conn:
        result = conn.execute(text("PRAGMA integrity_check")).scalar()
    if result != "ok":
        logger.error("Database integrity check failed: %s", result)
        return False
    return True


__all__ = [
    "configure",
    "get_engine",
    "get_database_path",
    "get_tax_rate",
    "get_backup_dir",
    "unit_of_work",
    "read_connection",
    "check_integrity",
    "contains_pattern",
    "LIKE_ESCAPE",
]
