"""SQLite connections to the media catalog.

The media server reads the same database while a batch runs, so
connections use WAL and a generous busy timeout.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from functools import wraps
from pathlib import Path

from streampack.config.loader import DEFAULT_DB_NAME, get_data_dir
from streampack.exceptions import StreamPackError

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

_PRAGMAS: tuple[str, ...] = (
    "PRAGMA foreign_keys = ON",
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA busy_timeout = 10000",
)


class DatabaseLockedError(StreamPackError):
    """Raised when another process holds the catalog lock for too long."""

    pass


def get_default_db_path() -> Path:
    """Return ``<data dir>/catalog.db``, honouring ``STREAMPACK_DATA_DIR``."""
    return get_data_dir() / DEFAULT_DB_NAME


def ensure_db_directory(db_path: Path) -> None:
    """Create the directory that will hold the database file."""
    db_path.parent.mkdir(parents=True, exist_ok=True)


def open_connection(db_path: Path | str, timeout: float = 30.0) -> sqlite3.Connection:
    """Open a catalog connection with rows addressable by column name.

    Args:
        db_path: Database file, or ``":memory:"`` (used by tests).
        timeout: Seconds to wait for a lock before failing.

    Returns:
        An open connection. The caller closes it.
    """
    if str(db_path) != MEMORY:
        ensure_db_directory(Path(db_path))
    conn = sqlite3.connect(str(db_path), timeout=timeout)
    for pragma in _PRAGMAS:
        conn.execute(pragma)
    conn.row_factory = sqlite3.Row
    logger.debug("Opened catalog database %s", db_path)
    return conn


@contextmanager
def get_connection(
    db_path: Path | None = None, timeout: float = 30.0
) -> Iterator[sqlite3.Connection]:
    """Open a connection for the duration of a ``with`` block.

    Args:
        db_path: Database file. None uses the default in the data directory.
        timeout: Seconds to wait for a lock before failing.
    """
    conn = open_connection(db_path or get_default_db_path(), timeout=timeout)
    try:
        yield conn
    finally:
        conn.close()


def handle_database_locked(func):
    """Turn a "database is locked" OperationalError into DatabaseLockedError."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except sqlite3.OperationalError as e:
            if "locked" not in str(e).casefold():
                raise
            raise DatabaseLockedError(
                "Database is locked. Another process may be using it."
            ) from e

    return wrapper
