"""
Database connection management.

Provides SQLite connections for the history store.
"""

import sqlite3
from pathlib import Path
from typing import Union

from .errors import PersistenceError

DEFAULT_BUSY_TIMEOUT_MS = 5000


def get_connection(
    db_path: Union[str, Path],
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
) -> sqlite3.Connection:
    """Create and return a SQLite connection to the history database.

    Creates the parent directory if needed. Lock waits are bounded by
    busy_timeout so concurrent shell invocations queue instead of failing
    immediately.

    Args:
        db_path: Path to SQLite database file
        busy_timeout_ms: How long SQLite waits on a locked database

    Returns:
        Open SQLite connection

    Raises:
        PersistenceError: If the directory or database cannot be opened
    """
    path = Path(db_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PersistenceError(f"Cannot create data directory {path.parent}: {e}") from e

    try:
        conn = sqlite3.connect(str(path), timeout=busy_timeout_ms / 1000.0)
    except sqlite3.Error as e:
        raise PersistenceError(f"Cannot open history database {path}: {e}") from e

    try:
        conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")
    except sqlite3.Error as e:
        conn.close()
        raise PersistenceError(f"Cannot open history database {path}: {e}") from e
    return conn
