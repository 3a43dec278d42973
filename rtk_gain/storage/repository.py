"""
Repository pattern for data access.

Owns the command history table: schema management, atomic appends with
retention pruning, and ordered retrieval for aggregation.
"""

import logging
import sqlite3
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, TypeVar, Union

from rtk_gain.core.retention import delete_before, prune_expired

from .db import DEFAULT_BUSY_TIMEOUT_MS, get_connection
from .errors import PersistenceError, QueryError
from .models import CommandRecord, format_timestamp, parse_timestamp
from .paths import default_db_path

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS commands (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        original_cmd TEXT NOT NULL,
        rtk_cmd TEXT NOT NULL,
        input_tokens INTEGER NOT NULL,
        output_tokens INTEGER NOT NULL,
        saved_tokens INTEGER NOT NULL,
        savings_pct REAL NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_timestamp ON commands(timestamp)",
)

RECORD_COLUMNS = (
    "id, timestamp, original_cmd, rtk_cmd, input_tokens, "
    "output_tokens, saved_tokens, savings_pct"
)


def _is_transient(error: sqlite3.OperationalError) -> bool:
    message = str(error).lower()
    return "locked" in message or "busy" in message


class HistoryRepository:
    """Durable, append-only log of command records backed by SQLite.

    Every operation opens its own connection and closes it before returning.
    Writes run in a BEGIN IMMEDIATE transaction and are retried with
    exponential backoff when another process holds the write lock.
    """

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
        max_retries: int = 5,
        retry_initial_delay: float = 0.05,
        retry_max_delay: float = 1.0,
    ):
        """Initialize the repository.

        Args:
            db_path: Path to SQLite database file, defaults to <data dir>/rtk/history.db
            busy_timeout_ms: SQLite busy timeout per connection
            max_retries: Attempts per write before giving up
            retry_initial_delay: First backoff delay in seconds
            retry_max_delay: Upper bound for backoff delay in seconds
        """
        self.db_path = Path(db_path) if db_path is not None else default_db_path()
        self.busy_timeout_ms = busy_timeout_ms
        self.max_retries = max_retries
        self.retry_initial_delay = retry_initial_delay
        self.retry_max_delay = retry_max_delay

    @classmethod
    def from_config(cls, config, db_path: Optional[Union[str, Path]] = None) -> "HistoryRepository":
        """Build a repository from a TrackingConfig; db_path overrides config."""
        return cls(
            db_path=db_path if db_path is not None else config.db_path,
            busy_timeout_ms=config.busy_timeout_ms,
            max_retries=config.max_retries,
            retry_initial_delay=config.retry_initial_delay,
            retry_max_delay=config.retry_max_delay,
        )

    def initialize_schema(self) -> None:
        """Create the commands table and timestamp index if absent.

        Idempotent; safe to call on every open.
        """
        self._write(lambda conn: None)

    def append(self, record: CommandRecord, now: Optional[datetime] = None) -> int:
        """Persist a record and prune expired history in one transaction.

        Args:
            record: Record to store (its id is ignored)
            now: Reference instant for retention, defaults to current UTC time

        Returns:
            Store-assigned id of the new record

        Raises:
            PersistenceError: If the database cannot be opened or written
        """
        def operation(conn: sqlite3.Connection) -> int:
            cursor = conn.execute(
                """
                INSERT INTO commands
                (timestamp, original_cmd, rtk_cmd, input_tokens,
                 output_tokens, saved_tokens, savings_pct)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    format_timestamp(record.timestamp),
                    record.original_cmd,
                    record.rtk_cmd,
                    record.input_tokens,
                    record.output_tokens,
                    record.saved_tokens,
                    record.savings_pct,
                ),
            )
            record_id = cursor.lastrowid
            prune_expired(conn, now)
            return record_id

        return self._write(operation)

    def delete_older_than(self, cutoff: datetime) -> int:
        """Remove all records with timestamp < cutoff.

        Returns:
            Number of records removed (0 when nothing matches)
        """
        return self._write(lambda conn: delete_before(conn, cutoff))

    def query_recent(self, limit: int = 10) -> List[CommandRecord]:
        """Most recent records, newest first."""
        if limit < 0:
            raise ValueError("limit cannot be negative")
        rows = self._read(
            f"SELECT {RECORD_COLUMNS} FROM commands "
            "ORDER BY timestamp DESC, id DESC LIMIT ?",
            (limit,),
        )
        return self._to_records(rows)

    def query_all(self) -> List[CommandRecord]:
        """Every stored record, oldest first."""
        rows = self._read(
            f"SELECT {RECORD_COLUMNS} FROM commands ORDER BY timestamp ASC, id ASC"
        )
        return self._to_records(rows)

    def count(self) -> int:
        """Number of stored records."""
        rows = self._read("SELECT COUNT(*) FROM commands")
        return rows[0][0]

    @staticmethod
    def _ensure_schema(conn: sqlite3.Connection) -> None:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(statement)

    def _write(self, operation: Callable[[sqlite3.Connection], T]) -> T:
        """Run operation inside a write transaction, retrying on lock contention.

        Raises:
            PersistenceError: On any storage failure, including exhausted retries
        """
        delay = self.retry_initial_delay
        for attempt in range(1, self.max_retries + 1):
            conn = get_connection(self.db_path, self.busy_timeout_ms)
            try:
                conn.execute("BEGIN IMMEDIATE")
                self._ensure_schema(conn)
                result = operation(conn)
                conn.commit()
                return result
            except sqlite3.OperationalError as e:
                conn.rollback()
                if _is_transient(e) and attempt < self.max_retries:
                    logger.warning(
                        "History database busy, retry %d/%d after %.3fs: %s",
                        attempt, self.max_retries, delay, e,
                    )
                    time.sleep(delay)
                    delay = min(delay * 2, self.retry_max_delay)
                    continue
                raise PersistenceError(f"Cannot write history database {self.db_path}: {e}") from e
            except sqlite3.Error as e:
                conn.rollback()
                raise PersistenceError(f"Cannot write history database {self.db_path}: {e}") from e
            finally:
                conn.close()
        raise PersistenceError(f"Cannot write history database {self.db_path}: retries exhausted")

    def _read(self, query: str, params: Sequence[Any] = ()) -> List[tuple]:
        """Run a read-only query and return all rows.

        Raises:
            PersistenceError: If the store cannot be opened or initialized
            QueryError: If the query fails against the existing store
        """
        conn = get_connection(self.db_path, self.busy_timeout_ms)
        try:
            self._ensure_schema(conn)
            return conn.execute(query, params).fetchall()
        except sqlite3.OperationalError as e:
            message = str(e).lower()
            if "no such" in message or "syntax error" in message:
                raise QueryError(f"Query failed on {self.db_path}: {e}") from e
            raise PersistenceError(f"Cannot read history database {self.db_path}: {e}") from e
        except sqlite3.Error as e:
            raise QueryError(f"History database {self.db_path} is unreadable: {e}") from e
        finally:
            conn.close()

    def _to_records(self, rows: List[tuple]) -> List[CommandRecord]:
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row: tuple) -> CommandRecord:
        record_id, raw_timestamp = row[0], row[1]
        try:
            timestamp = parse_timestamp(raw_timestamp)
        except (TypeError, ValueError):
            # Known limitation: the row is kept but dated wall-clock "now", not
            # the tracker's clock. Retention compares the stored text, so such a
            # row usually sorts after every cutoff and is never pruned.
            logger.warning(
                "Record %s has malformed timestamp %r; substituting current time",
                record_id, raw_timestamp,
            )
            timestamp = datetime.now(timezone.utc)

        try:
            return CommandRecord(
                timestamp=timestamp,
                original_cmd=row[2],
                rtk_cmd=row[3],
                input_tokens=int(row[4]),
                output_tokens=int(row[5]),
                saved_tokens=int(row[6]),
                savings_pct=float(row[7]),
                id=record_id,
            )
        except (TypeError, ValueError) as e:
            raise QueryError(f"Record {record_id} is inconsistent: {e}") from e
