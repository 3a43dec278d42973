"""
Retention policy for command history.

Records older than the retention horizon are permanently deleted. Pruning
runs on the write path, inside the same transaction as every insert; there
is no background job.
"""

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Optional

from rtk_gain.storage.models import format_timestamp

logger = logging.getLogger(__name__)

HISTORY_DAYS = 90


def retention_cutoff(now: Optional[datetime] = None) -> datetime:
    """Oldest instant still retained: now minus the retention horizon."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now - timedelta(days=HISTORY_DAYS)


def delete_before(conn: sqlite3.Connection, cutoff: datetime) -> int:
    cursor = conn.execute(
        "DELETE FROM commands WHERE timestamp < ?",
        (format_timestamp(cutoff),),
    )
    return cursor.rowcount


def prune_expired(conn: sqlite3.Connection, now: Optional[datetime] = None) -> int:
    """Delete every record older than the retention horizon.

    Runs on the caller's connection and does not commit, so the delete
    joins whatever transaction is open.

    Args:
        conn: Open connection with an active write transaction
        now: Reference instant, defaults to current UTC time

    Returns:
        Number of records removed
    """
    cutoff = retention_cutoff(now)
    removed = delete_before(conn, cutoff)
    if removed:
        logger.debug("Pruned %d records older than %s", removed, cutoff.isoformat())
    return removed
