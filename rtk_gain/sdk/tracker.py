"""
Public tracking API.

GainTracker is the entry point presentation layers call. The module-level
track()/track_tokens() helpers are fire-and-forget instrumentation: they
never raise, so a telemetry failure cannot abort the command being tracked.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Union

from rtk_gain.config.loader import TrackingConfig, resolve_config
from rtk_gain.core import aggregation
from rtk_gain.core.aggregation import DayStats, GainSummary, MonthStats, WeekStats
from rtk_gain.core.token_counter import estimate_tokens
from rtk_gain.storage.models import CommandRecord
from rtk_gain.storage.repository import HistoryRepository

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GainTracker:
    """Records command savings and answers aggregate queries.

    The repository is injected by the caller; there is no shared global
    instance. Read accessors propagate PersistenceError and QueryError.
    """

    def __init__(self, repository: HistoryRepository, clock: Optional[Clock] = None):
        """Initialize tracker.

        Args:
            repository: History store to record into and query
            clock: Returns the current UTC instant (injectable for tests)
        """
        self.repository = repository
        self.clock = clock or _utc_now

    @classmethod
    def open(
        cls,
        db_path: Optional[Union[str, Path]] = None,
        config: Optional[TrackingConfig] = None,
    ) -> "GainTracker":
        """Build a tracker over the configured history database.

        Args:
            db_path: Explicit database path, overrides configuration
            config: Settings to use, defaults to resolve_config()
        """
        if config is None:
            config = resolve_config()
        return cls(HistoryRepository.from_config(config, db_path=db_path))

    def record(
        self,
        original_cmd: str,
        rtk_cmd: str,
        input_tokens: int,
        output_tokens: int,
    ) -> None:
        """Record one command, then prune expired history.

        Raises:
            ValueError: If a token count is negative
            PersistenceError: If the store cannot be written
        """
        now = self.clock()
        record = CommandRecord.create(
            original_cmd=original_cmd,
            rtk_cmd=rtk_cmd,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            timestamp=now,
        )
        self.repository.append(record, now=now)

    def summary(self) -> GainSummary:
        return aggregation.compute_summary(self.repository.query_all())

    def all_days(self) -> List[DayStats]:
        return aggregation.all_days(self.repository.query_all())

    def by_week(self) -> List[WeekStats]:
        return aggregation.by_week(self.repository.query_all())

    def by_month(self) -> List[MonthStats]:
        return aggregation.by_month(self.repository.query_all())

    def recent(self, limit: int = 10) -> List[CommandRecord]:
        """Most recent records, newest first."""
        return self.repository.query_recent(limit)


def _best_effort(operation: Callable[[], None]) -> None:
    """Run operation and discard any failure."""
    try:
        operation()
    except Exception:
        logger.debug("Tracking failed; ignoring", exc_info=True)


def track(
    original_cmd: str,
    rtk_cmd: str,
    input_text: Union[str, bytes],
    output_text: Union[str, bytes],
    db_path: Optional[Union[str, Path]] = None,
) -> None:
    """Track a command execution, estimating tokens from its output text.

    Args:
        original_cmd: The equivalent standard command (e.g. "ls -la")
        rtk_cmd: The optimized command used (e.g. "rtk ls")
        input_text: Raw output the standard command would have produced
        output_text: Output actually produced
        db_path: Optional database path override
    """
    def operation() -> None:
        GainTracker.open(db_path=db_path).record(
            original_cmd,
            rtk_cmd,
            estimate_tokens(input_text),
            estimate_tokens(output_text),
        )

    _best_effort(operation)


def track_tokens(
    original_cmd: str,
    rtk_cmd: str,
    input_tokens: int,
    output_tokens: int,
    db_path: Optional[Union[str, Path]] = None,
) -> None:
    """Track a command execution with pre-computed token counts."""
    _best_effort(
        lambda: GainTracker.open(db_path=db_path).record(
            original_cmd, rtk_cmd, input_tokens, output_tokens
        )
    )
