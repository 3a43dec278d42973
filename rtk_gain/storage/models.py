"""
Data models for storage layer.

Defines the persisted command record.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from rtk_gain.core.token_counter import TokenUsage


def format_timestamp(value: datetime) -> str:
    """Serialize an instant as fixed-width ISO-8601 UTC text.

    Fixed microsecond precision keeps lexicographic order equal to
    chronological order, which the timestamp index and retention rely on.
    """
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(raw: str) -> datetime:
    """Parse stored timestamp text back into an aware UTC datetime.

    Raises:
        ValueError: If the text is not an ISO-8601 timestamp
    """
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class CommandRecord:
    """Immutable record of one tracked command invocation.

    Append-only: once written, a record is never modified. It only leaves
    the store when retention pruning removes it.
    """
    timestamp: datetime
    original_cmd: str
    rtk_cmd: str
    input_tokens: int
    output_tokens: int
    saved_tokens: int
    savings_pct: float
    id: Optional[int] = None

    def __post_init__(self):
        """Validate token counts and derived fields."""
        if self.timestamp.tzinfo is None:
            raise ValueError("timestamp must be timezone-aware")
        if self.input_tokens < 0:
            raise ValueError("input_tokens cannot be negative")
        if self.output_tokens < 0:
            raise ValueError("output_tokens cannot be negative")
        if self.saved_tokens != max(0, self.input_tokens - self.output_tokens):
            raise ValueError("saved_tokens does not match input/output tokens")

    @classmethod
    def create(
        cls,
        original_cmd: str,
        rtk_cmd: str,
        input_tokens: int,
        output_tokens: int,
        timestamp: Optional[datetime] = None,
    ) -> "CommandRecord":
        """Build a new record, deriving saved_tokens and savings_pct.

        Args:
            original_cmd: The equivalent standard command (e.g. "ls -la")
            rtk_cmd: The optimized command that ran (e.g. "rtk ls")
            input_tokens: Baseline token estimate
            output_tokens: Tokens actually produced
            timestamp: Creation instant, defaults to now (UTC)

        Returns:
            An unsaved CommandRecord (id is None)
        """
        usage = TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens)
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)
        return cls(
            timestamp=timestamp.astimezone(timezone.utc),
            original_cmd=original_cmd,
            rtk_cmd=rtk_cmd,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            saved_tokens=usage.saved_tokens,
            savings_pct=usage.savings_pct,
        )
