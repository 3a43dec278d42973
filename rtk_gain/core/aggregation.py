"""
Savings aggregation over command history.

Computes the overall summary, the by-command ranking, and day/week/month
rollups. Everything here is a pure, on-demand computation over a sequence
of records; nothing is cached or persisted.

All bucket dates are UTC calendar dates.

Weekly buckets are NOT ISO weeks. A record belongs to the trailing 7-day
window that ends on the first Sunday on or after its date:

    week_end   = date rolled forward to Sunday (a Sunday maps to itself)
    week_start = week_end - 6 days (always a Monday)
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Tuple

from rtk_gain.core.token_counter import savings_percent
from rtk_gain.storage.models import CommandRecord

RANKING_LIMIT = 10
DAILY_SERIES_LIMIT = 30
SUNDAY = 6  # date.weekday(): Monday == 0


@dataclass(frozen=True)
class CommandRanking:
    """Savings for one optimized command."""
    name: str
    count: int
    saved_sum: int
    mean_pct: float


@dataclass(frozen=True)
class DailySavings:
    """One point of the daily savings graph."""
    date: str
    saved: int


@dataclass(frozen=True)
class GainSummary:
    """Totals across the whole history plus ranking and graph series.

    avg_savings_pct is computed from pooled totals, not as the mean of
    per-record percentages.
    """
    total_commands: int
    total_input: int
    total_output: int
    total_saved: int
    avg_savings_pct: float
    by_command: List[CommandRanking] = field(default_factory=list)
    by_day: List[DailySavings] = field(default_factory=list)


@dataclass(frozen=True)
class DayStats:
    date: str
    commands: int
    input_tokens: int
    output_tokens: int
    saved_tokens: int
    savings_pct: float


@dataclass(frozen=True)
class WeekStats:
    week_start: str
    week_end: str
    commands: int
    input_tokens: int
    output_tokens: int
    saved_tokens: int
    savings_pct: float


@dataclass(frozen=True)
class MonthStats:
    month: str
    commands: int
    input_tokens: int
    output_tokens: int
    saved_tokens: int
    savings_pct: float


class _Totals:
    """Running sums for one bucket."""

    __slots__ = ("commands", "input_tokens", "output_tokens", "saved_tokens")

    def __init__(self):
        self.commands = 0
        self.input_tokens = 0
        self.output_tokens = 0
        self.saved_tokens = 0

    def add(self, record: CommandRecord) -> None:
        self.commands += 1
        self.input_tokens += record.input_tokens
        self.output_tokens += record.output_tokens
        self.saved_tokens += record.saved_tokens

    @property
    def savings_pct(self) -> float:
        return savings_percent(self.saved_tokens, self.input_tokens)


def record_date(record: CommandRecord) -> date:
    """UTC calendar date of a record."""
    return record.timestamp.astimezone(timezone.utc).date()


def week_bounds(day: date) -> Tuple[date, date]:
    """Sunday-ending week containing day, as (week_start, week_end)."""
    week_end = day + timedelta(days=(SUNDAY - day.weekday()) % 7)
    return week_end - timedelta(days=6), week_end


def month_label(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def _bucket(
    records: Iterable[CommandRecord],
    key: Callable[[CommandRecord], object],
) -> List[Tuple[object, _Totals]]:
    """Group records by key and return (key, totals) in ascending key order."""
    buckets: Dict[object, _Totals] = defaultdict(_Totals)
    for record in records:
        buckets[key(record)].add(record)
    return sorted(buckets.items(), key=lambda item: item[0])


def compute_summary(records: Iterable[CommandRecord]) -> GainSummary:
    """Compute overall totals, the command ranking and the daily graph series.

    Args:
        records: Every record in the store

    Returns:
        GainSummary (all zeros and empty lists for an empty history)
    """
    records = list(records)
    totals = _Totals()
    for record in records:
        totals.add(record)

    return GainSummary(
        total_commands=totals.commands,
        total_input=totals.input_tokens,
        total_output=totals.output_tokens,
        total_saved=totals.saved_tokens,
        avg_savings_pct=totals.savings_pct,
        by_command=rank_commands(records),
        by_day=daily_series(records),
    )


def rank_commands(
    records: Iterable[CommandRecord],
    limit: int = RANKING_LIMIT,
) -> List[CommandRanking]:
    """Top commands by total saved tokens.

    Ties on saved_sum are broken by command name ascending so the ranking
    is reproducible.

    Args:
        records: Records to rank
        limit: Maximum number of entries returned

    Returns:
        At most `limit` CommandRanking entries, saved_sum descending
    """
    groups: Dict[str, List[CommandRecord]] = defaultdict(list)
    for record in records:
        groups[record.rtk_cmd].append(record)

    ranking = []
    for name, group in groups.items():
        ranking.append(CommandRanking(
            name=name,
            count=len(group),
            saved_sum=sum(r.saved_tokens for r in group),
            mean_pct=sum(r.savings_pct for r in group) / len(group),
        ))

    ranking.sort(key=lambda entry: (-entry.saved_sum, entry.name))
    return ranking[:limit]


def daily_series(
    records: Iterable[CommandRecord],
    limit: int = DAILY_SERIES_LIMIT,
) -> List[DailySavings]:
    """Saved tokens per date for the most recent `limit` dates, oldest first."""
    if limit <= 0:
        return []
    buckets = _bucket(records, record_date)
    return [
        DailySavings(date=day.isoformat(), saved=totals.saved_tokens)
        for day, totals in buckets[-limit:]
    ]


def all_days(records: Iterable[CommandRecord]) -> List[DayStats]:
    """Full per-date breakdown for every date present, oldest first."""
    return [
        DayStats(
            date=day.isoformat(),
            commands=totals.commands,
            input_tokens=totals.input_tokens,
            output_tokens=totals.output_tokens,
            saved_tokens=totals.saved_tokens,
            savings_pct=totals.savings_pct,
        )
        for day, totals in _bucket(records, record_date)
    ]


def by_week(records: Iterable[CommandRecord]) -> List[WeekStats]:
    """Per-week breakdown (Sunday-ending weeks), oldest first."""
    weeks = []
    for week_start, totals in _bucket(records, lambda r: week_bounds(record_date(r))[0]):
        weeks.append(WeekStats(
            week_start=week_start.isoformat(),
            week_end=(week_start + timedelta(days=6)).isoformat(),
            commands=totals.commands,
            input_tokens=totals.input_tokens,
            output_tokens=totals.output_tokens,
            saved_tokens=totals.saved_tokens,
            savings_pct=totals.savings_pct,
        ))
    return weeks


def by_month(records: Iterable[CommandRecord]) -> List[MonthStats]:
    """Per-calendar-month breakdown, oldest first."""
    return [
        MonthStats(
            month=month,
            commands=totals.commands,
            input_tokens=totals.input_tokens,
            output_tokens=totals.output_tokens,
            saved_tokens=totals.saved_tokens,
            savings_pct=totals.savings_pct,
        )
        for month, totals in _bucket(records, lambda r: month_label(record_date(r)))
    ]
