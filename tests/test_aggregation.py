"""
Unit tests for savings aggregation.

Tests summary totals, command ranking, and day/week/month bucketing.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from rtk_gain.core.aggregation import (
    all_days,
    by_month,
    by_week,
    compute_summary,
    daily_series,
    rank_commands,
    week_bounds,
)
from rtk_gain.storage.models import CommandRecord


def at(year, month, day, hour=12):
    return datetime(year, month, day, hour, 0, tzinfo=timezone.utc)


def make_record(timestamp, rtk_cmd="rtk ls", input_tokens=100, output_tokens=40):
    return CommandRecord.create(
        original_cmd="cmd",
        rtk_cmd=rtk_cmd,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        timestamp=timestamp,
    )


@pytest.fixture
def mixed_records():
    """Records spread over several days, weeks and months."""
    return [
        make_record(at(2024, 1, 30), "rtk git status", 1000, 200),
        make_record(at(2024, 1, 30, 18), "rtk ls", 300, 100),
        make_record(at(2024, 2, 1), "rtk git status", 500, 500),
        make_record(at(2024, 2, 4), "rtk cargo test", 0, 10),
        make_record(at(2024, 2, 5), "rtk ls", 2000, 100),
        make_record(at(2024, 3, 2), "rtk grep", 77, 3),
    ]


class TestSummary:
    """Test overall summary computation."""

    def test_empty_history(self):
        summary = compute_summary([])
        assert summary.total_commands == 0
        assert summary.total_input == 0
        assert summary.total_output == 0
        assert summary.total_saved == 0
        assert summary.avg_savings_pct == 0.0
        assert summary.by_command == []
        assert summary.by_day == []

    def test_totals(self, mixed_records):
        summary = compute_summary(mixed_records)
        assert summary.total_commands == 6
        assert summary.total_input == 3877
        assert summary.total_output == 913
        assert summary.total_saved == 800 + 200 + 0 + 0 + 1900 + 74

    def test_average_uses_pooled_totals(self):
        """avg_savings_pct is total_saved / total_input, not mean of percentages."""
        records = [
            make_record(at(2024, 1, 1), input_tokens=100, output_tokens=0),   # 100%
            make_record(at(2024, 1, 1), input_tokens=900, output_tokens=900),  # 0%
        ]
        summary = compute_summary(records)
        assert summary.avg_savings_pct == pytest.approx(10.0)
        assert summary.avg_savings_pct != pytest.approx(50.0)

    def test_zero_input_gives_zero_average(self):
        summary = compute_summary([make_record(at(2024, 1, 1), input_tokens=0, output_tokens=10)])
        assert summary.total_commands == 1
        assert summary.total_saved == 0
        assert summary.avg_savings_pct == 0.0

    def test_daily_commands_sum_to_total(self, mixed_records):
        summary = compute_summary(mixed_records)
        assert sum(day.commands for day in all_days(mixed_records)) == summary.total_commands

    def test_all_days_reproduce_summary_totals(self, mixed_records):
        summary = compute_summary(mixed_records)
        days = all_days(mixed_records)
        assert sum(d.input_tokens for d in days) == summary.total_input
        assert sum(d.output_tokens for d in days) == summary.total_output
        assert sum(d.saved_tokens for d in days) == summary.total_saved


class TestRanking:
    """Test by-command ranking."""

    def test_grouping_and_order(self, mixed_records):
        ranking = rank_commands(mixed_records)
        assert [r.name for r in ranking] == [
            "rtk ls", "rtk git status", "rtk grep", "rtk cargo test",
        ]
        ls = ranking[0]
        assert ls.count == 2
        assert ls.saved_sum == 200 + 1900
        assert ls.mean_pct == pytest.approx((200 / 300 * 100 + 1900 / 2000 * 100) / 2)

    def test_mean_pct_is_mean_of_record_percentages(self):
        records = [
            make_record(at(2024, 1, 1), "rtk x", 100, 0),
            make_record(at(2024, 1, 1), "rtk x", 900, 900),
        ]
        assert rank_commands(records)[0].mean_pct == pytest.approx(50.0)

    def test_at_most_ten_entries(self):
        records = [
            make_record(at(2024, 1, 1), f"rtk cmd{i:02d}", 100 + i, 0)
            for i in range(15)
        ]
        ranking = rank_commands(records)
        assert len(ranking) == 10
        saved = [r.saved_sum for r in ranking]
        assert saved == sorted(saved, reverse=True)
        assert ranking[0].name == "rtk cmd14"

    def test_ties_broken_by_name(self):
        records = [
            make_record(at(2024, 1, 1), "rtk zeta", 100, 50),
            make_record(at(2024, 1, 1), "rtk alpha", 100, 50),
            make_record(at(2024, 1, 1), "rtk mid", 100, 50),
        ]
        assert [r.name for r in rank_commands(records)] == ["rtk alpha", "rtk mid", "rtk zeta"]

    def test_empty(self):
        assert rank_commands([]) == []


class TestDaily:
    """Test daily buckets."""

    def test_all_days_ascending_with_fields(self, mixed_records):
        days = all_days(mixed_records)
        assert [d.date for d in days] == [
            "2024-01-30", "2024-02-01", "2024-02-04", "2024-02-05", "2024-03-02",
        ]
        first = days[0]
        assert first.commands == 2
        assert first.input_tokens == 1300
        assert first.output_tokens == 300
        assert first.saved_tokens == 1000
        assert first.savings_pct == pytest.approx(1000 / 1300 * 100)

    def test_zero_input_day(self, mixed_records):
        day = [d for d in all_days(mixed_records) if d.date == "2024-02-04"][0]
        assert day.input_tokens == 0
        assert day.savings_pct == 0.0

    def test_dates_use_utc(self):
        """A record late on the 1st in UTC-5 falls on the 2nd in UTC."""
        eastern = timezone(timedelta(hours=-5))
        record = make_record(datetime(2024, 1, 1, 22, 0, tzinfo=eastern))
        assert [d.date for d in all_days([record])] == ["2024-01-02"]

    def test_series_limited_to_most_recent_thirty(self):
        start = at(2024, 1, 1)
        records = [make_record(start + timedelta(days=i)) for i in range(40)]
        series = daily_series(records)
        assert len(series) == 30
        assert series[0].date == "2024-01-11"
        assert series[-1].date == "2024-02-09"
        assert [p.date for p in series] == sorted(p.date for p in series)
        assert all(p.saved == 60 for p in series)

    def test_series_counts_distinct_dates_not_days(self):
        """Gaps in the data do not consume slots."""
        records = [
            make_record(at(2024, 1, 1)),
            make_record(at(2024, 3, 1)),
        ]
        assert [p.date for p in daily_series(records)] == ["2024-01-01", "2024-03-01"]


class TestWeekly:
    """Test Sunday-ending weekly buckets."""

    def test_week_bounds_midweek(self):
        # 2024-01-03 is a Wednesday
        assert week_bounds(date(2024, 1, 3)) == (date(2024, 1, 1), date(2024, 1, 7))

    def test_week_bounds_sunday_maps_to_itself(self):
        assert week_bounds(date(2024, 1, 7)) == (date(2024, 1, 1), date(2024, 1, 7))

    def test_week_bounds_monday_starts_new_week(self):
        assert week_bounds(date(2024, 1, 8)) == (date(2024, 1, 8), date(2024, 1, 14))

    def test_week_bounds_cross_year(self):
        # 2023-12-31 is a Sunday, 2024-12-31 a Tuesday
        assert week_bounds(date(2023, 12, 31)) == (date(2023, 12, 25), date(2023, 12, 31))
        assert week_bounds(date(2024, 12, 31)) == (date(2024, 12, 30), date(2025, 1, 5))

    def test_by_week_grouping(self, mixed_records):
        weeks = by_week(mixed_records)
        assert [(w.week_start, w.week_end) for w in weeks] == [
            ("2024-01-29", "2024-02-04"),
            ("2024-02-05", "2024-02-11"),
            ("2024-02-26", "2024-03-03"),
        ]
        first = weeks[0]
        assert first.commands == 4
        assert first.input_tokens == 1800
        assert first.output_tokens == 810
        assert first.saved_tokens == 1000
        assert first.savings_pct == pytest.approx(1000 / 1800 * 100)

    def test_by_week_ascending(self, mixed_records):
        starts = [w.week_start for w in by_week(list(reversed(mixed_records)))]
        assert starts == sorted(starts)
        assert len(set(starts)) == len(starts)


class TestMonthly:
    """Test calendar month buckets."""

    def test_by_month(self, mixed_records):
        months = by_month(mixed_records)
        assert [m.month for m in months] == ["2024-01", "2024-02", "2024-03"]
        feb = months[1]
        assert feb.commands == 3
        assert feb.input_tokens == 2500
        assert feb.output_tokens == 610
        assert feb.saved_tokens == 1900
        assert feb.savings_pct == pytest.approx(1900 / 2500 * 100)

    def test_months_sort_across_years(self):
        records = [
            make_record(at(2024, 1, 5)),
            make_record(at(2023, 12, 5)),
            make_record(at(2023, 11, 5)),
        ]
        assert [m.month for m in by_month(records)] == ["2023-11", "2023-12", "2024-01"]

    def test_empty(self):
        assert by_month([]) == []
        assert by_week([]) == []
        assert all_days([]) == []
