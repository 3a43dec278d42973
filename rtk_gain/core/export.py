"""
Export formats for savings reports.

Builds the JSON document and the sectioned CSV text from tracker queries.
"""

import csv
import io
import json
from dataclasses import asdict
from typing import Any, Dict, List

DAILY_COLUMNS = [
    "date", "commands", "input_tokens", "output_tokens", "saved_tokens", "savings_pct",
]
WEEKLY_COLUMNS = [
    "week_start", "week_end", "commands", "input_tokens", "output_tokens",
    "saved_tokens", "savings_pct",
]
MONTHLY_COLUMNS = [
    "month", "commands", "input_tokens", "output_tokens", "saved_tokens", "savings_pct",
]


def build_export(
    tracker,
    daily: bool = False,
    weekly: bool = False,
    monthly: bool = False,
    include_summary: bool = True,
) -> Dict[str, Any]:
    """Assemble the export document; only requested breakdowns are present.

    Args:
        tracker: GainTracker to query
        daily: Include the full daily breakdown
        weekly: Include the weekly breakdown
        monthly: Include the monthly breakdown
        include_summary: Include overall totals

    Returns:
        Dictionary ready for JSON serialization
    """
    document: Dict[str, Any] = {}
    if include_summary:
        summary = tracker.summary()
        document["summary"] = {
            "total_commands": summary.total_commands,
            "total_input": summary.total_input,
            "total_output": summary.total_output,
            "total_saved": summary.total_saved,
            "avg_savings_pct": summary.avg_savings_pct,
        }
    if daily:
        document["daily"] = [asdict(day) for day in tracker.all_days()]
    if weekly:
        document["weekly"] = [asdict(week) for week in tracker.by_week()]
    if monthly:
        document["monthly"] = [asdict(month) for month in tracker.by_month()]
    return document


def export_json(tracker, daily: bool = False, weekly: bool = False, monthly: bool = False) -> str:
    """Pretty-printed JSON export."""
    return json.dumps(build_export(tracker, daily, weekly, monthly), indent=2)


def export_csv(tracker, daily: bool = False, weekly: bool = False, monthly: bool = False) -> str:
    """CSV export with one labeled section per requested breakdown."""
    sections: List[str] = []
    if daily:
        sections.append(_csv_section("Daily Data", DAILY_COLUMNS, tracker.all_days()))
    if weekly:
        sections.append(_csv_section("Weekly Data", WEEKLY_COLUMNS, tracker.by_week()))
    if monthly:
        sections.append(_csv_section("Monthly Data", MONTHLY_COLUMNS, tracker.by_month()))
    return "\n".join(sections)


def _csv_section(label: str, columns: List[str], rows: List[Any]) -> str:
    buffer = io.StringIO()
    buffer.write(f"# {label}\n")
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        values = asdict(row)
        writer.writerow([_csv_value(column, values[column]) for column in columns])
    return buffer.getvalue()


def _csv_value(column: str, value: Any) -> Any:
    if column == "savings_pct":
        return f"{value:.2f}"
    return value
