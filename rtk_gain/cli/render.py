"""
Text views for savings reports.

Formats summaries, rankings, graphs and breakdown tables for the terminal.
"""

from typing import List, Sequence, Tuple

from rich.console import Console

from rtk_gain.core.aggregation import (
    CommandRanking,
    DailySavings,
    DayStats,
    GainSummary,
    MonthStats,
    WeekStats,
)
from rtk_gain.core.token_counter import savings_percent
from rtk_gain.storage.models import CommandRecord

GRAPH_WIDTH = 40
ESTIMATED_PRO_MONTHLY = 6_000_000

# tier -> (monthly token quota, display name)
QUOTA_TIERS = {
    "pro": (ESTIMATED_PRO_MONTHLY, "Pro ($20/mo)"),
    "5x": (ESTIMATED_PRO_MONTHLY * 5, "Max 5x ($100/mo)"),
    "20x": (ESTIMATED_PRO_MONTHLY * 20, "Max 20x ($200/mo)"),
}

HEAVY_RULE = "═"
LIGHT_RULE = "─"


def format_tokens(n: int) -> str:
    """Compact token count: 1.2M, 3.4K or the plain number."""
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.1f}K"
    return str(n)


def truncate(text: str, max_len: int, keep: int) -> str:
    if len(text) > max_len:
        return f"{text[:keep]}..."
    return text


def _out(console: Console, text: str = "") -> None:
    """Print plain text with no markup or highlighting."""
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def render_summary(console: Console, summary: GainSummary) -> None:
    _out(console, "📊 RTK Token Savings")
    _out(console, HEAVY_RULE * 40)
    _out(console)
    _out(console, f"Total commands:    {summary.total_commands}")
    _out(console, f"Input tokens:      {format_tokens(summary.total_input)}")
    _out(console, f"Output tokens:     {format_tokens(summary.total_output)}")
    _out(
        console,
        f"Tokens saved:      {format_tokens(summary.total_saved)} "
        f"({summary.avg_savings_pct:.1f}%)",
    )
    _out(console)
    render_by_command(console, summary.by_command)


def render_by_command(console: Console, ranking: Sequence[CommandRanking]) -> None:
    if not ranking:
        return
    _out(console, "By Command:")
    _out(console, LIGHT_RULE * 40)
    _out(console, f"{'Command':<20} {'Count':>6} {'Saved':>10} {'Avg%':>8}")
    for entry in ranking:
        name = truncate(entry.name, 18, 15)
        _out(
            console,
            f"{name:<20} {entry.count:>6} {format_tokens(entry.saved_sum):>10} "
            f"{entry.mean_pct:>7.1f}%",
        )
    _out(console)


def render_graph(console: Console, series: Sequence[DailySavings]) -> None:
    """ASCII bar graph of saved tokens per day."""
    if not series:
        return
    _out(console, "Daily Savings (last 30 days):")
    _out(console, LIGHT_RULE * 40)

    max_value = max(point.saved for point in series)
    for point in series:
        label = point.date[5:10] if len(point.date) >= 10 else point.date
        bar_len = int(point.saved / max_value * GRAPH_WIDTH) if max_value > 0 else 0
        bar = "█" * bar_len + " " * (GRAPH_WIDTH - bar_len)
        _out(console, f"{label} │{bar} {format_tokens(point.saved)}")
    _out(console)


def render_history(console: Console, records: Sequence[CommandRecord]) -> None:
    if not records:
        return
    _out(console, "Recent Commands:")
    _out(console, LIGHT_RULE * 40)
    for record in records:
        when = record.timestamp.strftime("%m-%d %H:%M")
        name = truncate(record.rtk_cmd, 25, 22)
        _out(
            console,
            f"{when} {name:<25} -{record.savings_pct:.0f}% "
            f"({format_tokens(record.saved_tokens)})",
        )
    _out(console)


def render_quota(console: Console, total_saved: int, tier: str) -> None:
    """Lifetime savings as a share of an estimated monthly subscription quota."""
    quota_tokens, tier_name = QUOTA_TIERS.get(tier, QUOTA_TIERS["pro"])
    quota_pct = total_saved / quota_tokens * 100.0

    _out(console, "Monthly Quota Analysis:")
    _out(console, LIGHT_RULE * 40)
    _out(console, f"Subscription tier:        {tier_name}")
    _out(console, f"Estimated monthly quota:  {format_tokens(quota_tokens)}")
    _out(console, f"Tokens saved (lifetime):  {format_tokens(total_saved)}")
    _out(console, f"Quota preserved:          {quota_pct:.1f}%")
    _out(console)
    _out(console, "Note: Heuristic estimate based on ~44K tokens/5h (Pro baseline)")
    _out(console, "      Actual limits use rolling 5-hour windows, not monthly caps.")


def _render_breakdown(
    console: Console,
    title: str,
    label_header: str,
    label_width: int,
    rule_width: int,
    rows: List[Tuple[str, int, int, int, int, float]],
) -> None:
    """Table of (label, commands, input, output, saved, pct) with a TOTAL row."""
    _out(console)
    _out(console, title)
    _out(console, HEAVY_RULE * rule_width)
    _out(
        console,
        f"{label_header:<{label_width}} {'Cmds':>7} {'Input':>10} "
        f"{'Output':>10} {'Saved':>10} {'Save%':>7}",
    )
    _out(console, LIGHT_RULE * rule_width)

    for row in rows:
        _out(console, _breakdown_line(label_width, *row))

    total_cmds = sum(row[1] for row in rows)
    total_input = sum(row[2] for row in rows)
    total_output = sum(row[3] for row in rows)
    total_saved = sum(row[4] for row in rows)

    _out(console, LIGHT_RULE * rule_width)
    _out(
        console,
        _breakdown_line(
            label_width, "TOTAL", total_cmds, total_input, total_output,
            total_saved, savings_percent(total_saved, total_input),
        ),
    )
    _out(console)


def _breakdown_line(
    label_width: int,
    label: str,
    commands: int,
    input_tokens: int,
    output_tokens: int,
    saved_tokens: int,
    pct: float,
) -> str:
    return (
        f"{label:<{label_width}} {commands:>7} {format_tokens(input_tokens):>10} "
        f"{format_tokens(output_tokens):>10} {format_tokens(saved_tokens):>10} {pct:>6.1f}%"
    )


def render_daily(console: Console, days: Sequence[DayStats]) -> None:
    if not days:
        _out(console, "No daily data available.")
        return
    rows = [
        (d.date, d.commands, d.input_tokens, d.output_tokens, d.saved_tokens, d.savings_pct)
        for d in days
    ]
    _render_breakdown(console, f"📅 Daily Breakdown ({len(days)} days)", "Date", 12, 64, rows)


def render_weekly(console: Console, weeks: Sequence[WeekStats]) -> None:
    if not weeks:
        _out(console, "No weekly data available.")
        return
    rows = [
        (
            f"{w.week_start[5:]} → {w.week_end[5:]}",
            w.commands, w.input_tokens, w.output_tokens, w.saved_tokens, w.savings_pct,
        )
        for w in weeks
    ]
    _render_breakdown(console, f"📊 Weekly Breakdown ({len(weeks)} weeks)", "Week", 22, 72, rows)


def render_monthly(console: Console, months: Sequence[MonthStats]) -> None:
    if not months:
        _out(console, "No monthly data available.")
        return
    rows = [
        (m.month, m.commands, m.input_tokens, m.output_tokens, m.saved_tokens, m.savings_pct)
        for m in months
    ]
    _render_breakdown(console, f"📆 Monthly Breakdown ({len(months)} months)", "Month", 10, 64, rows)


def render_compact(console: Console, summary: GainSummary) -> None:
    """One-line summary for status bars and prompts."""
    if summary.total_commands == 0:
        _out(console, "0 cmds tracked")
        return
    _out(
        console,
        f"{summary.total_commands}cmds {format_tokens(summary.total_input)}in "
        f"{format_tokens(summary.total_output)}out {format_tokens(summary.total_saved)}saved "
        f"({summary.avg_savings_pct:.0f}%)",
    )
