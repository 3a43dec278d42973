"""
CLI interface for rtk-gain.

Provides command-line access to token savings reports.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape

from rtk_gain.cli import render
from rtk_gain.config.loader import resolve_config
from rtk_gain.core.export import export_csv, export_json
from rtk_gain.sdk.tracker import GainTracker, track_tokens
from rtk_gain.storage.errors import TrackingError

app = typer.Typer()
console = Console()
err_console = Console(stderr=True)

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}

DB_OPTION_HELP = "History database path (defaults to <data dir>/rtk/history.db)"


def _configure_logging(verbose: int) -> None:
    logging.basicConfig(
        level=LOG_LEVELS.get(verbose, logging.DEBUG),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _open_tracker(db: Optional[Path], config: Optional[Path]) -> GainTracker:
    return GainTracker.open(db_path=db, config=resolve_config(config))


def _fail(error: Exception) -> None:
    err_console.print(f"[red]Error:[/] {escape(str(error))}", highlight=False)
    sys.exit(EXIT_CODE_FAIL)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Increase log verbosity"
    ),
):
    """rtk-gain: token savings tracking."""
    _configure_logging(verbose)
    if ctx.invoked_subcommand is None:
        console.print("rtk-gain - Use --help to see available commands")


@app.command()
def init(
    db: Optional[Path] = typer.Option(None, "--db", help=DB_OPTION_HELP),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Create the history database if it does not exist."""
    try:
        tracker = _open_tracker(db, config)
        tracker.repository.initialize_schema()
        console.print(f"[green]✓[/] History database ready at {tracker.repository.db_path}")
        sys.exit(EXIT_CODE_PASS)
    except (TrackingError, ValueError, FileNotFoundError, yaml.YAMLError) as e:
        _fail(e)


@app.command()
def gain(
    graph: bool = typer.Option(False, "--graph", "-g", help="Show daily savings graph"),
    history: bool = typer.Option(False, "--history", "-H", help="Show recent commands"),
    quota: bool = typer.Option(False, "--quota", "-q", help="Show monthly quota analysis"),
    tier: str = typer.Option("pro", "--tier", "-t", help="Subscription tier: pro, 5x, 20x"),
    daily: bool = typer.Option(False, "--daily", "-d", help="Daily breakdown"),
    weekly: bool = typer.Option(False, "--weekly", "-w", help="Weekly breakdown"),
    monthly: bool = typer.Option(False, "--monthly", "-m", help="Monthly breakdown"),
    all_views: bool = typer.Option(False, "--all", "-a", help="All breakdowns"),
    output_format: str = typer.Option("text", "--format", "-f", help="text, json or csv"),
    db: Optional[Path] = typer.Option(None, "--db", help=DB_OPTION_HELP),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """
    Show token savings.

    Without a breakdown flag prints the summary and by-command ranking.
    --daily/--weekly/--monthly/--all print breakdown tables instead.
    """
    try:
        tracker = _open_tracker(db, config)
        show_daily = all_views or daily
        show_weekly = all_views or weekly
        show_monthly = all_views or monthly

        if output_format == "json":
            typer.echo(export_json(tracker, show_daily, show_weekly, show_monthly))
            sys.exit(EXIT_CODE_PASS)
        if output_format == "csv":
            typer.echo(export_csv(tracker, show_daily, show_weekly, show_monthly), nl=False)
            sys.exit(EXIT_CODE_PASS)

        summary = tracker.summary()
        if summary.total_commands == 0:
            console.print("No tracking data yet.")
            console.print("Run some rtk commands to start tracking savings.")
            sys.exit(EXIT_CODE_PASS)

        if not (show_daily or show_weekly or show_monthly):
            render.render_summary(console, summary)
            if graph:
                render.render_graph(console, summary.by_day)
            if history:
                render.render_history(console, tracker.recent(10))
            if quota:
                render.render_quota(console, summary.total_saved, tier)
            sys.exit(EXIT_CODE_PASS)

        if show_daily:
            render.render_daily(console, tracker.all_days())
        if show_weekly:
            render.render_weekly(console, tracker.by_week())
        if show_monthly:
            render.render_monthly(console, tracker.by_month())
        sys.exit(EXIT_CODE_PASS)

    except (TrackingError, ValueError, FileNotFoundError, yaml.YAMLError) as e:
        _fail(e)


@app.command()
def compact(
    db: Optional[Path] = typer.Option(None, "--db", help=DB_OPTION_HELP),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """One-line savings summary."""
    try:
        render.render_compact(console, _open_tracker(db, config).summary())
        sys.exit(EXIT_CODE_PASS)
    except (TrackingError, ValueError, FileNotFoundError, yaml.YAMLError) as e:
        _fail(e)


@app.command()
def track(
    original_cmd: str = typer.Argument(..., help="Equivalent standard command"),
    rtk_cmd: str = typer.Argument(..., help="Optimized command that ran"),
    input_tokens: int = typer.Argument(..., help="Baseline token estimate"),
    output_tokens: int = typer.Argument(..., help="Tokens actually produced"),
    db: Optional[Path] = typer.Option(None, "--db", help=DB_OPTION_HELP),
):
    """Record one command (best-effort, never fails)."""
    track_tokens(original_cmd, rtk_cmd, input_tokens, output_tokens, db_path=db)
    sys.exit(EXIT_CODE_PASS)


if __name__ == "__main__":
    app()
