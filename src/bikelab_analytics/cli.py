"""CLI interface for BikeLab ride analytics."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from bikelab_analytics import __version__
from bikelab_analytics.achievements import (
    AchievementConfigError,
    evaluate_achievements,
    evaluate_progress,
    load_definitions,
)
from bikelab_analytics.activities import METRIC_UNITS, METRICS, sort_by_date
from bikelab_analytics.advice import analyze_activity
from bikelab_analytics.bucketing import within_last
from bikelab_analytics.feed import FeedError, load_activities
from bikelab_analytics.goals import (
    WINDOWS,
    goal_progress,
    heart_rate_zone_minutes,
    period_summary,
    plan_fact,
    rides_per_week,
)
from bikelab_analytics.plans import plan_description, training_plan
from bikelab_analytics.stats import compute_stats, round_half_away
from bikelab_analytics.trends import (
    cadence_vs_speed,
    heart_rate_vs_speed,
    monthly_speed,
    monthly_trend,
    speed_by_terrain,
    weekly_trend,
)

app = typer.Typer(
    name="bikelab",
    help="Cycling analytics, goal progress and training advice from a Strava activity feed.",
    no_args_is_help=True,
)

console = Console()

FileOption = typer.Option(None, "--file", "-f", help="Activity feed JSON (defaults to $BIKELAB_ACTIVITIES).")

GOAL_TITLES = {
    "flat_speed": "Flat speed",
    "hill_speed": "Hill speed",
    "pulse": "Heart rate zones",
    "long_rides": "Long rides",
    "intervals": "Intervals",
    "recovery": "Recovery",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"bikelab {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit.", callback=version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log feed and table loading."),
) -> None:
    """BikeLab - ride analytics and training advice."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


def _load(file: Optional[Path]) -> list[dict[str, Any]]:
    """Load the feed, exiting with an error message on failure."""
    try:
        return load_activities(file)
    except FeedError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


def _metric(name: str):
    if name not in METRICS:
        console.print(f"[red]Unknown metric: {name}. Use one of: {', '.join(METRICS)}.[/red]")
        raise typer.Exit(code=1)
    return METRICS[name]


def _color_for_pct(pct: float) -> str:
    if pct >= 80:
        return "green"
    if pct >= 50:
        return "yellow"
    return "red"


def _bar(pct: int, width: int = 20) -> str:
    filled = round(width * min(pct, 100) / 100)
    return f"[{_color_for_pct(pct)}]{'█' * filled}[/]{'░' * (width - filled)}"


@app.command()
def stats(
    metric: str = typer.Option("speed", "--metric", "-m", help=f"One of: {', '.join(METRICS)}."),
    days: Optional[int] = typer.Option(None, "--days", "-d", min=1, help="Only rides from the trailing N days."),
    file: Optional[Path] = FileOption,
) -> None:
    """Show average, min, max and median of one metric."""
    selector = _metric(metric)
    rides = _load(file)
    if days:
        rides = within_last(rides, days)

    result = compute_stats(rides, selector)
    if not result.count:
        console.print("Not enough data for this metric.")
        return

    unit = METRIC_UNITS[metric]
    digits = 0 if metric == "elevation" else 1
    table = Table(title=f"{metric.replace('_', ' ').title()} ({unit})")
    table.add_column("Rides", justify="right")
    table.add_column("Average", justify="right")
    table.add_column("Median", justify="right")
    table.add_column("Min", justify="right")
    table.add_column("Max", justify="right")
    table.add_row(
        str(result.count),
        f"{round_half_away(result.avg, digits):.{digits}f}",
        f"{round_half_away(result.median, digits):.{digits}f}",
        f"{round_half_away(result.min, digits):.{digits}f}",
        f"{round_half_away(result.max, digits):.{digits}f}",
    )
    console.print(table)


@app.command()
def trend(
    metric: str = typer.Option("speed", "--metric", "-m", help=f"One of: {', '.join(METRICS)}."),
    by: str = typer.Option("week", "--by", help="Bucket by 'week' or 'month'."),
    limit: int = typer.Option(12, "--limit", "-n", min=1, help="Keep the latest N buckets."),
    reducer: str = typer.Option("mean", "--reducer", "-r", help="mean, sum, max or count."),
    file: Optional[Path] = FileOption,
) -> None:
    """Show a weekly or monthly trend of one metric."""
    selector = _metric(metric)
    if by not in ("week", "month"):
        console.print("[red]--by must be 'week' or 'month'.[/red]")
        raise typer.Exit(code=1)
    rides = _load(file)

    build = weekly_trend if by == "week" else monthly_trend
    try:
        series = build(rides, selector, limit=limit, reducer=reducer)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    if series.is_placeholder():
        console.print("Not enough data for a trend.")
        return

    table = Table(title=f"{metric.replace('_', ' ').title()} by {by} ({reducer}, {METRIC_UNITS[metric]})")
    table.add_column(by.title(), style="cyan")
    table.add_column("Value", justify="right")
    for label, value in zip(series.labels, series.values):
        table.add_row(label, f"{value:.1f}")
    console.print(table)


@app.command()
def compare(
    pair: str = typer.Option("cadence", "--pair", "-p", help="'cadence' or 'heart_rate' against speed."),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Latest N rides."),
    file: Optional[Path] = FileOption,
) -> None:
    """Compare cadence or heart rate with speed ride by ride."""
    builders = {"cadence": cadence_vs_speed, "heart_rate": heart_rate_vs_speed}
    if pair not in builders:
        console.print("[red]--pair must be 'cadence' or 'heart_rate'.[/red]")
        raise typer.Exit(code=1)
    series = builders[pair](_load(file), limit=limit)

    table = Table(title=f"{pair.replace('_', ' ').title()} vs speed")
    table.add_column("Date", style="cyan")
    table.add_column(pair.replace("_", " ").title(), justify="right")
    table.add_column("Speed (km/h)", justify="right")
    for label, first, second in zip(series.labels, series.first, series.second):
        table.add_row(label or "--", f"{first:.1f}", f"{second:.1f}")
    console.print(table)


@app.command()
def terrain(
    weeks: int = typer.Option(16, "--weeks", "-w", min=1, help="Weeks to show per terrain."),
    months: int = typer.Option(12, "--months", min=1, help="Months of speed history."),
    file: Optional[Path] = FileOption,
) -> None:
    """Show weekly speed on flat vs hilly rides and the monthly speed history."""
    rides = _load(file)

    for kind, series in speed_by_terrain(rides, weeks=weeks).items():
        table = Table(title=f"{kind.value.title()} rides: avg speed by ISO week")
        table.add_column("Week", style="cyan")
        table.add_column("km/h", justify="right")
        for label, value in zip(series.labels, series.values):
            table.add_row(label or "--", f"{value:.1f}")
        console.print(table)

    history = monthly_speed(rides, months=months)
    table = Table(title="Monthly speed")
    table.add_column("Month", style="cyan")
    table.add_column("Avg km/h", justify="right")
    table.add_column("Max km/h", justify="right")
    for label, avg, top in zip(history.labels, history.first, history.second):
        table.add_row(label or "--", f"{avg:.1f}", f"{top:.1f}")
    console.print(table)


@app.command()
def goals(
    window: str = typer.Option("4w", "--window", help=f"One of: {', '.join(WINDOWS)}."),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    file: Optional[Path] = FileOption,
) -> None:
    """Show progress towards the standing training goals."""
    if window not in WINDOWS:
        console.print(f"[red]Unknown window: {window}. Use one of: {', '.join(WINDOWS)}.[/red]")
        raise typer.Exit(code=1)
    progress = goal_progress(_load(file), window=window)

    if output_json:
        typer.echo(json.dumps(progress.to_dict(), indent=2, default=str))
        return

    table = Table(title=f"Goal progress ({window})")
    table.add_column("Goal", style="bold")
    table.add_column("Progress")
    table.add_column("%", justify="right")
    table.add_column("Detail")
    for name, score in progress.scores.items():
        table.add_row(GOAL_TITLES.get(name, name), _bar(score.percentage), str(score.percentage), score.label)
    console.print(table)


@app.command()
def advice(
    activity_id: Optional[str] = typer.Argument(None, help="Activity id; defaults to the latest ride."),
    file: Optional[Path] = FileOption,
) -> None:
    """Classify a ride and list training advice for it."""
    rides = _load(file)
    if activity_id is None:
        dated = sort_by_date(rides, newest_first=True)
        ride = dated[0] if dated else None
    else:
        ride = next((a for a in rides if str(a.get("id")) == activity_id), None)

    if ride is None:
        console.print("[red]Ride not found.[/red]" if activity_id else "No rides in the feed.")
        raise typer.Exit(code=1 if activity_id else 0)

    result = analyze_activity(ride)
    lines = [f"[bold]Type:[/bold] {result['type'].value}", ""]
    for item in result["advice"]:
        lines.append(f"[bold]{item.title}[/bold]")
        lines.append(f"  {item.body}")
    title = str(ride.get("name") or f"Ride {ride.get('id', '')}")
    console.print(Panel("\n".join(lines), title=title))


@app.command()
def plan(
    level: str = typer.Option("intermediate", "--level", "-l", help="beginner, intermediate or advanced."),
    hours: int = typer.Option(5, "--hours", min=1, max=10, help="Hours available per week (1-10)."),
    rides_per_week_opt: Optional[int] = typer.Option(
        None, "--rides-per-week", min=1, max=7, help="Preferred rides per week."
    ),
    file: Optional[Path] = FileOption,
) -> None:
    """Show 4-week plan targets against the last 28 days."""
    targets = training_plan(level, hours, rides_per_week_opt)
    rides = _load(file)
    result = plan_fact(rides, plan=targets)
    weekly = rides_per_week(rides)

    table = Table(title=plan_description(targets))
    table.add_column("Target", style="bold")
    table.add_column("Plan", justify="right")
    table.add_column("Fact", justify="right")
    table.add_column("%", justify="right")
    names = {"rides": "Rides", "km": "Volume, km", "long": "Long rides", "intervals": "Intervals"}
    for key, label in names.items():
        fact = result["fact"][key]
        pct = result["pct"][key]
        table.add_row(
            label,
            str(result["plan"][key]),
            f"{fact:.0f}" if isinstance(fact, float) else str(fact),
            f"[{_color_for_pct(pct)}]{pct}[/]",
        )
    console.print(table)
    console.print(f"Rides per week: {weekly['avg']:.1f} ({weekly['pct']}% of goal)")


@app.command()
def zones(
    days: int = typer.Option(56, "--days", "-d", min=1, help="Trailing days to include."),
    file: Optional[Path] = FileOption,
) -> None:
    """Show moving time per heart-rate zone band."""
    minutes = heart_rate_zone_minutes(_load(file), days=days)
    total = minutes["total"]
    if not total:
        console.print("No heart rate data available for analysis.")
        return

    labels = {"Z2": "Z2 (109-126)", "Z3": "Z3 (127-144)", "Z4": "Z4 (145-162)", "other": "Other"}
    table = Table(title=f"Heart-rate zones (last {days} days)")
    table.add_column("Zone", style="bold")
    table.add_column("Minutes", justify="right")
    table.add_column("Share", justify="right")
    for key, label in labels.items():
        share = minutes[key] / total * 100
        table.add_row(label, f"{minutes[key]:.0f}", f"{share:.1f}%")
    console.print(table)


@app.command()
def periods(
    count: int = typer.Option(6, "--count", "-n", min=1, help="Number of recent periods."),
    file: Optional[Path] = FileOption,
) -> None:
    """Show goal completion per 4-week period."""
    summary = period_summary(_load(file))[:count]
    if not summary:
        console.print("Not enough data for a period summary.")
        return

    table = Table(title="Goal completion by 4-week period")
    table.add_column("Period", style="cyan")
    table.add_column("Rides", justify="right")
    table.add_column("Average", justify="right")
    table.add_column("Flat / Hill / HR / Long / Int / Easy")
    for entry in summary:
        span = f"{entry['start']} - {entry['end']}"
        avg = entry["avg"]
        table.add_row(
            span,
            str(entry["rides"]),
            f"[{_color_for_pct(avg)}]{avg}%[/]",
            "% / ".join(str(s) for s in entry["scores"]) + "%",
        )
    console.print(table)


@app.command()
def achievements(
    definitions_path: Optional[Path] = typer.Option(None, "--definitions", help="Achievement table JSON."),
    max_hr: Optional[float] = typer.Option(None, "--max-hr", min=1, help="Max heart rate for effort achievements."),
    output_json: bool = typer.Option(False, "--json", help="Output as JSON"),
    file: Optional[Path] = FileOption,
) -> None:
    """Show the highest unlocked tier per achievement category."""
    try:
        definitions = load_definitions(definitions_path)
    except AchievementConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    rides = _load(file)
    tiers = evaluate_achievements(rides, definitions, max_hr=max_hr)
    progress = evaluate_progress(rides, definitions, max_hr=max_hr)

    if output_json:
        report = {
            "tiers": {category: tier.value if tier else None for category, tier in tiers.items()},
            "unlocked": [p.definition.key for p in progress if p.unlocked],
        }
        typer.echo(json.dumps(report, indent=2))
        return

    unlocked = {}
    for p in progress:
        if p.unlocked:
            unlocked[p.definition.category] = unlocked.get(p.definition.category, 0) + 1

    table = Table(title="Achievements")
    table.add_column("Category", style="bold")
    table.add_column("Tier")
    table.add_column("Unlocked", justify="right")
    colors = {"silver": "white", "rare_steel": "cyan", "gold": "yellow"}
    for category, tier in tiers.items():
        tier_text = f"[{colors[tier.value]}]{tier.value.replace('_', ' ')}[/]" if tier else "--"
        table.add_row(category.replace("_", " ").title(), tier_text, str(unlocked.get(category, 0)))
    console.print(table)
