"""Partition activities by time window, terrain class and recency."""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum
from typing import Callable, Iterable

from bikelab_analytics.activities import (
    Activity,
    elevation_gain,
    field_value,
    sort_by_date,
    start_day,
)

# Speed-vs-terrain view: metres climbed per kilometre ridden.
TERRAIN_FLAT_MAX_M_PER_KM = 10.0
TERRAIN_HILL_MIN_M_PER_KM = 10.0
# Goal-progress view: metres climbed per metre ridden.
GOAL_FLAT_MAX_GAIN_RATIO = 0.005
GOAL_HILL_MIN_GAIN_RATIO = 0.02

PERIOD_DAYS = 28
PERIOD_MAX_RIDES = 28


class Terrain(str, Enum):
    FLAT = "flat"
    HILL = "hill"


def iso_week_key(day: date) -> str:
    """ISO 8601 week key, e.g. 2021-01-01 -> '2020-W53'."""
    iso_year, week, _ = day.isocalendar()
    return f"{iso_year}-W{week:02d}"


def month_key(day: date) -> str:
    return f"{day.year}-{day.month:02d}"


def week_of(activity: Activity) -> str | None:
    day = start_day(activity)
    return iso_week_key(day) if day else None


def month_of(activity: Activity) -> str | None:
    day = start_day(activity)
    return month_key(day) if day else None


def elevation_per_km(activity: Activity) -> float | None:
    """Elevation gain per kilometre, None when it cannot be computed."""
    gain = elevation_gain(activity)
    distance = field_value(activity, "distance")
    if gain is None or not distance or distance <= 0:
        return None
    return gain / (distance / 1000)


def gain_ratio(activity: Activity) -> float | None:
    """Elevation gain as a fraction of distance."""
    gain = elevation_gain(activity)
    distance = field_value(activity, "distance")
    if gain is None or not distance or distance <= 0:
        return None
    return gain / distance


def terrain_of(
    activity: Activity,
    flat_below: float = TERRAIN_FLAT_MAX_M_PER_KM,
    hill_above: float = TERRAIN_HILL_MIN_M_PER_KM,
) -> Terrain | None:
    """Classify by metres climbed per km; a ride exactly on the boundary is neither."""
    ratio = elevation_per_km(activity)
    if ratio is None:
        return None
    if ratio < flat_below:
        return Terrain.FLAT
    if ratio > hill_above:
        return Terrain.HILL
    return None


def group_by(
    activities: Iterable[Activity],
    key_fn: Callable[[Activity], str | None],
) -> dict[str, list[Activity]]:
    """Group activities by key; activities without a key are skipped."""
    groups: dict[str, list[Activity]] = {}
    for a in activities:
        key = key_fn(a)
        if key is None:
            continue
        groups.setdefault(key, []).append(a)
    return groups


def within_last(
    activities: Iterable[Activity],
    days: int,
    today: date | None = None,
) -> list[Activity]:
    """Keep activities dated strictly after `today - days`."""
    if days <= 0:
        raise ValueError("days must be a positive integer")
    today = today or date.today()
    cutoff = today - timedelta(days=days)
    recent = []
    for a in activities:
        day = start_day(a)
        if day is not None and cutoff < day <= today:
            recent.append(a)
    return recent


def split_into_periods(
    activities: Iterable[Activity],
    days: int = PERIOD_DAYS,
    max_size: int = PERIOD_MAX_RIDES,
) -> list[list[Activity]]:
    """Split rides into consecutive periods, newest period first.

    A period closes once it holds `max_size` rides or the next ride is more
    than `days - 1` days older than the period's first ride.
    """
    periods: list[list[Activity]] = []
    current: list[Activity] = []
    period_start: date | None = None

    for a in sort_by_date(activities, newest_first=True):
        day = start_day(a)
        if day is None:
            continue
        if current and period_start is not None and (
            len(current) >= max_size or (period_start - day).days > days - 1
        ):
            periods.append(current)
            current = []
            period_start = day
        if period_start is None:
            period_start = day
        current.append(a)

    if current:
        periods.append(current)
    return periods
