"""Trend series: ordered label/value pairs ready for charting."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable

from bikelab_analytics.activities import (
    Activity,
    Selector,
    cadence,
    heart_rate,
    max_heart_rate,
    max_speed_kmh,
    sort_by_date,
    speed_kmh,
    start_day,
)
from bikelab_analytics.bucketing import (
    Terrain,
    group_by,
    month_of,
    terrain_of,
    week_of,
)
from bikelab_analytics.stats import Bucket, aggregate, round_half_away

REDUCERS: dict[str, Callable[[Bucket], float]] = {
    "mean": lambda b: b.mean,
    "sum": lambda b: b.sum,
    "max": lambda b: b.max,
    "count": lambda b: float(b.count),
}

PAIRED_LIMIT = 20
MONTHLY_SPEED_MONTHS = 12
TERRAIN_WEEKS = 16


@dataclass(frozen=True)
class Series:
    labels: list[str] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    def is_placeholder(self) -> bool:
        return self.labels == [""] and self.values == [0]

    def to_dict(self) -> dict[str, list]:
        return {"labels": list(self.labels), "values": list(self.values)}


@dataclass(frozen=True)
class PairedSeries:
    """Two value series sharing one label axis."""

    labels: list[str] = field(default_factory=list)
    first: list[float] = field(default_factory=list)
    second: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, list]:
        return {"labels": list(self.labels), "first": list(self.first), "second": list(self.second)}


def placeholder() -> Series:
    """Series handed to charts when nothing qualifies."""
    return Series(labels=[""], values=[0])


def compute_trend(
    activities: Iterable[Activity],
    bucket_key: Callable[[Activity], str | None],
    selector: Selector,
    limit: int | None = None,
    reducer: str = "mean",
    digits: int = 1,
) -> Series:
    """Bucket activities, reduce each bucket and order by key ascending.

    Bucket keys are fixed width, so a plain string sort is chronological.
    `limit` keeps only the most recent N buckets.
    """
    if reducer not in REDUCERS:
        raise ValueError(f"Unknown reducer: {reducer}")
    if limit is not None and limit <= 0:
        raise ValueError("limit must be a positive integer")

    buckets = aggregate(group_by(activities, bucket_key), selector)
    if not buckets:
        return placeholder()

    keys = sorted(buckets)
    if limit is not None:
        keys = keys[-limit:]
    reduce = REDUCERS[reducer]
    return Series(
        labels=keys,
        values=[round_half_away(reduce(buckets[k]), digits) for k in keys],
    )


def weekly_trend(
    activities: Iterable[Activity],
    selector: Selector,
    limit: int | None = None,
    reducer: str = "mean",
) -> Series:
    return compute_trend(activities, week_of, selector, limit=limit, reducer=reducer)


def monthly_trend(
    activities: Iterable[Activity],
    selector: Selector,
    limit: int | None = None,
    reducer: str = "mean",
) -> Series:
    return compute_trend(activities, month_of, selector, limit=limit, reducer=reducer)


def paired_trend(
    activities: Iterable[Activity],
    first: Selector,
    second: Selector,
    limit: int = PAIRED_LIMIT,
) -> PairedSeries:
    """Per-ride pairs of two metrics for the latest rides that have both.

    Both value lists are built from one filtered subset, so they always line
    up with the labels.
    """
    if limit <= 0:
        raise ValueError("limit must be a positive integer")

    complete = [
        a for a in sort_by_date(activities, newest_first=True)
        if first(a) is not None and second(a) is not None
    ]
    selected = list(reversed(complete[:limit]))
    if not selected:
        return PairedSeries(labels=[""], first=[0], second=[0])

    labels = []
    for a in selected:
        day = start_day(a)
        labels.append(day.strftime("%d.%m") if day else "")
    return PairedSeries(
        labels=labels,
        first=[round_half_away(first(a), 1) for a in selected],  # type: ignore[arg-type]
        second=[round_half_away(second(a), 1) for a in selected],  # type: ignore[arg-type]
    )


def cadence_vs_speed(activities: Iterable[Activity], limit: int = PAIRED_LIMIT) -> PairedSeries:
    return paired_trend(activities, cadence, speed_kmh, limit=limit)


def heart_rate_vs_speed(activities: Iterable[Activity], limit: int = PAIRED_LIMIT) -> PairedSeries:
    return paired_trend(activities, heart_rate, speed_kmh, limit=limit)


def monthly_speed(activities: Iterable[Activity], months: int = MONTHLY_SPEED_MONTHS) -> PairedSeries:
    """Average and top speed per month for the last `months` months with rides."""
    activities = list(activities)
    average = monthly_trend(activities, speed_kmh, limit=months)
    if average.is_placeholder():
        return PairedSeries(labels=[""], first=[0], second=[0])

    averaged = [a for a in activities if speed_kmh(a) is not None]
    top = monthly_trend(averaged, max_speed_kmh, reducer="max")
    top_by_month = dict(zip(top.labels, top.values))
    labels = [f"{key[5:7]}/{key[2:4]}" for key in average.labels]
    return PairedSeries(
        labels=labels,
        first=list(average.values),
        second=[top_by_month.get(key, 0.0) for key in average.labels],
    )


def speed_by_terrain(
    activities: Iterable[Activity],
    weeks: int = TERRAIN_WEEKS,
) -> dict[Terrain, Series]:
    """Weekly mean speed on flat and hilly rides, labelled by ISO week number."""
    activities = list(activities)
    result: dict[Terrain, Series] = {}
    for terrain in Terrain:
        subset = [a for a in activities if terrain_of(a) is terrain]
        series = weekly_trend(subset, speed_kmh, limit=weeks)
        if not series.is_placeholder():
            series = Series(labels=[k.split("-W")[1] for k in series.labels], values=series.values)
        result[terrain] = series
    return result


def weekly_max_heart_rate(activities: Iterable[Activity], limit: int | None = None) -> Series:
    return weekly_trend(activities, max_heart_rate, limit=limit, reducer="max")
