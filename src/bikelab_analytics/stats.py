"""Aggregation: sums, means, medians and extrema over activity subsets."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from bikelab_analytics.activities import Activity, Selector


def round_half_away(value: float, digits: int = 1) -> float:
    """Round half away from zero, the way fixed-point display formatting does."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_int(value: float) -> int:
    return int(round_half_away(value, 0))


def mean(values: Iterable[float]) -> float:
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)


def median(values: Iterable[float]) -> float:
    """Median of the values; 0 for an empty input."""
    ordered = sorted(values)
    if not ordered:
        return 0
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def collect(activities: Iterable[Activity], selector: Selector) -> list[float]:
    """Selector values for the activities that have them."""
    values = []
    for a in activities:
        value = selector(a)
        if value is not None:
            values.append(value)
    return values


@dataclass(frozen=True)
class Stats:
    avg: float
    min: float
    max: float
    count: int
    sum: float
    median: float

    def to_dict(self, digits: int = 1) -> dict[str, Any]:
        return {
            "avg": round_half_away(self.avg, digits),
            "min": round_half_away(self.min, digits),
            "max": round_half_away(self.max, digits),
            "count": self.count,
            "sum": round_half_away(self.sum, digits),
            "median": round_half_away(self.median, digits),
        }


EMPTY_STATS = Stats(avg=0.0, min=0.0, max=0.0, count=0, sum=0.0, median=0.0)


def compute_stats(activities: Iterable[Activity], selector: Selector) -> Stats:
    """Summary statistics of one metric; activities lacking it are ignored."""
    values = collect(activities, selector)
    if not values:
        return EMPTY_STATS
    total = sum(values)
    return Stats(
        avg=total / len(values),
        min=min(values),
        max=max(values),
        count=len(values),
        sum=total,
        median=median(values),
    )


@dataclass
class Bucket:
    """Running aggregate of one metric inside a bucket."""

    sum: float = 0.0
    count: int = 0
    max: float = 0.0

    def add(self, value: float) -> None:
        if self.count == 0 or value > self.max:
            self.max = value
        self.sum += value
        self.count += 1

    @property
    def mean(self) -> float:
        return self.sum / self.count if self.count else 0.0


def aggregate(groups: dict[str, list[Activity]], selector: Selector) -> dict[str, Bucket]:
    """Fold each group into a Bucket; groups with no usable value are omitted."""
    buckets: dict[str, Bucket] = {}
    for key, members in groups.items():
        bucket = Bucket()
        for value in collect(members, selector):
            bucket.add(value)
        if bucket.count:
            buckets[key] = bucket
    return buckets
