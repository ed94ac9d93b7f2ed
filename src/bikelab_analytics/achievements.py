"""Achievement evaluation against an injected definition table.

The thresholds live in a JSON table (see ``achievement_definitions.json``), so
the category x tier matrix can be swapped without touching the evaluator.
Each definition is scored by its condition:

- ``cumulative``: sum of a metric over all rides.
- ``single_ride``: best single-ride value of a metric.
- ``streak``: longest run of consecutive ISO weeks with 2+ rides.
- ``intensity``: average heart rate as a share of the rider's max HR, either
  the best ride or the number of rides above a share.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Any, Iterable

from bikelab_analytics.activities import (
    Activity,
    cadence,
    distance_km,
    elevation_gain,
    field_value,
    heart_rate,
    max_speed_kmh,
    speed_kmh,
    watts,
)
from bikelab_analytics.bucketing import elevation_per_km, group_by, week_of
from bikelab_analytics.goals import goal_percentage
from bikelab_analytics.stats import round_half_away

logger = logging.getLogger(__name__)

DEFAULT_DEFINITIONS = "achievement_definitions.json"

CATEGORIES = (
    "climbing",
    "distance",
    "speed",
    "power",
    "cadence",
    "effort",
    "consistency",
    "tempo_attack",
    "focus",
)

SINGLE_RIDE_METRICS = {
    "distance": distance_km,
    "elevation_gain": elevation_gain,
    "average_speed": speed_kmh,
    "max_speed": max_speed_kmh,
    "focus_max_speed": max_speed_kmh,
    "average_watts": watts,
    "average_cadence": cadence,
}
CUMULATIVE_METRICS = {
    "total_elevation_gain": elevation_gain,
    "total_distance": distance_km,
}
CONDITION_METRICS = {
    "cumulative": set(CUMULATIVE_METRICS),
    "single_ride": set(SINGLE_RIDE_METRICS),
    "streak": {"weekly_streak"},
    "intensity": {"hr_intensity", "hr_intensity_rides"},
}

# Top-speed records only count on flat rides so descents do not inflate them.
FLAT_SPEED_MIN_KM = 1.0
FLAT_SPEED_MAX_M_PER_KM = 10.0
# Descent-focus records need a ride with real climbing.
FOCUS_MIN_GAIN_M = 250.0
STREAK_MIN_RIDES = 2
DEFAULT_INTENSITY_SHARE = 0.80


class AchievementConfigError(ValueError):
    """Raised when an achievement definition table is malformed."""


class Tier(str, Enum):
    SILVER = "silver"
    RARE_STEEL = "rare_steel"
    GOLD = "gold"

    @property
    def rank(self) -> int:
        return list(Tier).index(self)


@dataclass(frozen=True)
class AchievementDefinition:
    key: str
    category: str
    tier: Tier
    name: str
    metric: str
    threshold: float
    condition: str
    description: str = ""
    min_duration: float = 0
    intensity_threshold: float | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "AchievementDefinition":
        try:
            definition = cls(
                key=str(raw["key"]),
                category=str(raw["category"]),
                tier=Tier(raw["tier"]),
                name=str(raw.get("name", raw["key"])),
                metric=str(raw["metric"]),
                threshold=float(raw["threshold"]),
                condition=str(raw["condition"]),
                description=str(raw.get("description", "")),
                min_duration=float(raw.get("min_duration", 0)),
                intensity_threshold=(
                    float(raw["intensity_threshold"]) if raw.get("intensity_threshold") is not None else None
                ),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise AchievementConfigError(f"Invalid achievement definition {raw!r}: {exc}") from exc

        allowed = CONDITION_METRICS.get(definition.condition)
        if allowed is None:
            raise AchievementConfigError(
                f"Achievement {definition.key}: unknown condition {definition.condition!r}"
            )
        if definition.metric not in allowed:
            raise AchievementConfigError(
                f"Achievement {definition.key}: metric {definition.metric!r} "
                f"does not fit condition {definition.condition!r}"
            )
        return definition


@dataclass(frozen=True)
class AchievementProgress:
    definition: AchievementDefinition
    current_value: float
    unlocked: bool
    trigger_activity_id: Any = None

    @property
    def progress_pct(self) -> int:
        return goal_percentage(self.current_value, self.definition.threshold)


def load_definitions(path: str | Path | None = None) -> list[AchievementDefinition]:
    """Load a definition table from JSON; the bundled table when no path is given."""
    try:
        if path is None:
            text = resources.files("bikelab_analytics").joinpath(DEFAULT_DEFINITIONS).read_text("utf-8")
        else:
            text = Path(path).read_text(encoding="utf-8")
        raw = json.loads(text)
    except OSError as exc:
        raise AchievementConfigError(f"Cannot read achievement definitions: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise AchievementConfigError(f"Achievement definitions are not valid JSON: {exc}") from exc

    if not isinstance(raw, list):
        raise AchievementConfigError("Achievement definitions must be a JSON array.")

    definitions = [AchievementDefinition.from_dict(item) for item in raw]
    keys = [d.key for d in definitions]
    if len(set(keys)) != len(keys):
        raise AchievementConfigError("Achievement keys must be unique.")
    logger.debug("Loaded %d achievement definitions from %s", len(definitions), path or DEFAULT_DEFINITIONS)
    return definitions


def _eligible(activity: Activity, metric: str) -> bool:
    if metric == "max_speed":
        dist = distance_km(activity)
        ratio = elevation_per_km(activity)
        return dist is not None and dist >= FLAT_SPEED_MIN_KM and ratio is not None and ratio < FLAT_SPEED_MAX_M_PER_KM
    if metric == "focus_max_speed":
        gain = elevation_gain(activity)
        return gain is not None and gain >= FOCUS_MIN_GAIN_M
    return True


def _cumulative(definition: AchievementDefinition, activities: list[Activity]) -> tuple[float, Any]:
    selector = CUMULATIVE_METRICS[definition.metric]
    total = 0.0
    for a in activities:
        value = selector(a)
        if value is not None:
            total += value
    return round_half_away(total, 2), None


def _single_ride(definition: AchievementDefinition, activities: list[Activity]) -> tuple[float, Any]:
    selector = SINGLE_RIDE_METRICS[definition.metric]
    best = 0.0
    best_id = None
    for a in activities:
        if not _eligible(a, definition.metric):
            continue
        value = selector(a)
        if value is not None and value > best:
            best = value
            best_id = a.get("id")
    return round_half_away(best, 2), best_id


def longest_weekly_streak(activities: Iterable[Activity], min_rides: int = STREAK_MIN_RIDES) -> int:
    """Longest run of consecutive ISO weeks with at least `min_rides` rides."""
    mondays = []
    for key, members in group_by(activities, week_of).items():
        if len(members) >= min_rides:
            year, week = key.split("-W")
            mondays.append(date.fromisocalendar(int(year), int(week), 1))
    mondays.sort()

    longest = 0
    current = 0
    previous: date | None = None
    for monday in mondays:
        if previous is not None and monday - previous == timedelta(weeks=1):
            current += 1
        else:
            current = 1
        longest = max(longest, current)
        previous = monday
    return longest


def _intensity(
    definition: AchievementDefinition,
    activities: list[Activity],
    max_hr: float | None,
) -> tuple[float, Any]:
    if not max_hr or max_hr <= 0:
        return 0.0, None

    if definition.metric == "hr_intensity_rides":
        share = definition.intensity_threshold or DEFAULT_INTENSITY_SHARE
        count = 0
        for a in activities:
            hr = heart_rate(a)
            if hr is not None and hr / max_hr >= share:
                count += 1
        return float(count), None

    best = 0.0
    best_id = None
    for a in activities:
        hr = heart_rate(a)
        if hr is None:
            continue
        if definition.min_duration > 0:
            duration = field_value(a, "moving_time")
            if duration is None or duration < definition.min_duration:
                continue
        intensity = hr / max_hr
        if intensity > best:
            best = intensity
            best_id = a.get("id")
    return round_half_away(best, 3), best_id


def evaluate_progress(
    activities: Iterable[Activity],
    definitions: Iterable[AchievementDefinition],
    max_hr: float | None = None,
) -> list[AchievementProgress]:
    """Score every definition against the ride history."""
    activities = list(activities)
    progress = []
    for definition in definitions:
        if definition.condition == "cumulative":
            value, trigger = _cumulative(definition, activities)
        elif definition.condition == "single_ride":
            value, trigger = _single_ride(definition, activities)
        elif definition.condition == "streak":
            value, trigger = float(longest_weekly_streak(activities)), None
        else:
            value, trigger = _intensity(definition, activities, max_hr)

        unlocked = value >= definition.threshold
        progress.append(AchievementProgress(
            definition=definition,
            current_value=value,
            unlocked=unlocked,
            trigger_activity_id=trigger if unlocked else None,
        ))
    return progress


def evaluate_achievements(
    activities: Iterable[Activity],
    definitions: Iterable[AchievementDefinition] | None = None,
    max_hr: float | None = None,
) -> dict[str, Tier | None]:
    """Highest unlocked tier per category; None where nothing is unlocked."""
    if definitions is None:
        definitions = load_definitions()
    tiers: dict[str, Tier | None] = {category: None for category in CATEGORIES}
    for item in evaluate_progress(activities, definitions, max_hr=max_hr):
        category = item.definition.category
        best = tiers.get(category)
        if item.unlocked and (best is None or item.definition.tier.rank > best.rank):
            tiers[category] = item.definition.tier
        else:
            tiers.setdefault(category, None)
    return tiers
