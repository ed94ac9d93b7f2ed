"""Goal progress: map cohort medians and counts onto 0-100% scores."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, Iterable

from bikelab_analytics.activities import (
    Activity,
    distance_km,
    has_interval_marker,
    heart_rate,
    moving_hours,
    moving_minutes,
    speed_kmh,
    start_day,
)
from bikelab_analytics.bucketing import (
    GOAL_FLAT_MAX_GAIN_RATIO,
    GOAL_HILL_MIN_GAIN_RATIO,
    Terrain,
    gain_ratio,
    split_into_periods,
    within_last,
)
from bikelab_analytics.plans import training_plan
from bikelab_analytics.stats import collect, mean, median, round_half_away, round_int

FLAT_SPEED_GOAL_KMH = 30.0
HILL_SPEED_GOAL_KMH = 17.5
LONG_RIDE_GOAL = 4
INTERVAL_GOAL = 8
RECOVERY_GOAL = 4
PERIOD_COUNT_GOAL = 4
RIDES_PER_WEEK_GOAL = 4

FLAT_MIN_KM = 20.0
FLAT_MAX_KMH = 40.0
HILL_MIN_KM = 5.0
HILL_MAX_KMH = 20.0
LONG_RIDE_MIN_KM = 60.0
LONG_RIDE_MIN_HOURS = 2.5
RECOVERY_MAX_KM = 20.0
RECOVERY_MAX_KMH = 20.0
RECOVERY_MAX_HR = 125.0

# Heart-rate zone bands, lower bound inclusive.
Z2_FLOOR = 109.0
Z3_FLOOR = 127.0
Z4_FLOOR = 145.0
Z5_FLOOR = 163.0
FLAT_TARGET_ZONE = (Z2_FLOOR, Z4_FLOOR)
HILL_TARGET_ZONE = (Z4_FLOOR, Z5_FLOOR)

ZONE_MINUTES_DAYS = 56
PLAN_FACT_DAYS = 28

WINDOWS: dict[str, int | None] = {"4w": 28, "3m": 92, "year": 365, "all": None}
WINDOW_LABELS = {"4w": "in 4 weeks", "3m": "in 3 months", "year": "in a year", "all": "all time"}

NO_VALUE = "—"


@dataclass(frozen=True)
class GoalScore:
    percentage: int
    label: str

    def to_dict(self) -> dict[str, Any]:
        return {"percentage": self.percentage, "label": self.label}


@dataclass(frozen=True)
class GoalTarget:
    """A target for one measure of a cohort of rides."""

    name: str
    goal: float
    measure: Callable[[list[Activity]], float]
    rounding: str = "round"
    unit: str = ""


def goal_percentage(value: float, goal: float, rounding: str = "round") -> int:
    """Percentage of `goal` reached, clamped to 0-100."""
    if goal <= 0 or value <= 0:
        return 0
    pct = min(100.0, value / goal * 100)
    if rounding == "floor":
        return math.floor(pct)
    if rounding == "round":
        return round_int(pct)
    raise ValueError(f"Unknown rounding policy: {rounding}")


def count_goal(count: int, target: int) -> int:
    return goal_percentage(count, target, "round")


def compute_goal_score(activities: Iterable[Activity], target: GoalTarget) -> GoalScore:
    value = target.measure(list(activities))
    pct = goal_percentage(value, target.goal, target.rounding)
    unit = f" {target.unit}" if target.unit else ""
    return GoalScore(percentage=pct, label=f"{format_number(value)}{unit}")


def format_number(value: float, digits: int = 1) -> str:
    """Fixed-point text without a trailing '.0'; zero renders as a dash."""
    if not value:
        return NO_VALUE
    text = f"{round_half_away(value, digits):.{digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


# --- Cohorts ---

def is_flat_ride(activity: Activity) -> bool:
    ratio = gain_ratio(activity)
    dist = distance_km(activity)
    speed = speed_kmh(activity)
    return (
        ratio is not None and dist is not None and speed is not None
        and dist > FLAT_MIN_KM
        and ratio < GOAL_FLAT_MAX_GAIN_RATIO
        and speed < FLAT_MAX_KMH
    )


def is_hill_ride(activity: Activity) -> bool:
    ratio = gain_ratio(activity)
    dist = distance_km(activity)
    speed = speed_kmh(activity)
    return (
        ratio is not None and dist is not None and speed is not None
        and dist > HILL_MIN_KM
        and ratio > GOAL_HILL_MIN_GAIN_RATIO
        and speed < HILL_MAX_KMH
    )


def is_long_ride(activity: Activity) -> bool:
    dist = distance_km(activity)
    hours = moving_hours(activity)
    return (dist is not None and dist > LONG_RIDE_MIN_KM) or (
        hours is not None and hours > LONG_RIDE_MIN_HOURS
    )


def is_recovery_ride(activity: Activity) -> bool:
    dist = distance_km(activity)
    speed = speed_kmh(activity)
    hr = heart_rate(activity)
    return (
        (dist is not None and dist < RECOVERY_MAX_KM)
        or (speed is not None and speed < RECOVERY_MAX_KMH)
        or (hr is not None and hr < RECOVERY_MAX_HR)
    )


def is_easy_ride(activity: Activity) -> bool:
    dist = distance_km(activity)
    speed = speed_kmh(activity)
    return dist is not None and speed is not None and dist < RECOVERY_MAX_KM and speed < RECOVERY_MAX_KMH


def _median_speed(cohort: Callable[[Activity], bool]) -> Callable[[list[Activity]], float]:
    def measure(activities: list[Activity]) -> float:
        return median(collect([a for a in activities if cohort(a)], speed_kmh))

    return measure


def _count(cohort: Callable[[Activity], bool]) -> Callable[[list[Activity]], float]:
    def measure(activities: list[Activity]) -> float:
        return sum(1 for a in activities if cohort(a))

    return measure


FLAT_SPEED = GoalTarget("flat_speed", FLAT_SPEED_GOAL_KMH, _median_speed(is_flat_ride), unit="km/h")
HILL_SPEED = GoalTarget(
    "hill_speed", HILL_SPEED_GOAL_KMH, _median_speed(is_hill_ride), rounding="floor", unit="km/h"
)
LONG_RIDES = GoalTarget("long_rides", LONG_RIDE_GOAL, _count(is_long_ride))
INTERVALS = GoalTarget("intervals", INTERVAL_GOAL, _count(has_interval_marker))
RECOVERY = GoalTarget("recovery", RECOVERY_GOAL, _count(is_recovery_ride))


# --- Heart-rate zones ---

def heart_rate_zone(hr: float, terrain: Terrain = Terrain.HILL) -> str:
    """Zone label for an average heart rate; flat context tops out at Z4+."""
    if hr < Z3_FLOOR:
        return "Z2"
    if hr < Z4_FLOOR:
        return "Z3"
    if terrain is Terrain.FLAT:
        return "Z4+"
    if hr < Z5_FLOOR:
        return "Z4"
    return "Z5"


def _share_in_zone(cohort: list[Activity], zone: tuple[float, float]) -> int:
    if not cohort:
        return 0
    low, high = zone
    inside = 0
    for a in cohort:
        hr = heart_rate(a)
        if hr is not None and low <= hr < high:
            inside += 1
    return round_int(inside / len(cohort) * 100)


def pulse_zone_score(flats: list[Activity], hills: list[Activity]) -> int:
    """Share of rides ridden in their target zone, averaged over non-empty cohorts."""
    flat_pct = _share_in_zone(flats, FLAT_TARGET_ZONE)
    hill_pct = _share_in_zone(hills, HILL_TARGET_ZONE)
    if flats and hills:
        return round_int((flat_pct + hill_pct) / 2)
    if flats:
        return flat_pct
    return hill_pct


def _hr_text(hr: float) -> str:
    return str(round_int(hr)) if hr else NO_VALUE


# --- Views ---

@dataclass(frozen=True)
class GoalProgress:
    scores: dict[str, GoalScore]
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scores": {name: s.to_dict() for name, s in self.scores.items()},
            "details": dict(self.details),
        }


def window_activities(
    activities: Iterable[Activity],
    window: str = "4w",
    today: date | None = None,
) -> list[Activity]:
    if window not in WINDOWS:
        raise ValueError(f"Unknown window: {window}. Use one of {', '.join(WINDOWS)}.")
    days = WINDOWS[window]
    if days is None:
        return list(activities)
    return within_last(activities, days, today=today)


def goal_progress(
    activities: Iterable[Activity],
    window: str = "4w",
    today: date | None = None,
) -> GoalProgress:
    """Score the six standing goals over a recency window."""
    selected = window_activities(activities, window, today=today)
    flats = [a for a in selected if is_flat_ride(a)]
    hills = [a for a in selected if is_hill_ride(a)]

    flat_hr = median(collect(flats, heart_rate))
    hill_hr = median(collect(hills, heart_rate))
    flat_zone = heart_rate_zone(flat_hr, Terrain.FLAT) if flat_hr else NO_VALUE
    hill_zone = heart_rate_zone(hill_hr, Terrain.HILL) if hill_hr else NO_VALUE
    flat_zone_pct = _share_in_zone(flats, FLAT_TARGET_ZONE)
    hill_zone_pct = _share_in_zone(hills, HILL_TARGET_ZONE)

    flat_score = compute_goal_score(selected, FLAT_SPEED)
    hill_score = compute_goal_score(selected, HILL_SPEED)
    scope = WINDOW_LABELS[window]

    scores = {
        "flat_speed": GoalScore(
            flat_score.percentage,
            f"{flat_score.label}, HR: {_hr_text(flat_hr)} ({flat_zone})",
        ),
        "hill_speed": GoalScore(
            hill_score.percentage,
            f"{hill_score.label}, HR: {_hr_text(hill_hr)}, rides: {len(hills)}",
        ),
        "pulse": GoalScore(
            pulse_zone_score(flats, hills),
            f"Flat: {flat_zone_pct}%, hills: {hill_zone_pct}% in target zones",
        ),
    }
    for target in (LONG_RIDES, INTERVALS, RECOVERY):
        count = int(target.measure(selected))
        scores[target.name] = GoalScore(count_goal(count, int(target.goal)), f"{count} {scope}")

    details = {
        "window": window,
        "rides": len(selected),
        "flat_rides": len(flats),
        "hill_rides": len(hills),
        "flat_speed_median": FLAT_SPEED.measure(selected),
        "hill_speed_median": HILL_SPEED.measure(selected),
        "flat_hr_median": flat_hr,
        "hill_hr_median": hill_hr,
        "flat_zone": flat_zone,
        "hill_zone": hill_zone,
        "flat_zone_pct": flat_zone_pct,
        "hill_zone_pct": hill_zone_pct,
    }
    return GoalProgress(scores=scores, details=details)


def period_scores(period: list[Activity]) -> list[int]:
    """The six goal percentages for one 4-week period."""
    flats = [a for a in period if is_flat_ride(a)]
    hills = [a for a in period if is_hill_ride(a)]
    return [
        compute_goal_score(period, FLAT_SPEED).percentage,
        compute_goal_score(period, HILL_SPEED).percentage,
        pulse_zone_score(flats, hills),
        count_goal(sum(1 for a in period if is_long_ride(a)), PERIOD_COUNT_GOAL),
        count_goal(sum(1 for a in period if has_interval_marker(a)), PERIOD_COUNT_GOAL),
        count_goal(sum(1 for a in period if is_easy_ride(a)), PERIOD_COUNT_GOAL),
    ]


def period_summary(activities: Iterable[Activity]) -> list[dict[str, Any]]:
    """Goal completion per consecutive 4-week period, newest period first."""
    summary = []
    for period in split_into_periods(activities):
        scores = period_scores(period)
        summary.append({
            "avg": round_int(mean(scores)),
            "scores": scores,
            "start": start_day(period[-1]),
            "end": start_day(period[0]),
            "rides": len(period),
        })
    return summary


def plan_fact(
    activities: Iterable[Activity],
    plan: dict[str, Any] | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    """Compare the last 28 days with plan targets; percentages are not clamped."""
    plan = plan or training_plan()
    recent = within_last(activities, PLAN_FACT_DAYS, today=today)
    total_km = sum(collect(recent, distance_km))
    fact = {
        "rides": len(recent),
        "km": total_km,
        "long": sum(1 for a in recent if is_long_ride(a)),
        "intervals": sum(1 for a in recent if has_interval_marker(a)),
    }
    pct = {
        key: round_int(fact[key] / plan[key] * 100) if plan.get(key) else 0
        for key in ("rides", "km", "long", "intervals")
    }
    return {
        "plan": {key: plan[key] for key in ("rides", "km", "long", "intervals")},
        "fact": fact,
        "pct": pct,
    }


def heart_rate_zone_minutes(
    activities: Iterable[Activity],
    days: int = ZONE_MINUTES_DAYS,
    today: date | None = None,
) -> dict[str, float]:
    """Moving minutes per zone band, attributing each ride by its average HR."""
    minutes = {"Z2": 0.0, "Z3": 0.0, "Z4": 0.0, "other": 0.0}
    for a in within_last(activities, days, today=today):
        hr = heart_rate(a)
        duration = moving_minutes(a)
        if hr is None or not duration:
            continue
        if Z2_FLOOR <= hr < Z3_FLOOR:
            minutes["Z2"] += duration
        elif Z3_FLOOR <= hr < Z4_FLOOR:
            minutes["Z3"] += duration
        elif Z4_FLOOR <= hr < Z5_FLOOR:
            minutes["Z4"] += duration
        else:
            minutes["other"] += duration
    minutes["total"] = sum(minutes.values())
    return minutes


def rides_per_week(
    activities: Iterable[Activity],
    goal: int = RIDES_PER_WEEK_GOAL,
) -> dict[str, float]:
    """Average rides per week across the span of ISO weeks that have rides."""
    days = [day for day in (start_day(a) for a in activities) if day is not None]
    if not days:
        return {"avg": 0.0, "pct": 0}
    first = min(days)
    last = max(days)
    first_monday = first - timedelta(days=first.weekday())
    last_monday = last - timedelta(days=last.weekday())
    weeks = (last_monday - first_monday).days // 7 + 1
    avg = len(days) / weeks
    return {"avg": round_half_away(avg, 2), "pct": goal_percentage(avg, goal)}
