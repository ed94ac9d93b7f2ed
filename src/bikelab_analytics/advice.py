"""Ride classification and rule-based training advice."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from bikelab_analytics.activities import (
    Activity,
    cadence,
    distance_km,
    elevation_gain,
    has_interval_marker,
    heart_rate,
    moving_minutes,
    speed_kmh,
)

LONG_MIN_KM = 60.0
RECOVERY_MAX_KMH = 20.0
RECOVERY_MAX_MINUTES = 60.0
HILLY_MIN_GAIN_M = 800.0

LOW_SPEED_KMH = 25.0
HIGH_HEART_RATE = 155.0
CLIMB_MIN_GAIN_M = 500.0
CLIMB_LOW_SPEED_KMH = 18.0
SHORT_RIDE_KM = 30.0
INTERVAL_MIN_HEART_RATE = 140.0


class ActivityType(str, Enum):
    LONG = "Long"
    RECOVERY = "Recovery"
    HILLY = "Hilly"
    INTERVAL = "Interval"
    NORMAL = "Normal"


@dataclass(frozen=True)
class AdviceItem:
    title: str
    body: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "body": self.body}


def _above(value: float | None, threshold: float) -> bool:
    return value is not None and value > threshold


def _below(value: float | None, threshold: float) -> bool:
    return value is not None and value < threshold


def classify_activity_type(activity: Activity) -> ActivityType:
    """Classify a ride; the first matching rule wins."""
    if _above(distance_km(activity), LONG_MIN_KM):
        return ActivityType.LONG
    if _below(speed_kmh(activity), RECOVERY_MAX_KMH) and _below(moving_minutes(activity), RECOVERY_MAX_MINUTES):
        return ActivityType.RECOVERY
    if _above(elevation_gain(activity), HILLY_MIN_GAIN_M):
        return ActivityType.HILLY
    if has_interval_marker(activity):
        return ActivityType.INTERVAL
    return ActivityType.NORMAL


def _short_ride(activity: Activity) -> bool:
    dist = distance_km(activity)
    return dist is None or dist < SHORT_RIDE_KM


def _slow_climb(activity: Activity) -> bool:
    return _above(elevation_gain(activity), CLIMB_MIN_GAIN_M) and _below(speed_kmh(activity), CLIMB_LOW_SPEED_KMH)


def _easy_intervals(activity: Activity) -> bool:
    return (
        classify_activity_type(activity) is ActivityType.INTERVAL
        and _below(heart_rate(activity), INTERVAL_MIN_HEART_RATE)
    )


AdviceRule = tuple[Callable[[Activity], bool], AdviceItem]

ADVICE_RULES: list[AdviceRule] = [
    (
        lambda a: _below(speed_kmh(a), LOW_SPEED_KMH),
        AdviceItem(
            "Average speed below 25 km/h",
            "To get faster, add interval sessions (for example 4x4 min in Z4-Z5 with 4 min rest), "
            "work on pedalling technique (cadence 90-100), and watch your position and aerodynamics.",
        ),
    ),
    (
        lambda a: _above(heart_rate(a), HIGH_HEART_RATE),
        AdviceItem(
            "Heart rate above 155 bpm",
            "This can mean high intensity or incomplete recovery. Check sleep and stress, "
            "add recovery rides and keep an eye on hydration and nutrition.",
        ),
    ),
    (
        _slow_climb,
        AdviceItem(
            "Hilly ride at low speed",
            "Add off-bike strength work and hill intervals (for example 5x5 min in Z4).",
        ),
    ),
    (
        lambda a: heart_rate(a) is None,
        AdviceItem(
            "No heart rate data",
            "Pair a heart rate sensor to track intensity and recovery more precisely.",
        ),
    ),
    (
        _short_ride,
        AdviceItem(
            "Short distance",
            "Plan at least one long ride (60+ km) a week to build endurance. Increase distance "
            "gradually and fuel and hydrate on the way.",
        ),
    ),
    (
        lambda a: classify_activity_type(a) is ActivityType.RECOVERY,
        AdviceItem(
            "Recovery ride",
            "Well done. Alternate rides like this with interval and long sessions to keep progressing.",
        ),
    ),
    (
        _easy_intervals,
        AdviceItem(
            "Interval session at low heart rate",
            "Ride intervals harder (Z4-Z5) to get the full training effect.",
        ),
    ),
    (
        lambda a: cadence(a) is None,
        AdviceItem(
            "No cadence data",
            "A cadence sensor helps you track pedalling technique and avoid needless fatigue.",
        ),
    ),
]

POSITIVE_ADVICE = AdviceItem(
    "Great ride!",
    "Nicely done. Keep it up and raise the load gradually to keep progressing.",
)


def generate_advice(activity: Activity) -> list[AdviceItem]:
    """Every advice item whose rule matches, in rule order.

    A ride that triggers no rule gets a single positive item.
    """
    advice = [item for matches, item in ADVICE_RULES if matches(activity)]
    return advice or [POSITIVE_ADVICE]


def analyze_activity(activity: Activity) -> dict[str, Any]:
    """Ride type and advice for one activity."""
    return {
        "type": classify_activity_type(activity),
        "advice": generate_advice(activity),
    }
