"""Four-week training plan targets by experience level and available time."""

from __future__ import annotations

from typing import Any

from bikelab_analytics.stats import round_int

DEFAULT_LEVEL = "intermediate"
DEFAULT_HOURS = 5
PLAN_WEEKS = 4

# Targets per 4-week cycle, with the weekly structure they come from.
TRAINING_PLANS: dict[str, dict[str, Any]] = {
    "beginner": {
        "rides": 8,
        "km": 200,
        "long": 2,
        "intervals": 4,
        "description": "Basic plan for beginners",
        "weekly": {"rides": 2, "volume": 50, "long_rides": 0.5, "intervals": 1},
    },
    "intermediate": {
        "rides": 12,
        "km": 400,
        "long": 4,
        "intervals": 8,
        "description": "Balanced intermediate plan",
        "weekly": {"rides": 3, "volume": 100, "long_rides": 1, "intervals": 2},
    },
    "advanced": {
        "rides": 16,
        "km": 600,
        "long": 6,
        "intervals": 12,
        "description": "Intense advanced plan",
        "weekly": {"rides": 4, "volume": 150, "long_rides": 1.5, "intervals": 3},
    },
}

# Weekly hours available -> volume multiplier.
TIME_MODIFIERS: dict[int, float] = {
    1: 0.3,
    2: 0.5,
    3: 0.7,
    4: 0.8,
    5: 1.0,
    6: 1.1,
    7: 1.2,
    8: 1.3,
    9: 1.4,
    10: 1.5,
}

LEVEL_NAMES = {"beginner": "Beginner", "intermediate": "Intermediate", "advanced": "Advanced"}


def training_plan(
    level: str = DEFAULT_LEVEL,
    hours: int = DEFAULT_HOURS,
    rides_per_week: int | None = None,
) -> dict[str, Any]:
    """Build 4-week targets for an experience level and weekly time budget.

    Unknown levels fall back to intermediate and hours are clamped to 1-10.
    A preferred rides-per-week count (1-7) overrides the ride target; fewer
    rides than the base plan also scales the interval target down.
    """
    base = TRAINING_PLANS.get(level, TRAINING_PLANS[DEFAULT_LEVEL])
    clamped_hours = min(10, max(1, int(hours)))
    modifier = TIME_MODIFIERS[clamped_hours]
    weekly = base["weekly"]

    plan: dict[str, Any] = {
        "rides": max(4, round_int(base["rides"] * modifier)),
        "km": max(100, round_int(base["km"] * modifier)),
        "long": max(1, round_int(base["long"] * modifier)),
        "intervals": max(2, round_int(base["intervals"] * modifier)),
        "description": base["description"],
        "level": level if level in TRAINING_PLANS else DEFAULT_LEVEL,
        "hours": clamped_hours,
        "modifier": modifier,
        "weekly": {
            "rides": max(1, round_int(weekly["rides"] * modifier)),
            "volume": max(25, round_int(weekly["volume"] * modifier)),
            "long_rides": max(0.25, weekly["long_rides"] * modifier),
            "intervals": max(0.5, round_int(weekly["intervals"] * modifier)),
        },
    }

    if rides_per_week is not None and 1 <= rides_per_week <= 7:
        ratio = rides_per_week / weekly["rides"]
        plan["rides"] = max(4, rides_per_week * PLAN_WEEKS)
        plan["weekly"]["rides"] = rides_per_week
        if ratio < 1:
            plan["intervals"] = max(2, round_int(plan["intervals"] * ratio))

    return plan


def plan_description(plan: dict[str, Any]) -> str:
    name = LEVEL_NAMES.get(plan.get("level", DEFAULT_LEVEL), "Intermediate")
    weekly = plan["weekly"]
    return f"{name} plan: {weekly['rides']} rides/week, {weekly['volume']}km/week"
