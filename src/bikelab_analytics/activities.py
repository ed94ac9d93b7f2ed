"""Activity field access, unit conversion and ride filtering."""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable

KMH_PER_MS = 3.6
CYCLING_TYPES = ("Ride", "VirtualRide")
INTERVAL_MARKERS = ("interval", "интервал")
# A zero from these fields means the sensor was not paired.
SENSOR_FIELDS = ("average_heartrate", "max_heartrate", "average_cadence", "average_watts")

Activity = dict[str, Any]
Selector = Callable[[Activity], "float | None"]


def to_kmh(meters_per_second: float) -> float:
    return meters_per_second * KMH_PER_MS


def to_km(meters: float) -> float:
    return meters / 1000


def to_hours(seconds: float) -> float:
    return seconds / 3600


def to_minutes(seconds: float) -> float:
    return seconds / 60


def field_value(activity: Activity, name: str) -> float | None:
    """Return a numeric field, or None when it is absent or unusable."""
    raw = activity.get(name)
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    if name in SENSOR_FIELDS and value == 0:
        return None
    return value


def _converted(name: str, convert: Callable[[float], float]) -> Selector:
    def selector(activity: Activity) -> float | None:
        value = field_value(activity, name)
        return None if value is None else convert(value)

    selector.__name__ = name
    return selector


def _identity(value: float) -> float:
    return value


speed_kmh = _converted("average_speed", to_kmh)
max_speed_kmh = _converted("max_speed", to_kmh)
distance_km = _converted("distance", to_km)
moving_minutes = _converted("moving_time", to_minutes)
moving_hours = _converted("moving_time", to_hours)
elevation_gain = _converted("total_elevation_gain", _identity)
cadence = _converted("average_cadence", _identity)
heart_rate = _converted("average_heartrate", _identity)
max_heart_rate = _converted("max_heartrate", _identity)
watts = _converted("average_watts", _identity)

METRICS: dict[str, Selector] = {
    "speed": speed_kmh,
    "max_speed": max_speed_kmh,
    "distance": distance_km,
    "moving_time": moving_hours,
    "elevation": elevation_gain,
    "cadence": cadence,
    "heart_rate": heart_rate,
    "max_heart_rate": max_heart_rate,
    "power": watts,
}

METRIC_UNITS: dict[str, str] = {
    "speed": "km/h",
    "max_speed": "km/h",
    "distance": "km",
    "moving_time": "h",
    "elevation": "m",
    "cadence": "rpm",
    "heart_rate": "bpm",
    "max_heart_rate": "bpm",
    "power": "W",
}


def start_day(activity: Activity) -> date | None:
    """Calendar date of an activity's ISO 8601 start_date."""
    raw = activity.get("start_date")
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return datetime.strptime(str(raw)[:10], "%Y-%m-%d").date()
    except (ValueError, TypeError):
        return None


def is_ride(activity: Activity) -> bool:
    return activity.get("type") in CYCLING_TYPES


def rides(activities: Iterable[Activity]) -> list[Activity]:
    """Keep only cycling activities."""
    return [a for a in activities if is_ride(a)]


def has_interval_marker(activity: Activity) -> bool:
    """Check the name and type for an interval session marker."""
    text = f"{activity.get('name') or ''} {activity.get('type') or ''}".lower()
    return any(marker in text for marker in INTERVAL_MARKERS)


def start_time(activity: Activity) -> datetime | None:
    """Start instant as a naive UTC datetime; offsets are applied, bare dates start at midnight."""
    day = start_day(activity)
    if day is None:
        return None
    raw = activity.get("start_date")
    if isinstance(raw, datetime):
        moment = raw
    elif isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    else:
        text = str(raw).strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            return datetime(day.year, day.month, day.day)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def sort_by_date(activities: Iterable[Activity], newest_first: bool = False) -> list[Activity]:
    """Sort dated activities chronologically; undated ones are dropped."""
    dated = []
    for a in activities:
        moment = start_time(a)
        if moment is not None:
            dated.append((moment, a))
    dated.sort(key=lambda pair: pair[0], reverse=newest_first)
    return [a for _, a in dated]
