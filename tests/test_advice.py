"""Tests for ride classification and advice rules."""

from bikelab_analytics.advice import (
    POSITIVE_ADVICE,
    ActivityType,
    analyze_activity,
    classify_activity_type,
    generate_advice,
)


def _ride(
    distance_km: float = 50,
    speed_kmh: float = 30,
    gain_m: float = 200,
    minutes: float = 100,
    hr: float | None = 140,
    cadence: float | None = 90,
    name: str = "Morning Ride",
) -> dict:
    ride = {
        "id": 1,
        "name": name,
        "type": "Ride",
        "start_date": "2024-06-01T08:00:00Z",
        "distance": distance_km * 1000,
        "average_speed": speed_kmh / 3.6,
        "total_elevation_gain": gain_m,
        "moving_time": minutes * 60,
    }
    if hr is not None:
        ride["average_heartrate"] = hr
    if cadence is not None:
        ride["average_cadence"] = cadence
    return ride


def _titles(activity: dict) -> list[str]:
    return [item.title for item in generate_advice(activity)]


class TestClassifyActivityType:
    def test_long_wins_over_hilly(self):
        assert classify_activity_type(_ride(distance_km=70, gain_m=900, minutes=200)) is ActivityType.LONG

    def test_recovery(self):
        assert classify_activity_type(_ride(distance_km=13.5, speed_kmh=18, minutes=45)) is ActivityType.RECOVERY

    def test_slow_but_long_in_time_is_not_recovery(self):
        ride = _ride(distance_km=50, speed_kmh=17, gain_m=900, minutes=176)
        assert classify_activity_type(ride) is ActivityType.HILLY

    def test_interval_marker(self):
        assert classify_activity_type(_ride(name="Tuesday Intervals")) is ActivityType.INTERVAL

    def test_normal(self):
        assert classify_activity_type(_ride()) is ActivityType.NORMAL

    def test_missing_fields_are_normal(self):
        assert classify_activity_type({"type": "Ride"}) is ActivityType.NORMAL


class TestGenerateAdvice:
    def test_good_ride_gets_positive_item_only(self):
        assert generate_advice(_ride()) == [POSITIVE_ADVICE]

    def test_items_follow_rule_order(self):
        ride = _ride(distance_km=40, speed_kmh=24, hr=160, cadence=None)
        assert _titles(ride) == [
            "Average speed below 25 km/h",
            "Heart rate above 155 bpm",
            "No cadence data",
        ]

    def test_recovery_ride(self):
        ride = _ride(distance_km=13.5, speed_kmh=18, minutes=45, hr=120, cadence=85)
        assert _titles(ride) == ["Average speed below 25 km/h", "Short distance", "Recovery ride"]

    def test_slow_climb(self):
        ride = _ride(distance_km=50, speed_kmh=17, gain_m=900, minutes=176, hr=150, cadence=80)
        assert _titles(ride) == ["Average speed below 25 km/h", "Hilly ride at low speed"]

    def test_easy_intervals(self):
        ride = _ride(distance_km=35, speed_kmh=28, gain_m=100, hr=135, name="Intervals 4x4")
        assert _titles(ride) == ["Interval session at low heart rate"]

    def test_no_sensors(self):
        ride = _ride(hr=None, cadence=None)
        assert _titles(ride) == ["No heart rate data", "No cadence data"]

    def test_missing_distance_counts_as_short(self):
        ride = _ride()
        del ride["distance"]
        assert "Short distance" in _titles(ride)


def test_analyze_activity():
    result = analyze_activity(_ride(distance_km=70))
    assert result["type"] is ActivityType.LONG
    assert result["advice"] == [POSITIVE_ADVICE]
