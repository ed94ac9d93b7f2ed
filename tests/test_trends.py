"""Tests for chart-ready trend series."""

import pytest

from bikelab_analytics.activities import distance_km, speed_kmh
from bikelab_analytics.bucketing import Terrain
from bikelab_analytics.trends import (
    cadence_vs_speed,
    compute_trend,
    heart_rate_vs_speed,
    monthly_speed,
    monthly_trend,
    speed_by_terrain,
    weekly_max_heart_rate,
    weekly_trend,
)


def _ride(day: str, speed_ms: float = 8.0, distance_km_: float = 30.0, **extra) -> dict:
    ride = {
        "type": "Ride",
        "start_date": f"{day}T08:00:00Z",
        "average_speed": speed_ms,
        "distance": distance_km_ * 1000,
    }
    ride.update(extra)
    return ride


class TestComputeTrend:
    def test_weekly_mean_in_chronological_order(self):
        activities = [
            _ride("2024-03-12", speed_ms=10.0),
            _ride("2024-03-04", speed_ms=7.0),
            _ride("2024-03-06", speed_ms=8.0),
        ]
        series = weekly_trend(activities, speed_kmh)
        assert series.labels == ["2024-W10", "2024-W11"]
        assert series.values == [27.0, 36.0]

    def test_limit_keeps_latest_buckets(self):
        activities = [_ride(f"2024-{m:02d}-10") for m in range(1, 7)]
        series = monthly_trend(activities, distance_km, limit=3, reducer="sum")
        assert series.labels == ["2024-04", "2024-05", "2024-06"]
        assert series.values == [30.0, 30.0, 30.0]

    def test_count_reducer(self):
        activities = [_ride("2024-03-04"), _ride("2024-03-05"), _ride("2024-04-01")]
        series = monthly_trend(activities, distance_km, reducer="count")
        assert series.values == [2.0, 1.0]

    def test_empty_gives_placeholder(self):
        series = weekly_trend([], speed_kmh)
        assert series.is_placeholder()
        assert series.to_dict() == {"labels": [""], "values": [0]}

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            compute_trend([], lambda a: "k", speed_kmh, reducer="mode")
        with pytest.raises(ValueError):
            weekly_trend([], speed_kmh, limit=0)


class TestPairedTrend:
    def test_only_rides_with_both_values(self):
        activities = [
            _ride("2024-03-04", average_cadence=85),
            _ride("2024-03-05"),
            _ride("2024-03-06", average_cadence=0),
            _ride("2024-03-07", speed_ms=10.0, average_cadence=90),
        ]
        series = cadence_vs_speed(activities)
        assert series.labels == ["04.03", "07.03"]
        assert series.first == [85.0, 90.0]
        assert series.second == [28.8, 36.0]

    def test_limit_applies_after_filtering(self):
        activities = [_ride(f"2024-03-{d:02d}", average_heartrate=140) for d in range(1, 11)]
        activities.append(_ride("2024-03-20"))
        series = heart_rate_vs_speed(activities, limit=3)
        assert series.labels == ["08.03", "09.03", "10.03"]
        assert len(series.first) == len(series.second) == len(series.labels)

    def test_no_pairs(self):
        series = cadence_vs_speed([_ride("2024-03-04")])
        assert series.labels == [""]
        assert series.first == [0]


class TestMonthlySpeed:
    def test_average_and_top_speed(self):
        activities = [
            _ride("2024-02-03", speed_ms=8.0, max_speed=15.0),
            _ride("2024-02-20", speed_ms=9.0, max_speed=12.0),
            _ride("2024-03-01", speed_ms=7.0),
        ]
        series = monthly_speed(activities)
        assert series.labels == ["02/24", "03/24"]
        assert series.first == [30.6, 25.2]
        assert series.second == [54.0, 0.0]

    def test_top_speed_only_from_rides_with_average(self):
        only_average = _ride("2024-03-04", speed_ms=8.0)
        only_top = _ride("2024-03-10", max_speed=20.0)
        del only_top["average_speed"]
        series = monthly_speed([only_average, only_top])
        assert series.labels == ["03/24"]
        assert series.first == [28.8]
        assert series.second == [0.0]


class TestSpeedByTerrain:
    def test_split_flat_and_hill(self):
        activities = [
            _ride("2024-03-04", speed_ms=9.0, total_elevation_gain=100),
            _ride("2024-03-05", speed_ms=5.0, total_elevation_gain=600),
            _ride("2024-03-06", speed_ms=6.0, total_elevation_gain=300),
        ]
        result = speed_by_terrain(activities)
        assert result[Terrain.FLAT].labels == ["10"]
        assert result[Terrain.FLAT].values == [32.4]
        assert result[Terrain.HILL].values == [18.0]

    def test_empty_terrain_is_placeholder(self):
        result = speed_by_terrain([_ride("2024-03-04", total_elevation_gain=100)])
        assert result[Terrain.HILL].is_placeholder()


def test_weekly_max_heart_rate():
    activities = [
        _ride("2024-03-04", max_heartrate=171),
        _ride("2024-03-06", max_heartrate=184),
        _ride("2024-03-07", max_heartrate=0),
    ]
    series = weekly_max_heart_rate(activities)
    assert series.values == [184.0]
