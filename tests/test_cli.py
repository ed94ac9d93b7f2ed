"""CLI tests for the analytics commands."""

from __future__ import annotations

import json
from datetime import date, timedelta
from pathlib import Path

import pytest
from typer.testing import CliRunner

from bikelab_analytics.cli import app
from bikelab_analytics.feed import FEED_ENV_VAR, FeedNotFoundError

runner = CliRunner()


def _ride(days_ago: int, distance_km: float, speed_kmh: float, **extra) -> dict:
    ride = {
        "id": days_ago,
        "name": f"Ride {days_ago}",
        "type": "Ride",
        "start_date": f"{(date.today() - timedelta(days=days_ago)).isoformat()}T08:00:00Z",
        "distance": distance_km * 1000,
        "average_speed": speed_kmh / 3.6,
        "total_elevation_gain": 100,
        "moving_time": distance_km / speed_kmh * 3600,
    }
    ride.update(extra)
    return ride


FEED = [
    _ride(1, 40, 30, average_heartrate=140, average_cadence=90, max_speed=12.0),
    _ride(3, 70, 27, average_heartrate=150, average_cadence=88, average_watts=240),
    _ride(9, 25, 24, name="Evening Intervals", average_heartrate=135),
]


@pytest.fixture
def feed_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "activities.json"
    path.write_text(json.dumps(FEED), encoding="utf-8")
    monkeypatch.setenv(FEED_ENV_VAR, str(path))
    return path


def test_stats_shows_metric_summary(feed_file: Path) -> None:
    result = runner.invoke(app, ["stats", "--metric", "speed"])

    assert result.exit_code == 0
    assert "27.0" in result.stdout
    assert "30.0" in result.stdout


def test_stats_rejects_unknown_metric(feed_file: Path) -> None:
    result = runner.invoke(app, ["stats", "--metric", "vo2max"])

    assert result.exit_code == 1
    assert "Unknown metric" in result.stdout


def test_missing_feed_exits_with_error(tmp_path: Path) -> None:
    result = runner.invoke(app, ["stats", "--file", str(tmp_path / "missing.json")])

    assert result.exit_code == 1
    assert "not found" in result.stdout


def test_feed_error_from_loader(monkeypatch: pytest.MonkeyPatch) -> None:
    """Commands should exit non-zero when the feed cannot be loaded."""

    def _failing_loader(path):
        raise FeedNotFoundError("Activity feed not found: nowhere.json")

    monkeypatch.setattr("bikelab_analytics.cli.load_activities", _failing_loader)

    result = runner.invoke(app, ["goals"])

    assert result.exit_code == 1
    assert "nowhere.json" in result.stdout


def test_trend_by_week(feed_file: Path) -> None:
    result = runner.invoke(app, ["trend", "--metric", "distance", "--reducer", "sum"])

    assert result.exit_code == 0
    assert "-W" in result.stdout


def test_trend_rejects_bad_reducer(feed_file: Path) -> None:
    result = runner.invoke(app, ["trend", "--reducer", "mode"])

    assert result.exit_code == 1
    assert "Unknown reducer" in result.stdout


def test_goals_json(feed_file: Path) -> None:
    result = runner.invoke(app, ["goals", "--window", "4w", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert set(data["scores"]) == {"flat_speed", "hill_speed", "pulse", "long_rides", "intervals", "recovery"}
    assert data["scores"]["long_rides"]["label"] == "1 in 4 weeks"
    assert data["details"]["rides"] == 3


def test_goals_rejects_unknown_window(feed_file: Path) -> None:
    result = runner.invoke(app, ["goals", "--window", "week"])

    assert result.exit_code == 1


def test_advice_for_latest_ride(feed_file: Path) -> None:
    result = runner.invoke(app, ["advice"])

    assert result.exit_code == 0
    assert "Normal" in result.stdout
    assert "Great ride!" in result.stdout


def test_advice_for_ride_by_id(feed_file: Path) -> None:
    result = runner.invoke(app, ["advice", "9"])

    assert result.exit_code == 0
    assert "Interval" in result.stdout
    assert "Average speed below 25 km/h" in result.stdout


def test_advice_unknown_ride(feed_file: Path) -> None:
    result = runner.invoke(app, ["advice", "12345"])

    assert result.exit_code == 1
    assert "Ride not found" in result.stdout


def test_plan_compares_with_last_four_weeks(feed_file: Path) -> None:
    result = runner.invoke(app, ["plan", "--level", "beginner", "--hours", "5"])

    assert result.exit_code == 0
    assert "Beginner plan" in result.stdout
    assert "Rides per week" in result.stdout


def test_zones(feed_file: Path) -> None:
    result = runner.invoke(app, ["zones"])

    assert result.exit_code == 0
    assert "Z3" in result.stdout


def test_periods(feed_file: Path) -> None:
    result = runner.invoke(app, ["periods"])

    assert result.exit_code == 0
    assert "Rides" in result.stdout


def test_achievements_json(feed_file: Path) -> None:
    result = runner.invoke(app, ["achievements", "--json", "--max-hr", "185"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["tiers"]["distance"] == "silver"
    assert data["tiers"]["power"] == "rare_steel"
    assert "distance_rider" in data["unlocked"]


def test_achievements_bad_definitions(feed_file: Path, tmp_path: Path) -> None:
    bad = tmp_path / "defs.json"
    bad.write_text("{}", encoding="utf-8")

    result = runner.invoke(app, ["achievements", "--definitions", str(bad)])

    assert result.exit_code == 1
    assert "JSON array" in result.stdout


def test_compare_and_terrain(feed_file: Path) -> None:
    compare = runner.invoke(app, ["compare", "--pair", "heart_rate"])
    terrain = runner.invoke(app, ["terrain"])

    assert compare.exit_code == 0
    assert terrain.exit_code == 0
    assert "Monthly speed" in terrain.stdout


def test_stats_ignores_infinite_speed(tmp_path: Path) -> None:
    path = tmp_path / "activities.json"
    path.write_text(
        '[{"type": "Ride", "start_date": "2024-05-01T08:00:00Z", "average_speed": 7.5},'
        ' {"type": "Ride", "start_date": "2024-05-02T08:00:00Z", "average_speed": Infinity}]',
        encoding="utf-8",
    )
    result = runner.invoke(app, ["stats", "--file", str(path)])

    assert result.exit_code == 0
    assert "27.0" in result.stdout
    assert "inf" not in result.stdout.lower()
