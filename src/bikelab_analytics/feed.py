"""Activity feed loader: reads an exported Strava activity list from JSON."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from bikelab_analytics.activities import is_ride

logger = logging.getLogger(__name__)

FEED_ENV_VAR = "BIKELAB_ACTIVITIES"
DEFAULT_FEED_PATH = "activities.json"


class FeedError(RuntimeError):
    """Base error for activity feed failures."""


class FeedNotFoundError(FeedError):
    """Raised when the activity feed file does not exist."""


class FeedFormatError(FeedError):
    """Raised when the feed is not a JSON list of activities."""


def default_feed_path() -> Path:
    """Feed path from BIKELAB_ACTIVITIES, else activities.json in the working directory."""
    return Path(os.getenv(FEED_ENV_VAR) or DEFAULT_FEED_PATH).expanduser()


def load_activities(path: str | Path | None = None) -> list[dict[str, Any]]:
    """Load cycling activities from a JSON feed.

    The feed is either a JSON array of Strava activities or an object with an
    ``activities`` array. Non-dict entries and non-cycling types are dropped.
    """
    feed_path = Path(path).expanduser() if path else default_feed_path()
    if not feed_path.is_file():
        raise FeedNotFoundError(
            f"Activity feed not found: {feed_path}. "
            f"Pass --file or set {FEED_ENV_VAR}."
        )

    try:
        payload = json.loads(feed_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise FeedFormatError(f"Activity feed {feed_path} is not valid JSON: {exc}") from exc
    except OSError as exc:
        raise FeedError(f"Failed to read activity feed {feed_path}: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("activities")
    if not isinstance(payload, list):
        raise FeedFormatError("Activity feed must be a list of activities.")

    activities = [a for a in payload if isinstance(a, dict) and is_ride(a)]
    skipped = len(payload) - len(activities)
    if skipped:
        logger.debug("Skipped %d non-cycling or malformed feed entries", skipped)
    logger.info("Loaded %d rides from %s", len(activities), feed_path)
    return activities
