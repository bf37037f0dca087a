"""
Strava Activity Upsert

Maps a Strava activity summary (from /athlete/activities) onto the Activity
table. Idempotent on the Strava activity id: a re-ingested activity overwrites
the stored row instead of creating a second one.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from models import Activity


def _round_int(x) -> Optional[int]:
    if x is None:
        return None
    return int(round(float(x)))


def _parse_start_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def map_strava_activity(a: Dict[str, Any]) -> Dict[str, Any]:
    """
    Translate a Strava summary into Activity column values.

    Missing optional fields stay None; they are never defaulted to zero.
    """
    distance_m = a.get("distance")
    athlete = a.get("athlete") or {}

    return {
        "strava_id": int(a["id"]),
        "strava_athlete_id": athlete.get("id"),
        "start_time": _parse_start_time(a["start_date"]),
        "name": a.get("name"),
        "activity_type": a.get("type"),
        "sport_type": a.get("sport_type"),
        "distance_km": distance_m / 1000 if distance_m is not None else None,
        "moving_time_seconds": a.get("moving_time"),
        "elapsed_time_seconds": a.get("elapsed_time"),
        "elevation_gain": a.get("total_elevation_gain"),
        "average_speed": a.get("average_speed"),
        "max_speed": a.get("max_speed"),
        "average_heartrate": _round_int(a.get("average_heartrate")),
        "max_heartrate": _round_int(a.get("max_heartrate")),
        "calories": a.get("calories"),
        "suffer_score": a.get("suffer_score"),
        "description": a.get("description"),
        "raw_data": a,
    }


def activity_exists(db: Session, strava_id: int) -> bool:
    return (
        db.query(Activity.id)
        .filter(Activity.strava_id == int(strava_id))
        .first()
        is not None
    )


def upsert_strava_activity(db: Session, payload: Dict[str, Any], commit: bool = True) -> Activity:
    """
    Insert or overwrite one activity keyed by its Strava id.

    Every mapped field is replaced and synced_at is stamped anew.
    """
    values = map_strava_activity(payload)

    act = db.query(Activity).filter(Activity.strava_id == values["strava_id"]).first()
    if act is None:
        act = Activity(**values)
        db.add(act)
    else:
        for field, value in values.items():
            setattr(act, field, value)

    act.synced_at = datetime.now(timezone.utc)

    if commit:
        db.commit()
        db.refresh(act)
    else:
        db.flush()
    return act
