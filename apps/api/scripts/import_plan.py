"""
Import a training plan export into the database.

The export is one JSON document:

    {"phases": [...], "weeks": [...], "planned_workouts": [...],
     "activities": [...], "strava_tokens": [...]}

Rows carry their old ids; weeks point at phases and workouts at weeks through
those old ids, which are remapped to the newly created rows. A row whose
parent is unknown is skipped with a warning.

Activities and Strava tokens are optional and keyed on strava_id and
athlete_id, so importing the same export twice adds neither a second activity
nor a second credential.

Usage:
    python scripts/import_plan.py plan_export.json
"""
import argparse
import json
import logging
import os
import sys
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

# Allow running as a plain script from apps/api
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session

from core.database import get_db_sync
from core.logging import setup_logging
from models import Activity, Phase, PlannedWorkout, Week
from services.strava_credentials import upsert_credential
from services.strava_ingest import activity_exists

logger = logging.getLogger(__name__)

PHASE_FIELDS = (
    "name", "description", "weekly_km_target_start", "weekly_km_target_end",
    "long_run_target_km", "focus_areas",
)
WEEK_FIELDS = (
    "week_number", "target_km", "target_elevation", "target_hours",
    "target_strength_sessions", "notes",
)
WORKOUT_FIELDS = (
    "day_of_week", "workout_type", "title", "description", "target_km",
    "target_duration_minutes", "target_elevation", "intensity", "countdown_number",
)
ACTIVITY_FIELDS = (
    "strava_athlete_id", "name", "activity_type", "sport_type", "distance_km",
    "moving_time_seconds", "elapsed_time_seconds", "elevation_gain", "average_speed",
    "max_speed", "calories", "suffer_score", "description", "raw_data",
)


def _d(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value[:10]) if value else None


def _ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _hr(value) -> Optional[int]:
    return int(round(float(value))) if value is not None else None


def _pick(row: Dict[str, Any], fields) -> Dict[str, Any]:
    return {f: row.get(f) for f in fields if row.get(f) is not None}


def import_plan(db: Session, data: Dict[str, Any]) -> Dict[str, int]:
    """
    Insert plan rows, activities and Strava credentials from an export document.

    Returns per-table counts plus the number of skipped rows. Activities
    already stored under the same strava_id count as skipped; credentials are
    upserted, so each imported token row counts once per run.
    """
    phase_ids: Dict[Any, Any] = {}
    week_ids: Dict[Any, Any] = {}
    counts = {
        "phases": 0,
        "weeks": 0,
        "planned_workouts": 0,
        "activities": 0,
        "strava_credentials": 0,
        "skipped": 0,
    }

    for row in data.get("phases", []):
        phase = Phase(
            start_date=_d(row["start_date"]),
            end_date=_d(row["end_date"]),
            **_pick(row, PHASE_FIELDS),
        )
        db.add(phase)
        db.flush()
        phase_ids[row.get("id")] = phase.id
        counts["phases"] += 1

    for row in data.get("weeks", []):
        phase_id = phase_ids.get(row.get("phase_id"))
        if phase_id is None:
            logger.warning(f"Skipping week {row.get('id')}: unknown phase_id {row.get('phase_id')}")
            counts["skipped"] += 1
            continue
        week = Week(
            phase_id=phase_id,
            start_date=_d(row["start_date"]),
            end_date=_d(row["end_date"]),
            **_pick(row, WEEK_FIELDS),
        )
        db.add(week)
        db.flush()
        week_ids[row.get("id")] = week.id
        counts["weeks"] += 1

    for row in data.get("planned_workouts", []):
        week_id = week_ids.get(row.get("week_id"))
        if week_id is None:
            logger.warning(f"Skipping workout {row.get('id')}: unknown week_id {row.get('week_id')}")
            counts["skipped"] += 1
            continue
        db.add(PlannedWorkout(
            week_id=week_id,
            date=_d(row["date"]),
            is_key_workout=bool(row.get("is_key_workout")),
            **_pick(row, WORKOUT_FIELDS),
        ))
        counts["planned_workouts"] += 1

    for row in data.get("activities", []):
        start_time = _ts(row.get("start_time") or row.get("date"))
        if start_time is None:
            logger.warning(f"Skipping activity {row.get('strava_id')}: no start time")
            counts["skipped"] += 1
            continue
        if activity_exists(db, row["strava_id"]):
            counts["skipped"] += 1
            continue
        db.add(Activity(
            strava_id=int(row["strava_id"]),
            start_time=start_time,
            average_heartrate=_hr(row.get("average_heartrate")),
            max_heartrate=_hr(row.get("max_heartrate")),
            synced_at=_ts(row.get("synced_at")),
            **_pick(row, ACTIVITY_FIELDS),
        ))
        db.flush()
        counts["activities"] += 1

    db.commit()

    # upsert_credential commits per row and encrypts the tokens
    for row in data.get("strava_tokens", []):
        upsert_credential(
            db,
            athlete_id=row["athlete_id"],
            access_token=row["access_token"],
            refresh_token=row["refresh_token"],
            expires_at=row["expires_at"],
            athlete_data=row.get("athlete_data"),
        )
        counts["strava_credentials"] += 1

    logger.info(
        f"Imported {counts['phases']} phases, {counts['weeks']} weeks, "
        f"{counts['planned_workouts']} workouts, {counts['activities']} activities, "
        f"{counts['strava_credentials']} Strava credentials ({counts['skipped']} skipped)"
    )
    return counts


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import a training plan export")
    parser.add_argument("path", help="JSON export with plan rows, activities and strava_tokens")
    args = parser.parse_args(argv)

    setup_logging()
    with open(args.path, encoding="utf-8") as fh:
        data = json.load(fh)

    db = get_db_sync()
    try:
        counts = import_plan(db, data)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print(json.dumps(counts))
    return 0


if __name__ == "__main__":
    sys.exit(main())
