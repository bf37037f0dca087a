"""
Plan import from a JSON export with legacy ids.
"""
import json
from datetime import date

from models import Activity, Phase, PlannedWorkout, StravaCredential, Week
from scripts.import_plan import import_plan, main
from services.token_encryption import decrypt_token

EXPORT = {
    "phases": [
        {"id": 1, "name": "Base", "start_date": "2025-01-06", "end_date": "2025-02-02", "focus_areas": ["walking"]},
    ],
    "weeks": [
        {"id": 10, "phase_id": 1, "week_number": 1, "start_date": "2025-01-06", "end_date": "2025-01-12", "target_km": 40},
        {"id": 11, "phase_id": 99, "week_number": 2, "start_date": "2025-01-13", "end_date": "2025-01-19"},
    ],
    "planned_workouts": [
        {"id": 100, "week_id": 10, "date": "2025-01-07", "workout_type": "run", "target_km": 8, "is_key_workout": True},
        {"id": 101, "week_id": 11, "date": "2025-01-14", "workout_type": "run"},
    ],
}


def test_import_remaps_ids_and_skips_orphans(db_session):
    counts = import_plan(db_session, EXPORT)

    assert counts == {
        "phases": 1,
        "weeks": 1,
        "planned_workouts": 1,
        "activities": 0,
        "strava_credentials": 0,
        "skipped": 2,
    }

    phase = db_session.query(Phase).one()
    week = db_session.query(Week).one()
    workout = db_session.query(PlannedWorkout).one()
    assert week.phase_id == phase.id
    assert week.target_km == 40
    assert workout.week_id == week.id
    assert workout.date == date(2025, 1, 7)
    assert workout.is_key_workout is True


def test_import_accepts_empty_document(db_session):
    counts = import_plan(db_session, {})
    assert set(counts.values()) == {0}


def test_main_reads_file(tmp_path, monkeypatch, db_session, capsys):
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(EXPORT), encoding="utf-8")
    monkeypatch.setattr("scripts.import_plan.get_db_sync", lambda: db_session)
    monkeypatch.setattr("scripts.import_plan.setup_logging", lambda: None)

    assert main([str(path)]) == 0
    assert json.loads(capsys.readouterr().out)["weeks"] == 1


HISTORY = {
    "activities": [
        {
            "strava_id": 555,
            "strava_athlete_id": 777,
            "date": "2025-01-07T06:00:00+00:00",
            "name": "Morning run",
            "activity_type": "Run",
            "distance_km": 10.2,
            "moving_time_seconds": 3600,
            "average_heartrate": 141.6,
            "raw_data": {"id": 555},
        },
        {"strava_id": 556, "date": "2025-01-09T17:30:00Z", "activity_type": "Walk", "distance_km": 4.0},
        {"strava_id": 557, "name": "No timestamp"},
    ],
    "strava_tokens": [
        {
            "athlete_id": 777,
            "access_token": "legacy-access",
            "refresh_token": "legacy-refresh",
            "expires_at": 4_000_000_000,
            "athlete_data": {"firstname": "Kari"},
        },
    ],
}


def test_import_carries_activities_and_strava_tokens(db_session):
    counts = import_plan(db_session, HISTORY)

    assert (counts["activities"], counts["strava_credentials"], counts["skipped"]) == (2, 1, 1)

    run = db_session.query(Activity).filter_by(strava_id=555).one()
    assert run.distance_km == 10.2
    assert run.average_heartrate == 142
    assert run.start_time.hour == 6
    assert run.raw_data == {"id": 555}

    credential = db_session.query(StravaCredential).one()
    assert credential.athlete_id == 777
    assert credential.access_token != "legacy-access"
    assert decrypt_token(credential.access_token) == "legacy-access"
    assert decrypt_token(credential.refresh_token) == "legacy-refresh"
    assert credential.athlete_data == {"firstname": "Kari"}


def test_repeated_import_keeps_one_row_per_strava_id_and_athlete(db_session):
    import_plan(db_session, HISTORY)
    again = import_plan(db_session, HISTORY)

    assert again["activities"] == 0
    assert again["skipped"] == 3
    assert db_session.query(Activity).count() == 2
    assert db_session.query(StravaCredential).count() == 1
