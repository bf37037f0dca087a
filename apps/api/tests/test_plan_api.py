"""
Plan, activity, lifestyle and goal endpoints.
"""
from datetime import date
from uuid import uuid4

from models import Activity

from factories import make_activity, utc


def _create_phase(client, **overrides):
    payload = {"name": "Base", "start_date": "2025-01-06", "end_date": "2025-02-02", "focus_areas": ["vert", "walking"]}
    payload.update(overrides)
    return client.post("/v1/phases", json=payload)


def test_create_and_list_phases(client):
    resp = _create_phase(client)
    assert resp.status_code == 201
    assert resp.json()["focus_areas"] == ["vert", "walking"]

    phases = client.get("/v1/phases").json()
    assert [p["name"] for p in phases] == ["Base"]


def test_phase_with_reversed_dates_is_422(client):
    resp = _create_phase(client, start_date="2025-02-02", end_date="2025-01-06")
    assert resp.status_code == 422


def test_unknown_phase_is_404(client):
    assert client.get(f"/v1/phases/{uuid4()}").status_code == 404


def test_current_phase_and_week_by_date(client, sample_plan):
    phase = client.get("/v1/phases/current?today=2025-01-12").json()
    assert phase["name"] == "Base"

    detail = client.get("/v1/weeks/current?today=2025-01-12").json()
    assert detail["week"]["week_number"] == 1
    assert detail["phase"]["name"] == "Base"

    assert client.get("/v1/weeks/current?today=2024-01-01").json() is None


def test_create_week_requires_existing_phase(client):
    resp = client.post("/v1/weeks", json={
        "phase_id": str(uuid4()),
        "week_number": 1,
        "start_date": "2025-01-06",
        "end_date": "2025-01-12",
    })
    assert resp.status_code == 404


def test_list_weeks_includes_phase(client, sample_plan):
    weeks = client.get("/v1/weeks").json()
    assert [w["week_number"] for w in weeks] == [1, 2]
    assert weeks[0]["phase"]["name"] == "Base"
    assert weeks[0]["summary"] is None


def test_week_detail_and_progress(client, db_session, sample_plan):
    week = sample_plan["week1"]
    db_session.add(make_activity(1, utc(2025, 1, 8, 6), 20.0))
    db_session.commit()

    recomputed = client.post(f"/v1/summaries/{week.id}/recompute").json()
    assert recomputed["actual_km"] == 20.0
    assert recomputed["completion_percentage"] == 40

    detail = client.get(f"/v1/weeks/{week.id}").json()
    assert detail["summary"]["actual_km"] == 20.0
    assert [a["strava_id"] for a in detail["activities"]] == [1]

    progress = client.get("/v1/weeks/progress").json()
    assert progress[0]["target_km"] == 50
    assert progress[0]["actual_km"] == 20.0
    assert progress[1]["actual_km"] is None


def test_workouts_create_update_and_filter(client, sample_plan):
    week = sample_plan["week1"]
    created = client.post("/v1/workouts", json={
        "week_id": str(week.id),
        "date": "2025-01-07",
        "day_of_week": 1,
        "workout_type": "run",
        "title": "Easy",
        "target_km": 8,
    })
    assert created.status_code == 201
    workout_id = created.json()["id"]

    updated = client.patch(f"/v1/workouts/{workout_id}", json={"target_km": 10, "is_key_workout": True})
    assert updated.json()["target_km"] == 10
    assert updated.json()["title"] == "Easy"
    assert updated.json()["is_key_workout"] is True

    assert len(client.get(f"/v1/weeks/{week.id}/workouts").json()) == 1
    assert len(client.get("/v1/workouts?on=2025-01-07").json()) == 1
    assert client.get("/v1/workouts?on=2025-01-08").json() == []


def test_workout_for_unknown_week_is_404(client):
    resp = client.post("/v1/workouts", json={"week_id": str(uuid4()), "date": "2025-01-07", "workout_type": "run"})
    assert resp.status_code == 404


def test_recompute_all_summaries(client, db_session, sample_plan):
    db_session.add(make_activity(1, utc(2025, 1, 15, 6), 11.0))
    db_session.commit()

    assert client.post("/v1/summaries/recompute").json() == {"updated": 2}
    summaries = client.get("/v1/summaries").json()
    assert len(summaries) == 1
    assert summaries[0]["week_id"] == str(sample_plan["week2"].id)

    notes = client.patch(f"/v1/summaries/{sample_plan['week2'].id}", json={"notes": "Felt strong"})
    assert notes.json()["notes"] == "Felt strong"


def test_activities_listing_range_and_base_tests(client, db_session):
    db_session.add_all([
        make_activity(1, utc(2025, 1, 6, 6), 5.0, name="Base test 5k"),
        make_activity(2, utc(2025, 1, 8, 6), 10.0, name="Easy run"),
        make_activity(3, utc(2025, 2, 3, 6), 5.0, name="BASE test again"),
    ])
    db_session.commit()

    newest_first = client.get("/v1/activities").json()
    assert [a["strava_id"] for a in newest_first] == [3, 2, 1]

    in_range = client.get("/v1/activities/range?start_date=2025-01-06&end_date=2025-01-08").json()
    assert [a["strava_id"] for a in in_range] == [1, 2]

    base = client.get("/v1/activities/base-tests").json()
    assert [a["strava_id"] for a in base] == [1, 3]


def test_delete_activity(client, db_session):
    act = make_activity(1, utc(2025, 1, 6, 6))
    db_session.add(act)
    db_session.commit()

    assert client.delete(f"/v1/activities/{act.id}").status_code == 204
    assert db_session.query(Activity).count() == 0
    assert client.delete(f"/v1/activities/{act.id}").status_code == 404


def test_lifestyle_log_and_goals(client):
    resp = client.post("/v1/lifestyle", json={"date": "2025-01-07", "sleep_hours": 7.5, "energy_level": 4})
    assert resp.status_code == 201
    assert client.post("/v1/lifestyle", json={"date": "2025-01-07", "energy_level": 9}).status_code == 422
    assert len(client.get("/v1/lifestyle?start_date=2025-01-01").json()) == 1

    goal = client.post("/v1/goals", json={"title": "Finish Gotland Rundt", "target_date": str(date(2026, 7, 4))}).json()
    assert goal["is_completed"] is False

    done = client.patch(f"/v1/goals/{goal['id']}", json={"is_completed": True}).json()
    assert done["is_completed"] is True
    assert done["completed_at"] is not None
    assert len(client.get("/v1/goals").json()) == 1


def test_health_and_ping(client):
    assert client.get("/ping").json() == {"pong": True}
    assert client.get("/health").json()["status"] == "healthy"
