"""Small builders shared by the test modules."""
from datetime import datetime, timezone

from models import Activity


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def make_activity(strava_id, start_time, distance_km=10.0, **kwargs):
    return Activity(
        strava_id=strava_id,
        start_time=start_time,
        name=kwargs.pop("name", f"Run {strava_id}"),
        activity_type=kwargs.pop("activity_type", "Run"),
        distance_km=distance_km,
        **kwargs,
    )


def strava_payload(strava_id, start_date="2025-01-08T06:30:00Z", distance_m=10000.0, **extra):
    """A trimmed /athlete/activities item."""
    payload = {
        "id": strava_id,
        "name": f"Morning Run {strava_id}",
        "type": "Run",
        "sport_type": "Run",
        "start_date": start_date,
        "distance": distance_m,
        "moving_time": 3000,
        "elapsed_time": 3100,
        "total_elevation_gain": 85.0,
        "average_speed": 3.33,
        "max_speed": 5.1,
        "athlete": {"id": 777},
    }
    payload.update(extra)
    return payload
