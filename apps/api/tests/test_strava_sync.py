"""
Incremental sync: dedup counting, cursor, token refresh gating, truncation
and per-athlete serialization.
"""
import pytest

from core.exceptions import StravaAuthError, StravaFetchError, SyncInProgressError
from models import Activity, StravaCredential, WeeklySummary
from services import strava_sync
from services.strava_credentials import resolve_athlete_id, upsert_credential
from services.strava_sync import athlete_sync_lock, compute_after_cursor, sync_activities, sync_and_rollup
from services.token_encryption import decrypt_token

from factories import make_activity, strava_payload, utc

ATHLETE_ID = 777
EXPIRES_AT = 4_000_000_000
NOW = EXPIRES_AT - 3600
LATER = EXPIRES_AT + 3600


@pytest.fixture
def credential(db_session):
    return upsert_credential(
        db_session,
        athlete_id=ATHLETE_ID,
        access_token="access-old",
        refresh_token="refresh-old",
        expires_at=EXPIRES_AT,
        athlete_data={"id": ATHLETE_ID, "firstname": "Kari"},
    )


def test_credential_tokens_are_encrypted_at_rest(db_session, credential):
    row = db_session.query(StravaCredential).one()
    assert row.access_token != "access-old"
    assert decrypt_token(row.access_token) == "access-old"
    assert decrypt_token(row.refresh_token) == "refresh-old"


def test_dedup_counts_new_and_existing(db_session, strava_client, credential):
    db_session.add(make_activity(2, utc(2025, 1, 7, 7)))
    db_session.add(make_activity(4, utc(2025, 1, 8, 7)))
    db_session.commit()

    strava_client.fetch_activities_page.return_value = [strava_payload(i) for i in (1, 2, 3, 4, 5)]

    result = sync_activities(db_session, strava_client, ATHLETE_ID, now=NOW)

    assert (result.synced, result.skipped, result.total) == (3, 2, 5)
    assert result.truncated is False
    assert db_session.query(Activity).count() == 5


def test_cursor_is_latest_activity_minus_one_day(db_session, strava_client, credential):
    latest = utc(2025, 1, 10, 12)
    db_session.add(make_activity(1, utc(2025, 1, 9, 12)))
    db_session.add(make_activity(2, latest))
    db_session.commit()

    sync_activities(db_session, strava_client, ATHLETE_ID, now=NOW)

    _, kwargs = strava_client.fetch_activities_page.call_args
    assert kwargs["after"] == int(latest.timestamp()) - 86400
    assert kwargs["per_page"] == 100


def test_forced_full_sync_sends_no_cursor(db_session, strava_client, credential):
    db_session.add(make_activity(1, utc(2025, 1, 9, 12)))
    db_session.commit()

    sync_activities(db_session, strava_client, ATHLETE_ID, force_full_sync=True, now=NOW)

    _, kwargs = strava_client.fetch_activities_page.call_args
    assert kwargs["after"] is None


def test_empty_store_sends_no_cursor(db_session):
    assert compute_after_cursor(db_session, force_full_sync=False) is None


def test_fresh_token_is_not_refreshed(db_session, strava_client, credential):
    sync_activities(db_session, strava_client, ATHLETE_ID, now=NOW)

    strava_client.refresh_access_token.assert_not_called()
    args, _ = strava_client.fetch_activities_page.call_args
    assert args[0] == "access-old"


def test_expired_token_is_refreshed_before_fetch(db_session, strava_client, credential):
    strava_client.refresh_access_token.return_value = {
        "access_token": "access-new",
        "refresh_token": "refresh-new",
        "expires_at": EXPIRES_AT + 21600,
    }

    sync_activities(db_session, strava_client, ATHLETE_ID, now=LATER)

    calls = [name for name, _, _ in strava_client.mock_calls]
    assert calls.index("refresh_access_token") < calls.index("fetch_activities_page")
    strava_client.refresh_access_token.assert_called_once_with("refresh-old")

    args, _ = strava_client.fetch_activities_page.call_args
    assert args[0] == "access-new"

    row = db_session.query(StravaCredential).one()
    assert row.expires_at == EXPIRES_AT + 21600
    assert decrypt_token(row.refresh_token) == "refresh-new"


def test_refresh_failure_aborts_without_fetch(db_session, strava_client, credential):
    strava_client.refresh_access_token.side_effect = StravaAuthError("invalid_grant")

    with pytest.raises(StravaAuthError):
        sync_activities(db_session, strava_client, ATHLETE_ID, now=LATER)

    strava_client.fetch_activities_page.assert_not_called()
    assert decrypt_token(db_session.query(StravaCredential).one().access_token) == "access-old"


def test_fetch_failure_propagates(db_session, strava_client, credential):
    strava_client.fetch_activities_page.side_effect = StravaFetchError("boom", status_code=500)

    with pytest.raises(StravaFetchError):
        sync_activities(db_session, strava_client, ATHLETE_ID, now=NOW)


def test_full_page_sets_truncated(db_session, strava_client, credential):
    strava_client.page_size = 3
    strava_client.fetch_activities_page.return_value = [strava_payload(i) for i in (1, 2, 3)]

    result = sync_activities(db_session, strava_client, ATHLETE_ID, now=NOW)

    assert result.total == 3
    assert result.truncated is True


def test_missing_credential_raises(db_session, strava_client):
    with pytest.raises(StravaAuthError):
        sync_activities(db_session, strava_client, 123, now=NOW)


def test_concurrent_sync_for_same_athlete_is_rejected(db_session, strava_client, credential):
    with athlete_sync_lock(ATHLETE_ID):
        with pytest.raises(SyncInProgressError):
            sync_activities(db_session, strava_client, ATHLETE_ID, now=NOW)

    # Lock released: the next sync runs
    sync_activities(db_session, strava_client, ATHLETE_ID, now=NOW)


def test_redis_lock_held_elsewhere_is_rejected(monkeypatch, db_session, strava_client, credential):
    monkeypatch.setattr(strava_sync, "acquire_lock", lambda key, token, ttl_s: False)

    with pytest.raises(SyncInProgressError):
        sync_activities(db_session, strava_client, ATHLETE_ID, now=NOW)


def test_sync_and_rollup_updates_summaries_when_new(db_session, strava_client, credential, sample_plan):
    strava_client.fetch_activities_page.return_value = [strava_payload(1, start_date="2025-01-08T06:30:00Z")]

    result = sync_and_rollup(db_session, strava_client, ATHLETE_ID)

    assert result.synced == 1
    summary = db_session.query(WeeklySummary).filter_by(week_id=sample_plan["week1"].id).one()
    assert summary.actual_km == 10.0


def test_resolve_athlete_id_single_and_ambiguous(db_session, credential):
    assert resolve_athlete_id(db_session) == ATHLETE_ID

    upsert_credential(db_session, athlete_id=888, access_token="a", refresh_token="r", expires_at=NOW)
    with pytest.raises(StravaAuthError):
        resolve_athlete_id(db_session)
    assert resolve_athlete_id(db_session, 888) == 888


def test_resolve_athlete_id_without_credentials(db_session):
    with pytest.raises(StravaAuthError):
        resolve_athlete_id(db_session)
