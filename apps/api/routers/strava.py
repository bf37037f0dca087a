"""
Strava Integration Router

Handles the OAuth flow, manual activity syncing and connection status.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from core.auth import get_settings
from core.config import Settings
from core.database import get_db
from core.exceptions import ConfigError, StravaAuthError, SyncInProgressError
from models import Activity, StravaCredential, as_utc
from schemas import StravaStatusResponse
from services.strava_credentials import resolve_athlete_id, upsert_credential
from services.strava_service import StravaClient
from services.strava_sync import SyncResult, sync_and_rollup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/strava", tags=["strava"])


def get_strava_client(config: Settings = Depends(get_settings)) -> StravaClient:
    """Dependency building the Strava client from settings (overridable in tests)."""
    return StravaClient.from_settings(config)


def sync_response(result: SyncResult, message: str) -> dict:
    return {
        "message": message,
        "synced": result.synced,
        "skipped": result.skipped,
        "total": result.total,
        "truncated": result.truncated,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def run_sync(
    db: Session,
    client: StravaClient,
    athlete_id: Optional[int],
    force_full_sync: bool,
    message: str,
):
    """
    Shared body of the manual and scheduled sync routes.

    Errors never escape as tracebacks: a concurrent sync answers 409,
    anything else 500, both as {error, details}.
    """
    try:
        resolved = resolve_athlete_id(db, athlete_id)
        result = sync_and_rollup(db, client, resolved, force_full_sync=force_full_sync)
    except SyncInProgressError as e:
        return JSONResponse(status_code=409, content={"error": "Sync already running", "details": str(e)})
    except Exception as e:
        logger.error(f"Strava sync failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Sync failed", "details": str(e)})

    return sync_response(result, message)


@router.get("")
def start_strava_oauth(client: StravaClient = Depends(get_strava_client)):
    """
    Start the OAuth flow by redirecting to the Strava consent screen.
    """
    try:
        url = client.get_auth_url()
    except ConfigError as e:
        return JSONResponse(status_code=500, content={"error": str(e)})
    return RedirectResponse(url=url, status_code=302)


@router.get("/callback")
def strava_callback(
    code: Optional[str] = Query(None, description="Authorization code from Strava"),
    error: Optional[str] = Query(None, description="Set by Strava when the athlete declines"),
    db: Session = Depends(get_db),
    client: StravaClient = Depends(get_strava_client),
    config: Settings = Depends(get_settings),
):
    """
    Handle the Strava OAuth callback.

    Always answers with a redirect back to the web app, carrying either
    `success=strava_connected` or an `error` reason.
    """
    web_base = config.WEB_APP_BASE_URL.rstrip("/")

    def _error_redirect(reason: str) -> RedirectResponse:
        return RedirectResponse(url=f"{web_base}/?error={quote(reason, safe='')}", status_code=302)

    if error:
        return _error_redirect(error)
    if not code:
        return _error_redirect("no_code")

    try:
        token_data = client.exchange_code_for_token(code)
    except StravaAuthError as e:
        logger.warning(f"Strava token exchange failed: {e}")
        return _error_redirect("token_exchange_failed")
    except ConfigError as e:
        logger.error(f"Strava OAuth misconfigured: {e}")
        return _error_redirect("unknown_error")

    try:
        athlete = token_data.get("athlete") or {}
        upsert_credential(
            db,
            athlete_id=int(athlete["id"]),
            access_token=token_data["access_token"],
            refresh_token=token_data["refresh_token"],
            expires_at=int(token_data["expires_at"]),
            athlete_data=athlete,
        )
    except Exception as e:
        logger.error(f"Storing Strava credential failed: {e}", exc_info=True)
        db.rollback()
        return _error_redirect("unknown_error")

    firstname = athlete.get("firstname") or ""
    logger.info(f"Strava connected for athlete {athlete['id']}")
    return RedirectResponse(
        url=f"{web_base}/?success=strava_connected&athlete={quote(firstname, safe='')}",
        status_code=302,
    )


@router.post("/sync")
def trigger_strava_sync(
    full: bool = Query(False, description="Ignore the cursor and request full history"),
    athlete_id: Optional[int] = Query(None, description="Strava athlete id; defaults to the only connected athlete"),
    db: Session = Depends(get_db),
    client: StravaClient = Depends(get_strava_client),
):
    """
    Sync activities from Strava now, then refresh weekly summaries.
    """
    return run_sync(db, client, athlete_id, force_full_sync=full, message="Sync completed")


@router.get("/status", response_model=StravaStatusResponse)
def get_strava_status(
    athlete_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Connection status: whether a credential exists and whether its token has expired.
    """
    query = db.query(StravaCredential)
    if athlete_id is not None:
        query = query.filter(StravaCredential.athlete_id == athlete_id)
    credential = query.order_by(StravaCredential.created_at).first()

    if credential is None:
        return StravaStatusResponse(connected=False)

    now = int(datetime.now(timezone.utc).timestamp())
    last_activity = db.query(func.max(Activity.start_time)).scalar()
    return StravaStatusResponse(
        connected=True,
        athlete_id=credential.athlete_id,
        token_expired=credential.is_expired(now),
        token_expires_at=credential.expires_at,
        last_activity_at=as_utc(last_activity),
    )
