"""
Scheduled jobs, triggered over HTTP by an external scheduler.
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.auth import cron_request_allowed
from core.database import get_db
from routers.strava import get_strava_client, run_sync
from services.strava_service import StravaClient

router = APIRouter(prefix="/cron", tags=["cron"])


@router.get("/sync-strava")
def cron_sync_strava(
    allowed: bool = Depends(cron_request_allowed),
    db: Session = Depends(get_db),
    client: StravaClient = Depends(get_strava_client),
):
    """Incremental sync for the connected athlete."""
    if not allowed:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Unauthorized"})
    return run_sync(db, client, None, force_full_sync=False, message="Cron sync completed")
