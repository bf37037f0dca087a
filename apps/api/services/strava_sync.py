"""
Incremental Strava sync.

One invocation runs strictly in order:
1. load the athlete's credential
2. refresh the token if it has expired (a refresh failure aborts the sync)
3. derive the `after` cursor from the newest stored activity, minus one day
4. fetch ONE page of activities
5. insert the ones not stored yet, counting the rest as skipped

Each insert commits on its own, so a failure halfway keeps what was stored.
Invocations for the same athlete are serialized: a second caller gets
SyncInProgressError instead of racing the first one on the token refresh.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.cache import acquire_lock, release_lock
from core.config import settings
from core.exceptions import StravaAuthError, SyncInProgressError
from models import Activity, as_utc
from services.strava_credentials import ensure_fresh_token, get_credential
from services.strava_ingest import activity_exists, upsert_strava_activity
from services.strava_service import StravaClient
from services.weekly_rollup import rollup_all

logger = logging.getLogger(__name__)

CURSOR_OVERLAP_S = 86400

_local_locks: Dict[int, threading.Lock] = {}
_local_locks_guard = threading.Lock()


@dataclass
class SyncResult:
    synced: int
    skipped: int
    total: int
    truncated: bool
    after: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "synced": self.synced,
            "skipped": self.skipped,
            "total": self.total,
            "truncated": self.truncated,
            "after": self.after,
        }


def _local_lock_for(athlete_id: int) -> threading.Lock:
    with _local_locks_guard:
        lock = _local_locks.get(athlete_id)
        if lock is None:
            lock = threading.Lock()
            _local_locks[athlete_id] = lock
        return lock


@contextmanager
def athlete_sync_lock(athlete_id: int, ttl_s: Optional[int] = None) -> Iterator[None]:
    """
    Hold the per-athlete sync lock for the duration of the block.

    The process-local lock always applies; the Redis lock extends it across
    processes when Redis is configured and reachable.
    """
    local = _local_lock_for(int(athlete_id))
    if not local.acquire(blocking=False):
        raise SyncInProgressError(f"A sync for athlete {athlete_id} is already running")

    key = f"lock:strava:sync:{athlete_id}"
    token = uuid.uuid4().hex
    try:
        acquired = acquire_lock(key, token, ttl_s or settings.SYNC_LOCK_TTL_S)
        if acquired is False:
            raise SyncInProgressError(f"A sync for athlete {athlete_id} is already running")
        try:
            yield
        finally:
            if acquired:
                release_lock(key, token)
    finally:
        local.release()


def latest_activity_epoch(db: Session) -> Optional[int]:
    latest = db.query(func.max(Activity.start_time)).scalar()
    if latest is None:
        return None
    return int(as_utc(latest).timestamp())


def compute_after_cursor(db: Session, force_full_sync: bool) -> Optional[int]:
    """Epoch lower bound for the fetch, or None for a full-history request."""
    if force_full_sync:
        return None
    latest = latest_activity_epoch(db)
    if latest is None:
        return None
    return latest - CURSOR_OVERLAP_S


def sync_activities(
    db: Session,
    client: StravaClient,
    athlete_id: int,
    force_full_sync: bool = False,
    now: Optional[int] = None,
) -> SyncResult:
    """
    Pull new Strava activities for one athlete.

    Raises:
        StravaAuthError: no credential, or the token refresh failed
        StravaFetchError: the activities endpoint answered non-200
        SyncInProgressError: another sync for this athlete is running
    """
    with athlete_sync_lock(athlete_id):
        credential = get_credential(db, athlete_id)
        if credential is None:
            raise StravaAuthError(f"No Strava credential for athlete {athlete_id}")

        now = int(time.time()) if now is None else int(now)
        access_token = ensure_fresh_token(db, client, credential, now=now)

        after = compute_after_cursor(db, force_full_sync)
        page_size = client.page_size
        activities = client.fetch_activities_page(access_token, after=after, per_page=page_size)

        synced = 0
        skipped = 0
        for item in activities:
            if activity_exists(db, item["id"]):
                skipped += 1
                continue
            upsert_strava_activity(db, item)
            synced += 1

        result = SyncResult(
            synced=synced,
            skipped=skipped,
            total=len(activities),
            truncated=len(activities) >= page_size,
            after=after,
        )

    if result.truncated:
        logger.warning(
            f"Strava sync for athlete {athlete_id} filled a whole page ({page_size}); "
            "older unsynced activities may remain"
        )
    logger.info(
        f"Strava sync for athlete {athlete_id}: synced={result.synced} skipped={result.skipped} total={result.total}",
        extra={"extra_fields": {"athlete_id": athlete_id, **result.to_dict()}},
    )
    return result


def sync_and_rollup(
    db: Session,
    client: StravaClient,
    athlete_id: int,
    force_full_sync: bool = False,
) -> SyncResult:
    """Run a sync and, when anything new was stored, recompute every weekly summary."""
    result = sync_activities(db, client, athlete_id, force_full_sync=force_full_sync)
    if result.synced > 0:
        rollup_all(db)
    return result
