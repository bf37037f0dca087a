"""
Strava credential store and token refresher.

One StravaCredential row per Strava athlete. Tokens are encrypted before they
touch the database and decrypted only when a request needs them.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from core.exceptions import StravaAuthError
from models import StravaCredential
from services.strava_service import StravaClient
from services.token_encryption import decrypt_token, encrypt_token

logger = logging.getLogger(__name__)


def get_credential(db: Session, athlete_id: int) -> Optional[StravaCredential]:
    return (
        db.query(StravaCredential)
        .filter(StravaCredential.athlete_id == int(athlete_id))
        .first()
    )


def resolve_athlete_id(db: Session, athlete_id: Optional[int] = None) -> int:
    """
    Resolve which athlete a request is about.

    Callers that pass nothing get "the only stored credential"; zero or
    several stored credentials is an error rather than a guess.
    """
    if athlete_id is not None:
        if not get_credential(db, athlete_id):
            raise StravaAuthError(f"No Strava credential for athlete {athlete_id}")
        return int(athlete_id)

    ids = [row[0] for row in db.query(StravaCredential.athlete_id).limit(2).all()]
    if not ids:
        raise StravaAuthError("No Strava credential found; connect Strava first")
    if len(ids) > 1:
        raise StravaAuthError("Several Strava credentials stored; pass athlete_id explicitly")
    return int(ids[0])


def upsert_credential(
    db: Session,
    athlete_id: int,
    access_token: str,
    refresh_token: str,
    expires_at: int,
    athlete_data: Optional[Dict[str, Any]] = None,
) -> StravaCredential:
    """Insert or overwrite the credential for an athlete, then commit."""
    credential = get_credential(db, athlete_id)
    if credential is None:
        credential = StravaCredential(athlete_id=int(athlete_id))
        db.add(credential)

    credential.access_token = encrypt_token(access_token)
    credential.refresh_token = encrypt_token(refresh_token)
    credential.expires_at = int(expires_at)
    if athlete_data is not None:
        credential.athlete_data = athlete_data

    db.commit()
    db.refresh(credential)
    return credential


def get_access_token(credential: StravaCredential) -> str:
    token = decrypt_token(credential.access_token)
    if not token:
        raise StravaAuthError("Stored Strava access token cannot be decrypted; reconnect Strava")
    return token


def refresh_credential(db: Session, client: StravaClient, credential: StravaCredential) -> StravaCredential:
    """
    Exchange the stored refresh token for a new token pair and persist it.

    On failure the stored credential is left as it was.
    """
    refresh_token = decrypt_token(credential.refresh_token)
    if not refresh_token:
        raise StravaAuthError("Stored Strava refresh token cannot be decrypted; reconnect Strava")

    token_data = client.refresh_access_token(refresh_token)

    updated = upsert_credential(
        db,
        athlete_id=credential.athlete_id,
        access_token=token_data["access_token"],
        # Strava may omit the refresh token when it has not rotated
        refresh_token=token_data.get("refresh_token") or refresh_token,
        expires_at=int(token_data["expires_at"]),
    )
    logger.info(f"Refreshed Strava token for athlete {credential.athlete_id}")
    return updated


def ensure_fresh_token(
    db: Session,
    client: StravaClient,
    credential: StravaCredential,
    now: Optional[int] = None,
) -> str:
    """
    Return a usable access token, refreshing first when the stored one has expired.
    """
    now = int(time.time()) if now is None else int(now)
    if credential.is_expired(now):
        logger.info(f"Strava token expired for athlete {credential.athlete_id}, refreshing")
        credential = refresh_credential(db, client, credential)
    return get_access_token(credential)
