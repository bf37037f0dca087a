"""
Strava HTTP client.

Thin wrapper over the three Strava endpoints the app uses: the OAuth consent
URL, the token endpoint (authorization_code and refresh_token grants), and
GET /athlete/activities. Every call is a single attempt with a timeout;
failures surface to the caller, nothing is retried here.
"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import requests

from core.config import Settings
from core.exceptions import ConfigError, StravaAuthError, StravaFetchError

logger = logging.getLogger(__name__)

STRAVA_API_BASE = "https://www.strava.com/api/v3"
STRAVA_AUTHORIZE_URL = "https://www.strava.com/oauth/authorize"
STRAVA_TOKEN_URL = "https://www.strava.com/oauth/token"


class StravaClient:
    """Strava API client configured once from Settings."""

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: str,
        scopes: str = "read,activity:read_all",
        timeout: int = 30,
        page_size: int = 100,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes
        self.timeout = timeout
        self.page_size = page_size

    @classmethod
    def from_settings(cls, config: Settings) -> "StravaClient":
        return cls(
            client_id=config.STRAVA_CLIENT_ID,
            client_secret=config.STRAVA_CLIENT_SECRET,
            redirect_uri=config.strava_redirect_uri,
            scopes=config.STRAVA_SCOPES,
            timeout=config.EXTERNAL_API_TIMEOUT,
            page_size=config.STRAVA_PAGE_SIZE,
        )

    def _require_client_credentials(self) -> None:
        if not self.client_id:
            raise ConfigError("STRAVA_CLIENT_ID is not configured")
        if not self.client_secret:
            raise ConfigError("STRAVA_CLIENT_SECRET is not configured")

    def get_auth_url(self, state: Optional[str] = None) -> str:
        if not self.client_id:
            raise ConfigError("STRAVA_CLIENT_ID is not configured")

        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "scope": self.scopes,
        }
        if state:
            params["state"] = state
        return f"{STRAVA_AUTHORIZE_URL}?{urlencode(params)}"

    def _token_request(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self._require_client_credentials()
        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            **data,
        }
        try:
            r = requests.post(STRAVA_TOKEN_URL, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise StravaAuthError(f"Strava token request failed: {e}") from e

        if r.status_code >= 400:
            logger.warning(f"Strava token endpoint returned {r.status_code}: {r.text[:200]}")
            raise StravaAuthError(f"Strava token exchange failed with status {r.status_code}")

        token = r.json()
        if not token.get("access_token"):
            raise StravaAuthError("Strava token response is missing access_token")
        return token

    def exchange_code_for_token(self, code: str) -> Dict[str, Any]:
        """
        Exchange an OAuth authorization code.

        Returns dict with: access_token, refresh_token, expires_at, athlete
        """
        return self._token_request({"code": code, "grant_type": "authorization_code"})

    def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        """
        Exchange a refresh token for a new access token.

        Returns dict with: access_token, refresh_token, expires_at, expires_in, token_type
        Raises StravaAuthError on any non-success response.
        """
        return self._token_request({"refresh_token": refresh_token, "grant_type": "refresh_token"})

    def fetch_activities_page(
        self,
        access_token: str,
        after: Optional[int] = None,
        per_page: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch ONE page of the athlete's activities, newest cursor first.

        `after` is an epoch-seconds lower bound; omitted for a full-history request.
        """
        params: Dict[str, Any] = {"per_page": int(per_page or self.page_size)}
        if after is not None:
            params["after"] = int(after)

        try:
            r = requests.get(
                f"{STRAVA_API_BASE}/athlete/activities",
                headers={"Authorization": f"Bearer {access_token}"},
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StravaFetchError(f"Failed to fetch activities from Strava: {e}") from e

        if r.status_code != 200:
            raise StravaFetchError(
                f"Failed to fetch activities from Strava (status {r.status_code})",
                status_code=r.status_code,
            )

        activities = r.json()
        return activities if isinstance(activities, list) else []
