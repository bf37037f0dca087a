"""
Strava HTTP client against mocked requests.
"""
from unittest.mock import MagicMock

import pytest
import requests

from core.config import Settings
from core.exceptions import ConfigError, StravaAuthError, StravaFetchError
from services import strava_service
from services.strava_service import STRAVA_TOKEN_URL, StravaClient


def _response(status_code, payload=None):
    r = MagicMock()
    r.status_code = status_code
    r.json.return_value = payload
    r.text = str(payload)
    return r


@pytest.fixture
def strava():
    return StravaClient(client_id="12345", client_secret="secret", redirect_uri="http://x/cb", timeout=7, page_size=50)


def test_from_settings_uses_configured_values():
    config = Settings(STRAVA_CLIENT_ID="1", STRAVA_CLIENT_SECRET="2", STRAVA_PAGE_SIZE=25, EXTERNAL_API_TIMEOUT=9)
    client = StravaClient.from_settings(config)
    assert client.page_size == 25
    assert client.timeout == 9
    assert client.redirect_uri == config.strava_redirect_uri


def test_default_redirect_points_at_api_callback():
    config = Settings(STRAVA_REDIRECT_URI=None, API_BASE_URL="https://api.example.com/", WEB_APP_BASE_URL="https://app.example.com")
    assert config.strava_redirect_uri == "https://api.example.com/strava/callback"

    explicit = Settings(STRAVA_REDIRECT_URI="https://tunnel.example.com/strava/callback")
    assert explicit.strava_redirect_uri == "https://tunnel.example.com/strava/callback"


def test_refresh_posts_refresh_grant(monkeypatch, strava):
    post = MagicMock(return_value=_response(200, {"access_token": "new", "refresh_token": "r2", "expires_at": 1}))
    monkeypatch.setattr(strava_service.requests, "post", post)

    token = strava.refresh_access_token("r1")

    assert token["access_token"] == "new"
    args, kwargs = post.call_args
    assert args[0] == STRAVA_TOKEN_URL
    assert kwargs["json"]["grant_type"] == "refresh_token"
    assert kwargs["json"]["refresh_token"] == "r1"
    assert kwargs["timeout"] == 7


def test_token_error_status_raises(monkeypatch, strava):
    monkeypatch.setattr(strava_service.requests, "post", MagicMock(return_value=_response(400, {"message": "Bad Request"})))
    with pytest.raises(StravaAuthError):
        strava.exchange_code_for_token("bad")


def test_token_network_error_raises(monkeypatch, strava):
    monkeypatch.setattr(strava_service.requests, "post", MagicMock(side_effect=requests.ConnectionError("down")))
    with pytest.raises(StravaAuthError):
        strava.refresh_access_token("r1")


def test_token_request_needs_secret():
    client = StravaClient(client_id="1", client_secret=None, redirect_uri="http://x/cb")
    with pytest.raises(ConfigError):
        client.exchange_code_for_token("code")


def test_fetch_page_passes_cursor(monkeypatch, strava):
    get = MagicMock(return_value=_response(200, [{"id": 1}]))
    monkeypatch.setattr(strava_service.requests, "get", get)

    assert strava.fetch_activities_page("tok", after=1700000000) == [{"id": 1}]

    _, kwargs = get.call_args
    assert kwargs["params"] == {"per_page": 50, "after": 1700000000}
    assert kwargs["headers"]["Authorization"] == "Bearer tok"


def test_fetch_page_without_cursor_omits_after(monkeypatch, strava):
    get = MagicMock(return_value=_response(200, []))
    monkeypatch.setattr(strava_service.requests, "get", get)

    strava.fetch_activities_page("tok")

    assert "after" not in get.call_args.kwargs["params"]


def test_fetch_page_non_200_raises(monkeypatch, strava):
    monkeypatch.setattr(strava_service.requests, "get", MagicMock(return_value=_response(401, {"message": "Authorization Error"})))

    with pytest.raises(StravaFetchError) as exc:
        strava.fetch_activities_page("tok")
    assert exc.value.status_code == 401
