"""
Authorization dependencies.

The app is single-tenant with no end-user login. The only guarded surface is
the scheduled sync route, which must come from the platform scheduler or carry
the shared cron secret when running in production.
"""
import hmac
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from core.config import Settings, settings

logger = logging.getLogger(__name__)

# auto_error=False: a missing header is answered by the route, not FastAPI's 403
security = HTTPBearer(auto_error=False)

PLATFORM_CRON_HEADER = "x-vercel-cron"


def get_settings() -> Settings:
    """Dependency returning the process-wide settings (overridable in tests)."""
    return settings


def is_authorized_cron_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
    config: Settings,
) -> bool:
    """True if the platform scheduler header is present or the bearer secret matches."""
    if request.headers.get(PLATFORM_CRON_HEADER):
        return True

    secret = config.CRON_SECRET
    if secret and credentials and credentials.scheme.lower() == "bearer":
        return hmac.compare_digest(credentials.credentials, secret)

    return False


def cron_request_allowed(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    config: Settings = Depends(get_settings),
) -> bool:
    """
    Whether the scheduled sync route may run for this request.

    Outside production the route is open so it can be triggered by hand. The
    route answers a refusal itself with the same {"error": ...} body as the
    other sync failures.
    """
    if not config.is_production:
        return True

    if is_authorized_cron_request(request, credentials, config):
        return True

    logger.warning(
        "Rejected unauthorized cron request",
        extra={"extra_fields": {"path": request.url.path}},
    )
    return False
