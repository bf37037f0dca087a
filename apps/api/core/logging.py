"""
Logging setup for the training tracker API.

What gets logged:
- one line per HTTP request (method, path, status, duration) from main.py
- Strava sync counts, full pages and token refreshes
- rollup counts, stored AI analyses and failed model calls
- rejected cron requests

Production (or LOG_FORMAT=json) writes one JSON object per line so the host's
log drain can index the extra_fields; development gets plain text.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from core.config import settings

SERVICE_NAME = "training-tracker-api"

# Chatty client libraries; their DEBUG/INFO output drowns the sync logs
QUIET_LOGGERS = ("sqlalchemy.engine", "urllib3", "httpx", "httpcore", "anthropic")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, merged with any extra_fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "environment": settings.ENVIRONMENT,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # logger.info(..., extra={"extra_fields": {"athlete_id": 1, "synced": 3}})
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            entry.update(extra_fields)

        return json.dumps(entry, default=str)


def setup_logging() -> logging.Logger:
    """Install a single stdout handler on the root logger."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    if settings.LOG_FORMAT == "json" or settings.is_production:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root
