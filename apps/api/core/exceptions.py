"""
Custom exception classes and error handling.

Two families live here:
- APIException subclasses are raised by routers and map 1:1 to HTTP responses.
- Service errors are plain RuntimeError subclasses raised inside services;
  routers decide how each one is surfaced.
"""
from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class APIException(HTTPException):
    """Base API exception with consistent structure."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class NotFoundError(APIException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found: {identifier}",
            error_code="NOT_FOUND"
        )


class ValidationError(APIException):
    """Validation error."""

    def __init__(self, detail: str, field: Optional[str] = None):
        error_code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code=error_code
        )


class ConfigError(RuntimeError):
    """A required configuration value is absent."""


class StravaAuthError(RuntimeError):
    """Missing, ambiguous or invalid Strava credential, or a failed token exchange."""


class StravaFetchError(RuntimeError):
    """The Strava activities endpoint answered with a non-success status."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SyncInProgressError(RuntimeError):
    """Another sync for the same athlete holds the lock."""


class AICoachError(RuntimeError):
    """The language model call failed or returned no text."""
