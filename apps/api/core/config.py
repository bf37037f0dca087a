"""
Centralized configuration management with validation.

All environment variables are loaded and validated here, once, at import time.
Services never read os.environ themselves: they receive `settings` (or values
taken from it) through their constructors.
"""
from datetime import date
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation."""

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    # Database Configuration
    # DATABASE_URL wins when set (e.g. sqlite:///./training.db for local use).
    DATABASE_URL: Optional[str] = Field(default=None)
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: str = Field(default="postgres")
    POSTGRES_DB: str = Field(default="training_tracker")
    POSTGRES_HOST: str = Field(default="postgres")
    POSTGRES_PORT: int = Field(default=5432)

    # Database Pool Configuration (ignored for SQLite)
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=5)
    DB_POOL_TIMEOUT: int = Field(default=30)
    DB_POOL_RECYCLE: int = Field(default=3600)  # 1 hour

    # Redis is optional; it only backs the cross-process sync lock.
    REDIS_URL: Optional[str] = Field(default=None)
    SYNC_LOCK_TTL_S: int = Field(default=300)

    # Strava API Configuration
    STRAVA_CLIENT_ID: Optional[str] = Field(default=None)
    STRAVA_CLIENT_SECRET: Optional[str] = Field(default=None)
    STRAVA_REDIRECT_URI: Optional[str] = Field(default=None)
    STRAVA_SCOPES: str = Field(default="read,activity:read_all")
    STRAVA_PAGE_SIZE: int = Field(default=100, ge=1, le=200)

    # Token Encryption
    TOKEN_ENCRYPTION_KEY: Optional[str] = Field(default=None)

    # Anthropic (coaching feedback)
    ANTHROPIC_API_KEY: Optional[str] = Field(default=None)
    AI_MODEL: str = Field(default="claude-sonnet-4-20250514")
    AI_MAX_TOKENS: int = Field(default=1024)

    # Goal race used in the coaching context
    RACE_NAME: str = Field(default="Gotland Rundt")
    RACE_DATE: date = Field(default=date(2026, 7, 4))

    # Shared secret for the scheduled sync route (production only)
    CRON_SECRET: Optional[str] = Field(default=None)

    # API Configuration
    API_HOST: str = Field(default="0.0.0.0")
    API_PORT: int = Field(default=8000)

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="text")  # json or text

    # External API Configuration
    EXTERNAL_API_TIMEOUT: int = Field(default=30)

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # CORS - comma-separated list of allowed origins for production
    CORS_ORIGINS: Optional[str] = Field(default=None)

    # Web app base URL (the OAuth callback sends the browser back here).
    WEB_APP_BASE_URL: str = Field(default="http://localhost:3000")

    # Public URL of this API; Strava redirects to its /strava/callback
    API_BASE_URL: str = Field(default="http://localhost:8000")

    # Sentry Error Tracking
    SENTRY_DSN: Optional[str] = Field(default=None)
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.1)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.POSTGRES_USER}:"
            f"{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:"
            f"{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )

    @property
    def strava_redirect_uri(self) -> str:
        return self.STRAVA_REDIRECT_URI or f"{self.API_BASE_URL.rstrip('/')}/strava/callback"


# Global settings instance
settings = Settings()
