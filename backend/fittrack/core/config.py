"""
Application configuration.
All values loaded from environment variables.
"""
from datetime import timedelta
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database (record store)
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/fittrack"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or console

    # Analytics cache - entries older than this are recomputed on next access
    ANALYTICS_CACHE_TTL_SECONDS: int = 300

    # How far back personal record scans look
    PR_HISTORY_DAYS: int = 365

    # Upper bound on concurrent record store calls while walking
    # programs -> weeks -> workouts -> exercises -> sets
    STORE_MAX_CONCURRENCY: int = 8

    # Number of recent PRs considered when counting new PRs for key statistics
    KEY_STATS_PR_LIMIT: int = 50

    @property
    def cache_validity(self) -> timedelta:
        """Validity window shared by the TTL cache and month snapshots."""
        return timedelta(seconds=self.ANALYTICS_CACHE_TTL_SECONDS)

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
