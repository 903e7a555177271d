"""Sprintboard Configuration Settings."""

import logging
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # Database
    DATABASE_URL: Optional[str] = None

    # Application
    APP_NAME: str = "Sprintboard"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Planning
    CLOSED_SPRINT_PAGE_SIZE: int = 10

    # Metrics
    DEFAULT_VELOCITY_SPRINT_COUNT: int = 5
    DEFAULT_FLOW_DAYS: int = 14
    MAX_FLOW_DAYS: int = 90
    METRICS_CACHE_TTL_SECONDS: int = 60

    # Daily cumulative-flow snapshots
    SNAPSHOT_SCHEDULER_ENABLED: bool = False
    SNAPSHOT_INTERVAL_SECONDS: int = 3600

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    @property
    def cors_origins_list(self) -> List[str]:
        """Return the configured CORS origins as a sanitized list."""

        if not self.CORS_ORIGINS:
            return []

        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()


def configure_logging() -> None:
    """Configure root logging from ``settings.LOG_LEVEL``."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
