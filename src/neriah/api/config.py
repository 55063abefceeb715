"""API server configuration."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class APIConfig(BaseSettings):
    """Settings for the HTTP service, read from the environment or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "staging", "production"] = "development"
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    log_json: bool | None = None
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    database_url: str = Field(default="", description="Async SQLAlchemy database URL")
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Shared secret the scheduler sends as "Authorization: Bearer <secret>"
    cron_secret: str | None = None
    # HS256 secret used to sign user session JWTs
    jwt_secret: str | None = None
    jwt_audience: str = "authenticated"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == "development"

    @property
    def use_json_logs(self) -> bool:
        """JSON logs everywhere except development, unless overridden."""
        if self.log_json is not None:
            return self.log_json
        return not self.is_development


@lru_cache
def get_api_config() -> APIConfig:
    """Get cached API configuration."""
    return APIConfig()
