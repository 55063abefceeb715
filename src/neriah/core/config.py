"""Configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dotenv import dotenv_values

if TYPE_CHECKING:
    from neriah.services.sync_policy import PacingPolicy


def _lookup(name: str, config: dict[str, Any]) -> str | None:
    """Read a setting, preferring the process environment over the .env file."""
    value = os.environ.get(name) or config.get(name)
    return str(value) if value else None


def _float(name: str, config: dict[str, Any], default: float) -> float:
    raw = _lookup(name, config)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _int(name: str, config: dict[str, Any], default: int) -> int:
    raw = _lookup(name, config)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class Config:
    """Pipeline configuration."""

    database_url: str
    anthropic_api_key: str | None = None
    openai_api_key: str | None = None
    extraction_model: str = "sonnet"
    # Google OAuth (token refresh only)
    google_client_id: str | None = None
    google_client_secret: str | None = None
    # Web push
    vapid_public_key: str | None = None
    vapid_private_key: str | None = None
    vapid_subject: str = "mailto:support@neriah.app"
    # Extraction pacing
    max_concurrent_extractions: int = 5
    inter_request_delay_seconds: float = 0.0
    extraction_timeout_seconds: float = 60.0
    inter_user_delay_seconds: float = 1.0
    # Confidence thresholds
    initial_confidence_threshold: float = 0.5
    sync_confidence_threshold: float = 0.7

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> Config:
        """Load configuration from environment and .env file.

        Args:
            env_file: Path to .env file. If None, only the process
                     environment is read.

        Returns:
            Config instance with loaded values.

        Raises:
            ValueError: If required DATABASE_URL is not set or a numeric
                setting cannot be parsed.
        """
        config: dict[str, Any] = {}
        if env_file and env_file.exists():
            config = dict(dotenv_values(env_file))

        database_url = _lookup("DATABASE_URL", config)
        if not database_url:
            raise ValueError("DATABASE_URL is required")

        return cls(
            database_url=database_url,
            anthropic_api_key=_lookup("ANTHROPIC_API_KEY", config),
            openai_api_key=_lookup("OPENAI_API_KEY", config),
            extraction_model=_lookup("EXTRACTION_MODEL", config) or "sonnet",
            google_client_id=_lookup("GOOGLE_CLIENT_ID", config),
            google_client_secret=_lookup("GOOGLE_CLIENT_SECRET", config),
            vapid_public_key=_lookup("VAPID_PUBLIC_KEY", config),
            vapid_private_key=_lookup("VAPID_PRIVATE_KEY", config),
            vapid_subject=_lookup("VAPID_SUBJECT", config) or "mailto:support@neriah.app",
            max_concurrent_extractions=_int("MAX_CONCURRENT_EXTRACTIONS", config, 5),
            inter_request_delay_seconds=_float("INTER_REQUEST_DELAY_SECONDS", config, 0.0),
            extraction_timeout_seconds=_float("EXTRACTION_TIMEOUT_SECONDS", config, 60.0),
            inter_user_delay_seconds=_float("INTER_USER_DELAY_SECONDS", config, 1.0),
            initial_confidence_threshold=_float("INITIAL_CONFIDENCE_THRESHOLD", config, 0.5),
            sync_confidence_threshold=_float("SYNC_CONFIDENCE_THRESHOLD", config, 0.7),
        )

    def validate(self) -> list[str]:
        """Validate configuration.

        Returns:
            List of problems, empty when the configuration is usable.
        """
        problems = []
        if not self.database_url:
            problems.append("DATABASE_URL")
        if self.max_concurrent_extractions < 1:
            problems.append("MAX_CONCURRENT_EXTRACTIONS must be >= 1")
        if self.inter_request_delay_seconds < 0:
            problems.append("INTER_REQUEST_DELAY_SECONDS must be >= 0")
        if self.extraction_timeout_seconds <= 0:
            problems.append("EXTRACTION_TIMEOUT_SECONDS must be > 0")
        for name, value in (
            ("INITIAL_CONFIDENCE_THRESHOLD", self.initial_confidence_threshold),
            ("SYNC_CONFIDENCE_THRESHOLD", self.sync_confidence_threshold),
        ):
            if not 0.0 <= value <= 1.0:
                problems.append(f"{name} must be between 0 and 1")
        return problems

    def has_anthropic(self) -> bool:
        """Check if Anthropic API key is configured."""
        return bool(self.anthropic_api_key)

    def has_llm(self) -> bool:
        """Check if any LLM API key is configured."""
        return bool(self.openai_api_key) or self.has_anthropic()

    def has_push(self) -> bool:
        """Check if web push (VAPID) keys are configured."""
        return bool(self.vapid_public_key and self.vapid_private_key)

    def pacing_policy(self) -> PacingPolicy:
        """Build the extraction pacing policy from this configuration."""
        from neriah.services.sync_policy import PacingPolicy

        return PacingPolicy(
            max_concurrent_extractions=self.max_concurrent_extractions,
            inter_request_delay_seconds=self.inter_request_delay_seconds,
            extraction_timeout_seconds=self.extraction_timeout_seconds,
        )
