"""Library configuration using pydantic-settings."""

from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import RedisDsn, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rolegate.core.constants import (
    DEFAULT_INACTIVITY_TIMEOUT_MINUTES,
    DEFAULT_SESSION_RETENTION_MINUTES,
    DEFAULT_SWEEP_INTERVAL_MINUTES,
)


class Settings(BaseSettings):
    """Settings loaded from ``ROLEGATE_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ROLEGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "rolegate"
    environment: str = "development"  # development, staging, production

    # Sessions
    session_inactivity_timeout_minutes: int = DEFAULT_INACTIVITY_TIMEOUT_MINUTES
    session_sweep_interval_minutes: int = DEFAULT_SWEEP_INTERVAL_MINUTES
    session_retention_minutes: int = DEFAULT_SESSION_RETENTION_MINUTES

    # Constraints
    constraint_timezone: str = "UTC"

    # Policy
    policy_path: Path | None = None

    # Sweep worker
    redis_url: RedisDsn = RedisDsn("redis://localhost:6379")

    # Errors
    problem_type_base_url: str = "https://docs.example.com/rolegate"

    # Observability
    log_level: str = "INFO"

    @field_validator("session_inactivity_timeout_minutes", "session_retention_minutes")
    @classmethod
    def validate_positive_minutes(cls, v: int) -> int:
        """Reject zero or negative durations."""
        if v < 1:
            raise ValueError("must be at least 1 minute")
        return v

    @field_validator("session_sweep_interval_minutes")
    @classmethod
    def validate_sweep_interval(cls, v: int) -> int:
        """The sweep is scheduled on the minute field of a cron, so 1..60."""
        if not 1 <= v <= 60:
            raise ValueError("SESSION_SWEEP_INTERVAL_MINUTES must be between 1 and 60")
        return v

    @field_validator("constraint_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Make sure the zone name resolves to an IANA time zone."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def inactivity_timeout(self) -> timedelta:
        """Idle time after which a session counts as expired."""
        return timedelta(minutes=self.session_inactivity_timeout_minutes)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def session_retention(self) -> timedelta:
        """How long ended sessions are kept before the sweep purges them."""
        return timedelta(minutes=self.session_retention_minutes)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
