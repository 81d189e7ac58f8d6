"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./church.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key for signing JWT tokens", min_length=1
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    app_timezone: str = Field(
        default="UTC",
        description="Timezone used for stored timestamps and quiet hours",
    )
    cors_origins: list[str] = Field(default_factory=list)

    vapid_public_key: str | None = Field(
        default=None,
        description="Public VAPID key shared with browsers when they subscribe",
    )
    vapid_private_key: str | None = Field(
        default=None,
        description="Private VAPID key used to sign Web Push requests",
    )
    vapid_subject: str = Field(
        default="mailto:admin@example.com",
        description="Contact URI sent as the VAPID 'sub' claim",
    )
    push_ttl_seconds: int = Field(default=60 * 60 * 24, gt=0)
    push_batch_size: int = Field(default=10, gt=0)

    stream_heartbeat_seconds: float = Field(default=30.0, gt=0)
    stream_poll_seconds: float = Field(default=5.0, gt=0)
    stream_max_duration_seconds: float = Field(default=290.0, gt=0)
    stream_initial_batch_size: int = Field(default=20, gt=0)
    stream_poll_batch_size: int = Field(default=10, gt=0)
    stream_queue_size: int = Field(default=100, gt=0)

    notification_retention_days: int = Field(default=30, gt=0)
    subscription_stale_days: int = Field(default=30, gt=0)

    @model_validator(mode="after")
    def _validate_vapid_pair(self) -> "Settings":
        if bool(self.vapid_public_key) ^ bool(self.vapid_private_key):
            raise ValueError(
                "VAPID_PUBLIC_KEY and VAPID_PRIVATE_KEY must both be provided to enable push"
            )
        if not self.vapid_subject.startswith(("mailto:", "https:")):
            raise ValueError("VAPID_SUBJECT must be a mailto: or https: URI")
        return self

    @property
    def push_configured(self) -> bool:
        """Return ``True`` when both VAPID keys are available."""

        return bool(self.vapid_public_key and self.vapid_private_key)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
