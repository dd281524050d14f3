from typing import Literal

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

from fieldops.models.enums import ProrationMethod


class TenureProration(BaseModel):
    """How tenure-based leave categories scale their annual entitlement."""

    method: ProrationMethod = ProrationMethod.MONTHS_EMPLOYED
    months_per_day: int = 2
    max_days: int = 6


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "FieldOps Scheduler"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "postgresql+asyncpg://fieldops:fieldops@db:5432/fieldops"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]
    log_level: str = "INFO"
    timezone: str = "UTC"

    # Leave governance policy.
    approver_floor_level: int = 100
    quota_proration: TenureProration = TenureProration()
    sick_certificate_days: int = 3


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
