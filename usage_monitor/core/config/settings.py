from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from usage_monitor.core.usage import DEFAULT_ACCOUNT_COUNT

DEFAULT_HOME_DIR = Path.home() / ".usage-monitor"
DEFAULT_DATABASE_URL = f"sqlite+aiosqlite:///{DEFAULT_HOME_DIR / 'store.db'}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="USAGE_MONITOR_", env_file=".env", extra="ignore")

    database_url: str = DEFAULT_DATABASE_URL
    account_count: int = Field(default=DEFAULT_ACCOUNT_COUNT, ge=1, le=10)
    timezone: str = "UTC"
    reset_check_interval_seconds: float = Field(default=300.0, gt=0)
    metrics_refresh_interval_seconds: float = Field(default=60.0, gt=0)
    save_debounce_seconds: float = Field(default=3.0, ge=0)
    session_ttl_seconds: int = Field(default=12 * 60 * 60, gt=0)
    scheduler_enabled: bool = True
    log_level: str = "info"

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@lru_cache
def get_settings() -> Settings:
    return Settings()
