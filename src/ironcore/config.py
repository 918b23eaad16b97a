"""Application configuration using pydantic-settings."""

from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    database_url: str

    debug: bool = False

    # Week boundaries
    default_timezone: str = "UTC"  # IANA zone used when a user has none
    week_start_weekday: int = 0  # 0 = Monday ... 6 = Sunday

    # History display
    history_limit: int = 10

    @field_validator("week_start_weekday")
    @classmethod
    def _check_weekday(cls, value: int) -> int:
        if not 0 <= value <= 6:
            raise ValueError("week_start_weekday must be between 0 (Monday) and 6 (Sunday)")
        return value

    @field_validator("default_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone {value!r}") from exc
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
