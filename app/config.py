"""Runtime settings, read from ``HEADERNAV_*`` environment variables."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HEADERNAV_", env_file=".env", extra="ignore")

    cms_url: Optional[str] = Field(
        default=None,
        description="Base URL of the CMS serving the header global, e.g. https://cms.example.com.",
    )
    cms_timeout: float = Field(default=10.0, gt=0, description="Timeout for CMS requests (seconds).")
    resolve_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for resolving one internal reference (seconds).",
    )
    rate_limit: str = "60/minute"
    log_level: str = Field(default="INFO", description="Root logger level, e.g. DEBUG or WARNING.")

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unknown log level {value!r}.")
        return level


@lru_cache
def get_settings() -> Settings:
    return Settings()
