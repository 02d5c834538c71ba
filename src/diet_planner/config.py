"""Application configuration."""

import os

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from diet_planner.app_logging import resolve_level

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    price_refresh_base_url: str | None = None
    price_refresh_token: str | None = None
    price_freshness_hours: float = 24.0
    price_expiry_hours: float | None = None
    default_unit_price: float = 50.0
    default_currency: str = "VND"
    default_servings: int = 2
    saving_factor: float = 0.85
    slot_max_attempts: int = 3
    catalog_ttl_seconds: int = 300
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @field_validator("price_expiry_hours", mode="before")
    @classmethod
    def _parse_expiry(cls, value: object) -> float | None:
        return parse_price_expiry_hours(value)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        resolve_level(value)
        return value.strip().upper()


def parse_price_expiry_hours(raw: str | float | None) -> float | None:
    """Parse the optional price expiry, treating blank or non-positive as off."""
    if raw is None:
        return None
    if isinstance(raw, str):
        cleaned = raw.strip().lower()
        if cleaned in {"", "none", "off"}:
            return None
        try:
            value = float(cleaned)
        except ValueError:
            return None
    else:
        value = float(raw)
    return value if value > 0 else None
