# src/socialprice/config/settings.py
"""
Settings - Pydantic-based Configuration Management

Provides centralized configuration management using Pydantic Settings.
Values come from environment variables (or a .env file) and are validated
on load. Every field has a default so the package imports cleanly without
any environment configured.

Files that USE this module:
- socialprice.app (loads settings to wire the backend client and session)
- socialprice.adapters.providers.* (rate source URL and HTTP timeout)
- socialprice.adapters.backend.postgrest (backend URL, key and timeout)
- socialprice.application.* (refresh interval, history window, display currency)

Files that this module USES:
- socialprice.shared.validators (validation functions for settings)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from typing import Optional  # Type hints for optional values

from pydantic import Field, field_validator  # Data validation and field configuration
from pydantic_settings import BaseSettings, SettingsConfigDict  # Settings management with Pydantic

from socialprice.shared.validators import (
    validate_api_key,  # Validate backend key format
    validate_currency_code,  # Validate currency codes against CurrencyCode
    validate_url,  # Validate http(s) URLs
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- Backend (hosted Postgres over PostgREST) ---
    backend_url: str = Field(default="", alias="BACKEND_URL")
    backend_key: str = Field(default="", alias="BACKEND_KEY")

    # --- Product page ---
    product_id: int = Field(default=1, alias="PRODUCT_ID", ge=1)
    display_currency: str = Field(default="USD", alias="DISPLAY_CURRENCY")

    # --- Exchange rates ---
    rates_url: str = Field(default="https://open.er-api.com/v6/latest/USD", alias="RATES_URL")
    rates_refresh_minutes: int = Field(default=60, alias="RATES_REFRESH_MINUTES", ge=1, le=1440)

    # --- HTTP Settings ---
    http_timeout_seconds: int = Field(default=10, alias="HTTP_TIMEOUT_SECONDS", ge=1, le=60)

    # --- History and limits ---
    history_window: int = Field(default=15, alias="HISTORY_WINDOW", ge=1, le=500)
    price_history_limit: int = Field(default=50, alias="PRICE_HISTORY_LIMIT", ge=1, le=1000)
    triple_limit_factor: float = Field(default=3.0, alias="TRIPLE_LIMIT_FACTOR", gt=0)

    # --- Logging ---
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    @property
    def rest_url(self) -> str:
        """PostgREST endpoint root of the backend."""
        return f"{self.backend_url.rstrip('/')}/rest/v1"

    @property
    def rates_refresh_seconds(self) -> int:
        return self.rates_refresh_minutes * 60

    @field_validator("backend_url")
    @classmethod
    def validate_backend_url(cls, v: str) -> str:
        """Validate backend URL format (empty means not configured)."""
        if v and not validate_url(v):
            raise ValueError("Invalid BACKEND_URL format")
        return v

    @field_validator("rates_url")
    @classmethod
    def validate_rates_url(cls, v: str) -> str:
        if not validate_url(v):
            raise ValueError("Invalid RATES_URL format")
        return v

    @field_validator("backend_key")
    @classmethod
    def validate_backend_key(cls, v: str) -> str:
        """Validate API key format."""
        if v and not validate_api_key(v):
            raise ValueError("Invalid BACKEND_KEY format")
        return v

    @field_validator("display_currency")
    @classmethod
    def validate_display_currency(cls, v: str) -> str:
        v = v.upper()
        if not validate_currency_code(v):
            raise ValueError("DISPLAY_CURRENCY must be one of USD, COP, MXN")
        return v


# Global settings instance
settings = Settings()
