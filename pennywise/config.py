"""
Application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Pennywise"

    # Database
    database_url: str = "sqlite:///./data/db.sqlite"

    # Currency
    base_currency: str = "USD"  # Pivot for every conversion
    default_currency: str = "INR"  # Display currency when a user has no preference

    # Exchange rate source
    exchange_rate_url: str = "https://api.exchangerate.host/latest"
    exchange_rate_timeout: float = 10.0  # seconds
    rate_cache_path: str = "./data/rate_cache.json"
    rate_max_age_hours: int = 24
    refresh_rates_on_startup: bool = True

    # Recurring expenses
    auto_suffix: str = " (Auto)"
    auto_default_description: str = "Recurring expense"

    # Logging
    app_log_level: str = "INFO"
    third_party_log_level: str = "WARNING"
    log_file: Optional[str] = None

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
