"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine and service configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "billing-engine"
    log_level: str = "INFO"

    # Calendar: IANA zone used for "local midnight", None = process timezone
    timezone: str | None = None

    # Engine defaults
    default_currency: str = "USD"
    default_future_count: int = 6
    default_max_past_count: int = 100
    aggregation_history_cap: int = 500
    alltime_lookback_years: int = 5

    # Exchange rates
    exchange_api_primary_url: str = (
        "https://cdn.jsdelivr.net/npm/@fawazahmed0/currency-api@latest/v1/currencies/usd.json"
    )
    exchange_api_fallback_url: str = "https://currency-api.pages.dev/v1/currencies/usd.json"
    http_timeout_seconds: float = 10.0
    rates_cache_seconds: int = 24 * 60 * 60


settings = Settings()
