from __future__ import annotations

from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

DEFAULT_RSS_FEEDS = ",".join(
    [
        "https://news.google.com/rss/search?q=india+economy&hl=en-IN&gl=IN&ceid=IN:en",
        "https://news.google.com/rss/search?q=oil+price&hl=en-US&gl=US&ceid=US:en",
    ]
)


class Settings(BaseSettings):
    """Application settings with validation.

    All settings are loaded from environment variables. Every API key is
    optional: a missing key disables only the source or feature that needs it.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Datastore
    store_path: str = "newsdesk.sqlite3"

    # Finnhub (headline news + fallback quotes)
    finnhub_api_key: str = ""
    finnhub_base_url: str = "https://finnhub.io/api/v1"
    news_category: str = "general"

    # Alpha Vantage (primary quotes)
    alphavantage_api_key: str = ""
    alphavantage_base_url: str = "https://www.alphavantage.co/query"

    # Hugging Face inference (summaries)
    huggingface_api_key: str = ""
    huggingface_base_url: str = "https://router.huggingface.co/hf-inference/models"
    summary_model: str = "sshleifer/distilbart-cnn-12-6"

    # RSS feeds (comma-separated URLs)
    rss_feeds: str = DEFAULT_RSS_FEEDS

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: str = "*"  # Comma-separated
    public_base_url: str = ""

    # Scheduling
    scheduler_enabled: bool = True
    run_on_startup: bool = True
    fetch_interval_seconds: float = 300.0

    # Per-cycle limits
    max_items_per_cycle: int = 40
    max_input_chars: int = 3000
    fallback_chars: int = 300

    # Outbound calls
    source_timeout: float = 8.0
    summary_timeout: float = 15.0
    source_retries: int = 2

    # Ingestion behaviour
    skip_stored_items: bool = True
    retention_days: int = 0  # 0 keeps events forever

    # Summarizer circuit breaker
    summary_failure_threshold: int = 5
    summary_recovery_seconds: float = 60.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Optional[str] = None

    @field_validator("fetch_interval_seconds", "source_timeout", "summary_timeout", "summary_recovery_seconds")
    @classmethod
    def must_be_positive_float(cls, v: float, info) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0, got {v}")
        return v

    @field_validator(
        "max_items_per_cycle",
        "max_input_chars",
        "fallback_chars",
        "source_retries",
        "summary_failure_threshold",
    )
    @classmethod
    def must_be_positive_int(cls, v: int, info) -> int:
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1, got {v}")
        return v

    @field_validator("retention_days")
    @classmethod
    def retention_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"retention_days must be >= 0, got {v}")
        return v

    @field_validator("port")
    @classmethod
    def port_range(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError(f"port must be in [1, 65535], got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log_level: {v}")
        return level

    # Property helpers to get parsed lists
    @property
    def rss_feeds_list(self) -> list[str]:
        return [f.strip() for f in self.rss_feeds.split(",") if f.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def features(self) -> dict[str, bool]:
        """Which optional integrations are configured."""
        return {
            "rss": bool(self.rss_feeds_list),
            "finnhub": bool(self.finnhub_api_key),
            "alphavantage": bool(self.alphavantage_api_key),
            "huggingface": bool(self.huggingface_api_key),
        }


# Settings instance for CLI entry points; components receive it explicitly.
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the process settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings
