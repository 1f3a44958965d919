"""
Configuration management using Pydantic Settings.

All configuration is loaded from environment variables with sensible defaults.
Provider keys are optional: a provider without a key is simply skipped.
"""

from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


KNOWN_PROVIDERS = ("openai", "claude", "gemini")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime
    app_env: str = Field("development", description="development or production")
    port: int = Field(8000, description="HTTP server port")

    # Logging
    log_level: str = Field("INFO", description="Log level")
    log_json: bool = Field(False, description="Output logs as JSON")

    # Cache layer
    cache_max_size: int = Field(100, ge=1, description="Max entries per cache")
    cache_ttl_seconds: float = Field(1800.0, gt=0, description="Entry time-to-live (seconds)")
    cache_sweep_interval_seconds: float = Field(300.0, gt=0, description="Expired-entry sweep period (seconds)")

    # Provider rate limiting
    rate_limit_max_calls: int = Field(5, ge=1, description="Calls allowed per provider per window")
    rate_limit_window_seconds: float = Field(60.0, gt=0, description="Sliding window length (seconds)")
    rate_limit_defer_seconds: float = Field(1.0, ge=0, description="Delay when rate limited and nothing cached")
    provider_timeout_seconds: float = Field(30.0, gt=0, description="Per-call provider timeout (seconds)")
    text_provider: Optional[str] = Field(None, description="Preferred provider (openai, claude, gemini)")

    # OpenAI
    openai_api_key: Optional[str] = Field(None, description="OpenAI API key")
    openai_model: str = Field("gpt-4o-mini", description="OpenAI model for title suggestions")
    openai_temperature: float = Field(0.3, description="Sampling temperature for OpenAI")

    # Anthropic
    anthropic_api_key: Optional[str] = Field(None, description="Anthropic API key")
    anthropic_model: str = Field("claude-3-5-sonnet-20240620", description="Claude model")
    anthropic_max_tokens: int = Field(1024, description="Max output tokens for Claude")

    # Google
    google_api_key: Optional[str] = Field(None, description="Google Generative AI key")
    gemini_model: str = Field("gemini-1.5-pro", description="Gemini model")

    # Monitoring
    monitoring_history_size: int = Field(1000, ge=1, description="Recent requests kept in memory")

    @field_validator("app_env")
    @classmethod
    def normalize_app_env(cls, v: str) -> str:
        """Lower-case the environment name."""
        return (v or "development").strip().lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = (v or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log_level: {v}")
        return level

    @field_validator("text_provider")
    @classmethod
    def validate_text_provider(cls, v: Optional[str]) -> Optional[str]:
        """Ignore unknown provider names instead of failing startup."""
        if not v:
            return None
        name = v.strip().lower()
        return name if name in KNOWN_PROVIDERS else None

    @property
    def is_production(self) -> bool:
        """Diagnostics are hidden in production responses."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def clear_settings_cache() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
