"""Client configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables and ``.env``."""

    # API
    fuzzysearch_api_key: str | None = Field(None, description="FuzzySearch API key")
    fuzzysearch_base_url: str = Field(
        default="https://api.fuzzysearch.net", description="FuzzySearch API base URL"
    )
    fuzzysearch_timeout: float | None = Field(
        default=None, description="Per-request timeout in seconds (unset: no timeout)"
    )

    # Client-side throttling
    fuzzysearch_max_concurrent: int | None = Field(
        default=None, description="Max concurrent FuzzySearch requests (unset: unlimited)"
    )
    fuzzysearch_rate_limit: int | None = Field(
        default=None, description="Max FuzzySearch requests per minute (unset: unlimited)"
    )

    # Optional capabilities
    enable_tracing: bool = Field(default=False, description="Emit Sentry spans around API calls")
    enable_local_hash: bool = Field(
        default=False, description="Compute perceptual hashes locally before lookup"
    )

    # Sentry Configuration
    sentry_dsn: str | None = Field(None, description="Sentry DSN for error tracking")

    log_level: str = Field(default="INFO", description="Logging level")

    # Application Metadata
    app_name: str = Field(default="fuzzysearch-python", description="Application name")
    app_version: str = Field(default="0.2.0", description="Application version")

    @property
    def user_agent(self) -> str:
        """User-Agent header value sent with every request."""
        return f"{self.app_name}/{self.app_version}"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
