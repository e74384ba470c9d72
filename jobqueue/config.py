"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from jobqueue.constants import DEFAULT_CLAIM_MAX_ATTEMPTS, DEFAULT_MAX_RETRIES


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./jobs.db"
    database_pool_size: int = 10
    database_max_overflow: int = 20
    database_busy_timeout_seconds: float = 5.0
    database_create_schema: bool = False

    # API Configuration
    api_host: str = "127.0.0.1"
    api_port: int = 7878

    # Submission
    default_max_retries: int = DEFAULT_MAX_RETRIES

    # Claim protocol
    claim_max_attempts: int = DEFAULT_CLAIM_MAX_ATTEMPTS
    claim_retry_backoff_seconds: float = 0.01

    # Observability
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "jobqueue"
    tracing_enabled: bool = False
    log_level: str = "INFO"
    log_format: str = "console"  # json or console

    @property
    def is_sqlite(self) -> bool:
        """Check whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
