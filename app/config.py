from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "RipeLemons"
    app_version: str = "0.1.0"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Catalog store
    database_url: str | None = None
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    catalog_fixture_path: str | None = "fixtures/catalog/sample_catalog.json"

    # Payment verification
    payment_verify_url: str | None = None
    payment_verify_api_key: str | None = None
    payment_verify_timeout_seconds: float = 10.0
    payment_poll_max_attempts: int = 5
    payment_poll_base_delay_seconds: float = 1.0
    payment_poll_max_delay_seconds: float = 10.0

    # Security
    cors_origins: list[str] = []

    # Sentry
    sentry_dsn: str | None = None

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Metrics
    metrics_backend: str = "stdout"
    metrics_namespace: str = "ripelemons"
    metrics_disable: bool = False
    metrics_sample_rate: float = 1.0
    metrics_statsd_host: str = "127.0.0.1"
    metrics_statsd_port: int = 8125

    @property
    def payment_verification_enabled(self) -> bool:
        """Return True when the verification endpoint and its key are configured."""
        return bool(self.payment_verify_url and self.payment_verify_api_key)

    model_config = ConfigDict(env_file=".env", case_sensitive=False)


settings = Settings()
