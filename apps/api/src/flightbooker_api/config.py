"""API configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """Application settings loaded from environment / .env file."""

    database_url: str = "postgresql+asyncpg://localhost:5432/flightbooker"
    redis_url: str = "redis://localhost:6379/0"
    jwt_secret: str = "change-me-in-production-use-a-32-byte-key"
    jwt_algorithm: str = "HS256"
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    # Cache backend
    cache_enabled: bool = True
    cache_socket_timeout: float = 2.0
    cache_connect_timeout: float = 2.0
    cache_operation_timeout: float = 2.5

    # Rate limiting
    rate_limit_per_minute: int = 60

    # Flight inventory provider
    provider_base_url: str = "https://inventory.example.com"
    provider_api_key: str = ""
    provider_name: str = "inventory"
    provider_timeout: float = 10.0

    # Bookings
    idempotency_window_seconds: int = 86400  # 24 hours
    booking_reference_attempts: int = 3

    model_config = SettingsConfigDict(
        env_prefix="API_", env_file=".env", extra="ignore"
    )


settings = ApiSettings()
