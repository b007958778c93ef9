"""Scheduler configuration via environment variables."""

from pydantic_settings import BaseSettings


class SchedulerSettings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = {"env_prefix": "SCHEDULER_"}

    # Celery
    celery_broker_url: str = "redis://localhost:6379/1"
    celery_result_backend: str = "redis://localhost:6379/2"

    # Cache holding the idempotency records
    redis_url: str = "redis://localhost:6379/0"
    redis_timeout: float = 5.0

    # Schedule intervals (seconds)
    idempotency_sweep_interval: int = 3600  # 1 hour


scheduler_settings = SchedulerSettings()
