"""Celery Beat schedule builder."""

from __future__ import annotations

from .config import scheduler_settings

PURGE_IDEMPOTENCY_TASK = "flightbooker_scheduler.tasks.purge_expired_idempotency"


def build_beat_schedule() -> dict:
    """Build the complete Celery Beat schedule."""
    return {
        "purge-expired-idempotency": {
            "task": PURGE_IDEMPOTENCY_TASK,
            "schedule": scheduler_settings.idempotency_sweep_interval,
        },
    }
