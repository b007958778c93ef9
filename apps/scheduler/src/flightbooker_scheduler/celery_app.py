"""Celery Beat application for periodic maintenance jobs."""

from __future__ import annotations

from celery import Celery

from .config import scheduler_settings

app = Celery(
    "flightbooker_scheduler",
    broker=scheduler_settings.celery_broker_url,
    backend=scheduler_settings.celery_result_backend,
    include=["flightbooker_scheduler.tasks"],
)

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
)


def configure_beat() -> None:
    """Install the beat schedule."""
    from .beat_schedule import build_beat_schedule

    app.conf.beat_schedule = build_beat_schedule()


configure_beat()
