"""Celery beat scheduler for periodic maintenance jobs."""
