"""Celery application and background ingestion jobs."""
