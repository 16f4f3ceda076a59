"""Celery application configuration."""

from celery import Celery

from taskboard.core.config import get_settings
from taskboard.tasks.beat_schedule import beat_schedule

settings = get_settings()

celery_app = Celery(
    "taskboard",
    broker=settings.broker_url,
    backend=settings.result_backend,
    include=[
        "taskboard.tasks.webhook_tasks",
        "taskboard.tasks.maintenance_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    broker_connection_retry_on_startup=True,
    task_always_eager=settings.celery_task_always_eager,
    task_routes={"deliver_notification_webhooks": {"queue": "webhooks"}},
    beat_schedule=beat_schedule,
)
