from __future__ import annotations

from celery import Celery
from celery.signals import worker_init

from ouca.config import settings

celery_app = Celery(
    "ouca",
    broker=settings.REDIS_URL,
    include=["ouca.tasks.import_tasks"],
)
celery_app.conf.update(
    result_backend=settings.REDIS_URL,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # One import job at a time per worker process; jobs can be long
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)


@worker_init.connect
def on_worker_init(**kwargs):  # type: ignore[no-untyped-def]
    """Configure logging when the Celery worker starts."""
    from ouca.log_config import configure_logging

    configure_logging(settings.LOG_LEVEL)
