"""Celery application configuration."""

from celery import Celery

from schemabuilder.core.config import Settings, get_settings


def create_celery_app(settings: Settings) -> Celery:
    app = Celery(
        "schemabuilder",
        broker=settings.redis.url,
        backend=settings.redis.url,
        include=["schemabuilder.tasks.email_tasks"],
    )
    app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,
        task_track_started=True,
        task_time_limit=5 * 60,
        task_soft_time_limit=4 * 60,
        worker_prefetch_multiplier=1,
        worker_max_tasks_per_child=1000,
        task_ignore_result=True,
    )
    app.conf.task_routes = {
        "schemabuilder.tasks.email_tasks.*": {"queue": "email"},
    }
    return app


celery_app = create_celery_app(get_settings())
