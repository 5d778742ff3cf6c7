"""
Celery application for background brief generation.

Brief runs are long (minutes) and spend most of their time waiting on
providers, so workers take one task at a time and acknowledge it only
after it finishes.
"""

from celery import Celery
from ..utils.config import get_config, Config


def make_celery(config: Config) -> Celery:
    """Build the Celery app from a configuration object."""
    app = Celery('brief_generator', include=['briefgen.tasks.briefs'])

    app.conf.update(
        broker_url=config.CELERY_BROKER_URL,
        result_backend=config.CELERY_RESULT_BACKEND,
        result_expires=config.CELERY_RESULT_EXPIRES,
        task_serializer='json',
        accept_content=['json'],
        result_serializer='json',
        result_extended=True,
        timezone='UTC',
        enable_utc=True,
        task_track_started=True,
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        task_time_limit=config.CELERY_TASK_TIME_LIMIT,
        task_soft_time_limit=config.CELERY_TASK_SOFT_TIME_LIMIT,
        task_default_queue='briefs',
        task_routes={'briefgen.tasks.briefs.*': {'queue': 'briefs'}},
        worker_prefetch_multiplier=config.CELERY_WORKER_PREFETCH_MULTIPLIER,
        worker_max_tasks_per_child=config.CELERY_WORKER_MAX_TASKS_PER_CHILD,
        broker_connection_retry_on_startup=True,
    )
    return app


celery_app = make_celery(get_config())
