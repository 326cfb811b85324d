from celery import Celery
from celery.schedules import crontab

from civic_market.core.config import settings

celery = Celery(
    "civic-worker",
    broker=settings.rabbitmq_url,
    backend=settings.redis_url,
    include=["worker.tasks"],
)

celery.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_default_queue="default",
    task_routes={
        "worker.tasks.sweep_orphaned_media": {"queue": "maintenance"},
    },
    beat_schedule={
        "sweep-orphaned-media": {
            "task": "worker.tasks.sweep_orphaned_media",
            "schedule": crontab(minute=15),
        },
    },
)
