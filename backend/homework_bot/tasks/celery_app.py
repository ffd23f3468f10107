from celery import Celery
from ..platform.config import settings

celery_app = Celery(
    "homework_bot",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["homework_bot.tasks.homework_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Europe/Berlin",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "poll-pending-homeworks": {
            "task": "homework_bot.tasks.homework_tasks.poll_pending_homeworks",
            "schedule": settings.POLL_INTERVAL_SECONDS,
        },
    },
)
