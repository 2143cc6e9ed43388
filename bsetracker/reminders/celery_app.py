from celery import Celery
from .config import settings


celery_app = Celery(
    "reminders",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND or None,
    include=["bsetracker.reminders.tasks"],
)

celery_app.conf.update(
    task_acks_late=True,
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    worker_prefetch_multiplier=1,
    timezone="UTC",
    enable_utc=True,
)

# Celery Beat schedule for periodic dispatch passes
celery_app.conf.beat_schedule = {
    "scan-and-dispatch": {
        "task": "reminders.scan_and_dispatch",
        "schedule": settings.SCHEDULER_SCAN_INTERVAL_SECONDS,
    },
}
