import logging

from celery import shared_task

from .config import settings
from .dispatcher import ReminderDispatcher
from .notifier import build_notifier
from .scheduler import ReminderScheduler
from bsetracker.db.session import SessionLocal

logger = logging.getLogger(__name__)


@shared_task(name="reminders.scan_and_dispatch")
def scan_and_dispatch_task() -> dict:
    """Run one dispatch pass. Returns the outcome summary."""
    notifier = build_notifier(settings)
    db = SessionLocal()
    try:
        summary = ReminderDispatcher(db, notifier, settings).run_dispatch_pass()
    finally:
        db.close()
    return summary.model_dump(mode="json")


@shared_task(name="reminders.schedule_for_user")
def schedule_for_user_task(user_id: str) -> dict:
    """Recompute a user's pending reminder after their cycle data changed."""
    db = SessionLocal()
    try:
        result = ReminderScheduler(db, settings).schedule_for(user_id)
    finally:
        db.close()
    logger.info(f"schedule_for_user {user_id}: {result.status}")
    return result.model_dump(mode="json")
