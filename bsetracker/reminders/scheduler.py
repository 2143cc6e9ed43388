"""
Scheduler: keeps a single pending self-exam reminder per user
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import ReminderSettings
from .exceptions import NotFoundError, PersistenceError, ValidationError
from .metrics import reminders_scheduled_total
from .recurrence import compute_next_reminder
from .repository import delete_pending_reminders, get_profile, replace_pending_reminder
from .schemas import CycleProfile, ReminderRead, ScheduleResult
from bsetracker.utils.timezone import utc_now

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """Computes the next reminder instant and (re)writes the user's pending reminder"""

    def __init__(
        self,
        db: Session,
        settings: ReminderSettings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock

    def compute_next_reminder(self, profile: CycleProfile, reference_now: Optional[datetime] = None) -> datetime:
        return compute_next_reminder(
            profile,
            reference_now or self.clock(),
            target_hour=self.settings.TARGET_HOUR,
            default_cycle_days=self.settings.DEFAULT_CYCLE_DAYS,
            default_offset_days=self.settings.DEFAULT_OFFSET_DAYS,
        )

    def load_profile(self, user_id: str) -> CycleProfile:
        try:
            profile = get_profile(self.db, user_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load profile for user {user_id}: {e}") from e
        if profile is None:
            raise NotFoundError(f"Profile not found for user {user_id}")
        return CycleProfile.from_profile(profile)

    def schedule_for(
        self,
        user_id: str,
        profile: Optional[CycleProfile] = None,
        reference_now: Optional[datetime] = None,
    ) -> ScheduleResult:
        """Replace the user's pending reminder with the next occurrence after
        ``reference_now`` (the scheduler clock when omitted).
        """
        if not user_id:
            raise ValidationError("user_id is required")
        if profile is None:
            profile = self.load_profile(user_id)

        if not profile.reminder_enabled:
            self._clear_pending(user_id)
            logger.info(f"Reminders disabled for user {user_id}; pending reminder cleared")
            return ScheduleResult(status="disabled", message="Reminders disabled for user")

        if profile.last_period_end is None:
            logger.info(f"No cycle data for user {user_id}; nothing scheduled")
            return ScheduleResult(status="no_cycle_data", message="No last period end date set")

        scheduled_at = self.compute_next_reminder(profile, reference_now)
        try:
            reminder = replace_pending_reminder(self.db, user_id, scheduled_at)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating reminder for user {user_id}: {e}")
            raise PersistenceError(f"Failed to schedule reminder for user {user_id}") from e

        reminders_scheduled_total.inc()
        logger.info(f"Created reminder {reminder.id} for user {user_id} at {scheduled_at.isoformat()}")
        return ScheduleResult(
            status="scheduled",
            message="Reminder scheduled",
            scheduled_at=reminder.scheduled_at,
            reminder=ReminderRead.from_model(reminder),
        )

    def _clear_pending(self, user_id: str) -> None:
        try:
            delete_pending_reminders(self.db, user_id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to clear pending reminder for user {user_id}") from e
