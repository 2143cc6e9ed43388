"""
Dispatcher: fires due reminders by email and enqueues each user's next one
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import ReminderSettings
from .exceptions import DeliveryError, PersistenceError, ReminderError
from .metrics import (
    reminders_dispatch_failed_total,
    reminders_dispatch_skipped_total,
    reminders_dispatch_success_total,
    scheduler_scans_total,
)
from .models import ReminderInstance
from .notifier import Notifier, render_reminder_email
from .repository import claim_for_dispatch, get_due_reminders, get_profile, mark_fired, release_claim
from .scheduler import ReminderScheduler
from .schemas import CycleProfile, DispatchOutcome, DispatchSummary
from bsetracker.utils.timezone import to_utc_aware, utc_now

logger = logging.getLogger(__name__)


class ReminderDispatcher:
    def __init__(
        self,
        db: Session,
        notifier: Notifier,
        settings: ReminderSettings,
        scheduler: Optional[ReminderScheduler] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.notifier = notifier
        self.settings = settings
        self.clock = clock
        self.scheduler = scheduler or ReminderScheduler(db, settings, clock=clock)

    def run_dispatch_pass(self, now: Optional[datetime] = None) -> DispatchSummary:
        """Send every due, non-snoozed reminder once.

        The due set is read in pages of ``SCHEDULER_BATCH_SIZE`` until it is
        exhausted, so rows that are skipped and stay due never hold back the
        rest. Individual failures are reported in the summary; only a failure
        to query the due set raises.
        """
        now = to_utc_aware(now or self.clock())
        scheduler_scans_total.inc()
        batch_size = self.settings.SCHEDULER_BATCH_SIZE
        summary = DispatchSummary(started_at=now)
        after = None
        while True:
            try:
                due = get_due_reminders(self.db, now, limit=batch_size, after=after)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Error fetching due reminders: {e}")
                raise PersistenceError("Failed to query due reminders") from e

            logger.info(f"Found {len(due)} due reminders")
            if not due:
                break
            # Read the page key before processing; a rollback expires the rows
            after = (due[-1].scheduled_at, due[-1].id)
            for reminder in due:
                outcome = self._process(reminder, now)
                if outcome.status == "skipped":
                    reminders_dispatch_skipped_total.labels(reason=outcome.reason or "unknown").inc()
                summary.add(outcome)
            if len(due) < batch_size:
                break

        logger.info(
            f"Dispatch pass complete: sent={summary.sent} skipped={summary.skipped} failed={summary.failed}"
        )
        return summary

    def _process(self, reminder: ReminderInstance, now: datetime) -> DispatchOutcome:
        reminder_id = reminder.id
        user_id = reminder.user_id
        try:
            return self._dispatch_one(reminder, now)
        except (SQLAlchemyError, ReminderError) as e:
            self.db.rollback()
            reminders_dispatch_failed_total.inc()
            logger.error(f"Failed to process reminder {reminder_id}: {e}")
            return DispatchOutcome(
                reminder_id=str(reminder_id), user_id=user_id, status="failed", error=str(e)
            )

    def _dispatch_one(self, reminder: ReminderInstance, now: datetime) -> DispatchOutcome:
        rid = str(reminder.id)

        def skipped(reason: str, email: Optional[str] = None) -> DispatchOutcome:
            logger.info(f"Skipping reminder {rid} - {reason}")
            return DispatchOutcome(reminder_id=rid, user_id=reminder.user_id, status="skipped", reason=reason, email=email)

        if reminder.is_snoozed(now):
            return skipped("snoozed")

        row = get_profile(self.db, reminder.user_id)
        if row is None:
            return skipped("profile_not_found")
        profile = CycleProfile.from_profile(row)
        if not profile.reminder_enabled:
            return skipped("reminders_disabled")
        if not profile.email:
            return skipped("no_contact_address")

        if not claim_for_dispatch(self.db, reminder.id, now, self.settings.DISPATCH_LEASE_SECONDS):
            return skipped("already_claimed", profile.email)

        subject, body = render_reminder_email(self.settings)
        logger.info(f"Sending reminder {rid} to {profile.email}")
        try:
            self.notifier.send(profile.email, subject, body)
        except DeliveryError as e:
            release_claim(self.db, reminder.id)
            reminders_dispatch_failed_total.inc()
            logger.warning(f"Delivery failed for reminder {rid}, will retry next pass: {e}")
            return DispatchOutcome(
                reminder_id=rid, user_id=reminder.user_id, status="failed", email=profile.email, error=str(e)
            )

        fired = mark_fired(self.db, reminder.id)
        reminders_dispatch_success_total.inc()
        if not fired:
            # The email went out but the row was fired or replaced by a concurrent writer
            logger.warning(f"Reminder {rid} sent but was fired or replaced concurrently; not rescheduling")
            return DispatchOutcome(
                reminder_id=rid,
                user_id=reminder.user_id,
                status="sent",
                reason="replaced_concurrently",
                email=profile.email,
            )

        outcome = DispatchOutcome(reminder_id=rid, user_id=reminder.user_id, status="sent", email=profile.email)
        if profile.last_period_end is None:
            logger.info(f"No cycle data for user {reminder.user_id}; next reminder not scheduled")
            return outcome

        try:
            result = self.scheduler.schedule_for(reminder.user_id, profile, reference_now=now)
        except ReminderError as e:
            logger.error(f"Reminder {rid} sent but rescheduling failed: {e}")
            outcome.error = str(e)
            return outcome

        outcome.rescheduled = result.status == "scheduled"
        outcome.next_scheduled_at = result.scheduled_at
        if result.scheduled_at is not None:
            logger.info(f"Scheduled next reminder for user {reminder.user_id} at {result.scheduled_at.isoformat()}")
        return outcome
