from datetime import datetime, timedelta
from typing import Callable, List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .config import ReminderSettings, settings as reminder_settings
from .dispatcher import ReminderDispatcher
from .exceptions import NotFoundError, ValidationError
from .notifier import Notifier, build_notifier
from .repository import get_pending_reminder, get_reminder, list_reminders, set_snoozed_until
from .scheduler import ReminderScheduler
from .schemas import DispatchSummary, ReminderRead, ScheduleRequest, ScheduleResult, SnoozeRequest
from bsetracker.core.security import verify_api_key_dependency
from bsetracker.db.session import get_db
from bsetracker.utils.timezone import to_utc_aware, utc_now


router = APIRouter(dependencies=[Depends(verify_api_key_dependency)])


def get_reminder_settings() -> ReminderSettings:
    return reminder_settings


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_notifier(settings: ReminderSettings = Depends(get_reminder_settings)) -> Notifier:
    return build_notifier(settings)


@router.get("/health")
def health_check():
    return {"status": "healthy", "service": "reminders"}


@router.post("/schedule", response_model=ScheduleResult)
def schedule_reminder_endpoint(
    payload: ScheduleRequest,
    db: Session = Depends(get_db),
    settings: ReminderSettings = Depends(get_reminder_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Recompute and replace the user's pending reminder (profile edit flow)."""
    if not payload.user_id:
        raise ValidationError("user_id is required")
    return ReminderScheduler(db, settings, clock=clock).schedule_for(payload.user_id)


@router.post("/dispatch", response_model=DispatchSummary)
def dispatch_due_reminders_endpoint(
    db: Session = Depends(get_db),
    settings: ReminderSettings = Depends(get_reminder_settings),
    notifier: Notifier = Depends(get_notifier),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Run one dispatch pass (periodic trigger)."""
    dispatcher = ReminderDispatcher(db, notifier, settings, clock=clock)
    return dispatcher.run_dispatch_pass()


@router.get("/users/{user_id}/pending", response_model=ReminderRead)
def get_pending_reminder_endpoint(user_id: str, db: Session = Depends(get_db)):
    r = get_pending_reminder(db, user_id)
    if not r:
        raise HTTPException(status_code=404, detail="No pending reminder")
    return ReminderRead.from_model(r)


@router.get("/users/{user_id}", response_model=List[ReminderRead])
def list_reminders_endpoint(user_id: str, limit: int = 100, db: Session = Depends(get_db)):
    return [ReminderRead.from_model(r) for r in list_reminders(db, user_id, limit=limit)]


@router.post("/{reminder_id}/snooze", response_model=ReminderRead)
def snooze_reminder_endpoint(
    reminder_id: str,
    payload: SnoozeRequest,
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    now = clock()
    if payload.snoozed_until is not None:
        until = to_utc_aware(payload.snoozed_until)
    elif payload.minutes is not None:
        until = now + timedelta(minutes=payload.minutes)
    else:
        raise ValidationError("snoozed_until or minutes is required")
    if until <= now:
        raise ValidationError("snoozed_until must be in the future")

    r = get_reminder(db, reminder_id)
    if not r or r.fired:
        raise NotFoundError("Pending reminder not found")
    if not set_snoozed_until(db, r.id, until):
        raise NotFoundError("Pending reminder not found")
    db.refresh(r)
    return ReminderRead.from_model(r)
