"""
Schemas for cycle profiles, scheduling results and dispatch outcomes
"""
from datetime import date, datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field


ScheduleStatus = Literal["scheduled", "disabled", "no_cycle_data"]
OutcomeStatus = Literal["sent", "skipped", "failed"]


class CycleProfile(BaseModel):
    """Read-only view of the cycle fields of a user's profile"""
    user_id: str
    last_period_end: Optional[date] = None
    avg_cycle_days: Optional[int] = None
    reminder_offset_days: Optional[int] = None
    reminder_enabled: bool = True
    timezone: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_profile(cls, profile) -> "CycleProfile":
        return cls(
            user_id=str(profile.id),
            last_period_end=profile.last_period_end,
            avg_cycle_days=profile.avg_cycle_days,
            reminder_offset_days=profile.reminder_offset_days,
            reminder_enabled=bool(profile.reminder_enabled),
            timezone=profile.timezone,
            email=profile.email,
        )

    def cycle_length_days(self, default: int = 28) -> int:
        if self.avg_cycle_days is None or self.avg_cycle_days < 1:
            return default
        return self.avg_cycle_days

    def offset_days(self, default: int = 7) -> int:
        if self.reminder_offset_days is None:
            return default
        return self.reminder_offset_days


class ReminderRead(BaseModel):
    id: str
    user_id: str
    scheduled_at: datetime
    fired: bool
    snoozed_until: Optional[datetime] = None

    @classmethod
    def from_model(cls, reminder) -> "ReminderRead":
        return cls(
            id=str(reminder.id),
            user_id=reminder.user_id,
            scheduled_at=reminder.scheduled_at,
            fired=bool(reminder.fired),
            snoozed_until=reminder.snoozed_until,
        )


class ScheduleRequest(BaseModel):
    user_id: Optional[str] = None


class ScheduleResult(BaseModel):
    status: ScheduleStatus
    message: str
    scheduled_at: Optional[datetime] = None
    reminder: Optional[ReminderRead] = None


class SnoozeRequest(BaseModel):
    """Either an absolute instant or a number of minutes from now"""
    snoozed_until: Optional[datetime] = None
    minutes: Optional[int] = Field(default=None, ge=1, le=60 * 24 * 14)


class DispatchOutcome(BaseModel):
    reminder_id: str
    user_id: str
    status: OutcomeStatus
    reason: Optional[str] = None
    email: Optional[str] = None
    rescheduled: bool = False
    next_scheduled_at: Optional[datetime] = None
    error: Optional[str] = None


class DispatchSummary(BaseModel):
    message: str = "Reminder check complete"
    started_at: datetime
    processed: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    results: List[DispatchOutcome] = Field(default_factory=list)

    def add(self, outcome: DispatchOutcome) -> None:
        self.results.append(outcome)
        self.processed += 1
        if outcome.status == "sent":
            self.sent += 1
        elif outcome.status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
