"""Tests for ReminderScheduler.schedule_for and the one-pending-per-user rule."""

from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from bsetracker.reminders import scheduler as scheduler_module
from bsetracker.reminders.exceptions import NotFoundError, PersistenceError, ValidationError
from bsetracker.reminders.models import ReminderInstance
from bsetracker.reminders.repository import delete_pending_reminders
from bsetracker.reminders.scheduler import ReminderScheduler
from bsetracker.reminders.schemas import CycleProfile
from tests.conftest import add_reminder, make_profile, utc


def reminders_for(db, user_id="user-1"):
    db.expire_all()
    stmt = select(ReminderInstance).where(ReminderInstance.user_id == user_id)
    return list(db.execute(stmt).scalars())


def pending_for(db, user_id="user-1"):
    return [r for r in reminders_for(db, user_id) if not r.fired]


@pytest.fixture
def scheduler(db, reminder_settings, clock):
    return ReminderScheduler(db, reminder_settings, clock=clock)


class TestScheduleFor:
    def test_creates_single_pending_reminder(self, db, scheduler):
        make_profile(db)

        result = scheduler.schedule_for("user-1")

        assert result.status == "scheduled"
        assert result.message == "Reminder scheduled"
        assert result.scheduled_at == utc(2024, 1, 8, 9)
        pending = pending_for(db)
        assert len(pending) == 1
        assert pending[0].scheduled_at == utc(2024, 1, 8, 9)
        assert str(pending[0].id) == result.reminder.id

    def test_second_call_replaces_first(self, db, scheduler, clock):
        make_profile(db)
        scheduler.schedule_for("user-1")

        clock.now = utc(2024, 3, 1)
        second = scheduler.schedule_for("user-1")

        pending = pending_for(db)
        assert len(pending) == 1
        assert pending[0].scheduled_at == second.scheduled_at == utc(2024, 3, 4, 9)

    def test_fired_history_is_kept(self, db, scheduler):
        make_profile(db)
        old = add_reminder(db, scheduled_at=utc(2023, 12, 11, 9), fired=True)

        scheduler.schedule_for("user-1")

        rows = reminders_for(db)
        assert len(rows) == 2
        assert any(r.id == old.id and r.fired for r in rows)
        assert len(pending_for(db)) == 1

    def test_uses_supplied_profile_without_loading(self, db, scheduler):
        profile = CycleProfile(user_id="user-2", last_period_end=date(2024, 1, 1), timezone="Europe/Berlin")

        result = scheduler.schedule_for("user-2", profile)

        assert result.scheduled_at == utc(2024, 1, 8, 8)
        assert len(pending_for(db, "user-2")) == 1

    def test_disabled_reports_and_removes_pending(self, db, scheduler):
        make_profile(db, reminder_enabled=False)
        add_reminder(db, scheduled_at=utc(2024, 1, 8, 9))

        result = scheduler.schedule_for("user-1")

        assert result.status == "disabled"
        assert result.message == "Reminders disabled for user"
        assert result.scheduled_at is None
        assert pending_for(db) == []

    def test_no_cycle_data_creates_nothing(self, db, scheduler):
        make_profile(db, last_period_end=None)

        result = scheduler.schedule_for("user-1")

        assert result.status == "no_cycle_data"
        assert result.message == "No last period end date set"
        assert reminders_for(db) == []

    def test_missing_profile_raises_not_found(self, scheduler):
        with pytest.raises(NotFoundError):
            scheduler.schedule_for("ghost")

    def test_missing_user_id_raises_validation_error(self, scheduler):
        with pytest.raises(ValidationError):
            scheduler.schedule_for("")

    def test_failed_insert_keeps_previous_pending(self, db, scheduler, monkeypatch):
        make_profile(db)
        existing = add_reminder(db, scheduled_at=utc(2024, 1, 8, 9))

        def delete_then_fail(session, user_id, scheduled_at):
            delete_pending_reminders(session, user_id)
            raise OperationalError("INSERT INTO reminder_instances", {}, Exception("disk I/O error"))

        monkeypatch.setattr(scheduler_module, "replace_pending_reminder", delete_then_fail)

        with pytest.raises(PersistenceError):
            scheduler.schedule_for("user-1")

        pending = pending_for(db)
        assert [r.id for r in pending] == [existing.id]


class TestComputeNextReminder:
    def test_uses_clock_when_no_reference(self, scheduler):
        profile = CycleProfile(user_id="user-1", last_period_end=date(2024, 1, 1))
        assert scheduler.compute_next_reminder(profile) == utc(2024, 1, 8, 9)

    def test_explicit_reference(self, scheduler):
        profile = CycleProfile(user_id="user-1", last_period_end=date(2024, 1, 1))
        assert scheduler.compute_next_reminder(profile, utc(2024, 3, 1)) == utc(2024, 3, 4, 9)
