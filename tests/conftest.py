"""Pytest fixtures for reminder tests.

Each test gets a fresh in-memory SQLite database built from the ORM
metadata, a fixed clock and a notifier that records instead of sending.
"""

from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bsetracker.db.base import Base
from bsetracker.models.profile import Profile
from bsetracker.reminders.config import ReminderSettings
from bsetracker.reminders.exceptions import DeliveryError
from bsetracker.reminders.models import ReminderInstance
from bsetracker.reminders.notifier import Notifier

API_KEY = "test-key"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock returning a settable instant."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeNotifier(Notifier):
    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send(self, address, subject, body_html):
        if address in self.fail_for:
            raise DeliveryError(f"Email provider returned 422: rejected {address}")
        self.sent.append((address, subject, body_html))


def make_profile(db, user_id="user-1", **overrides) -> Profile:
    fields = dict(
        id=user_id,
        email=f"{user_id}@example.com",
        last_period_end=date(2024, 1, 1),
        avg_cycle_days=28,
        reminder_offset_days=7,
        reminder_enabled=True,
        timezone="UTC",
    )
    fields.update(overrides)
    profile = Profile(**fields)
    db.add(profile)
    db.commit()
    return profile


def add_reminder(db, user_id="user-1", scheduled_at=None, **overrides) -> ReminderInstance:
    reminder = ReminderInstance(
        user_id=user_id,
        scheduled_at=scheduled_at or utc(2024, 1, 8, 9),
        fired=overrides.pop("fired", False),
        **overrides,
    )
    db.add(reminder)
    db.commit()
    return reminder


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FixedClock(utc(2024, 1, 5, 12))


@pytest.fixture
def reminder_settings():
    return ReminderSettings(
        SCHEDULER_BATCH_SIZE=100,
        DISPATCH_LEASE_SECONDS=600,
        TARGET_HOUR=9,
        APP_URL="https://bse.example.com",
        RESEND_API_KEY="re_test",
    )


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def client(session_factory, notifier, clock, reminder_settings, monkeypatch):
    """TestClient with the store, clock and notifier swapped for fakes."""
    from bsetracker.core.config import settings as core_settings
    from bsetracker.db.session import get_db
    from bsetracker.main import app
    from bsetracker.reminders.api import get_clock, get_notifier, get_reminder_settings

    monkeypatch.setattr(core_settings, "REQUIRE_API_KEY", True)
    monkeypatch.setattr(core_settings, "VALID_API_KEYS", [API_KEY])

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_reminder_settings] = lambda: reminder_settings
    try:
        yield TestClient(app, headers={"X-API-Key": API_KEY})
    finally:
        app.dependency_overrides.clear()
