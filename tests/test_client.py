"""Tests for the reminder service HTTP client."""

from unittest.mock import MagicMock, patch

import pytest

from bsetracker.reminders.client import push_dispatch, push_schedule_reminder


@pytest.fixture(autouse=True)
def _service_env(monkeypatch):
    monkeypatch.delenv("REMINDER_SERVICE_URL", raising=False)
    monkeypatch.setenv("REMINDER_SERVICE_HOST", "reminders")
    monkeypatch.setenv("REMINDER_SERVICE_PORT", "8001")
    monkeypatch.setenv("REMINDER_SERVICE_API_KEY", "svc-key")


def test_push_schedule_reminder():
    response = MagicMock()
    response.json.return_value = {"status": "scheduled"}
    with patch("bsetracker.reminders.client.requests.post", return_value=response) as post:
        assert push_schedule_reminder("user-1") == {"status": "scheduled"}

    args, kwargs = post.call_args
    assert args[0] == "http://reminders:8001/api/v1/reminders/schedule"
    assert kwargs["json"] == {"user_id": "user-1"}
    assert kwargs["headers"]["X-API-Key"] == "svc-key"


def test_push_dispatch_prefers_service_url(monkeypatch):
    monkeypatch.setenv("REMINDER_SERVICE_URL", "https://reminders.example.com/")
    response = MagicMock()
    response.json.return_value = {"sent": 0}
    with patch("bsetracker.reminders.client.requests.post", return_value=response) as post:
        push_dispatch(api_key="explicit")

    args, kwargs = post.call_args
    assert args[0] == "https://reminders.example.com/api/v1/reminders/dispatch"
    assert kwargs["headers"]["X-API-Key"] == "explicit"


def test_missing_service_location_raises(monkeypatch):
    monkeypatch.delenv("REMINDER_SERVICE_HOST")
    with pytest.raises(RuntimeError):
        push_schedule_reminder("user-1")
