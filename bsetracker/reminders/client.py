"""HTTP client for callers outside this service (profile edit flow, external cron)."""
from typing import Any, Dict, Optional
import os

import requests


def _resolve_base_url() -> str:
    """Resolve Reminders service base URL from env variables.
    Tries REMINDER_SERVICE_URL, then REMINDER_SERVICE_HOST/REMINDER_SERVICE_PORT.
    Raises RuntimeError if not configured.
    """
    base_url = os.getenv("REMINDER_SERVICE_URL")
    if not base_url:
        host = os.getenv("REMINDER_SERVICE_HOST")
        port = os.getenv("REMINDER_SERVICE_PORT")
        if host and port:
            base_url = f"http://{host}:{port}"
    if not base_url:
        raise RuntimeError("REMINDER_SERVICE_URL/host:port not configured")
    return base_url.rstrip("/")


def _build_headers(api_key: Optional[str] = None) -> Dict[str, str]:
    """Build headers including X-API-Key if available."""
    api_key = api_key or os.getenv("REMINDER_SERVICE_API_KEY")
    headers: Dict[str, str] = {"Content-Type": "application/json"}
    if api_key:
        headers["X-API-Key"] = api_key
    return headers


def push_schedule_reminder(user_id: str, api_key: Optional[str] = None, timeout: int = 10) -> Dict[str, Any]:
    """POST a schedule request after the user's cycle data changed."""
    url = f"{_resolve_base_url()}/api/v1/reminders/schedule"
    r = requests.post(url, json={"user_id": user_id}, headers=_build_headers(api_key), timeout=timeout)
    r.raise_for_status()
    return r.json()


def push_dispatch(api_key: Optional[str] = None, timeout: int = 60) -> Dict[str, Any]:
    """Trigger one dispatch pass and return its summary."""
    url = f"{_resolve_base_url()}/api/v1/reminders/dispatch"
    r = requests.post(url, headers=_build_headers(api_key), timeout=timeout)
    r.raise_for_status()
    return r.json()
