import logging
from datetime import datetime, timezone as dt_timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

UTC = dt_timezone.utc


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_utc_aware(dt: datetime | None) -> datetime | None:
    """
    Normalize any datetime to UTC-aware (tzinfo=UTC).
    - Aware datetimes are converted to UTC
    - Naive datetimes are assumed UTC and tz attached
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def get_zoneinfo(tz_name: Optional[str]) -> dt_timezone | ZoneInfo:
    """
    Resolve an IANA timezone name. Missing, "UTC" and unknown names resolve to UTC.
    """
    if not tz_name or tz_name.strip().upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(tz_name.strip())
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {tz_name!r}, falling back to UTC")
        return UTC
