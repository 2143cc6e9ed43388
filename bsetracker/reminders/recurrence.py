"""
Cycle-based recurrence for self-exam reminders.

The reminder falls ``offset`` days after the end of the last period and then
repeats every cycle length. The chosen calendar day is fired at a fixed local
wall-clock hour in the user's timezone.
"""
import logging
from datetime import date, datetime, time, timedelta

from .exceptions import ValidationError
from .schemas import CycleProfile
from bsetracker.utils.timezone import UTC, get_zoneinfo, to_utc_aware

logger = logging.getLogger(__name__)

DEFAULT_TARGET_HOUR = 9
DEFAULT_CYCLE_DAYS = 28
DEFAULT_OFFSET_DAYS = 7


def next_cycle_date(
    last_period_end: date,
    offset_days: int,
    cycle_days: int,
    reference: datetime,
) -> date:
    """Return the first ``last_period_end + offset + k * cycle`` day whose UTC
    midnight is strictly after ``reference``.
    """
    base = datetime.combine(last_period_end + timedelta(days=offset_days), time(0), tzinfo=UTC)
    if base > reference:
        return base.date()
    cycle = timedelta(days=cycle_days)
    steps = (reference - base) // cycle + 1
    return (base + steps * cycle).date()


def local_time_to_utc(day: date, hour: int, tz_name: str | None) -> datetime:
    """Absolute UTC instant of ``hour``:00 local time on ``day`` in ``tz_name``.

    The zone's offset is the one in force on that date, so DST is honoured.
    """
    zone = get_zoneinfo(tz_name)
    local = datetime.combine(day, time(hour), tzinfo=zone)
    return local.astimezone(UTC)


def compute_next_reminder(
    profile: CycleProfile,
    reference_now: datetime,
    target_hour: int = DEFAULT_TARGET_HOUR,
    default_cycle_days: int = DEFAULT_CYCLE_DAYS,
    default_offset_days: int = DEFAULT_OFFSET_DAYS,
) -> datetime:
    """Next reminder instant (UTC) strictly after ``reference_now``."""
    if profile.last_period_end is None:
        raise ValidationError("No last period end date set")

    now = to_utc_aware(reference_now)
    cycle_days = profile.cycle_length_days(default_cycle_days)
    offset_days = profile.offset_days(default_offset_days)

    reference = now
    first_day = profile.last_period_end + timedelta(days=offset_days)
    # A large positive UTC offset can put local 09:00 before the UTC midnight
    # the cycle step compared against; nudge the reference forward a day at a time.
    for _ in range(cycle_days + 1):
        day = next_cycle_date(profile.last_period_end, offset_days, cycle_days, reference)
        candidate = local_time_to_utc(day, target_hour, profile.timezone)
        if candidate > now:
            # West of UTC, local 09:00 on the previous aligned day can still be ahead
            previous_day = day - timedelta(days=cycle_days)
            if previous_day >= first_day:
                previous = local_time_to_utc(previous_day, target_hour, profile.timezone)
                if previous > now:
                    return previous
            return candidate
        logger.debug(
            f"Reminder candidate {candidate.isoformat()} for user {profile.user_id} "
            f"not after {now.isoformat()}, advancing reference"
        )
        reference += timedelta(days=1)

    raise ValidationError(f"Could not find a reminder instant after {now.isoformat()}")
