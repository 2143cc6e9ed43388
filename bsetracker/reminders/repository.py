from datetime import datetime, timedelta
from typing import List, Optional, Tuple
import uuid

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.orm import Session

from .models import ReminderInstance
from bsetracker.models.profile import Profile
from bsetracker.utils.timezone import to_utc_aware, utc_now


def _as_uuid(reminder_id) -> Optional[uuid.UUID]:
    if isinstance(reminder_id, uuid.UUID):
        return reminder_id
    try:
        return uuid.UUID(str(reminder_id))
    except ValueError:
        return None


def get_profile(db: Session, user_id: str) -> Optional[Profile]:
    return db.get(Profile, user_id)


def get_reminder(db: Session, reminder_id) -> Optional[ReminderInstance]:
    rid = _as_uuid(reminder_id)
    if rid is None:
        return None
    return db.get(ReminderInstance, rid)


def get_pending_reminder(db: Session, user_id: str) -> Optional[ReminderInstance]:
    stmt = (
        select(ReminderInstance)
        .where(ReminderInstance.user_id == user_id)
        .where(ReminderInstance.fired.is_(False))
        .order_by(ReminderInstance.scheduled_at.asc())
    )
    return db.execute(stmt).scalars().first()


def list_reminders(db: Session, user_id: str, limit: int = 100) -> List[ReminderInstance]:
    stmt = (
        select(ReminderInstance)
        .where(ReminderInstance.user_id == user_id)
        .order_by(ReminderInstance.scheduled_at.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars())


def delete_pending_reminders(db: Session, user_id: str) -> int:
    """Delete the user's unfired reminders. Does not commit."""
    result = db.execute(
        delete(ReminderInstance)
        .where(ReminderInstance.user_id == user_id)
        .where(ReminderInstance.fired.is_(False))
    )
    return result.rowcount or 0


def replace_pending_reminder(db: Session, user_id: str, scheduled_at: datetime) -> ReminderInstance:
    """Swap the user's pending reminder for a new one in a single transaction.

    The caller rolls back on failure, which keeps the previous pending row.
    """
    delete_pending_reminders(db, user_id)
    reminder = ReminderInstance(
        user_id=user_id,
        scheduled_at=to_utc_aware(scheduled_at),
        fired=False,
    )
    db.add(reminder)
    db.commit()
    db.refresh(reminder)
    return reminder


def get_due_reminders(
    db: Session,
    now: datetime,
    limit: int = 1000,
    after: Optional[Tuple[datetime, uuid.UUID]] = None,
) -> List[ReminderInstance]:
    """One page of due reminders ordered by ``(scheduled_at, id)``.

    ``after`` is the key of the last row of the previous page; paging on it
    moves past rows that were skipped and stay due.
    """
    now = to_utc_aware(now)
    stmt = (
        select(ReminderInstance)
        .where(ReminderInstance.fired.is_(False))
        .where(ReminderInstance.scheduled_at <= now)
        .where(or_(ReminderInstance.claimed_until.is_(None), ReminderInstance.claimed_until <= now))
    )
    if after is not None:
        after_at, after_id = after
        stmt = stmt.where(
            or_(
                ReminderInstance.scheduled_at > to_utc_aware(after_at),
                and_(ReminderInstance.scheduled_at == to_utc_aware(after_at), ReminderInstance.id > after_id),
            )
        )
    stmt = stmt.order_by(ReminderInstance.scheduled_at.asc(), ReminderInstance.id.asc()).limit(limit)
    return list(db.execute(stmt).scalars())


def claim_for_dispatch(db: Session, reminder_id, now: datetime, lease_seconds: int) -> bool:
    """Take the dispatch lease on an unfired reminder. Only one caller wins."""
    now = to_utc_aware(now)
    result = db.execute(
        update(ReminderInstance)
        .where(ReminderInstance.id == reminder_id)
        .where(ReminderInstance.fired.is_(False))
        .where(or_(ReminderInstance.claimed_until.is_(None), ReminderInstance.claimed_until <= now))
        .values(claimed_until=now + timedelta(seconds=lease_seconds), updated_at=utc_now())
    )
    db.commit()
    return result.rowcount == 1


def release_claim(db: Session, reminder_id) -> None:
    db.execute(
        update(ReminderInstance)
        .where(ReminderInstance.id == reminder_id)
        .where(ReminderInstance.fired.is_(False))
        .values(claimed_until=None, updated_at=utc_now())
    )
    db.commit()


def mark_fired(db: Session, reminder_id) -> bool:
    """Conditional ``fired: false -> true``. Returns False if nothing changed."""
    result = db.execute(
        update(ReminderInstance)
        .where(ReminderInstance.id == reminder_id)
        .where(ReminderInstance.fired.is_(False))
        .values(fired=True, claimed_until=None, updated_at=utc_now())
    )
    db.commit()
    return result.rowcount == 1


def set_snoozed_until(db: Session, reminder_id, snoozed_until: datetime) -> bool:
    result = db.execute(
        update(ReminderInstance)
        .where(ReminderInstance.id == reminder_id)
        .where(ReminderInstance.fired.is_(False))
        .values(snoozed_until=to_utc_aware(snoozed_until), updated_at=utc_now())
    )
    db.commit()
    return result.rowcount == 1
