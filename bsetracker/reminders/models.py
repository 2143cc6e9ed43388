from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, Index, Uuid, text
import uuid

from bsetracker.db.base import Base
from bsetracker.db.types import UTCDateTime


class ReminderInstance(Base):
    """One scheduled occurrence of a user's self-exam reminder."""
    __tablename__ = "reminder_instances"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String, nullable=False, index=True)
    scheduled_at = Column(UTCDateTime, nullable=False, index=True)
    fired = Column(Boolean, nullable=False, default=False)
    snoozed_until = Column(UTCDateTime, nullable=True)
    claimed_until = Column(UTCDateTime, nullable=True)  # dispatch lease
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_reminder_instances_fired_scheduled", "fired", "scheduled_at"),
        # At most one pending reminder per user
        Index(
            "uq_reminder_instances_user_pending",
            "user_id",
            unique=True,
            postgresql_where=text("fired = false"),
            sqlite_where=text("fired = 0"),
        ),
    )

    def is_snoozed(self, now: datetime) -> bool:
        return self.snoozed_until is not None and self.snoozed_until > now
