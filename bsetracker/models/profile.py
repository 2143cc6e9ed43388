from datetime import datetime
from sqlalchemy import Column, String, Date, Boolean, Integer, DateTime

from bsetracker.db.base import Base


class Profile(Base):
    """User profile with cycle data. Owned by the profile/settings flow; read-only here."""
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=True)
    last_period_end = Column(Date, nullable=True)
    avg_cycle_days = Column(Integer, nullable=True, default=28)
    reminder_offset_days = Column(Integer, nullable=True, default=7)
    reminder_enabled = Column(Boolean, nullable=False, default=True)
    timezone = Column(String, nullable=True)  # IANA name, e.g. 'Europe/Berlin'
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
