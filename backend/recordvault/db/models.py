from sqlalchemy import Column, String, Boolean, DateTime
from .base import Base
from datetime import datetime, timezone


class SessionRecord(Base):
    __tablename__ = "sessions"

    session_id = Column(String(64), primary_key=True, index=True)
    is_authenticated = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
