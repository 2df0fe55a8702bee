"""Focus session ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Index, Integer, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class FocusSession(Base):
    __tablename__ = "focus_sessions"
    __table_args__ = (
        Index("ix_focus_sessions_user_id", "user_id"),
        Index("ix_focus_sessions_completed_at", "completed_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=True)
    planned_duration = Column(Integer, nullable=True)
    # Minutes actually spent; set on completion.
    duration = Column(Integer, nullable=False, server_default=sa_text("0"), default=0)
    started_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
    completed_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
