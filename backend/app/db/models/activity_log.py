"""Activity (audit) log ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Index, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONBCompat, UTCDateTime, utcnow


class ActivityLog(Base):
    __tablename__ = "activity_log"
    __table_args__ = (Index("ix_activity_log_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    action_type = Column(Text, nullable=False)
    action_payload = Column(JSONBCompat, nullable=False, default=dict)
    reason = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
