"""Unlocked achievement (badge) ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class Achievement(Base):
    __tablename__ = "achievements"
    __table_args__ = (UniqueConstraint("user_id", "achievement_id", name="uq_achievements_user_badge"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    achievement_id = Column(String(length=50), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(length=16), nullable=True)
    unlocked_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
