"""Active power-up ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Float, ForeignKey, Index, String, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class ActivePowerUp(Base):
    __tablename__ = "active_powerups"
    __table_args__ = (Index("ix_active_powerups_user_expires", "user_id", "expires_at"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    powerup_type = Column(String(length=50), nullable=False)
    multiplier = Column(Float, nullable=False, default=1.0)
    expires_at = Column(UTCDateTime, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
