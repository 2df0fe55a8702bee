"""AI credit balance and request log ORM models."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Index, Integer, String, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class AICreditBalance(Base):
    __tablename__ = "ai_credits"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    credits = Column(Integer, nullable=False, server_default=sa_text("0"), default=0)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
    last_updated = Column(
        UTCDateTime,
        nullable=False,
        server_default=func.now(),
        default=utcnow,
        onupdate=utcnow,
    )


class AIRequest(Base):
    __tablename__ = "ai_requests"
    __table_args__ = (Index("ix_ai_requests_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    service = Column(String(length=50), nullable=False)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
