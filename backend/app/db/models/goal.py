"""Goal ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, ForeignKey, Index, Integer, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONBCompat, UTCDateTime, utcnow


class Goal(Base):
    __tablename__ = "goals"
    __table_args__ = (Index("ix_goals_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(length=50), nullable=True)
    target_date = Column(Date, nullable=True)
    progress = Column(Integer, nullable=False, server_default=sa_text("0"), default=0)
    completed = Column(Boolean, nullable=False, server_default=sa_text("false"), default=False)
    completed_at = Column(UTCDateTime, nullable=True)
    metadata_json = Column("metadata", JSONBCompat, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        server_default=func.now(),
        default=utcnow,
        onupdate=utcnow,
    )
