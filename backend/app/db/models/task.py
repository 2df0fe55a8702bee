"""Task ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, ForeignKey, Index, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONBCompat, UTCDateTime, utcnow


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_id", "user_id"),
        Index("ix_tasks_completed_at", "completed_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(length=16), nullable=False, server_default=sa_text("'medium'"), default="medium")
    due_date = Column(Date, nullable=True)
    completed = Column(Boolean, nullable=False, server_default=sa_text("false"), default=False)
    completed_at = Column(UTCDateTime, nullable=True)
    # Column named "metadata" but attribute renamed to avoid Base.metadata collisions.
    metadata_json = Column("metadata", JSONBCompat, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        server_default=func.now(),
        default=utcnow,
        onupdate=utcnow,
    )
