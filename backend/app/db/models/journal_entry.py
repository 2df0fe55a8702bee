"""Journal entry ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONBCompat, UTCDateTime, utcnow


class JournalEntry(Base):
    __tablename__ = "journal_entries"
    __table_args__ = (
        Index("ix_journal_entries_user_id", "user_id"),
        Index("ix_journal_entries_created_at", "created_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    mood = Column(String(length=32), nullable=True)
    tags = Column(JSONBCompat, nullable=False, default=list)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        server_default=func.now(),
        default=utcnow,
        onupdate=utcnow,
    )
