"""User ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import UTCDateTime, utcnow


class User(Base):
    __tablename__ = "users"

    # Same value as the auth subject; rows are created lazily on first write.
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    display_name = Column(Text, nullable=True)
    language = Column(String(length=8), nullable=False, server_default=sa_text("'fr'"), default="fr")
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
