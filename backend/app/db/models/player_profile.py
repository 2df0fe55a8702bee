"""Player profile ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Integer, String, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONBCompat, UTCDateTime, utcnow

DEFAULT_AVATAR = {"helmet": "helmet_basic", "armor": "armor_basic", "glow_color": "cyan"}


def _default_avatar() -> dict:
    return dict(DEFAULT_AVATAR)


class PlayerProfile(Base):
    __tablename__ = "player_profiles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    experience_points = Column(Integer, nullable=False, server_default=sa_text("0"), default=0)
    level = Column(Integer, nullable=False, server_default=sa_text("1"), default=1)
    credits = Column(Integer, nullable=False, server_default=sa_text("0"), default=0)
    total_quests_completed = Column(Integer, nullable=False, server_default=sa_text("0"), default=0)
    avatar_type = Column(String(length=32), nullable=False, server_default=sa_text("'cyber'"), default="cyber")
    avatar_customization = Column(JSONBCompat, nullable=False, default=_default_avatar)
    unlocked_items = Column(JSONBCompat, nullable=False, default=list)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        server_default=func.now(),
        default=utcnow,
        onupdate=utcnow,
    )
