"""Habit and habit completion ORM models."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONBCompat, UTCDateTime, utcnow


class Habit(Base):
    __tablename__ = "habits"
    __table_args__ = (Index("ix_habits_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    frequency = Column(String(length=16), nullable=False, server_default=sa_text("'daily'"), default="daily")
    target = Column(Integer, nullable=False, server_default=sa_text("1"), default=1)
    category = Column(String(length=50), nullable=True)
    streak = Column(Integer, nullable=False, server_default=sa_text("0"), default=0)
    total_completions = Column(Integer, nullable=False, server_default=sa_text("0"), default=0)
    last_completed_at = Column(UTCDateTime, nullable=True)
    metadata_json = Column("metadata", JSONBCompat, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        server_default=func.now(),
        default=utcnow,
        onupdate=utcnow,
    )


class HabitCompletion(Base):
    __tablename__ = "habit_completions"
    __table_args__ = (
        UniqueConstraint("habit_id", "completed_date", name="uq_habit_completions_habit_day"),
        Index("ix_habit_completions_user_id", "user_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    habit_id = Column(UUID(as_uuid=True), ForeignKey("habits.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    completed_date = Column(Date, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now(), default=utcnow)
