"""Badge definitions and unlock evaluation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.models.achievement import Achievement
from app.db.models.focus_session import FocusSession
from app.db.models.habit import Habit
from app.services.activity import log_activity
from app.services.habit_service import refresh_habit_streaks
from app.services.user_service import ensure_player_profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    title: str
    description: str
    icon: str


ACHIEVEMENT_DEFINITIONS: Dict[str, AchievementDefinition] = {
    "first_quest": AchievementDefinition("first_quest", "First Quest", "Complete your first quest", "🎯"),
    "quest_master": AchievementDefinition("quest_master", "Quest Master", "Complete 10 quests", "👑"),
    "focus_warrior": AchievementDefinition("focus_warrior", "Focus Warrior", "Complete 5 focus sessions", "⚔️"),
    "habit_builder": AchievementDefinition("habit_builder", "Habit Builder", "Keep a habit going for 7 days", "🔥"),
    "level_10": AchievementDefinition("level_10", "Level 10", "Reach level 10", "⭐"),
}


@dataclass
class _Stats:
    quests_completed: int
    focus_sessions: int
    max_streak: int
    level: int


_RULES: Dict[str, Callable[[_Stats], bool]] = {
    "first_quest": lambda s: s.quests_completed >= 1,
    "quest_master": lambda s: s.quests_completed >= 10,
    "focus_warrior": lambda s: s.focus_sessions >= 5,
    "habit_builder": lambda s: s.max_streak >= 7,
    "level_10": lambda s: s.level >= 10,
}


def _collect_stats(db: Session, user_id: UUID, now: Optional[datetime] = None) -> _Stats:
    profile = ensure_player_profile(db, user_id).profile
    refresh_habit_streaks(db, user_id, now=now)
    focus_sessions = (
        db.query(func.count(FocusSession.id))
        .filter(FocusSession.user_id == user_id, FocusSession.completed_at.isnot(None))
        .scalar()
    )
    max_streak = db.query(func.max(Habit.streak)).filter(Habit.user_id == user_id).scalar()
    return _Stats(
        quests_completed=profile.total_quests_completed or 0,
        focus_sessions=focus_sessions or 0,
        max_streak=max_streak or 0,
        level=profile.level or 1,
    )


def unlocked_ids(db: Session, user_id: UUID) -> set[str]:
    rows = db.query(Achievement.achievement_id).filter(Achievement.user_id == user_id).all()
    return {row[0] for row in rows}


def evaluate_achievements(db: Session, user_id: UUID, now: Optional[datetime] = None) -> List[str]:
    """Stage rows for every newly earned badge and return their ids."""
    stats = _collect_stats(db, user_id, now)
    already = unlocked_ids(db, user_id)

    unlocked: List[str] = []
    for badge_id, rule in _RULES.items():
        if badge_id in already or not rule(stats):
            continue
        definition = ACHIEVEMENT_DEFINITIONS[badge_id]
        db.add(
            Achievement(
                user_id=user_id,
                achievement_id=badge_id,
                title=definition.title,
                description=definition.description,
                icon=definition.icon,
            )
        )
        log_activity(db, user_id, "achievement_unlocked", {"achievement_id": badge_id}, reason=definition.title)
        unlocked.append(badge_id)

    if unlocked:
        db.flush()
        logger.info("User %s unlocked badges %s", user_id, unlocked)
    return unlocked
