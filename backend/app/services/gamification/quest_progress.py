"""Quest progress recomputation and reward claiming."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.models.focus_session import FocusSession
from app.db.models.goal import Goal
from app.db.models.habit import Habit, HabitCompletion
from app.db.models.journal_entry import JournalEntry
from app.db.models.quest import Quest
from app.db.models.task import Task
from app.services.activity import log_activity
from app.services.gamification.achievements import evaluate_achievements
from app.services.gamification.levels import XPAward, grant_xp
from app.services.gamification.windows import Window, day_window, utc_now, week_window
from app.services.habit_service import refresh_habit_streaks
from app.services.notifications.hooks import notify_level_up, notify_quest_completed
from app.services.user_service import ensure_player_profile

logger = logging.getLogger(__name__)

QUEST_TYPES = ("daily", "weekly", "achievement")
QUEST_CATEGORIES = ("tasks", "habits", "focus", "journal", "goals", "level")


class QuestNotClaimableError(Exception):
    """Raised when a claim is refused; ``code`` names the reason."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


@dataclass
class ClaimResult:
    quest: Quest
    award: XPAward
    credits_granted: int
    credits_balance: int
    badges_unlocked: List[str]


def quest_window(quest_type: str, now: datetime) -> Optional[Window]:
    """Window a quest's progress is measured over, None for lifetime."""
    if quest_type == "daily":
        return day_window(now)
    if quest_type == "weekly":
        return week_window(now)
    return None


def _in_window(column, window: Optional[Window]):
    if window is None:
        return []
    start, end = window
    return [column >= start, column < end]


class ProgressCalculator:
    """Computes category metrics, caching by (category, window) for one refresh."""

    def __init__(self, db: Session, user_id: UUID):
        self.db = db
        self.user_id = user_id
        self._cache: Dict[Tuple[str, Optional[Window]], int] = {}

    def compute(self, quest: Quest, now: datetime) -> int:
        metadata = quest.metadata_json or {}
        window = quest_window(quest.quest_type, now)
        category = quest.category
        if category == "habits" and metadata.get("metric") == "streak":
            category = "habit_streak"
            window = None

        key = (category, window)
        if key not in self._cache:
            self._cache[key] = self._measure(category, window, now)
        return self._cache[key]

    def _measure(self, category: str, window: Optional[Window], now: datetime) -> int:
        db, user_id = self.db, self.user_id
        if category == "tasks":
            value = (
                db.query(func.count(Task.id))
                .filter(Task.user_id == user_id, Task.completed.is_(True), Task.completed_at.isnot(None))
                .filter(*_in_window(Task.completed_at, window))
                .scalar()
            )
        elif category == "habits":
            filters = []
            if window is not None:
                start, end = window
                filters = [
                    HabitCompletion.completed_date >= start.date(),
                    HabitCompletion.completed_date < end.date(),
                ]
            value = (
                db.query(func.count(HabitCompletion.id))
                .filter(HabitCompletion.user_id == user_id, *filters)
                .scalar()
            )
        elif category == "habit_streak":
            refresh_habit_streaks(db, user_id, now=now)
            value = db.query(func.max(Habit.streak)).filter(Habit.user_id == user_id).scalar()
        elif category == "focus":
            value = (
                db.query(func.coalesce(func.sum(FocusSession.duration), 0))
                .filter(FocusSession.user_id == user_id, FocusSession.completed_at.isnot(None))
                .filter(*_in_window(FocusSession.completed_at, window))
                .scalar()
            )
        elif category == "journal":
            value = (
                db.query(func.count(JournalEntry.id))
                .filter(JournalEntry.user_id == user_id)
                .filter(*_in_window(JournalEntry.created_at, window))
                .scalar()
            )
        elif category == "goals":
            value = (
                db.query(func.count(Goal.id))
                .filter(Goal.user_id == user_id, Goal.completed.is_(True), Goal.completed_at.isnot(None))
                .filter(*_in_window(Goal.completed_at, window))
                .scalar()
            )
        elif category == "level":
            value = ensure_player_profile(db, user_id).profile.level
        else:
            logger.warning("Unknown quest category %s", category)
            value = 0
        return int(value or 0)


def open_quests(db: Session, user_id: UUID, now: datetime) -> List[Quest]:
    return (
        db.query(Quest)
        .filter(
            Quest.user_id == user_id,
            Quest.completed.is_(False),
            (Quest.expires_at.is_(None)) | (Quest.expires_at > now),
        )
        .all()
    )


def refresh_quest_progress(db: Session, user_id: UUID, now: Optional[datetime] = None) -> int:
    """Recompute progress of open quests and return how many rows changed.

    Values are stored uncapped. Nothing is committed here.
    """
    current = utc_now(now)
    calculator = ProgressCalculator(db, user_id)
    updated = 0
    for quest in open_quests(db, user_id, current):
        value = calculator.compute(quest, current)
        if value != quest.current_progress:
            quest.current_progress = value
            updated += 1
    if updated:
        db.flush()
        logger.debug("Updated progress on %s quest(s) for user %s", updated, user_id)
    return updated


def is_claimable(quest: Quest, now: Optional[datetime] = None) -> bool:
    current = utc_now(now)
    if quest.completed:
        return False
    if quest.expires_at is not None and quest.expires_at <= current:
        return False
    return (quest.current_progress or 0) >= quest.target_value


def claim_quest(
    db: Session,
    user_id: UUID,
    quest_id: UUID,
    *,
    now: Optional[datetime] = None,
    request_id: Optional[str] = None,
) -> ClaimResult:
    """Complete a reached quest and pay out its rewards.

    Reward XP goes through level-up logic without the power-up multiplier.
    Staged in the session; the caller commits.
    """
    current = utc_now(now)
    quest = db.get(Quest, quest_id)
    if quest is None:
        raise QuestNotClaimableError("not_found", "Quest not found")
    if quest.user_id != user_id:
        raise QuestNotClaimableError("forbidden", "Quest does not belong to user")
    if quest.completed:
        raise QuestNotClaimableError("already_completed", "Quest already completed")
    if quest.expires_at is not None and quest.expires_at <= current:
        raise QuestNotClaimableError("expired", "Quest expired")

    refresh_quest_progress(db, user_id, current)
    if (quest.current_progress or 0) < quest.target_value:
        raise QuestNotClaimableError(
            "not_reached",
            f"Quest progress {quest.current_progress}/{quest.target_value}",
        )

    profile = ensure_player_profile(db, user_id).profile
    quest.completed = True
    quest.completed_at = current

    award = grant_xp(profile, quest.reward_xp or 0)
    profile.credits = (profile.credits or 0) + (quest.reward_credits or 0)
    profile.total_quests_completed = (profile.total_quests_completed or 0) + 1

    log_activity(
        db,
        user_id,
        "quest_completed",
        {
            "quest_id": str(quest.id),
            "quest_type": quest.quest_type,
            "reward_xp": quest.reward_xp,
            "reward_credits": quest.reward_credits,
            "level": award.level,
        },
        reason=f"Quest claimed: {quest.title}",
        request_id=request_id,
    )
    db.flush()

    notify_quest_completed(db, quest, request_id)
    if award.leveled_up:
        notify_level_up(db, user_id, award, request_id)
    unlocked = evaluate_achievements(db, user_id)

    logger.info("User %s claimed quest %s", user_id, quest.id)
    return ClaimResult(
        quest=quest,
        award=award,
        credits_granted=quest.reward_credits or 0,
        credits_balance=profile.credits,
        badges_unlocked=unlocked,
    )
