"""Daily, weekly and milestone quest generation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.models.focus_session import FocusSession
from app.db.models.goal import Goal
from app.db.models.habit import Habit
from app.db.models.journal_entry import JournalEntry
from app.db.models.quest import Quest
from app.db.models.task import Task
from app.services.activity import log_activity
from app.services.gamification.windows import day_window, utc_now, week_window
from app.services.habit_service import refresh_habit_streaks
from app.services.user_service import ensure_player_profile

logger = logging.getLogger(__name__)


@dataclass
class QuestTemplate:
    title: str
    description: str
    category: str
    target_value: int
    reward_xp: int
    reward_credits: int
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class GenerationResult:
    daily: int
    weekly: int
    achievement: int
    removed_daily: int

    @property
    def total(self) -> int:
        return self.daily + self.weekly + self.achievement


WEEKLY_TEMPLATES: List[QuestTemplate] = [
    QuestTemplate("🏆 Weekly Champion", "Complete 15 tasks this week", "tasks", 15, 200, 50),
    QuestTemplate("📋 Task Master", "Complete 25 tasks this week", "tasks", 25, 350, 80),
    QuestTemplate(
        "🔥 Streak Master",
        "Keep a 5-day streak on one habit",
        "habits",
        5,
        150,
        40,
        metadata={"metric": "streak"},
    ),
    QuestTemplate("💪 Weekly Habits", "Complete 10 habits this week", "habits", 10, 180, 45),
    QuestTemplate("🧠 Focus Warrior", "Log 5 hours of focus this week", "focus", 300, 250, 60),
    QuestTemplate("⚡ Ultra Focus", "Log 10 hours of focus this week", "focus", 600, 500, 120),
    QuestTemplate("📖 Journalist", "Write 5 journal entries this week", "journal", 5, 120, 30),
    QuestTemplate("✍️ Prolific Writer", "Write 7 journal entries this week", "journal", 7, 200, 50),
]

# (threshold, title, reward_xp, reward_credits)
LEVEL_MILESTONES = [
    (5, "🌱 Level 5", 100, 50),
    (10, "⭐ Level 10", 250, 100),
    (15, "🌟 Level 15", 400, 150),
    (20, "💫 Level 20", 600, 200),
    (25, "🏆 Level 25", 800, 300),
    (50, "👑 Level 50", 1500, 500),
]
TASK_MILESTONES = [
    (10, "📋 10 Tasks", 50, 20),
    (25, "📝 25 Tasks", 100, 40),
    (50, "🎯 50 Tasks", 200, 75),
    (100, "💯 100 Tasks", 400, 150),
    (250, "🏅 250 Tasks", 750, 300),
    (500, "🏆 500 Tasks", 1200, 500),
]
FOCUS_MILESTONES = [
    (60, "⏱️ 1h of Focus", 50, 20),
    (300, "🧘 5h of Focus", 150, 50),
    (600, "🎯 10h of Focus", 300, 100),
    (1500, "⚡ 25h of Focus", 600, 200),
    (3000, "🔥 50h of Focus", 1000, 400),
    (6000, "🏆 100h of Focus", 2000, 800),
]
JOURNAL_MILESTONES = [
    (5, "📝 5 Entries", 50, 20),
    (15, "📖 15 Entries", 100, 40),
    (30, "📚 30 Entries", 200, 75),
    (100, "✍️ 100 Entries", 500, 200),
]
HABIT_STREAK_MILESTONES = [
    (7, "🔥 7-Day Streak", 100, 40),
    (14, "💪 14-Day Streak", 200, 80),
    (30, "🏆 30-Day Streak", 500, 200),
    (60, "⭐ 60-Day Streak", 1000, 400),
    (100, "👑 100-Day Streak", 2000, 800),
]
FIRST_GOAL = (1, "🎯 First Goal", 150, 50)


def daily_templates(open_tasks: int, habit_count: int, level: int) -> List[QuestTemplate]:
    """Daily quest set scaled to the user's backlog, habits and level."""
    templates = [QuestTemplate("⚡ Quick Start", "Complete your first task of the day", "tasks", 1, 15, 5)]
    if open_tasks >= 3:
        templates.append(QuestTemplate("🎯 Express Productivity", "Complete 3 tasks today", "tasks", 3, 50, 15))
    if open_tasks >= 5:
        templates.append(QuestTemplate("🚀 Task Machine", "Complete 5 tasks today", "tasks", 5, 100, 30))

    if habit_count > 0:
        templates.append(QuestTemplate("✨ First Habit", "Complete at least 1 habit", "habits", 1, 20, 5))
        if habit_count >= 2:
            templates.append(QuestTemplate("💪 Habit Keeper", "Complete 2 habits today", "habits", 2, 40, 10))
        if habit_count >= 3:
            templates.append(
                QuestTemplate(
                    "🌟 Perfect Day",
                    f"Complete all {habit_count} of your habits",
                    "habits",
                    habit_count,
                    100,
                    25,
                )
            )

    templates.extend(
        [
            QuestTemplate("🧘 Mini Focus", "Focus for 15 minutes", "focus", 15, 25, 8),
            QuestTemplate("🎯 Zen Mode", "Complete a 25 minute Pomodoro", "focus", 25, 40, 12),
            QuestTemplate("⚡ Deep Work", "Accumulate 60 minutes of focus", "focus", 60, 75, 20),
        ]
    )
    if level >= 5:
        templates.append(QuestTemplate("🔥 Focus Marathon", "Accumulate 120 minutes of focus", "focus", 120, 150, 40))
    templates.append(QuestTemplate("📝 Daily Reflection", "Write a journal entry", "journal", 1, 35, 10))
    return templates


def _next_milestone(milestones, current_value: int, existing_titles: set[str]):
    for threshold, title, xp, credits in milestones:
        if current_value < threshold and title not in existing_titles:
            return threshold, title, xp, credits
    return None


def _quest_from_template(user_id: UUID, template: QuestTemplate, quest_type: str, expires_at) -> Quest:
    return Quest(
        user_id=user_id,
        title=template.title,
        description=template.description,
        quest_type=quest_type,
        category=template.category,
        target_value=template.target_value,
        current_progress=0,
        reward_xp=template.reward_xp,
        reward_credits=template.reward_credits,
        expires_at=expires_at,
        metadata_json=template.metadata,
    )


def generate_quests(
    db: Session,
    user_id: UUID,
    *,
    now: Optional[datetime] = None,
    request_id: Optional[str] = None,
) -> GenerationResult:
    """Rebuild the daily set, top up weekly quests and the next milestones.

    Incomplete daily quests are replaced; weekly quests are only created when
    none is open; each milestone family (level, tasks, focus, journal, habit
    streak, first goal) contributes its next unreached step unless a quest
    with that title already exists.
    """
    current = utc_now(now)
    profile = ensure_player_profile(db, user_id).profile
    level = profile.level or 1

    open_tasks = db.query(func.count(Task.id)).filter(Task.user_id == user_id, Task.completed.is_(False)).scalar() or 0
    habit_count = db.query(func.count(Habit.id)).filter(Habit.user_id == user_id).scalar() or 0
    completed_tasks = (
        db.query(func.count(Task.id)).filter(Task.user_id == user_id, Task.completed.is_(True)).scalar() or 0
    )
    focus_minutes = (
        db.query(func.coalesce(func.sum(FocusSession.duration), 0))
        .filter(FocusSession.user_id == user_id, FocusSession.completed_at.isnot(None))
        .scalar()
        or 0
    )
    journal_entries = db.query(func.count(JournalEntry.id)).filter(JournalEntry.user_id == user_id).scalar() or 0
    completed_goals = (
        db.query(func.count(Goal.id)).filter(Goal.user_id == user_id, Goal.completed.is_(True)).scalar() or 0
    )
    refresh_habit_streaks(db, user_id, now=current)
    max_streak = db.query(func.max(Habit.streak)).filter(Habit.user_id == user_id).scalar() or 0

    removed = (
        db.query(Quest)
        .filter(Quest.user_id == user_id, Quest.quest_type == "daily", Quest.completed.is_(False))
        .delete(synchronize_session=False)
    )

    _, end_of_day = day_window(current)
    _, end_of_week = week_window(current)

    daily = daily_templates(open_tasks, habit_count, level)
    for template in daily:
        db.add(_quest_from_template(user_id, template, "daily", end_of_day))

    weekly_count = 0
    open_weekly = (
        db.query(func.count(Quest.id))
        .filter(
            Quest.user_id == user_id,
            Quest.quest_type == "weekly",
            Quest.completed.is_(False),
            Quest.expires_at > current,
        )
        .scalar()
    )
    if not open_weekly:
        for template in WEEKLY_TEMPLATES:
            db.add(_quest_from_template(user_id, template, "weekly", end_of_week))
        weekly_count = len(WEEKLY_TEMPLATES)

    existing_titles = {
        row[0]
        for row in db.query(Quest.title).filter(Quest.user_id == user_id, Quest.quest_type == "achievement").all()
    }
    achievement_count = 0
    streak_metric = {"metric": "streak"}
    for category, milestones, value, unit, metadata in (
        ("level", LEVEL_MILESTONES, level, "Reach level {n}", None),
        ("tasks", TASK_MILESTONES, completed_tasks, "Complete {n} tasks in total", None),
        ("focus", FOCUS_MILESTONES, focus_minutes, "Accumulate {n} minutes of focus", None),
        ("journal", JOURNAL_MILESTONES, journal_entries, "Write {n} journal entries", None),
        ("habits", HABIT_STREAK_MILESTONES, max_streak, "Keep a {n}-day streak on one habit", streak_metric),
        ("goals", [FIRST_GOAL], completed_goals, "Complete your first goal", None),
    ):
        step = _next_milestone(milestones, value, existing_titles)
        if step is None:
            continue
        threshold, title, xp, credits = step
        db.add(
            Quest(
                user_id=user_id,
                title=title,
                description=unit.format(n=threshold),
                quest_type="achievement",
                category=category,
                target_value=threshold,
                current_progress=value,
                reward_xp=xp,
                reward_credits=credits,
                expires_at=None,
                metadata_json=dict(metadata) if metadata else None,
            )
        )
        achievement_count += 1

    result = GenerationResult(
        daily=len(daily),
        weekly=weekly_count,
        achievement=achievement_count,
        removed_daily=removed or 0,
    )
    log_activity(
        db,
        user_id,
        "quests_generated",
        {"daily": result.daily, "weekly": result.weekly, "achievement": result.achievement},
        reason="Quest board refreshed",
        request_id=request_id,
    )
    db.flush()
    logger.info("Generated %s quests for user %s", result.total, user_id)
    return result
