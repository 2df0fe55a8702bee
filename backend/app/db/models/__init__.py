"""ORM models exposed for metadata discovery."""
from app.db.models.achievement import Achievement
from app.db.models.active_powerup import ActivePowerUp
from app.db.models.activity_log import ActivityLog
from app.db.models.ai_credit import AICreditBalance, AIRequest
from app.db.models.focus_session import FocusSession
from app.db.models.goal import Goal
from app.db.models.habit import Habit, HabitCompletion
from app.db.models.journal_entry import JournalEntry
from app.db.models.player_profile import PlayerProfile
from app.db.models.quest import Quest
from app.db.models.task import Task
from app.db.models.user import User

__all__ = [
    "Achievement",
    "ActivePowerUp",
    "ActivityLog",
    "AICreditBalance",
    "AIRequest",
    "FocusSession",
    "Goal",
    "Habit",
    "HabitCompletion",
    "JournalEntry",
    "PlayerProfile",
    "Quest",
    "Task",
    "User",
]
