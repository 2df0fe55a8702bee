"""Action rewards and power-up effects on experience."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models.active_powerup import ActivePowerUp
from app.services.activity import log_activity
from app.services.gamification.levels import XPAward, grant_xp
from app.services.gamification.windows import utc_now
from app.services.notifications.hooks import notify_level_up
from app.services.user_service import ensure_player_profile

logger = logging.getLogger(__name__)

XP_REWARDS = {
    "task_completed": 10,
    "task_high_priority": 20,
    "habit_completed": 15,
    "focus_session_mini": 15,
    "focus_session_pomodoro": 25,
    "focus_session_long": 40,
    "journal_entry": 20,
    "goal_completed": 100,
    "streak_3": 30,
    "streak_7": 75,
    "streak_30": 300,
}

STREAK_MILESTONES = {3: "streak_3", 7: "streak_7", 30: "streak_30"}

XP_BOOST_TYPES = {"xp_boost_2x", "xp_boost_3x"}
PROTECTION_TYPES = {"streak_shield", "streak_mega_shield"}


def get_active_powerups(db: Session, user_id: UUID, now: Optional[datetime] = None) -> List[ActivePowerUp]:
    current = utc_now(now)
    return (
        db.query(ActivePowerUp)
        .filter(ActivePowerUp.user_id == user_id, ActivePowerUp.expires_at > current)
        .order_by(ActivePowerUp.expires_at)
        .all()
    )


def active_xp_multiplier(db: Session, user_id: UUID, now: Optional[datetime] = None) -> float:
    """Highest multiplier among unexpired XP boosts, 1.0 when none."""
    boosts = [p.multiplier for p in get_active_powerups(db, user_id, now) if p.powerup_type in XP_BOOST_TYPES]
    return max(boosts, default=1.0)


def has_streak_protection(db: Session, user_id: UUID, now: Optional[datetime] = None) -> bool:
    return any(p.powerup_type in PROTECTION_TYPES for p in get_active_powerups(db, user_id, now))


def award_action_xp(
    db: Session,
    user_id: UUID,
    action: str,
    *,
    custom_amount: Optional[int] = None,
    request_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> XPAward:
    """Grant the configured XP for an action, boosted by active power-ups."""
    if action not in XP_REWARDS and custom_amount is None:
        raise ValueError(f"Unknown reward action: {action}")

    bundle = ensure_player_profile(db, user_id)
    multiplier = active_xp_multiplier(db, user_id, now)
    base = custom_amount if custom_amount is not None else XP_REWARDS[action]
    award = grant_xp(bundle.profile, base, multiplier=multiplier)

    log_activity(
        db,
        user_id,
        "xp_awarded",
        {"action": action, **award.to_dict()},
        reason=f"Reward for {action}",
        request_id=request_id,
    )
    if award.leveled_up:
        logger.info("User %s reached level %s", user_id, award.level)
        notify_level_up(db, user_id, award, request_id)
    return award
