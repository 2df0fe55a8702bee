"""Audit logging and the in-process activity change feed."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)

# Tables whose writes can move quest progress or unlock badges.
TRACKED_SOURCES = {"tasks", "habits", "habit_completions", "focus_sessions", "journal_entries", "goals", "player_profiles"}


def log_activity(
    db: Session,
    user_id: UUID,
    action_type: str,
    payload: Optional[Dict[str, Any]] = None,
    *,
    reason: Optional[str] = None,
    request_id: Optional[str] = None,
) -> ActivityLog:
    """Stage an audit row in the current transaction."""
    body = dict(payload or {})
    if request_id:
        body.setdefault("request_id", request_id)
    entry = ActivityLog(user_id=user_id, action_type=action_type, action_payload=body, reason=reason)
    db.add(entry)
    return entry


def on_activity(db: Session, user_id: UUID, source: str) -> Dict[str, Any]:
    """React to a committed change in one of the tracked tables.

    Recomputes open quest progress and evaluates badges, then commits.
    The triggering write is already committed, so a failure here is rolled
    back and logged instead of failing the request.
    Returns a summary used by callers for metrics.
    """
    # Deferred: the gamification package imports this module.
    from app.services.gamification.achievements import evaluate_achievements
    from app.services.gamification.quest_progress import refresh_quest_progress

    if source not in TRACKED_SOURCES:
        logger.debug("Ignoring activity from untracked source %s", source)
        return {"quests_updated": 0, "badges_unlocked": []}

    try:
        quests_updated = refresh_quest_progress(db, user_id)
        unlocked = evaluate_achievements(db, user_id)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Activity follow-up failed for user %s after change on %s", user_id, source)
        return {"quests_updated": 0, "badges_unlocked": []}
    if quests_updated or unlocked:
        logger.info(
            "Activity on %s: %s quest(s) updated, badges unlocked=%s",
            source,
            quests_updated,
            unlocked,
        )
    return {"quests_updated": quests_updated, "badges_unlocked": unlocked}
