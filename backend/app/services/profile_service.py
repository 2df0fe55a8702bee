"""Player profile updates and avatar customization."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models.player_profile import DEFAULT_AVATAR
from app.services.activity import log_activity
from app.services.gamification.levels import xp_for_level, xp_progress
from app.services.user_service import PlayerBundle, ensure_player_profile

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("fr", "en", "es", "de")
DEFAULT_ITEMS = {DEFAULT_AVATAR["helmet"], DEFAULT_AVATAR["armor"]}
EQUIPPABLE_SLOTS = ("helmet", "armor")


class AvatarItemLockedError(Exception):
    def __init__(self, item: str):
        super().__init__(f"Item {item} is not unlocked")
        self.item = item


def profile_snapshot(bundle: PlayerBundle) -> Dict[str, Any]:
    profile = bundle.profile
    level = profile.level or 1
    return {
        "user_id": bundle.user.id,
        "display_name": bundle.user.display_name,
        "language": bundle.user.language,
        "experience_points": profile.experience_points or 0,
        "level": level,
        "xp_needed": xp_for_level(level),
        "xp_progress": xp_progress(profile),
        "credits": profile.credits or 0,
        "ai_credits": bundle.ai_credits.credits or 0,
        "total_quests_completed": profile.total_quests_completed or 0,
        "avatar_type": profile.avatar_type,
        "avatar_customization": {**DEFAULT_AVATAR, **(profile.avatar_customization or {})},
        "unlocked_items": list(profile.unlocked_items or []),
    }


def update_profile(
    db: Session,
    user_id: UUID,
    *,
    display_name: Optional[str] = None,
    language: Optional[str] = None,
    request_id: Optional[str] = None,
) -> PlayerBundle:
    bundle = ensure_player_profile(db, user_id)
    changes: Dict[str, Any] = {}
    if display_name is not None:
        bundle.user.display_name = display_name
        changes["display_name"] = display_name
    if language is not None:
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        bundle.user.language = language
        changes["language"] = language
    if changes:
        log_activity(db, user_id, "profile_updated", changes, reason="Profile edited", request_id=request_id)
    return bundle


def update_avatar(
    db: Session,
    user_id: UUID,
    changes: Dict[str, Optional[str]],
    *,
    request_id: Optional[str] = None,
) -> PlayerBundle:
    """Merge avatar customization; equipped items must be default or unlocked."""
    bundle = ensure_player_profile(db, user_id)
    profile = bundle.profile
    owned = DEFAULT_ITEMS | set(profile.unlocked_items or [])

    updates = {key: value for key, value in changes.items() if value is not None}
    for slot in EQUIPPABLE_SLOTS:
        item = updates.get(slot)
        if item is not None and item not in owned:
            raise AvatarItemLockedError(item)

    profile.avatar_customization = {**DEFAULT_AVATAR, **(profile.avatar_customization or {}), **updates}
    if updates:
        log_activity(db, user_id, "avatar_updated", updates, reason="Avatar customized", request_id=request_id)
        logger.debug("Avatar for %s updated with %s", user_id, sorted(updates))
    return bundle
