"""Helpers for working with users and their gamification rows."""
from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models.ai_credit import AICreditBalance
from app.db.models.player_profile import PlayerProfile
from app.db.models.user import User


@dataclass
class PlayerBundle:
    user: User
    profile: PlayerProfile
    ai_credits: AICreditBalance


def get_or_create_user(db: Session, user_id: UUID) -> User:
    """Fetch an existing user or create a new row safely."""
    user = db.get(User, user_id)
    if user:
        return user

    user = User(id=user_id)
    db.add(user)
    try:
        db.flush()
        return user
    except IntegrityError:
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise


def get_profile(db: Session, user_id: UUID) -> PlayerProfile | None:
    return db.query(PlayerProfile).filter(PlayerProfile.user_id == user_id).one_or_none()


def get_ai_credits(db: Session, user_id: UUID) -> AICreditBalance | None:
    return db.query(AICreditBalance).filter(AICreditBalance.user_id == user_id).one_or_none()


def ensure_player_profile(db: Session, user_id: UUID) -> PlayerBundle:
    """Create the user, player profile and AI credit rows when missing.

    Flushes but does not commit; callers own the transaction.
    """
    user = get_or_create_user(db, user_id)

    profile = get_profile(db, user_id)
    if profile is None:
        profile = PlayerProfile(user_id=user_id)
        db.add(profile)

    credits = get_ai_credits(db, user_id)
    if credits is None:
        credits = AICreditBalance(user_id=user_id, credits=settings.starting_ai_credits)
        db.add(credits)

    db.flush()
    return PlayerBundle(user=user, profile=profile, ai_credits=credits)
