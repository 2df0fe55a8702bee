"""Experience and level arithmetic."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from math import floor

from app.db.models.player_profile import PlayerProfile

LEVEL_UP_CREDIT_FACTOR = 10


@dataclass
class XPAward:
    xp_awarded: int
    multiplier: float
    total_xp: int
    level: int
    leveled_up: bool
    levels_gained: int
    bonus_credits: int

    def to_dict(self) -> dict:
        return asdict(self)


def xp_for_level(level: int) -> int:
    """Total experience needed to leave ``level``."""
    return 100 * level * level


def xp_progress(profile: PlayerProfile) -> float:
    """Percentage of the current level threshold reached, capped at 100."""
    needed = xp_for_level(profile.level or 1)
    if needed <= 0:
        return 0.0
    return min(100.0, round((profile.experience_points or 0) / needed * 100, 2))


def grant_xp(profile: PlayerProfile, base_amount: int, *, multiplier: float = 1.0) -> XPAward:
    """Add experience to a profile and apply any level-ups it triggers.

    Each level reached grants ``new_level * 10`` bonus credits.
    """
    amount = max(0, floor(base_amount * multiplier))
    profile.experience_points = (profile.experience_points or 0) + amount
    level = profile.level or 1

    bonus = 0
    gained = 0
    while profile.experience_points >= xp_for_level(level):
        level += 1
        gained += 1
        bonus += level * LEVEL_UP_CREDIT_FACTOR

    profile.level = level
    if bonus:
        profile.credits = (profile.credits or 0) + bonus

    return XPAward(
        xp_awarded=amount,
        multiplier=multiplier,
        total_xp=profile.experience_points,
        level=level,
        leveled_up=gained > 0,
        levels_gained=gained,
        bonus_credits=bonus,
    )
