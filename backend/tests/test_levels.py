from __future__ import annotations

import pytest

from app.db.models.player_profile import PlayerProfile
from app.services.gamification.levels import grant_xp, xp_for_level, xp_progress


def _profile(xp: int = 0, level: int = 1, credits: int = 0) -> PlayerProfile:
    return PlayerProfile(experience_points=xp, level=level, credits=credits)


@pytest.mark.parametrize("level,needed", [(1, 100), (2, 400), (5, 2500)])
def test_xp_threshold_is_quadratic(level, needed):
    assert xp_for_level(level) == needed


def test_grant_below_threshold_keeps_level():
    profile = _profile()
    award = grant_xp(profile, 60)
    assert award.leveled_up is False
    assert profile.level == 1
    assert profile.experience_points == 60
    assert xp_progress(profile) == 60.0


def test_grant_crossing_several_levels_pays_each_bonus():
    profile = _profile(xp=90)
    award = grant_xp(profile, 900)

    # 990 XP clears three thresholds
    assert award.level == 4
    assert award.levels_gained == 3
    assert award.bonus_credits == 20 + 30 + 40
    assert profile.credits == 90


def test_multiplier_is_floored():
    profile = _profile()
    award = grant_xp(profile, 15, multiplier=1.5)
    assert award.xp_awarded == 22


def test_progress_is_capped():
    assert xp_progress(_profile(xp=500, level=1)) == 100.0
