from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from app.db.models.focus_session import FocusSession
from app.db.models.habit import Habit, HabitCompletion
from app.services.gamification.achievements import ACHIEVEMENT_DEFINITIONS, evaluate_achievements
from app.services.user_service import ensure_player_profile

NOW = datetime(2026, 3, 12, 9, tzinfo=timezone.utc)


def _habit_with_run(db, user_id, *, stored_streak: int, days_ago) -> Habit:
    habit = Habit(user_id=user_id, title="Walk", streak=stored_streak)
    db.add(habit)
    db.flush()
    for offset in days_ago:
        db.add(HabitCompletion(habit_id=habit.id, user_id=user_id, completed_date=NOW.date() - timedelta(days=offset)))
    db.flush()
    return habit


def test_badges_unlock_once(session_factory):
    user_id = uuid4()
    with session_factory() as db:
        profile = ensure_player_profile(db, user_id).profile
        profile.level = 10
        _habit_with_run(db, user_id, stored_streak=0, days_ago=range(7))
        for _ in range(5):
            db.add(FocusSession(user_id=user_id, duration=25, completed_at=NOW))
        db.flush()

        unlocked = evaluate_achievements(db, user_id, now=NOW)
        db.commit()
        assert set(unlocked) == {"focus_warrior", "habit_builder", "level_10"}
        assert evaluate_achievements(db, user_id, now=NOW) == []


def test_broken_streak_does_not_unlock_habit_builder(session_factory):
    user_id = uuid4()
    with session_factory() as db:
        habit = _habit_with_run(db, user_id, stored_streak=7, days_ago=range(8, 15))

        unlocked = evaluate_achievements(db, user_id, now=NOW)
        db.commit()
        assert "habit_builder" not in unlocked
        assert habit.streak == 0


def test_achievements_route_lists_locked_and_unlocked(client, user_id, headers, session_factory):
    test_client, _ = client
    with session_factory() as db:
        ensure_player_profile(db, user_id).profile.level = 10
        evaluate_achievements(db, user_id)
        db.commit()

    body = test_client.get("/achievements", headers=headers).json()
    assert body["unlocked_count"] == 1
    assert len(body["achievements"]) == len(ACHIEVEMENT_DEFINITIONS)
    assert body["achievements"][0]["achievement_id"] == "level_10"
    assert body["achievements"][0]["unlocked"] is True
    assert all(not item["unlocked"] for item in body["achievements"][1:])


def test_profile_update_and_avatar(client, headers):
    test_client, _ = client

    updated = test_client.patch("/profile", json={"display_name": "Neo", "language": "en"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["display_name"] == "Neo"
    assert updated.json()["language"] == "en"

    bad_language = test_client.patch("/profile", json={"language": "it"}, headers=headers)
    assert bad_language.status_code == 422

    glow = test_client.patch("/profile/avatar", json={"glow_color": "#00ffcc"}, headers=headers)
    assert glow.status_code == 200
    assert glow.json()["avatar_customization"]["glow_color"] == "#00ffcc"
    assert glow.json()["avatar_customization"]["helmet"] == "helmet_basic"

    locked = test_client.patch("/profile/avatar", json={"helmet": "helmet_samurai"}, headers=headers)
    assert locked.status_code == 403


def test_avatar_accepts_unlocked_item(client, user_id, headers, session_factory):
    test_client, _ = client
    with session_factory() as db:
        ensure_player_profile(db, user_id).profile.unlocked_items = ["armor_chrome"]
        db.commit()

    resp = test_client.patch("/profile/avatar", json={"armor": "armor_chrome"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["avatar_customization"]["armor"] == "armor_chrome"
    assert resp.json()["unlocked_items"] == ["armor_chrome"]
