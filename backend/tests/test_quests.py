from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest

from app.db.models.focus_session import FocusSession
from app.db.models.habit import Habit, HabitCompletion
from app.db.models.player_profile import PlayerProfile
from app.db.models.quest import Quest
from app.db.models.task import Task
from app.services.gamification.quest_catalog import WEEKLY_TEMPLATES, daily_templates, generate_quests
from app.services.gamification.quest_progress import (
    QuestNotClaimableError,
    claim_quest,
    is_claimable,
    refresh_quest_progress,
)
from app.services.user_service import ensure_player_profile
from conftest import auth_headers

# Wednesday
NOW = datetime(2026, 3, 11, 10, 0, tzinfo=timezone.utc)


def _quest_by_title(db, user_id, title) -> Quest:
    return db.query(Quest).filter(Quest.user_id == user_id, Quest.title == title).one()


def test_daily_templates_scale_with_backlog_and_level():
    minimal = [t.title for t in daily_templates(open_tasks=0, habit_count=0, level=1)]
    busy = [t.title for t in daily_templates(open_tasks=5, habit_count=3, level=5)]

    assert minimal == ["⚡ Quick Start", "🧘 Mini Focus", "🎯 Zen Mode", "⚡ Deep Work", "📝 Daily Reflection"]
    assert "🚀 Task Machine" in busy
    assert "🌟 Perfect Day" in busy
    assert "🔥 Focus Marathon" in busy
    perfect_day = next(t for t in daily_templates(0, 4, 1) if t.title == "🌟 Perfect Day")
    assert perfect_day.target_value == 4


def test_generate_replaces_daily_and_keeps_weekly(session_factory):
    user_id = uuid4()
    with session_factory() as db:
        first = generate_quests(db, user_id, now=NOW)
        db.commit()
        assert (first.daily, first.weekly, first.achievement, first.removed_daily) == (5, len(WEEKLY_TEMPLATES), 6, 0)

        second = generate_quests(db, user_id, now=NOW)
        db.commit()
        assert second.removed_daily == 5
        assert second.weekly == 0

        daily = db.query(Quest).filter(Quest.user_id == user_id, Quest.quest_type == "daily").all()
        assert len(daily) == 5
        assert all(q.expires_at == datetime(2026, 3, 12, tzinfo=timezone.utc) for q in daily)
        weekly = db.query(Quest).filter(Quest.user_id == user_id, Quest.quest_type == "weekly").all()
        assert len(weekly) == len(WEEKLY_TEMPLATES)
        assert all(q.expires_at == datetime(2026, 3, 16, tzinfo=timezone.utc) for q in weekly)
        achievements = db.query(Quest).filter(Quest.user_id == user_id, Quest.quest_type == "achievement").all()
        assert all(q.expires_at is None for q in achievements)
        by_title = {q.title: q for q in achievements}
        assert {
            "🌱 Level 5",
            "📋 10 Tasks",
            "⏱️ 1h of Focus",
            "📝 5 Entries",
            "🔥 7-Day Streak",
            "🎯 First Goal",
        } <= set(by_title)
        assert by_title["📝 5 Entries"].category == "journal"
        assert by_title["🔥 7-Day Streak"].category == "habits"
        assert by_title["🔥 7-Day Streak"].metadata_json == {"metric": "streak"}
        assert by_title["🎯 First Goal"].category == "goals"
        assert (by_title["🎯 First Goal"].reward_xp, by_title["🎯 First Goal"].reward_credits) == (150, 50)

        # Each family moves on to its next step; the single goal milestone is not repeated.
        assert second.achievement == 5
        assert db.query(Quest).filter(Quest.user_id == user_id, Quest.title == "🎯 First Goal").count() == 1
        assert db.query(Quest).filter(Quest.user_id == user_id, Quest.title == "💪 14-Day Streak").count() == 1


def test_progress_uses_quest_windows(session_factory):
    user_id = uuid4()
    with session_factory() as db:
        generate_quests(db, user_id, now=NOW)
        db.add_all(
            [
                Task(user_id=user_id, title="today", completed=True, completed_at=NOW - timedelta(hours=1)),
                Task(user_id=user_id, title="monday", completed=True, completed_at=NOW - timedelta(days=2)),
                Task(user_id=user_id, title="last week", completed=True, completed_at=NOW - timedelta(days=8)),
                FocusSession(
                    user_id=user_id,
                    duration=20,
                    started_at=NOW - timedelta(minutes=30),
                    completed_at=NOW - timedelta(minutes=10),
                ),
            ]
        )
        habit = Habit(user_id=user_id, title="Read")
        db.add(habit)
        db.flush()
        # Thursday 3/5 through Tuesday 3/10; the week starts Monday 3/9.
        for offset in range(6):
            db.add(
                HabitCompletion(habit_id=habit.id, user_id=user_id, completed_date=date(2026, 3, 5) + timedelta(days=offset))
            )
        db.flush()

        updated = refresh_quest_progress(db, user_id, NOW)
        db.commit()
        assert updated > 0

        assert _quest_by_title(db, user_id, "⚡ Quick Start").current_progress == 1
        assert _quest_by_title(db, user_id, "🏆 Weekly Champion").current_progress == 2
        assert _quest_by_title(db, user_id, "💪 Weekly Habits").current_progress == 2
        assert _quest_by_title(db, user_id, "🔥 Streak Master").current_progress == 6
        assert _quest_by_title(db, user_id, "🔥 7-Day Streak").current_progress == 6
        assert _quest_by_title(db, user_id, "🧘 Mini Focus").current_progress == 20
        assert _quest_by_title(db, user_id, "📋 10 Tasks").current_progress == 3
        assert _quest_by_title(db, user_id, "🌱 Level 5").current_progress == 1

        # Nothing changed since the last pass.
        assert refresh_quest_progress(db, user_id, NOW) == 0


def test_claim_pays_rewards_and_unlocks_first_badge(session_factory):
    user_id = uuid4()
    with session_factory() as db:
        generate_quests(db, user_id, now=NOW)
        db.add(Task(user_id=user_id, title="t", completed=True, completed_at=NOW))
        db.flush()
        quest = _quest_by_title(db, user_id, "⚡ Quick Start")

        result = claim_quest(db, user_id, quest.id, now=NOW)
        db.commit()

        assert result.quest.completed is True
        assert result.award.xp_awarded == 15
        assert result.credits_granted == 5
        assert result.badges_unlocked == ["first_quest"]
        profile = ensure_player_profile(db, user_id).profile
        assert profile.total_quests_completed == 1
        assert profile.credits == 5
        assert not is_claimable(quest, NOW)

        with pytest.raises(QuestNotClaimableError) as exc_info:
            claim_quest(db, user_id, quest.id, now=NOW)
        assert exc_info.value.code == "already_completed"


def test_claim_rejections(session_factory):
    user_id = uuid4()
    with session_factory() as db:
        generate_quests(db, user_id, now=NOW)
        db.commit()
        quest = _quest_by_title(db, user_id, "🧘 Mini Focus")

        with pytest.raises(QuestNotClaimableError) as not_reached:
            claim_quest(db, user_id, quest.id, now=NOW)
        assert not_reached.value.code == "not_reached"

        with pytest.raises(QuestNotClaimableError) as forbidden:
            claim_quest(db, uuid4(), quest.id, now=NOW)
        assert forbidden.value.code == "forbidden"

        with pytest.raises(QuestNotClaimableError) as expired:
            claim_quest(db, user_id, quest.id, now=NOW + timedelta(days=1))
        assert expired.value.code == "expired"

        with pytest.raises(QuestNotClaimableError) as missing:
            claim_quest(db, user_id, uuid4(), now=NOW)
        assert missing.value.code == "not_found"


def test_claim_reward_levels_up_without_boost(session_factory):
    user_id = uuid4()
    with session_factory() as db:
        profile = ensure_player_profile(db, user_id).profile
        profile.experience_points = 90
        quest = Quest(
            user_id=user_id,
            title="Level check",
            quest_type="achievement",
            category="level",
            target_value=1,
            reward_xp=20,
            reward_credits=0,
        )
        db.add(quest)
        db.commit()

        result = claim_quest(db, user_id, quest.id, now=NOW)
        db.commit()
        assert result.award.xp_awarded == 20
        assert result.award.leveled_up is True
        assert result.award.level == 2
        # level-up bonus only
        assert result.credits_balance == 20


def test_quest_api_flow(client, user_id, headers):
    test_client, session_factory = client

    generated = test_client.post("/quests/generate", headers=headers)
    assert generated.status_code == 200
    assert generated.json()["daily"] == 5
    assert generated.json()["request_id"]

    task_id = test_client.post("/tasks", json={"title": "Kick off"}, headers=headers).json()["id"]
    test_client.patch(f"/tasks/{task_id}", json={"completed": True}, headers=headers)

    board = test_client.get("/quests", headers=headers).json()["quests"]
    quick_start = next(q for q in board if q["title"] == "⚡ Quick Start")
    streak_master = next(q for q in board if q["title"] == "🔥 Streak Master")
    assert quick_start["current_progress"] == 1
    assert streak_master["metadata"] == {"metric": "streak"}

    claimed = test_client.post(f"/quests/{quick_start['id']}/claim", headers=headers)
    assert claimed.status_code == 200
    body = claimed.json()
    assert body["xp_awarded"] == 15
    assert body["credits_awarded"] == 5
    assert body["badges_unlocked"] == ["first_quest"]

    again = test_client.post(f"/quests/{quick_start['id']}/claim", headers=headers)
    assert again.status_code == 409
    foreign = test_client.post(f"/quests/{quick_start['id']}/claim", headers=auth_headers(uuid4()))
    assert foreign.status_code == 403
    missing = test_client.post(f"/quests/{uuid4()}/claim", headers=headers)
    assert missing.status_code == 404

    open_ids = {q["id"] for q in test_client.get("/quests", headers=headers).json()["quests"]}
    all_ids = {
        q["id"]
        for q in test_client.get("/quests", params={"include_completed": True}, headers=headers).json()["quests"]
    }
    assert quick_start["id"] not in open_ids
    assert quick_start["id"] in all_ids

    with session_factory() as db:
        profile = db.query(PlayerProfile).filter(PlayerProfile.user_id == user_id).one()
        assert profile.total_quests_completed == 1
        assert db.get(Quest, UUID(quick_start["id"])).completed_at is not None


def test_manual_refresh_endpoint(client, headers):
    test_client, _ = client
    test_client.post("/quests/generate", headers=headers)

    resp = test_client.post("/quests/refresh", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["updated"] == 0


def test_streak_quests_ignore_a_stale_stored_streak(session_factory):
    user_id = uuid4()
    with session_factory() as db:
        generate_quests(db, user_id, now=NOW)
        habit = Habit(user_id=user_id, title="Stretch", streak=3, total_completions=3)
        db.add(habit)
        db.flush()
        for days_ago in (8, 9, 10):
            db.add(HabitCompletion(habit_id=habit.id, user_id=user_id, completed_date=NOW.date() - timedelta(days=days_ago)))
        db.flush()

        refresh_quest_progress(db, user_id, NOW)
        db.commit()

        assert _quest_by_title(db, user_id, "🔥 Streak Master").current_progress == 0
        assert _quest_by_title(db, user_id, "🔥 7-Day Streak").current_progress == 0
        assert db.get(Habit, habit.id).streak == 0


def test_first_goal_quest_tracks_completed_goals(client, headers):
    test_client, _ = client
    test_client.post("/quests/generate", headers=headers)

    goal_id = test_client.post("/goals", json={"title": "Run a 10k"}, headers=headers).json()["id"]
    board = test_client.get("/quests", headers=headers).json()["quests"]
    first_goal = next(q for q in board if q["title"] == "🎯 First Goal")
    assert first_goal["current_progress"] == 0

    test_client.patch(f"/goals/{goal_id}/progress", json={"progress": 100}, headers=headers)
    board = test_client.get("/quests", headers=headers).json()["quests"]
    first_goal = next(q for q in board if q["title"] == "🎯 First Goal")
    assert first_goal["current_progress"] == 1

    claimed = test_client.post(f"/quests/{first_goal['id']}/claim", headers=headers)
    assert claimed.status_code == 200
    assert claimed.json()["xp_awarded"] == 150
    assert claimed.json()["credits_awarded"] == 50
