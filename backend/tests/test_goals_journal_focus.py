from __future__ import annotations

from uuid import uuid4

import pytest

from app.api.routes.focus_sessions import focus_reward_action
from app.api.routes.goals import clamp_progress
from app.db.models.player_profile import PlayerProfile
from conftest import auth_headers


@pytest.mark.parametrize("value,expected", [(-5, 0), (0, 0), (42, 42), (100, 100), (250, 100)])
def test_clamp_progress(value, expected):
    assert clamp_progress(value) == expected


@pytest.mark.parametrize(
    "minutes,action",
    [(0, "focus_session_mini"), (24, "focus_session_mini"), (25, "focus_session_pomodoro"), (50, "focus_session_long")],
)
def test_focus_reward_tiers(minutes, action):
    assert focus_reward_action(minutes) == action


def test_goal_progress_completion_awards_xp_once(client, user_id, headers):
    test_client, session_factory = client
    goal_id = test_client.post("/goals", json={"title": "Ship v1"}, headers=headers).json()["id"]

    partial = test_client.patch(f"/goals/{goal_id}/progress", json={"progress": 40}, headers=headers)
    assert partial.json()["goal"]["progress"] == 40
    assert partial.json()["goal"]["completed"] is False

    done = test_client.patch(f"/goals/{goal_id}/progress", json={"progress": 150}, headers=headers)
    assert done.status_code == 200
    assert done.json()["goal"]["progress"] == 100
    assert done.json()["goal"]["completed"] is True
    assert done.json()["xp_awarded"] == 100

    reopened = test_client.patch(f"/goals/{goal_id}/progress", json={"progress": 90}, headers=headers)
    assert reopened.json()["goal"]["completed"] is False
    assert reopened.json()["goal"]["completed_at"] is None

    again = test_client.patch(f"/goals/{goal_id}/progress", json={"progress": 100}, headers=headers)
    assert again.json()["xp_awarded"] == 0

    with session_factory() as db:
        profile = db.query(PlayerProfile).filter(PlayerProfile.user_id == user_id).one()
        # 100 XP crosses the level 1 threshold
        assert profile.experience_points == 100
        assert profile.level == 2
        assert profile.credits == 20


def test_goal_ownership(client, headers):
    test_client, _ = client
    goal_id = test_client.post("/goals", json={"title": "Learn Go"}, headers=headers).json()["id"]

    resp = test_client.patch(f"/goals/{goal_id}/progress", json={"progress": 10}, headers=auth_headers(uuid4()))
    assert resp.status_code == 403


def test_journal_entry_and_mood_summary(client, headers):
    test_client, _ = client
    for mood in ("happy", "calm", "happy"):
        resp = test_client.post(
            "/journal",
            json={"title": "Evening", "content": "Good day", "mood": mood, "tags": ["work", " "]},
            headers=headers,
        )
        assert resp.status_code == 201
        assert resp.json()["xp_awarded"] == 20
        assert resp.json()["tags"] == ["work"]

    entries = test_client.get("/journal", params={"limit": 2}, headers=headers)
    assert len(entries.json()) == 2

    summary = test_client.get("/journal/mood-summary", headers=headers).json()
    assert summary["total"] == 3
    assert summary["counts"] == {"happy": 2, "calm": 1}
    assert summary["dominant_mood"] == "happy"
    assert summary["request_id"]


def test_focus_session_lifecycle(client, headers):
    test_client, _ = client
    started = test_client.post("/focus-sessions", json={"title": "Deep work", "planned_duration": 25}, headers=headers)
    assert started.status_code == 201
    session_id = started.json()["id"]
    assert started.json()["completed_at"] is None

    completed = test_client.post(
        f"/focus-sessions/{session_id}/complete",
        json={"duration": 30},
        headers=headers,
    )
    assert completed.status_code == 200
    body = completed.json()
    assert body["session"]["duration"] == 30
    assert body["reward"] == "focus_session_pomodoro"
    assert body["xp_awarded"] == 25

    repeat = test_client.post(f"/focus-sessions/{session_id}/complete", json={"duration": 30}, headers=headers)
    assert repeat.status_code == 409


def test_focus_session_defaults_to_elapsed_minutes(client, headers):
    test_client, _ = client
    session_id = test_client.post("/focus-sessions", headers=headers).json()["id"]

    completed = test_client.post(f"/focus-sessions/{session_id}/complete", headers=headers)
    assert completed.status_code == 200
    assert completed.json()["session"]["duration"] == 0
    assert completed.json()["reward"] == "focus_session_mini"
