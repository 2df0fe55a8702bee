from __future__ import annotations

import logging
from uuid import uuid4

import pytest

from app.db.models.achievement import Achievement
from app.db.models.task import Task
from app.services.user_service import ensure_player_profile
from conftest import auth_headers


def test_activity_feed_newest_first_and_filtered(client, headers):
    test_client, _ = client
    task_id = test_client.post("/tasks", json={"title": "Log me"}, headers=headers).json()["id"]
    test_client.patch(f"/tasks/{task_id}", json={"completed": True}, headers=headers)

    feed = test_client.get("/activity", headers=headers)
    assert feed.status_code == 200
    actions = [item["action_type"] for item in feed.json()["items"]]
    assert "task_created" in actions
    assert "xp_awarded" in actions
    assert actions.index("task_completed") < actions.index("task_created")

    filtered = test_client.get("/activity", params={"action_type": "xp_awarded", "limit": 5}, headers=headers)
    items = filtered.json()["items"]
    assert len(items) == 1
    assert items[0]["action_payload"]["action"] == "task_completed"
    assert items[0]["action_payload"]["xp_awarded"] == 10


def test_activity_feed_is_private(client, headers):
    test_client, _ = client
    test_client.post("/tasks", json={"title": "Mine"}, headers=headers)

    other = test_client.get("/activity", headers=auth_headers(uuid4()))
    assert other.json()["items"] == []


@pytest.mark.parametrize("path", ["/habits", "/goals"])
def test_creating_habits_and_goals_runs_activity_follow_up(client, user_id, headers, session_factory, path):
    test_client, _ = client
    with session_factory() as db:
        ensure_player_profile(db, user_id).profile.level = 10
        db.commit()

    created = test_client.post(path, json={"title": "Fresh start"}, headers=headers)
    assert created.status_code == 201

    with session_factory() as db:
        badges = [row.achievement_id for row in db.query(Achievement).filter(Achievement.user_id == user_id).all()]
        assert badges == ["level_10"]


def test_failed_follow_up_keeps_the_committed_write(client, user_id, headers, session_factory, monkeypatch, caplog):
    test_client, _ = client

    def broken_refresh(db, user_id, now=None):
        raise RuntimeError("quest table locked")

    monkeypatch.setattr("app.services.gamification.quest_progress.refresh_quest_progress", broken_refresh)

    with caplog.at_level(logging.ERROR, logger="app.services.activity"):
        resp = test_client.post("/tasks", json={"title": "Survives"}, headers=headers)

    assert resp.status_code == 201
    assert "Activity follow-up failed" in caplog.text
    with session_factory() as db:
        assert db.query(Task).filter(Task.user_id == user_id, Task.title == "Survives").count() == 1


def test_blank_goal_title_rejected(client, headers):
    test_client, _ = client
    resp = test_client.post("/goals", json={"title": " \t "}, headers=headers)
    assert resp.status_code == 422
