from __future__ import annotations

from uuid import UUID, uuid4

from app.db.models.activity_log import ActivityLog
from app.db.models.player_profile import PlayerProfile
from app.db.models.task import Task
from conftest import auth_headers


def _create_task(test_client, headers, **overrides) -> dict:
    payload = {"title": "Write report", "priority": "medium", **overrides}
    resp = test_client.post("/tasks", json=payload, headers=headers)
    assert resp.status_code == 201
    return resp.json()


def test_create_and_list_tasks(client, headers):
    test_client, _ = client
    created = _create_task(test_client, headers, title="  Plan sprint  ")
    _create_task(test_client, headers, title="Review PR")

    assert created["title"] == "Plan sprint"
    assert created["completed"] is False
    assert created["request_id"]

    resp = test_client.get("/tasks", headers=headers)
    assert resp.status_code == 200
    assert {task["title"] for task in resp.json()} == {"Plan sprint", "Review PR"}


def test_blank_title_rejected(client, headers):
    test_client, _ = client
    resp = test_client.post("/tasks", json={"title": "   "}, headers=headers)
    assert resp.status_code == 422


def test_tasks_are_scoped_to_caller(client, headers):
    test_client, _ = client
    _create_task(test_client, headers)

    resp = test_client.get("/tasks", headers=auth_headers(uuid4()))
    assert resp.status_code == 200
    assert resp.json() == []


def test_complete_task_awards_xp_once(client, user_id, headers):
    test_client, session_factory = client
    task_id = _create_task(test_client, headers)["id"]

    first = test_client.patch(f"/tasks/{task_id}", json={"completed": True}, headers=headers)
    assert first.status_code == 200
    body = first.json()
    assert body["completed"] is True
    assert body["completed_at"]
    assert body["xp_awarded"] == 10

    test_client.patch(f"/tasks/{task_id}", json={"completed": False}, headers=headers)
    again = test_client.patch(f"/tasks/{task_id}", json={"completed": True}, headers=headers)
    assert again.json()["xp_awarded"] == 0

    with session_factory() as db:
        profile = db.query(PlayerProfile).filter(PlayerProfile.user_id == user_id).one()
        assert profile.experience_points == 10
        task = db.get(Task, UUID(task_id))
        assert task.completed is True
        actions = [
            log.action_type
            for log in db.query(ActivityLog).filter(ActivityLog.user_id == user_id).all()
            if log.action_type.startswith("task_")
        ]
        assert actions.count("task_completed") == 2
        assert actions.count("task_uncompleted") == 1


def test_high_priority_task_awards_more_xp(client, headers):
    test_client, _ = client
    task_id = _create_task(test_client, headers, priority="high")["id"]

    resp = test_client.patch(f"/tasks/{task_id}", json={"completed": True}, headers=headers)
    assert resp.json()["xp_awarded"] == 20


def test_status_filter(client, headers):
    test_client, _ = client
    done_id = _create_task(test_client, headers, title="Done")["id"]
    _create_task(test_client, headers, title="Open")
    test_client.patch(f"/tasks/{done_id}", json={"completed": True}, headers=headers)

    open_resp = test_client.get("/tasks", params={"status": "open"}, headers=headers)
    completed_resp = test_client.get("/tasks", params={"status": "completed"}, headers=headers)
    bad_resp = test_client.get("/tasks", params={"status": "draft"}, headers=headers)

    assert [t["title"] for t in open_resp.json()] == ["Open"]
    assert [t["title"] for t in completed_resp.json()] == ["Done"]
    assert bad_resp.status_code == 422


def test_update_task_enforces_ownership(client, headers):
    test_client, _ = client
    task_id = _create_task(test_client, headers)["id"]

    foreign = test_client.patch(f"/tasks/{task_id}", json={"completed": True}, headers=auth_headers(uuid4()))
    missing = test_client.patch(f"/tasks/{uuid4()}", json={"completed": True}, headers=headers)

    assert foreign.status_code == 403
    assert missing.status_code == 404


def test_delete_task(client, headers):
    test_client, session_factory = client
    task_id = _create_task(test_client, headers)["id"]

    resp = test_client.delete(f"/tasks/{task_id}", headers=headers)
    assert resp.status_code == 204

    with session_factory() as db:
        assert db.get(Task, UUID(task_id)) is None
    assert test_client.delete(f"/tasks/{task_id}", headers=headers).status_code == 404
