from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from app.api.routes import notifications as notifications_routes
from app.db.models.activity_log import ActivityLog
from app.db.models.quest import Quest
from app.services.gamification.levels import XPAward
from app.services.notifications import hooks
from app.services.notifications.base import NotificationResult
from app.services.user_service import ensure_player_profile


def _quest(db, user_id) -> Quest:
    ensure_player_profile(db, user_id)
    quest = Quest(
        user_id=user_id,
        title="⚡ Quick Start",
        quest_type="daily",
        category="tasks",
        target_value=1,
        reward_xp=15,
        reward_credits=5,
        expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
    )
    db.add(quest)
    db.flush()
    return quest


def _notification_logs(db, user_id, action_type):
    return db.query(ActivityLog).filter(ActivityLog.user_id == user_id, ActivityLog.action_type == action_type).all()


def test_quest_notification_skipped_when_disabled(session_factory, monkeypatch):
    monkeypatch.setattr(hooks.settings, "notifications_enabled", False)
    user_id = uuid4()
    with session_factory() as db:
        result = hooks.notify_quest_completed(db, _quest(db, user_id), "req-1")
        db.commit()

        assert result.status == "skipped"
        logs = _notification_logs(db, user_id, "notification_quest_completed")
        assert len(logs) == 1
        assert logs[0].action_payload["result"]["status"] == "skipped"
        assert logs[0].action_payload["request_id"] == "req-1"


def test_quest_notification_dispatched_with_noop_provider(session_factory, monkeypatch):
    monkeypatch.setattr(hooks.settings, "notifications_enabled", True)
    monkeypatch.setattr(hooks.settings, "notifications_provider", "noop")
    user_id = uuid4()
    with session_factory() as db:
        result = hooks.notify_quest_completed(db, _quest(db, user_id), None)
        db.commit()

        assert result.status == "noop"
        logs = _notification_logs(db, user_id, "notification_quest_completed")
        assert logs[0].action_payload["extras"]["reward_xp"] == 15


def test_level_up_uses_configured_service(session_factory, monkeypatch):
    monkeypatch.setattr(hooks.settings, "notifications_enabled", True)
    calls = []

    class DummyService:
        def notify_level_up(self, **kwargs):
            calls.append(kwargs)
            return NotificationResult(status="sent", reason="dummy")

    monkeypatch.setattr(hooks, "get_notification_service", lambda: DummyService())
    award = XPAward(
        xp_awarded=100,
        multiplier=1.0,
        total_xp=100,
        level=2,
        leveled_up=True,
        levels_gained=1,
        bonus_credits=20,
    )
    user_id = uuid4()
    with session_factory() as db:
        ensure_player_profile(db, user_id)
        result = hooks.notify_level_up(db, user_id, award, None)
        db.commit()

        assert result.status == "sent"
        assert calls[0]["level"] == 2
        assert calls[0]["bonus_credits"] == 20
        assert len(_notification_logs(db, user_id, "notification_level_up")) == 1


@pytest.mark.parametrize("enabled", [True, False])
def test_notifications_config_route(client, headers, monkeypatch, enabled):
    monkeypatch.setattr(notifications_routes.settings, "notifications_enabled", enabled)
    test_client, _ = client

    resp = test_client.get("/notifications/config", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["enabled"] is enabled
    assert body["active_provider"] == "noop"
    assert body["events"] == ["quest_completed", "level_up"]
