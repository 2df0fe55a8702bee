from __future__ import annotations

import json
from uuid import uuid4

from app.db.models.ai_credit import AICreditBalance, AIRequest
from app.services.ai import prompts
from app.services.user_service import ensure_player_profile


def _ai_state(session_factory, user_id):
    with session_factory() as db:
        balance = db.query(AICreditBalance).filter(AICreditBalance.user_id == user_id).one().credits
        services = [row.service for row in db.query(AIRequest).filter(AIRequest.user_id == user_id).all()]
    return balance, services


def test_chat_consumes_one_credit(client, gateway, user_id, headers):
    test_client, session_factory = client
    gateway.reply = json.dumps({"response": "Try a 25 minute block.", "suggestions": {"type": "task", "title": "Focus"}})
    test_client.post("/tasks", json={"title": "Prepare slides"}, headers=headers)

    resp = test_client.post(
        "/ai/chat",
        json={"message": "Help me focus", "context": {"previousMessages": [{"role": "user", "content": "hi"}]}},
        headers=headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["response"] == "Try a 25 minute block."
    assert body["suggestion"] == {"type": "task", "title": "Focus"}
    assert body["credits_remaining"] == 9
    assert _ai_state(session_factory, user_id) == (9, ["chat"])

    _, user_prompt, json_mode = gateway.calls[0]
    assert "Help me focus" in user_prompt
    assert json_mode is False


def test_chat_tolerates_malformed_history(client, gateway, headers):
    test_client, _ = client

    listed = test_client.post(
        "/ai/chat", json={"message": "Plan my day", "context": {"previousMessages": ["hello", "there"]}}, headers=headers
    )
    text = test_client.post(
        "/ai/chat", json={"message": "And tomorrow?", "context": {"previousMessages": "hello"}}, headers=headers
    )

    assert listed.status_code == 200
    assert text.status_code == 200
    assert len(gateway.calls) == 2
    assert all("No previous messages" in user_prompt for _, user_prompt, _ in gateway.calls)


def test_chat_rejects_mismatched_user(client, headers):
    test_client, _ = client
    resp = test_client.post("/ai/chat", json={"message": "hi", "user_id": str(uuid4())}, headers=headers)
    assert resp.status_code == 403


def test_chat_without_credits(client, gateway, user_id, headers, session_factory):
    test_client, _ = client
    with session_factory() as db:
        ensure_player_profile(db, user_id).ai_credits.credits = 0
        db.commit()

    resp = test_client.post("/ai/chat", json={"message": "hi"}, headers=headers)
    assert resp.status_code == 402
    assert gateway.calls == []


def test_chat_model_failure_returns_apology_without_charge(client, gateway, user_id, headers):
    test_client, session_factory = client
    gateway.fail = True
    test_client.get("/profile", headers=headers)

    resp = test_client.post("/ai/chat", json={"message": "hi"}, headers=headers)
    assert resp.status_code == 502
    body = resp.json()
    assert body["error"] is True
    assert body["response"]
    assert _ai_state(session_factory, user_id) == (10, [])


def test_analysis_falls_back_to_static_report(client, gateway, user_id, headers):
    test_client, session_factory = client
    gateway.fail = True
    test_client.post("/tasks", json={"title": "One"}, headers=headers)

    resp = test_client.post("/ai/analysis", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["error"] is True
    assert body["stats"]["tasks"] == {"total": 1, "completed": 0, "pending": 1}
    assert "Tasks:" in body["analysis"]
    assert _ai_state(session_factory, user_id) == (10, [])


def test_analysis_uses_requested_language(client, gateway, user_id, headers):
    test_client, session_factory = client
    gateway.reply = "## Great week"

    resp = test_client.post("/ai/analysis", json={"language": "en"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["analysis"] == "## Great week"
    assert resp.json()["error"] is False
    assert "As DeepFlow AI" in gateway.calls[0][1]
    assert _ai_state(session_factory, user_id) == (9, ["analysis"])


def test_insights_request_json_and_charge(client, gateway, user_id, headers):
    test_client, session_factory = client
    gateway.reply = '```json\n{"headline": "Mornings are your peak"}\n```'

    resp = test_client.post("/ai/insights", json={"type": "flow_prediction"}, headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["type"] == "flow_prediction"
    assert body["result"] == {"headline": "Mornings are your peak"}
    assert gateway.calls[0][2] is True
    assert _ai_state(session_factory, user_id) == (9, ["ai-cross-analysis"])


def test_insights_unknown_type_and_failure(client, gateway, headers):
    test_client, _ = client
    assert test_client.post("/ai/insights", json={"type": "horoscope"}, headers=headers).status_code == 422

    gateway.fail = True
    assert test_client.post("/ai/insights", json={"type": "daily_briefing"}, headers=headers).status_code == 502


def test_every_insight_kind_builds_a_prompt(session_factory):
    user_id = uuid4()
    with session_factory() as db:
        context = prompts.build_user_context(db, user_id)
        for kind in prompts.INSIGHT_KINDS:
            system_prompt, user_prompt = prompts.build_insight_prompt(kind, context)
            assert system_prompt
            assert user_prompt
