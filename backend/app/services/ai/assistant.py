"""AI assistant flows: credit accounting, chat, analysis and insights."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models.ai_credit import AIRequest
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.ai import prompts
from app.services.ai.gateway import LLMGateway, LLMGatewayError
from app.services.ai.parsing import parse_chat_reply, parse_insight_reply
from app.services.gamification.windows import utc_now
from app.services.user_service import ensure_player_profile

logger = logging.getLogger(__name__)

AI_REQUEST_COST = 1
CHAT_FAILURE_MESSAGE = "I'm having technical difficulties. Please try again."


class NotEnoughAICreditsError(Exception):
    def __init__(self, available: int):
        super().__init__(f"Not enough AI credits ({available} available)")
        self.available = available


@dataclass
class ChatOutcome:
    response: str
    suggestion: Optional[Dict[str, Any]] = None
    error: bool = False
    credits_remaining: int = 0


@dataclass
class AnalysisOutcome:
    analysis: str
    stats: Dict[str, Any]
    error: bool = False
    credits_remaining: int = 0


@dataclass
class InsightOutcome:
    type: str
    result: Dict[str, Any]
    generated_at: datetime
    credits_remaining: int = 0


def ensure_credits(db: Session, user_id: UUID) -> int:
    """Return the AI credit balance, raising when it cannot pay for a call."""
    balance = ensure_player_profile(db, user_id).ai_credits.credits or 0
    if balance < AI_REQUEST_COST:
        raise NotEnoughAICreditsError(balance)
    return balance


def consume_credit(db: Session, user_id: UUID, service: str) -> int:
    """Charge one call and record it in ``ai_requests``; caller commits."""
    credits = ensure_player_profile(db, user_id).ai_credits
    credits.credits = max(0, (credits.credits or 0) - AI_REQUEST_COST)
    db.add(AIRequest(user_id=user_id, service=service))
    log_metric("ai.credits.consumed", AI_REQUEST_COST, metadata={"service": service})
    return credits.credits


def _client_history(client_context: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Previous chat messages from the client context; malformed entries are dropped."""
    if not client_context:
        return []
    history = client_context.get("previousMessages") or client_context.get("previous_messages")
    if not isinstance(history, list):
        return []
    return [message for message in history if isinstance(message, dict)]


def run_chat(
    db: Session,
    gateway: LLMGateway,
    user_id: UUID,
    message: str,
    client_context: Optional[Dict[str, Any]] = None,
    *,
    request_id: Optional[str] = None,
) -> ChatOutcome:
    ensure_credits(db, user_id)
    context = prompts.build_user_context(db, user_id)
    history = _client_history(client_context)
    if history:
        context["previousMessages"] = history

    system_prompt, user_prompt = prompts.build_chat_prompt(context, message)
    with trace(
        "ai.chat",
        metadata={"history": len(context.get("previousMessages", [])), "message_chars": len(message)},
        user_id=str(user_id),
        request_id=request_id,
    ):
        raw = gateway.complete(system_prompt, user_prompt)

    response, suggestion = parse_chat_reply(raw)
    remaining = consume_credit(db, user_id, "chat")
    return ChatOutcome(response=response, suggestion=suggestion, credits_remaining=remaining)


def fallback_analysis(stats: Dict[str, Any]) -> str:
    """Static Markdown report used when the model is unavailable."""
    tasks, goals, focus = stats["tasks"], stats["goals"], stats["focus"]
    completion = round(tasks["completed"] / tasks["total"] * 100) if tasks["total"] else 0
    return (
        "## 📊 Productivity overview\n\n"
        f"- **Tasks:** {tasks['completed']}/{tasks['total']} completed ({completion}%)\n"
        f"- **Habits:** {stats['habits']['total']} tracked\n"
        f"- **Goals:** {goals['completed']} completed, {goals['in_progress']} in progress\n"
        f"- **Focus:** {focus['sessions']} sessions, {focus['total_minutes']} minutes\n"
        f"- **Journal:** {stats['journal']['entries']} entries\n\n"
        "## 🚀 Recommendations\n\n"
        "1. Pick your three most important tasks each morning.\n"
        "2. Protect one 25 minute focus block a day.\n"
        "3. Write a short journal entry in the evening.\n\n"
        "_The AI analysis is temporarily unavailable; this summary was generated from your data._"
    )


def run_analysis(
    db: Session,
    gateway: LLMGateway,
    user_id: UUID,
    *,
    language: Optional[str] = None,
    request_id: Optional[str] = None,
) -> AnalysisOutcome:
    """Produce the Markdown analysis; falls back to a static report without charging."""
    balance = ensure_credits(db, user_id)
    records = prompts.recent_records(db, user_id)
    stats = prompts.summarize_activity(
        records["tasks"],
        records["habits"],
        records["goals"],
        records["focus_sessions"],
        records["journal_entries"],
    )
    system_prompt, user_prompt = prompts.build_analysis_prompt(stats, language or prompts.language_for(db, user_id))

    try:
        with trace("ai.analysis", metadata={"language": language}, user_id=str(user_id), request_id=request_id):
            analysis = gateway.complete(system_prompt, user_prompt)
    except LLMGatewayError as exc:
        logger.warning("Analysis fell back to static report: %s", exc)
        log_metric("ai.analysis.fallback", 1)
        return AnalysisOutcome(analysis=fallback_analysis(stats), stats=stats, error=True, credits_remaining=balance)

    remaining = consume_credit(db, user_id, "analysis")
    return AnalysisOutcome(analysis=analysis.strip(), stats=stats, credits_remaining=remaining)


def run_insight(
    db: Session,
    gateway: LLMGateway,
    user_id: UUID,
    kind: str,
    *,
    now: Optional[datetime] = None,
    request_id: Optional[str] = None,
) -> InsightOutcome:
    ensure_credits(db, user_id)
    context = prompts.build_user_context(db, user_id)
    system_prompt, user_prompt = prompts.build_insight_prompt(kind, context, now)
    with trace("ai.insight", metadata={"type": kind}, user_id=str(user_id), request_id=request_id):
        raw = gateway.complete(system_prompt, user_prompt, json_mode=True)

    result = parse_insight_reply(raw)
    if "error" in result and "raw_response" in result:
        log_metric("ai.insight.parse_failed", 1, metadata={"type": kind})
    remaining = consume_credit(db, user_id, "ai-cross-analysis")
    return InsightOutcome(type=kind, result=result, generated_at=utc_now(now), credits_remaining=remaining)
