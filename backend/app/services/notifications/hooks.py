"""Notification hook utilities."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models.quest import Quest
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.activity import log_activity
from app.services.notifications.base import NotificationResult
from app.services.notifications.factory import get_notification_service

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from app.services.gamification.levels import XPAward


logger = logging.getLogger(__name__)


def notify_quest_completed(db: Session, quest: Quest, request_id: str | None) -> NotificationResult:
    extra = {
        "quest_id": str(quest.id),
        "title": quest.title,
        "reward_xp": quest.reward_xp,
        "reward_credits": quest.reward_credits,
    }
    if not settings.notifications_enabled:
        return _record(db, quest.user_id, "quest_completed", _disabled(), request_id, extra)

    service = get_notification_service()
    start = perf_counter()
    with trace(
        "notifications.quest_completed",
        metadata={"provider": settings.notifications_provider, **extra},
        user_id=str(quest.user_id),
        request_id=request_id,
    ):
        result = service.notify_quest_completed(
            user_id=quest.user_id,
            quest_id=quest.id,
            title=quest.title,
            reward_xp=quest.reward_xp,
            reward_credits=quest.reward_credits,
            request_id=request_id,
        )
    _record_sent_metrics("quest_completed", start)
    return _record(db, quest.user_id, "quest_completed", result, request_id, extra)


def notify_level_up(db: Session, user_id: UUID, award: "XPAward", request_id: str | None) -> NotificationResult:
    extra = {"level": award.level, "bonus_credits": award.bonus_credits}
    if not settings.notifications_enabled:
        return _record(db, user_id, "level_up", _disabled(), request_id, extra)

    service = get_notification_service()
    start = perf_counter()
    with trace(
        "notifications.level_up",
        metadata={"provider": settings.notifications_provider, **extra},
        user_id=str(user_id),
        request_id=request_id,
    ):
        result = service.notify_level_up(
            user_id=user_id,
            level=award.level,
            bonus_credits=award.bonus_credits,
            request_id=request_id,
        )
    _record_sent_metrics("level_up", start)
    return _record(db, user_id, "level_up", result, request_id, extra)


def _disabled() -> NotificationResult:
    return NotificationResult(status="skipped", reason="notifications disabled")


def _record_sent_metrics(job_name: str, start: float) -> None:
    log_metric("notifications.sent", 1, metadata={"job": job_name, "provider": settings.notifications_provider})
    log_metric("notifications.duration_ms", (perf_counter() - start) * 1000, metadata={"job": job_name})


def _record(
    db: Session,
    user_id: UUID,
    job_name: str,
    result: NotificationResult,
    request_id: str | None,
    extra: dict,
) -> NotificationResult:
    if result.status == "skipped":
        log_metric("notifications.skipped", 1, metadata={"job": job_name})
    log_activity(
        db,
        user_id,
        f"notification_{job_name}",
        {
            "provider": settings.notifications_provider,
            "result": result.__dict__,
            "extras": extra,
        },
        reason="Notification dispatched" if result.status != "skipped" else "Notification skipped",
        request_id=request_id,
    )
    return result
