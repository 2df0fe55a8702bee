"""No-op notification provider (logs only)."""
from __future__ import annotations

import logging
from uuid import UUID

from app.services.notifications.base import NotificationResult, NotificationService


logger = logging.getLogger(__name__)


class NoopNotificationService(NotificationService):
    name = "noop"

    def notify_quest_completed(
        self,
        *,
        user_id: UUID,
        quest_id: UUID,
        title: str,
        reward_xp: int,
        reward_credits: int,
        request_id: str | None,
    ) -> NotificationResult:
        logger.info(
            "Notification queued (noop) quest_completed user=%s quest=%s xp=%s credits=%s",
            user_id,
            quest_id,
            reward_xp,
            reward_credits,
        )
        return NotificationResult(status="noop", reason="notification provider is noop")

    def notify_level_up(
        self,
        *,
        user_id: UUID,
        level: int,
        bonus_credits: int,
        request_id: str | None,
    ) -> NotificationResult:
        logger.info("Notification queued (noop) level_up user=%s level=%s", user_id, level)
        return NotificationResult(status="noop", reason="notification provider is noop")
