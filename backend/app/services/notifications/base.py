"""Notification service interface."""
from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass
class NotificationResult:
    status: str
    reason: str


class NotificationService:
    """Base interface for notification providers."""

    name = "base"

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
        raise NotImplementedError

    def notify_level_up(
        self,
        *,
        user_id: UUID,
        level: int,
        bonus_credits: int,
        request_id: str | None,
    ) -> NotificationResult:
        raise NotImplementedError
