"""Notification configuration routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request

from app.core.config import settings
from app.core.security import get_current_user_id
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.notifications.factory import get_notification_service


router = APIRouter()


@router.get("/notifications/config", tags=["notifications"])
def get_notifications_config(request: Request, user_id: UUID = Depends(get_current_user_id)) -> dict:
    request_id = getattr(request.state, "request_id", None)
    service = get_notification_service()
    with trace(
        "notifications.config",
        metadata={"provider": settings.notifications_provider},
        user_id=str(user_id),
        request_id=request_id,
    ):
        log_metric("notifications.config.success", 1, metadata={"provider": settings.notifications_provider})
        return {
            "enabled": settings.notifications_enabled,
            "provider": settings.notifications_provider,
            "active_provider": service.name,
            "events": ["quest_completed", "level_up"],
            "request_id": request_id or "",
        }
