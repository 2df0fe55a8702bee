"""Activity log routes."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.api.schemas.activity import ActivityLogItem, ActivityLogResponse
from app.core.security import get_current_user_id
from app.db.deps import get_db
from app.db.models.activity_log import ActivityLog
from app.observability.metrics import log_metric
from app.observability.tracing import trace

router = APIRouter()


@router.get("/activity", response_model=ActivityLogResponse, tags=["activity"])
def list_activity(
    http_request: Request,
    limit: int = Query(50, ge=1, le=200),
    action_type: Optional[str] = Query(default=None, max_length=64),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActivityLogResponse:
    """Newest audit rows for the caller, optionally filtered by action type."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "activity.list",
        metadata={"limit": limit, "action_type": action_type},
        user_id=str(user_id),
        request_id=request_id,
    ):
        query = db.query(ActivityLog).filter(ActivityLog.user_id == user_id)
        if action_type:
            query = query.filter(ActivityLog.action_type == action_type)
        rows = query.order_by(desc(ActivityLog.created_at)).limit(limit).all()

    log_metric("activity.list.count", len(rows))
    return ActivityLogResponse(
        items=[ActivityLogItem.model_validate(row) for row in rows],
        request_id=request_id or "",
    )
