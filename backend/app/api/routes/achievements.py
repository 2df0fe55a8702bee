"""Badge routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.schemas.achievement import AchievementItem, AchievementListResponse
from app.core.security import get_current_user_id
from app.db.deps import get_db
from app.db.models.achievement import Achievement
from app.observability.tracing import trace
from app.services.gamification.achievements import ACHIEVEMENT_DEFINITIONS

router = APIRouter()


@router.get("/achievements", response_model=AchievementListResponse, tags=["achievements"])
def list_achievements(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> AchievementListResponse:
    """Unlocked badges first, then the locked definitions."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("achievements.list", user_id=str(user_id), request_id=request_id):
        rows = (
            db.query(Achievement)
            .filter(Achievement.user_id == user_id)
            .order_by(Achievement.unlocked_at)
            .all()
        )

    items = [
        AchievementItem(
            achievement_id=row.achievement_id,
            title=row.title,
            description=row.description or "",
            icon=row.icon or "",
            unlocked=True,
            unlocked_at=row.unlocked_at,
        )
        for row in rows
    ]
    unlocked = {row.achievement_id for row in rows}
    items.extend(
        AchievementItem(
            achievement_id=definition.id,
            title=definition.title,
            description=definition.description,
            icon=definition.icon,
            unlocked=False,
        )
        for definition in ACHIEVEMENT_DEFINITIONS.values()
        if definition.id not in unlocked
    )
    return AchievementListResponse(achievements=items, unlocked_count=len(unlocked), request_id=request_id or "")
