"""Goal API routes."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.goal import (
    GoalCreateRequest,
    GoalCreateResponse,
    GoalProgressRequest,
    GoalProgressResponse,
    GoalSummary,
)
from app.core.security import get_current_user_id
from app.db.deps import get_db
from app.db.models.goal import Goal
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.activity import log_activity, on_activity
from app.services.gamification.rewards import award_action_xp
from app.services.user_service import ensure_player_profile

router = APIRouter()


def clamp_progress(value: int) -> int:
    return max(0, min(100, value))


@router.post("/goals", response_model=GoalCreateResponse, status_code=status.HTTP_201_CREATED, tags=["goals"])
def create_goal(
    payload: GoalCreateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> GoalCreateResponse:
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("goal.create", metadata={"category": payload.category}, user_id=str(user_id), request_id=request_id):
            ensure_player_profile(db, user_id)
            goal = Goal(
                user_id=user_id,
                title=payload.title.strip(),
                description=payload.description,
                category=payload.category,
                target_date=payload.target_date,
            )
            db.add(goal)
            db.flush()
            log_activity(db, user_id, "goal_created", {"goal_id": str(goal.id)}, reason="Goal created", request_id=request_id)
            db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(goal)
    on_activity(db, user_id, "goals")
    log_metric("goal.create.success", 1)
    return GoalCreateResponse(**GoalSummary.model_validate(goal).model_dump(), request_id=request_id or "")


@router.get("/goals", response_model=List[GoalSummary], tags=["goals"])
def list_goals(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> List[GoalSummary]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("goal.list", metadata={"route": "/goals"}, user_id=str(user_id), request_id=request_id):
        goals = db.query(Goal).filter(Goal.user_id == user_id).order_by(Goal.created_at).all()
    return [GoalSummary.model_validate(goal) for goal in goals]


@router.patch("/goals/{goal_id}/progress", response_model=GoalProgressResponse, tags=["goals"])
def update_goal_progress(
    goal_id: UUID,
    payload: GoalProgressRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> GoalProgressResponse:
    """Set goal progress, clamped to 0-100; 100 completes the goal."""
    goal = db.get(Goal, goal_id)
    if not goal:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goal not found")
    if goal.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Goal does not belong to user")

    request_id = getattr(http_request.state, "request_id", None)
    progress = clamp_progress(payload.progress)
    xp_awarded = 0
    try:
        with trace(
            "goal.progress",
            metadata={"goal_id": str(goal_id), "requested": payload.progress, "progress": progress},
            user_id=str(user_id),
            request_id=request_id,
        ):
            previous = goal.progress
            goal.progress = progress
            if progress >= 100 and not goal.completed:
                goal.completed = True
                goal.completed_at = datetime.now(timezone.utc)
                goal_meta = dict(goal.metadata_json or {})
                if not goal_meta.get("xp_awarded"):
                    xp_awarded = award_action_xp(db, user_id, "goal_completed", request_id=request_id).xp_awarded
                    goal_meta["xp_awarded"] = True
                    goal.metadata_json = goal_meta
            elif progress < 100 and goal.completed:
                goal.completed = False
                goal.completed_at = None

            log_activity(
                db,
                user_id,
                "goal_progress_updated",
                {"goal_id": str(goal.id), "from": previous, "to": progress, "completed": goal.completed},
                reason="Goal progress updated",
                request_id=request_id,
            )
            db.commit()
    except Exception:
        db.rollback()
        raise

    on_activity(db, user_id, "goals")
    log_metric("goal.progress.success", 1, metadata={"completed": bool(goal.completed)})
    return GoalProgressResponse(goal=GoalSummary.model_validate(goal), xp_awarded=xp_awarded, request_id=request_id or "")
