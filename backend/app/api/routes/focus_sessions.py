"""Focus session API routes."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.focus import (
    FocusCompleteRequest,
    FocusCompleteResponse,
    FocusSessionSummary,
    FocusStartRequest,
    FocusStartResponse,
)
from app.core.security import get_current_user_id
from app.db.deps import get_db
from app.db.models.focus_session import FocusSession
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.activity import log_activity, on_activity
from app.services.gamification.rewards import award_action_xp
from app.services.user_service import ensure_player_profile

router = APIRouter()


def focus_reward_action(minutes: int) -> str:
    if minutes < 25:
        return "focus_session_mini"
    if minutes < 50:
        return "focus_session_pomodoro"
    return "focus_session_long"


@router.post(
    "/focus-sessions",
    response_model=FocusStartResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["focus"],
)
def start_focus_session(
    http_request: Request,
    payload: Optional[FocusStartRequest] = Body(default=None),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> FocusStartResponse:
    request_id = getattr(http_request.state, "request_id", None)
    payload = payload or FocusStartRequest()
    try:
        with trace(
            "focus.start",
            metadata={"planned_duration": payload.planned_duration},
            user_id=str(user_id),
            request_id=request_id,
        ):
            ensure_player_profile(db, user_id)
            session = FocusSession(
                user_id=user_id,
                title=payload.title,
                planned_duration=payload.planned_duration,
                started_at=datetime.now(timezone.utc),
            )
            db.add(session)
            db.flush()
            log_activity(
                db,
                user_id,
                "focus_session_started",
                {"session_id": str(session.id), "planned_duration": session.planned_duration},
                reason="Focus session started",
                request_id=request_id,
            )
            db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(session)
    return FocusStartResponse(**FocusSessionSummary.model_validate(session).model_dump(), request_id=request_id or "")


@router.post("/focus-sessions/{session_id}/complete", response_model=FocusCompleteResponse, tags=["focus"])
def complete_focus_session(
    session_id: UUID,
    http_request: Request,
    payload: Optional[FocusCompleteRequest] = Body(default=None),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> FocusCompleteResponse:
    """Close a session; duration defaults to the elapsed whole minutes."""
    session = db.get(FocusSession, session_id)
    if not session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Focus session not found")
    if session.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Focus session does not belong to user")
    if session.completed_at is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Focus session already completed")

    request_id = getattr(http_request.state, "request_id", None)
    now = datetime.now(timezone.utc)
    if payload and payload.duration is not None:
        minutes = payload.duration
    else:
        minutes = max(0, int((now - session.started_at).total_seconds() // 60))
    action = focus_reward_action(minutes)

    try:
        with trace(
            "focus.complete",
            metadata={"session_id": str(session_id), "duration": minutes, "reward": action},
            user_id=str(user_id),
            request_id=request_id,
        ):
            session.duration = minutes
            session.completed_at = now
            award = award_action_xp(db, user_id, action, request_id=request_id)
            log_activity(
                db,
                user_id,
                "focus_session_completed",
                {"session_id": str(session.id), "duration": minutes, "reward": action},
                reason="Focus session completed",
                request_id=request_id,
            )
            db.commit()
    except Exception:
        db.rollback()
        raise

    on_activity(db, user_id, "focus_sessions")
    log_metric("focus.complete.minutes", minutes)
    return FocusCompleteResponse(
        session=FocusSessionSummary.model_validate(session),
        reward=action,
        xp_awarded=award.xp_awarded,
        request_id=request_id or "",
    )
