"""Habit API routes."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.habit import (
    HabitCreateRequest,
    HabitCreateResponse,
    HabitSummary,
    HabitToggleRequest,
    HabitToggleResponse,
)
from app.core.security import get_current_user_id
from app.db.deps import get_db
from app.db.models.habit import Habit
from app.observability.metrics import log_metric, timed
from app.observability.tracing import trace
from app.services.activity import log_activity, on_activity
from app.services.habit_service import refresh_habit_streaks, toggle_habit
from app.services.user_service import ensure_player_profile

router = APIRouter()


@router.post("/habits", response_model=HabitCreateResponse, status_code=status.HTTP_201_CREATED, tags=["habits"])
def create_habit(
    payload: HabitCreateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> HabitCreateResponse:
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("habit.create", metadata={"frequency": payload.frequency}, user_id=str(user_id), request_id=request_id):
            ensure_player_profile(db, user_id)
            habit = Habit(
                user_id=user_id,
                title=payload.title.strip(),
                description=payload.description,
                frequency=payload.frequency,
                target=payload.target,
                category=payload.category,
            )
            db.add(habit)
            db.flush()
            log_activity(
                db,
                user_id,
                "habit_created",
                {"habit_id": str(habit.id), "frequency": habit.frequency},
                reason="Habit created",
                request_id=request_id,
            )
            db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(habit)
    on_activity(db, user_id, "habits")
    log_metric("habit.create.success", 1)
    return HabitCreateResponse(**HabitSummary.model_validate(habit).model_dump(), request_id=request_id or "")


@router.get("/habits", response_model=List[HabitSummary], tags=["habits"])
def list_habits(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> List[HabitSummary]:
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("habit.list", metadata={"route": "/habits"}, user_id=str(user_id), request_id=request_id):
            if refresh_habit_streaks(db, user_id):
                db.commit()
            habits = db.query(Habit).filter(Habit.user_id == user_id).order_by(Habit.created_at).all()
    except Exception:
        db.rollback()
        raise
    return [HabitSummary.model_validate(habit) for habit in habits]


@router.post("/habits/{habit_id}/toggle", response_model=HabitToggleResponse, tags=["habits"])
def toggle_habit_completion(
    habit_id: UUID,
    http_request: Request,
    payload: Optional[HabitToggleRequest] = Body(default=None),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> HabitToggleResponse:
    """Toggle the completion for a day (today by default)."""
    habit = db.get(Habit, habit_id)
    if not habit:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Habit not found")
    if habit.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Habit does not belong to user")

    request_id = getattr(http_request.state, "request_id", None)
    day = payload.date if payload else None
    try:
        with timed("habit.toggle", metadata={"habit_id": str(habit_id)}), trace(
            "habit.toggle",
            metadata={"habit_id": str(habit_id), "date": day.isoformat() if day else None},
            user_id=str(user_id),
            request_id=request_id,
        ):
            result = toggle_habit(db, habit, day=day, request_id=request_id)
            db.commit()
    except Exception:
        db.rollback()
        raise

    on_activity(db, user_id, "habit_completions")
    log_metric("habit.toggle.completed", 1 if result.completed else 0, metadata={"habit_id": str(habit_id)})

    return HabitToggleResponse(
        habit=HabitSummary.model_validate(habit),
        completed=result.completed,
        date=result.completed_date,
        xp_awarded=result.xp_awarded,
        request_id=request_id or "",
    )
