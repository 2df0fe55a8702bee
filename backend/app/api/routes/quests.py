"""Quest board routes."""
from __future__ import annotations

from time import perf_counter
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.api.schemas.quest import (
    QuestClaimResponse,
    QuestGenerateResponse,
    QuestListResponse,
    QuestRefreshResponse,
    QuestSummary,
)
from app.core.security import get_current_user_id
from app.db.deps import get_db
from app.db.models.quest import Quest
from app.observability.metrics import log_metric
from app.observability.tracing import annotate, trace
from app.services.gamification.quest_catalog import generate_quests
from app.services.gamification.quest_progress import QuestNotClaimableError, claim_quest, refresh_quest_progress

router = APIRouter()

_CLAIM_ERROR_STATUS = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "already_completed": status.HTTP_409_CONFLICT,
    "expired": status.HTTP_409_CONFLICT,
    "not_reached": status.HTTP_409_CONFLICT,
}


@router.get("/quests", response_model=QuestListResponse, tags=["quests"])
def list_quests(
    http_request: Request,
    include_completed: bool = Query(False),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> QuestListResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "quests.list",
        metadata={"include_completed": include_completed},
        user_id=str(user_id),
        request_id=request_id,
    ):
        query = db.query(Quest).filter(Quest.user_id == user_id)
        if not include_completed:
            query = query.filter(Quest.completed.is_(False))
        quests = query.order_by(desc(Quest.created_at)).all()

    log_metric("quests.list.count", len(quests))
    return QuestListResponse(
        quests=[QuestSummary.model_validate(quest) for quest in quests],
        request_id=request_id or "",
    )


@router.post("/quests/refresh", response_model=QuestRefreshResponse, tags=["quests"])
def refresh_quests(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> QuestRefreshResponse:
    """Recompute progress for the caller's open quests now."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("quests.refresh", metadata={"trigger": "manual"}, user_id=str(user_id), request_id=request_id):
            updated = refresh_quest_progress(db, user_id)
            db.commit()
    except Exception:
        db.rollback()
        raise

    log_metric("quests.refresh.updated", updated, metadata={"trigger": "manual"})
    return QuestRefreshResponse(updated=updated, request_id=request_id or "")


@router.post("/quests/generate", response_model=QuestGenerateResponse, tags=["quests"])
def generate_quest_board(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> QuestGenerateResponse:
    request_id = getattr(http_request.state, "request_id", None)
    start = perf_counter()
    try:
        with trace("quests.generate", user_id=str(user_id), request_id=request_id) as span:
            result = generate_quests(db, user_id, request_id=request_id)
            refresh_quest_progress(db, user_id)
            db.commit()
            annotate(span, daily=result.daily, weekly=result.weekly, achievement=result.achievement)
    except Exception:
        db.rollback()
        raise

    log_metric("quests.generate.created", result.total)
    log_metric("quests.generate.latency_ms", (perf_counter() - start) * 1000)
    return QuestGenerateResponse(
        daily=result.daily,
        weekly=result.weekly,
        achievement=result.achievement,
        removed_daily=result.removed_daily,
        request_id=request_id or "",
    )


@router.post("/quests/{quest_id}/claim", response_model=QuestClaimResponse, tags=["quests"])
def claim_quest_reward(
    quest_id: UUID,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> QuestClaimResponse:
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("quests.claim", metadata={"quest_id": str(quest_id)}, user_id=str(user_id), request_id=request_id):
            result = claim_quest(db, user_id, quest_id, request_id=request_id)
            db.commit()
    except QuestNotClaimableError as exc:
        db.rollback()
        log_metric("quests.claim.rejected", 1, metadata={"reason": exc.code})
        raise HTTPException(status_code=_CLAIM_ERROR_STATUS.get(exc.code, status.HTTP_409_CONFLICT), detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise

    log_metric("quests.claim.success", 1, metadata={"quest_type": result.quest.quest_type})
    return QuestClaimResponse(
        quest=QuestSummary.model_validate(result.quest),
        xp_awarded=result.award.xp_awarded,
        credits_awarded=result.credits_granted,
        credits_balance=result.credits_balance,
        level=result.award.level,
        leveled_up=result.award.leveled_up,
        badges_unlocked=result.badges_unlocked,
        request_id=request_id or "",
    )
