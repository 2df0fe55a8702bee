"""Journal API routes."""
from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.api.schemas.journal import (
    JournalCreateRequest,
    JournalCreateResponse,
    JournalEntrySummary,
    MoodSummaryResponse,
)
from app.core.security import get_current_user_id
from app.db.deps import get_db
from app.db.models.journal_entry import JournalEntry
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.activity import log_activity, on_activity
from app.services.gamification.rewards import award_action_xp
from app.services.user_service import ensure_player_profile

router = APIRouter()


@router.post("/journal", response_model=JournalCreateResponse, status_code=status.HTTP_201_CREATED, tags=["journal"])
def create_journal_entry(
    payload: JournalCreateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> JournalCreateResponse:
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("journal.create", metadata={"mood": payload.mood}, user_id=str(user_id), request_id=request_id):
            ensure_player_profile(db, user_id)
            entry = JournalEntry(
                user_id=user_id,
                title=payload.title.strip(),
                content=payload.content,
                mood=payload.mood,
                tags=[tag.strip() for tag in payload.tags if tag.strip()],
            )
            db.add(entry)
            db.flush()
            award = award_action_xp(db, user_id, "journal_entry", request_id=request_id)
            log_activity(
                db,
                user_id,
                "journal_entry_created",
                {"entry_id": str(entry.id), "mood": entry.mood},
                reason="Journal entry written",
                request_id=request_id,
            )
            db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(entry)
    on_activity(db, user_id, "journal_entries")
    log_metric("journal.create.success", 1)
    return JournalCreateResponse(
        **JournalEntrySummary.model_validate(entry).model_dump(),
        xp_awarded=award.xp_awarded,
        request_id=request_id or "",
    )


@router.get("/journal", response_model=List[JournalEntrySummary], tags=["journal"])
def list_journal_entries(
    http_request: Request,
    limit: int = Query(50, ge=1, le=200),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> List[JournalEntrySummary]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("journal.list", metadata={"limit": limit}, user_id=str(user_id), request_id=request_id):
        entries = (
            db.query(JournalEntry)
            .filter(JournalEntry.user_id == user_id)
            .order_by(desc(JournalEntry.created_at))
            .limit(limit)
            .all()
        )
    return [JournalEntrySummary.model_validate(entry) for entry in entries]


@router.get("/journal/mood-summary", response_model=MoodSummaryResponse, tags=["journal"])
def get_mood_summary(
    http_request: Request,
    days: int = Query(30, ge=1, le=365),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> MoodSummaryResponse:
    """Mood counts over the last ``days`` days."""
    request_id = getattr(http_request.state, "request_id", None)
    since = datetime.now(timezone.utc) - timedelta(days=days)
    with trace("journal.mood_summary", metadata={"days": days}, user_id=str(user_id), request_id=request_id):
        rows = (
            db.query(JournalEntry.mood)
            .filter(
                JournalEntry.user_id == user_id,
                JournalEntry.created_at >= since,
                JournalEntry.mood.isnot(None),
            )
            .all()
        )

    counts = Counter(row[0] for row in rows)
    dominant = counts.most_common(1)[0][0] if counts else None
    return MoodSummaryResponse(
        days=days,
        total=sum(counts.values()),
        counts=dict(counts),
        dominant_mood=dominant,
        request_id=request_id or "",
    )
