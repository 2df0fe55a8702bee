"""Operational endpoints for scheduler jobs."""
from __future__ import annotations

from time import perf_counter
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.jobs import JobRunRequest, JobRunResponse
from app.core.config import settings
from app.core.security import get_current_user_id
from app.db.deps import get_db
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.job_runner import (
    JobRunResult,
    generate_quests_for_all_users,
    generate_quests_for_user,
    refresh_quests_for_all_users,
    refresh_quests_for_user,
)

router = APIRouter()


@router.get("/jobs", tags=["jobs"])
def get_jobs_config(request: Request, _: UUID = Depends(get_current_user_id)) -> dict:
    request_id = getattr(request.state, "request_id", None)
    with trace("jobs.config", metadata={"request_id": request_id}, request_id=request_id):
        data = {
            "scheduler_enabled": settings.scheduler_enabled,
            "schedule": {
                "timezone": settings.scheduler_timezone,
                "quest_refresh_interval_seconds": settings.quest_refresh_interval_seconds,
                "daily_quest_time": f"{settings.daily_quest_hour:02d}:00",
            },
        }
    return {**data, "request_id": request_id or ""}


@router.post("/jobs/run-now", response_model=JobRunResponse, tags=["jobs"])
def run_job_now(
    request: Request,
    payload: JobRunRequest,
    _: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> JobRunResponse:
    if not settings.debug:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Run-now only allowed in debug mode")

    request_id = getattr(request.state, "request_id", None)
    metadata = {"job": payload.job, "request_id": request_id}
    start = perf_counter()
    with trace("jobs.run_now", metadata=metadata, request_id=request_id):
        if payload.job == "quest_refresh":
            result = _run_refresh_job(db, payload.user_id)
        else:
            result = _run_generation_job(db, payload.user_id)

    latency_ms = (perf_counter() - start) * 1000
    log_metric(
        "jobs.run_now.success",
        1,
        metadata={"job": payload.job},
    )
    log_metric(
        "jobs.run_now.latency_ms",
        latency_ms,
        metadata={"job": payload.job},
    )

    return JobRunResponse(
        job=payload.job,
        users_processed=result.users_processed,
        rows_written=result.rows_written,
        request_id=request_id or "",
    )


def _run_refresh_job(db: Session, user_id: Optional[UUID]) -> JobRunResult:
    if user_id:
        return JobRunResult(users_processed=1, rows_written=refresh_quests_for_user(db, user_id))
    return refresh_quests_for_all_users(db)


def _run_generation_job(db: Session, user_id: Optional[UUID]) -> JobRunResult:
    if user_id:
        try:
            created = generate_quests_for_user(db, user_id)
        except ValueError:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return JobRunResult(users_processed=1, rows_written=created)
    return generate_quests_for_all_users(db)
