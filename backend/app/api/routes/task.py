"""Task API routes."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.api.schemas.task import (
    TaskCreateRequest,
    TaskCreateResponse,
    TaskSummary,
    TaskUpdateRequest,
    TaskUpdateResponse,
)
from app.core.security import get_current_user_id
from app.db.deps import get_db
from app.db.models.task import Task
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.activity import log_activity, on_activity
from app.services.gamification.rewards import award_action_xp
from app.services.user_service import ensure_player_profile

router = APIRouter()


def _get_owned_task(db: Session, task_id: UUID, user_id: UUID) -> Task:
    task = db.get(Task, task_id)
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    if task.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Task does not belong to user")
    return task


@router.post("/tasks", response_model=TaskCreateResponse, status_code=status.HTTP_201_CREATED, tags=["tasks"])
def create_task(
    payload: TaskCreateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> TaskCreateResponse:
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace(
            "task.create",
            metadata={"route": "/tasks", "priority": payload.priority},
            user_id=str(user_id),
            request_id=request_id,
        ):
            ensure_player_profile(db, user_id)
            task = Task(
                user_id=user_id,
                title=payload.title,
                description=payload.description,
                priority=payload.priority,
                due_date=payload.due_date,
                metadata_json={"source": "manual"},
            )
            db.add(task)
            db.flush()
            log_activity(
                db,
                user_id,
                "task_created",
                {"task_id": str(task.id), "priority": task.priority},
                reason="Task created",
                request_id=request_id,
            )
            db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(task)
    on_activity(db, user_id, "tasks")
    log_metric("task.create.success", 1, metadata={"priority": payload.priority})
    return TaskCreateResponse(**TaskSummary.model_validate(task).model_dump(), request_id=request_id or "")


@router.get("/tasks", response_model=List[TaskSummary], tags=["tasks"])
def list_tasks(
    http_request: Request,
    status_filter: str = Query("all", alias="status", pattern="^(all|open|completed)$"),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> List[TaskSummary]:
    """List the caller's tasks, newest first."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "task.list",
        metadata={"route": "/tasks", "status": status_filter},
        user_id=str(user_id),
        request_id=request_id,
    ):
        query = db.query(Task).filter(Task.user_id == user_id)
        if status_filter == "open":
            query = query.filter(Task.completed.is_(False))
        elif status_filter == "completed":
            query = query.filter(Task.completed.is_(True))
        tasks = query.order_by(desc(Task.created_at)).all()

    log_metric("task.list.count", len(tasks), metadata={"status": status_filter})
    return [TaskSummary.model_validate(task) for task in tasks]


@router.patch("/tasks/{task_id}", response_model=TaskUpdateResponse, tags=["tasks"])
def update_task_completion(
    task_id: UUID,
    payload: TaskUpdateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> TaskUpdateResponse:
    """Mark a task complete or incomplete."""
    task = _get_owned_task(db, task_id, user_id)

    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": f"/tasks/{task_id}",
        "task_id": str(task_id),
        "completed": payload.completed,
    }

    changed = False
    xp_awarded = 0
    level = None
    start_time = datetime.now(timezone.utc)
    try:
        with trace("task.complete", metadata=metadata, user_id=str(user_id), request_id=request_id):
            if task.completed != payload.completed:
                changed = True
                task.completed = payload.completed
                task.completed_at = datetime.now(timezone.utc) if payload.completed else None

                task_meta = dict(task.metadata_json or {})
                if payload.completed and not task_meta.get("xp_awarded"):
                    action = "task_high_priority" if task.priority == "high" else "task_completed"
                    award = award_action_xp(db, user_id, action, request_id=request_id)
                    xp_awarded = award.xp_awarded
                    level = award.level
                    task_meta["xp_awarded"] = True
                    task.metadata_json = task_meta

                log_activity(
                    db,
                    user_id,
                    "task_completed" if payload.completed else "task_uncompleted",
                    {"task_id": str(task.id), "completed": payload.completed},
                    reason="Task completion toggled",
                    request_id=request_id,
                )

            db.add(task)
            db.commit()
    except Exception:
        db.rollback()
        raise

    if changed:
        on_activity(db, user_id, "tasks")

    latency_ms = (datetime.now(timezone.utc) - start_time).total_seconds() * 1000
    log_metric("task.complete.changed", 1 if changed else 0, metadata={"task_id": str(task_id)})
    log_metric("task.complete.latency_ms", latency_ms, metadata={"task_id": str(task_id)})

    return TaskUpdateResponse(
        id=task.id,
        completed=bool(task.completed),
        completed_at=task.completed_at,
        xp_awarded=xp_awarded,
        level=level,
        request_id=request_id or "",
    )


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["tasks"])
def delete_task(
    task_id: UUID,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Response:
    task = _get_owned_task(db, task_id, user_id)
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("task.delete", metadata={"task_id": str(task_id)}, user_id=str(user_id), request_id=request_id):
            db.delete(task)
            log_activity(
                db,
                user_id,
                "task_deleted",
                {"task_id": str(task_id), "title": task.title},
                reason="Task deleted",
                request_id=request_id,
            )
            db.commit()
    except Exception:
        db.rollback()
        raise

    on_activity(db, user_id, "tasks")
    log_metric("task.delete.success", 1)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
