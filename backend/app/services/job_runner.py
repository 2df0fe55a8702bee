"""Batch job runners for quest refresh and quest generation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models.quest import Quest
from app.db.models.user import User
from app.services.gamification.achievements import evaluate_achievements
from app.services.gamification.quest_catalog import generate_quests
from app.services.gamification.quest_progress import refresh_quest_progress
from app.services.gamification.windows import utc_now


logger = logging.getLogger(__name__)


@dataclass
class JobRunResult:
    users_processed: int
    rows_written: int
    failures: int = 0


def _users_with_open_quests(db: Session, now: datetime) -> List[UUID]:
    rows = (
        db.query(Quest.user_id)
        .filter(
            Quest.completed.is_(False),
            (Quest.expires_at.is_(None)) | (Quest.expires_at > now),
        )
        .distinct()
        .all()
    )
    return [row[0] for row in rows]


def _all_user_ids(db: Session) -> List[UUID]:
    return [row[0] for row in db.query(User.id).all()]


def refresh_quests_for_user(db: Session, user_id: UUID, *, now: Optional[datetime] = None) -> int:
    updated = refresh_quest_progress(db, user_id, now)
    evaluate_achievements(db, user_id)
    db.commit()
    return updated


def generate_quests_for_user(db: Session, user_id: UUID, *, now: Optional[datetime] = None) -> int:
    if db.get(User, user_id) is None:
        raise ValueError("User not found")
    result = generate_quests(db, user_id, now=now)
    refresh_quest_progress(db, user_id, now)
    db.commit()
    return result.total


def _run_for_users(
    db: Session,
    user_ids: Iterable[UUID],
    job: Callable[[Session, UUID], int],
    job_name: str,
) -> JobRunResult:
    users_processed = 0
    rows_written = 0
    failures = 0
    for user_id in user_ids:
        try:
            rows_written += job(db, user_id)
            users_processed += 1
        except Exception:
            db.rollback()
            failures += 1
            logger.exception("%s failed for user %s", job_name, user_id)
    return JobRunResult(users_processed=users_processed, rows_written=rows_written, failures=failures)


def refresh_quests_for_all_users(
    db: Session,
    *,
    user_ids: Optional[Iterable[UUID]] = None,
    now: Optional[datetime] = None,
) -> JobRunResult:
    """Recompute open quest progress for every user who has any."""
    current = utc_now(now)
    ids = list(user_ids) if user_ids is not None else _users_with_open_quests(db, current)
    result = _run_for_users(
        db,
        ids,
        lambda session, user_id: refresh_quests_for_user(session, user_id, now=current),
        "Quest refresh",
    )
    logger.debug("Quest refresh: users=%s rows=%s", result.users_processed, result.rows_written)
    return result


def generate_quests_for_all_users(
    db: Session,
    *,
    user_ids: Optional[Iterable[UUID]] = None,
    now: Optional[datetime] = None,
) -> JobRunResult:
    current = utc_now(now)
    ids = list(user_ids) if user_ids is not None else _all_user_ids(db)
    result = _run_for_users(
        db,
        ids,
        lambda session, user_id: generate_quests_for_user(session, user_id, now=current),
        "Quest generation",
    )
    logger.info("Quest generation: users=%s quests=%s", result.users_processed, result.rows_written)
    return result
