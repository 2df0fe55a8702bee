"""Habit completion toggling and streak bookkeeping."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models.habit import Habit, HabitCompletion
from app.services.activity import log_activity
from app.services.gamification.levels import XPAward
from app.services.gamification.rewards import STREAK_MILESTONES, award_action_xp, has_streak_protection
from app.services.gamification.windows import utc_now

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


@dataclass
class StreakRun:
    length: int
    start: Optional[date] = None
    end: Optional[date] = None

    def overlaps(self, start: date, end: date) -> bool:
        if self.start is None or self.end is None:
            return False
        return start <= self.end and end >= self.start


@dataclass
class HabitToggleResult:
    habit: Habit
    completed: bool
    completed_date: date
    awards: List[XPAward] = field(default_factory=list)

    @property
    def xp_awarded(self) -> int:
        return sum(award.xp_awarded for award in self.awards)


def streak_run(dates: Iterable[date], today: date, *, protected: bool = False) -> StreakRun:
    """The run of completed days ending today or yesterday, with its bounds.

    With ``protected`` one missing day inside the run is skipped over.
    """
    days = set(dates)
    cursor = today if today in days else today - ONE_DAY
    bridges = 1 if protected else 0
    run = StreakRun(length=0)
    while True:
        if cursor in days:
            run.length += 1
            run.end = run.end or cursor
            run.start = cursor
        elif bridges and run.length and (cursor - ONE_DAY) in days:
            bridges -= 1
        else:
            break
        cursor -= ONE_DAY
    return run


def compute_streak(dates: Iterable[date], today: date, *, protected: bool = False) -> int:
    """Length of the run of completed days ending today or yesterday."""
    return streak_run(dates, today, protected=protected).length


def completion_dates(db: Session, habit_id: UUID) -> List[date]:
    rows = db.query(HabitCompletion.completed_date).filter(HabitCompletion.habit_id == habit_id).all()
    return [row[0] for row in rows]


def recompute_habit(db: Session, habit: Habit, *, now: Optional[datetime] = None) -> StreakRun:
    """Sync ``total_completions`` and ``streak`` with the completion rows."""
    current = utc_now(now)
    dates = completion_dates(db, habit.id)
    run = streak_run(
        dates,
        current.date(),
        protected=has_streak_protection(db, habit.user_id, current),
    )
    habit.total_completions = len(dates)
    habit.streak = run.length
    return run


def refresh_habit_streaks(db: Session, user_id: UUID, *, now: Optional[datetime] = None) -> int:
    """Recompute every habit of a user so broken runs decay to their real length.

    Returns the number of habits whose counters changed. Flushes, never commits.
    """
    current = utc_now(now)
    changed = 0
    for habit in db.query(Habit).filter(Habit.user_id == user_id).all():
        before = (habit.streak, habit.total_completions)
        recompute_habit(db, habit, now=current)
        if (habit.streak, habit.total_completions) != before:
            changed += 1
    if changed:
        db.flush()
        logger.debug("Refreshed %s habit streak(s) for user %s", changed, user_id)
    return changed


def _award_completion(
    db: Session,
    habit: Habit,
    day: date,
    run: StreakRun,
    current: datetime,
    request_id: Optional[str],
) -> List[XPAward]:
    """Habit XP once per day, and each streak milestone once per run.

    Rewarded days and the run bounds of every paid milestone live in the
    habit metadata, so undo/redo of a completion pays nothing twice.
    """
    meta: Dict[str, Any] = dict(habit.metadata_json or {})
    xp_days = set(meta.get("xp_days") or [])
    milestones: Dict[str, List[str]] = dict(meta.get("streak_milestones") or {})
    awards: List[XPAward] = []

    if day.isoformat() not in xp_days:
        awards.append(award_action_xp(db, habit.user_id, "habit_completed", request_id=request_id, now=current))
        xp_days.add(day.isoformat())

    for threshold, action in sorted(STREAK_MILESTONES.items()):
        if run.length < threshold:
            break
        paid = milestones.get(str(threshold))
        if paid and run.overlaps(date.fromisoformat(paid[0]), date.fromisoformat(paid[1])):
            continue
        awards.append(award_action_xp(db, habit.user_id, action, request_id=request_id, now=current))
        milestones[str(threshold)] = [run.start.isoformat(), run.end.isoformat()]

    meta["xp_days"] = sorted(xp_days)
    meta["streak_milestones"] = milestones
    habit.metadata_json = meta
    return awards


def toggle_habit(
    db: Session,
    habit: Habit,
    *,
    day: Optional[date] = None,
    now: Optional[datetime] = None,
    request_id: Optional[str] = None,
) -> HabitToggleResult:
    """Flip the completion row for ``day`` and refresh counters.

    Completing awards habit XP plus any streak milestones reached.
    Staged in the session; the caller commits.
    """
    current = utc_now(now)
    target_day = day or current.date()

    existing = (
        db.query(HabitCompletion)
        .filter(HabitCompletion.habit_id == habit.id, HabitCompletion.completed_date == target_day)
        .one_or_none()
    )
    if existing is not None:
        db.delete(existing)
        completed = False
    else:
        db.add(HabitCompletion(habit_id=habit.id, user_id=habit.user_id, completed_date=target_day))
        completed = True
    db.flush()

    run = recompute_habit(db, habit, now=current)
    if completed:
        habit.last_completed_at = current
    elif not habit.total_completions:
        habit.last_completed_at = None

    result = HabitToggleResult(habit=habit, completed=completed, completed_date=target_day)
    if completed:
        result.awards.extend(_award_completion(db, habit, target_day, run, current, request_id))

    log_activity(
        db,
        habit.user_id,
        "habit_completed" if completed else "habit_uncompleted",
        {
            "habit_id": str(habit.id),
            "date": target_day.isoformat(),
            "streak": habit.streak,
            "total_completions": habit.total_completions,
        },
        reason="Habit completion toggled",
        request_id=request_id,
    )
    logger.debug("Habit %s toggled to %s for %s", habit.id, completed, target_day)
    return result
