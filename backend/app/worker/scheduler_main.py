"""Dedicated APScheduler worker process."""
from __future__ import annotations

import logging
import signal
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from app.core.config import settings
from app.core.logging import configure_logging
from app.db.session import SessionLocal
from app.services.job_runner import (
    generate_quests_for_all_users,
    refresh_quests_for_all_users,
)


logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging(log_level=settings.log_level)
    logger.info("Scheduler worker starting (enabled=%s)", settings.scheduler_enabled)

    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)

    if settings.scheduler_enabled:
        register_jobs(scheduler)
        scheduler.start()
        if settings.jobs_run_on_startup:
            logger.info("Running jobs once on startup")
            run_quest_generation_job()
            run_quest_refresh_job()
    else:
        logger.warning("Scheduler disabled via config; worker will idle")

    stop_event = threading.Event()

    def shutdown(signum, frame):  # pragma: no cover - signal handler
        logger.info("Scheduler worker shutting down (signal=%s)", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        shutdown(signal.SIGINT, None)


def register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        run_quest_refresh_job,
        trigger="interval",
        seconds=settings.quest_refresh_interval_seconds,
        id="quest_refresh_job",
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.add_job(
        run_quest_generation_job,
        trigger="cron",
        hour=settings.daily_quest_hour,
        minute=0,
        id="quest_generation_job",
        replace_existing=True,
    )
    logger.info(
        "Registered scheduler jobs (refresh every %ss, generation at %02d:00 %s)",
        settings.quest_refresh_interval_seconds,
        settings.daily_quest_hour,
        settings.scheduler_timezone,
    )


def run_quest_refresh_job() -> None:
    session = SessionLocal()
    try:
        result = refresh_quests_for_all_users(session)
        if result.rows_written:
            logger.info(
                "Quest refresh job complete: users=%s, rows=%s",
                result.users_processed,
                result.rows_written,
            )
    except Exception:
        logger.exception("Quest refresh job failed")
    finally:
        session.close()


def run_quest_generation_job() -> None:
    session = SessionLocal()
    try:
        result = generate_quests_for_all_users(session)
        logger.info(
            "Quest generation job complete: users=%s, quests=%s",
            result.users_processed,
            result.rows_written,
        )
    except Exception:
        logger.exception("Quest generation job failed")
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
