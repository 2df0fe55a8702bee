from __future__ import annotations

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from app.services.job_runner import JobRunResult
from app.worker import scheduler_main


def test_register_jobs_adds_refresh_and_generation(monkeypatch) -> None:
    monkeypatch.setattr(scheduler_main.settings, "quest_refresh_interval_seconds", 45)
    monkeypatch.setattr(scheduler_main.settings, "daily_quest_hour", 6)
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler_main.register_jobs(scheduler)
    scheduler_main.register_jobs(scheduler)

    refresh = scheduler.get_job("quest_refresh_job")
    generation = scheduler.get_job("quest_generation_job")
    assert refresh is not None and generation is not None
    assert len(scheduler.get_jobs()) == 2
    assert isinstance(refresh.trigger, IntervalTrigger)
    assert refresh.trigger.interval.total_seconds() == 45
    assert isinstance(generation.trigger, CronTrigger)
    fields = {field.name: str(field) for field in generation.trigger.fields}
    assert fields["hour"] == "6"
    assert fields["minute"] == "0"


def test_refresh_job_closes_session(monkeypatch) -> None:
    closed = []
    seen = []

    class _Session:
        def close(self):
            closed.append(True)

    def fake_refresh(session):
        seen.append(session)
        return JobRunResult(users_processed=0, rows_written=0)

    monkeypatch.setattr(scheduler_main, "SessionLocal", _Session)
    monkeypatch.setattr(scheduler_main, "refresh_quests_for_all_users", fake_refresh)

    scheduler_main.run_quest_refresh_job()

    assert len(seen) == 1
    assert closed == [True]


def test_generation_job_logs_failure_and_closes_session(monkeypatch, caplog) -> None:
    closed = []

    class _Session:
        def close(self):
            closed.append(True)

    def boom(session):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(scheduler_main, "SessionLocal", _Session)
    monkeypatch.setattr(scheduler_main, "generate_quests_for_all_users", boom)

    scheduler_main.run_quest_generation_job()

    assert closed == [True]
    assert "Quest generation job failed" in caplog.text
