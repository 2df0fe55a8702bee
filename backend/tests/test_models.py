from app.db.base import Base
from app.db import models  # noqa: F401  ensure models are loaded


def test_metadata_contains_core_tables() -> None:
    table_names = set(Base.metadata.tables.keys())
    expected = {
        "users",
        "player_profiles",
        "ai_credits",
        "ai_requests",
        "tasks",
        "habits",
        "habit_completions",
        "goals",
        "journal_entries",
        "focus_sessions",
        "quests",
        "active_powerups",
        "achievements",
        "activity_log",
    }

    assert expected.issubset(table_names)


def test_habit_completion_unique_per_day() -> None:
    table = Base.metadata.tables["habit_completions"]
    unique_columns = [
        tuple(column.name for column in constraint.columns)
        for constraint in table.constraints
        if constraint.__class__.__name__ == "UniqueConstraint"
    ]
    assert ("habit_id", "completed_date") in unique_columns
