"""Initial DeepFlow schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202610010900"
down_revision = None
branch_labels = None
depends_on = None


def _uuid(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), **kwargs)


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def _owner_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE")


def upgrade() -> None:
    op.create_table(
        "users",
        _uuid("id", primary_key=True, nullable=False),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column("language", sa.String(length=8), nullable=False, server_default=sa.text("'fr'")),
        _timestamp("created_at"),
    )

    op.create_table(
        "player_profiles",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("experience_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("level", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("credits", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_quests_completed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("avatar_type", sa.String(length=32), nullable=False, server_default=sa.text("'cyber'")),
        sa.Column(
            "avatar_customization",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "unlocked_items",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _owner_fk(),
        sa.UniqueConstraint("user_id", name="uq_player_profiles_user_id"),
    )

    op.create_table(
        "ai_credits",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
        _timestamp("last_updated"),
        _owner_fk(),
        sa.UniqueConstraint("user_id", name="uq_ai_credits_user_id"),
    )

    op.create_table(
        "ai_requests",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("service", sa.String(length=50), nullable=False),
        _timestamp("created_at"),
        _owner_fk(),
    )
    op.create_index("ix_ai_requests_user_id", "ai_requests", ["user_id"], unique=False)

    op.create_table(
        "tasks",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("priority", sa.String(length=16), nullable=False, server_default=sa.text("'medium'")),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("completed_at", nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _owner_fk(),
    )
    op.create_index("ix_tasks_user_id", "tasks", ["user_id"], unique=False)
    op.create_index("ix_tasks_completed_at", "tasks", ["completed_at"], unique=False)

    op.create_table(
        "habits",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("frequency", sa.String(length=16), nullable=False, server_default=sa.text("'daily'")),
        sa.Column("target", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_completions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("last_completed_at", nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _owner_fk(),
    )
    op.create_index("ix_habits_user_id", "habits", ["user_id"], unique=False)

    op.create_table(
        "habit_completions",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("habit_id", nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("completed_date", sa.Date(), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["habit_id"], ["habits.id"], ondelete="CASCADE"),
        _owner_fk(),
        sa.UniqueConstraint("habit_id", "completed_date", name="uq_habit_completions_habit_day"),
    )
    op.create_index("ix_habit_completions_user_id", "habit_completions", ["user_id"], unique=False)

    op.create_table(
        "goals",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("target_date", sa.Date(), nullable=True),
        sa.Column("progress", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("completed_at", nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _owner_fk(),
    )
    op.create_index("ix_goals_user_id", "goals", ["user_id"], unique=False)

    op.create_table(
        "journal_entries",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("mood", sa.String(length=32), nullable=True),
        sa.Column(
            "tags",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _owner_fk(),
    )
    op.create_index("ix_journal_entries_user_id", "journal_entries", ["user_id"], unique=False)
    op.create_index("ix_journal_entries_created_at", "journal_entries", ["created_at"], unique=False)

    op.create_table(
        "focus_sessions",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("planned_duration", sa.Integer(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("started_at"),
        _timestamp("completed_at", nullable=True),
        _timestamp("created_at"),
        _owner_fk(),
    )
    op.create_index("ix_focus_sessions_user_id", "focus_sessions", ["user_id"], unique=False)
    op.create_index("ix_focus_sessions_completed_at", "focus_sessions", ["completed_at"], unique=False)

    op.create_table(
        "quests",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quest_type", sa.String(length=16), nullable=False),
        sa.Column("category", sa.String(length=16), nullable=False),
        sa.Column("target_value", sa.Integer(), nullable=False),
        sa.Column("current_progress", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("reward_xp", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("reward_credits", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _timestamp("completed_at", nullable=True),
        _timestamp("expires_at", nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _owner_fk(),
    )
    op.create_index("ix_quests_user_id", "quests", ["user_id"], unique=False)
    op.create_index("ix_quests_user_open", "quests", ["user_id", "completed"], unique=False)

    op.create_table(
        "active_powerups",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("powerup_type", sa.String(length=50), nullable=False),
        sa.Column("multiplier", sa.Float(), nullable=False, server_default=sa.text("1.0")),
        _timestamp("expires_at"),
        _timestamp("created_at"),
        _owner_fk(),
    )
    op.create_index("ix_active_powerups_user_expires", "active_powerups", ["user_id", "expires_at"], unique=False)

    op.create_table(
        "achievements",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("achievement_id", sa.String(length=50), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(length=16), nullable=True),
        _timestamp("unlocked_at"),
        _owner_fk(),
        sa.UniqueConstraint("user_id", "achievement_id", name="uq_achievements_user_badge"),
    )

    op.create_table(
        "activity_log",
        _uuid("id", primary_key=True, nullable=False),
        _uuid("user_id", nullable=False),
        sa.Column("action_type", sa.Text(), nullable=False),
        sa.Column(
            "action_payload",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("reason", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _owner_fk(),
    )
    op.create_index("ix_activity_log_user_id", "activity_log", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_activity_log_user_id", table_name="activity_log")
    op.drop_table("activity_log")

    op.drop_table("achievements")

    op.drop_index("ix_active_powerups_user_expires", table_name="active_powerups")
    op.drop_table("active_powerups")

    op.drop_index("ix_quests_user_open", table_name="quests")
    op.drop_index("ix_quests_user_id", table_name="quests")
    op.drop_table("quests")

    op.drop_index("ix_focus_sessions_completed_at", table_name="focus_sessions")
    op.drop_index("ix_focus_sessions_user_id", table_name="focus_sessions")
    op.drop_table("focus_sessions")

    op.drop_index("ix_journal_entries_created_at", table_name="journal_entries")
    op.drop_index("ix_journal_entries_user_id", table_name="journal_entries")
    op.drop_table("journal_entries")

    op.drop_index("ix_goals_user_id", table_name="goals")
    op.drop_table("goals")

    op.drop_index("ix_habit_completions_user_id", table_name="habit_completions")
    op.drop_table("habit_completions")

    op.drop_index("ix_habits_user_id", table_name="habits")
    op.drop_table("habits")

    op.drop_index("ix_tasks_completed_at", table_name="tasks")
    op.drop_index("ix_tasks_user_id", table_name="tasks")
    op.drop_table("tasks")

    op.drop_index("ix_ai_requests_user_id", table_name="ai_requests")
    op.drop_table("ai_requests")

    op.drop_table("ai_credits")
    op.drop_table("player_profiles")
    op.drop_table("users")
