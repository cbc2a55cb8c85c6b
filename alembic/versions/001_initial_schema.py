"""Initial schema - users, tasks, sessions, distractions, progression, rewards

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # Tasks
    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("priority", sa.String(10), nullable=False, server_default="medium"),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_tasks"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_tasks_user_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_tasks_user_id", "tasks", ["user_id"])

    # Sessions
    op.create_table(
        "sessions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("session_type", sa.String(20), nullable=False, server_default="work"),
        sa.Column("planned_duration_seconds", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pause_intervals", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="idle"),
        sa.Column("xp_earned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("completed_work_count_in_cycle", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("actual_duration_seconds", sa.Integer(), nullable=True),
        sa.Column("early_completion", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_sessions"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_sessions_user_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])
    op.create_index("ix_sessions_user_start_time", "sessions", ["user_id", "start_time"])
    op.create_index(
        "uq_sessions_user_active",
        "sessions",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('running', 'paused')"),
    )

    # Distractions
    op.create_table(
        "distractions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("session_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("note", sa.String(200), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=False, server_default="30"),
        sa.PrimaryKeyConstraint("id", name="pk_distractions"),
        sa.ForeignKeyConstraint(["session_id"], ["sessions.id"], name="fk_distractions_session_id_sessions", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_distractions_user_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_distractions_session_occurred", "distractions", ["session_id", "occurred_at"])
    op.create_index("ix_distractions_user_occurred", "distractions", ["user_id", "occurred_at"])

    # Progression, streaks, weekly goals
    op.create_table(
        "progressions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("xp_total", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_progressions"),
        sa.UniqueConstraint("user_id", name="uq_progressions_user_id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_progressions_user_id_users", ondelete="CASCADE"),
    )
    op.create_table(
        "streaks",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("current_streak_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_activity_date", sa.Date(), nullable=True),
        sa.Column("next_milestone_days", sa.Integer(), nullable=True),
        sa.Column("last_milestone_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_streaks"),
        sa.UniqueConstraint("user_id", name="uq_streaks_user_id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_streaks_user_id_users", ondelete="CASCADE"),
    )
    op.create_table(
        "weekly_goals",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("week_start_date", sa.Date(), nullable=False),
        sa.Column("completed_tasks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("target_tasks", sa.Integer(), nullable=False),
        sa.Column("target_sessions", sa.Integer(), nullable=False),
        sa.Column("goal_met", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_weekly_goals"),
        sa.UniqueConstraint("user_id", name="uq_weekly_goals_user_id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_weekly_goals_user_id_users", ondelete="CASCADE"),
    )

    # Reward ledger
    op.create_table(
        "reward_grants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("source_type", sa.String(20), nullable=False),
        sa.Column("source_id", sa.String(64), nullable=False),
        sa.Column("step", sa.String(32), nullable=False),
        sa.Column("xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("detail_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_reward_grants"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_reward_grants_user_id_users", ondelete="CASCADE"),
    )
    op.create_index(
        "ix_reward_grants_dedup",
        "reward_grants",
        ["user_id", "source_type", "source_id", "step"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_table("reward_grants")
    op.drop_table("weekly_goals")
    op.drop_table("streaks")
    op.drop_table("progressions")
    op.drop_table("distractions")
    op.drop_table("sessions")
    op.drop_table("tasks")
    op.drop_table("users")
