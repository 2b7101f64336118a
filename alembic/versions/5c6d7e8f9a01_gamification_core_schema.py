"""gamification_core_schema

Revision ID: 5c6d7e8f9a01
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c6d7e8f9a01"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("status", sa.String(length=16), server_default=sa.text("'ACTIVE'"), nullable=False),
        sa.Column("points", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("login_streak", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_login_date", sa.Date(), nullable=True),
        sa.Column("tool_streak", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_tool_date", sa.Date(), nullable=True),
        sa.Column("study_planner_streak", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_study_planner_date", sa.Date(), nullable=True),
        sa.Column("analytics_streak", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_analytics_date", sa.Date(), nullable=True),
        sa.Column("last_course_opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_tool_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("forum_posts_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('ACTIVE','BLOCKED','DELETED')", name="ck_users_status"),
        sa.CheckConstraint("points >= 0", name="ck_users_points_non_negative"),
        sa.CheckConstraint("login_streak >= 0", name="ck_users_login_streak_non_negative"),
        sa.CheckConstraint("tool_streak >= 0", name="ck_users_tool_streak_non_negative"),
        sa.CheckConstraint("forum_posts_count >= 0", name="ck_users_forum_posts_non_negative"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("idx_users_points_created", "users", ["points", "created_at"], unique=False)
    op.create_index("idx_users_created_at", "users", ["created_at"], unique=False)

    op.create_table(
        "premium_access",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("access_kind", sa.String(length=8), nullable=False),
        sa.Column("granted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("access_kind IN ('PRO','TRIAL')", name="ck_premium_access_kind"),
        sa.CheckConstraint(
            "access_kind = 'PRO' OR ends_at IS NOT NULL",
            name="ck_premium_access_trial_has_end",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "uq_premium_access_user_kind",
        "premium_access",
        ["user_id", "access_kind"],
        unique=True,
    )

    op.create_table(
        "duel_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("duel_key", sa.String(length=6), nullable=False),
        sa.Column("host_user_id", sa.BigInteger(), nullable=False),
        sa.Column("host_name", sa.Text(), nullable=False),
        sa.Column("opponent_user_id", sa.BigInteger(), nullable=True),
        sa.Column("opponent_name", sa.Text(), nullable=True),
        sa.Column("topic", sa.String(length=200), nullable=False),
        sa.Column("num_questions", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("host_score", sa.Integer(), nullable=False),
        sa.Column("opponent_score", sa.Integer(), nullable=False),
        sa.Column("forfeited_by_user_id", sa.BigInteger(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('waiting','locked','started','completed','expired','cancelled','forfeited')",
            name="ck_duel_sessions_status",
        ),
        sa.CheckConstraint("num_questions >= 1", name="ck_duel_sessions_num_questions_positive"),
        sa.CheckConstraint("host_score >= 0", name="ck_duel_sessions_host_score_non_negative"),
        sa.CheckConstraint("opponent_score >= 0", name="ck_duel_sessions_opponent_score_non_negative"),
        sa.CheckConstraint(
            "opponent_user_id IS NULL OR opponent_user_id <> host_user_id",
            name="ck_duel_sessions_opponent_not_host",
        ),
        sa.ForeignKeyConstraint(["host_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["opponent_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["forfeited_by_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("duel_key"),
    )
    op.create_index(
        "idx_duel_sessions_status_created",
        "duel_sessions",
        ["status", "created_at"],
        unique=False,
    )
    op.create_index(
        "idx_duel_sessions_status_expires",
        "duel_sessions",
        ["status", "expires_at"],
        unique=False,
    )
    op.create_index(
        "idx_duel_sessions_host_created",
        "duel_sessions",
        ["host_user_id", "created_at"],
        unique=False,
    )
    op.create_index(
        "idx_duel_sessions_opponent_created",
        "duel_sessions",
        ["opponent_user_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "game_stats",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("games_played", sa.Integer(), nullable=False),
        sa.Column("games_won", sa.Integer(), nullable=False),
        sa.Column("points_earned", sa.Integer(), nullable=False),
        sa.Column("current_game_streak", sa.Integer(), nullable=False),
        sa.Column("max_game_streak", sa.Integer(), nullable=False),
        sa.Column("duels_today", sa.Integer(), nullable=False),
        sa.Column("duels_this_week", sa.Integer(), nullable=False),
        sa.Column("last_duel_date", sa.Date(), nullable=True),
        sa.Column("last_duel_week", sa.String(length=10), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("games_played >= 0", name="ck_game_stats_games_played_non_negative"),
        sa.CheckConstraint("games_won >= 0", name="ck_game_stats_games_won_non_negative"),
        sa.CheckConstraint("points_earned >= 0", name="ck_game_stats_points_earned_non_negative"),
        sa.CheckConstraint("current_game_streak >= 0", name="ck_game_stats_current_streak_non_negative"),
        sa.CheckConstraint("max_game_streak >= 0", name="ck_game_stats_max_streak_non_negative"),
        sa.CheckConstraint("duels_today >= 0", name="ck_game_stats_duels_today_non_negative"),
        sa.CheckConstraint("duels_this_week >= 0", name="ck_game_stats_duels_this_week_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("idx_game_stats_games_won", "game_stats", ["games_won"], unique=False)

    op.create_table(
        "user_badges",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("badge_id", sa.String(length=32), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("earned", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=True),
        sa.Column("earned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("kind IN ('achievement','point')", name="ck_user_badges_kind"),
        sa.CheckConstraint(
            "earned = false OR earned_at IS NOT NULL",
            name="ck_user_badges_earned_has_timestamp",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),
    )
    op.create_index("idx_user_badges_user_kind", "user_badges", ["user_id", "kind"], unique=False)

    op.create_table(
        "points_ledger_entries",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("delta", sa.Integer(), nullable=False),
        sa.Column("applied_delta", sa.Integer(), nullable=False),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=48), nullable=False),
        sa.Column("idempotency_key", sa.String(length=96), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("balance_after >= 0", name="ck_points_ledger_balance_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key"),
    )
    op.create_index(
        "idx_points_ledger_user_created",
        "points_ledger_entries",
        ["user_id", "created_at"],
        unique=False,
    )
    op.create_index("idx_points_ledger_reason", "points_ledger_entries", ["reason"], unique=False)

    op.create_table(
        "outbox_events",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(length=16), server_default=sa.text("'PENDING'"), nullable=False),
        sa.Column("delivery_attempts", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('PENDING','DELIVERED','FAILED')",
            name="ck_outbox_events_status",
        ),
        sa.CheckConstraint("delivery_attempts >= 0", name="ck_outbox_events_attempts_non_negative"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_outbox_events_pending_created",
        "outbox_events",
        ["created_at"],
        unique=False,
        postgresql_where=sa.text("status = 'PENDING'"),
    )
    op.create_index(
        "idx_outbox_events_user_created",
        "outbox_events",
        ["user_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "course_progress",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("course_id", sa.String(length=64), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_course_progress_progress_range"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_course_progress_user_progress",
        "course_progress",
        ["user_id", "progress"],
        unique=False,
    )
    op.create_index(
        "uq_course_progress_user_course",
        "course_progress",
        ["user_id", "course_id"],
        unique=True,
    )

    op.create_table(
        "forum_posts",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("author_user_id", sa.BigInteger(), nullable=False),
        sa.Column("helpful_votes", sa.Integer(), nullable=False),
        sa.Column("replies_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("helpful_votes >= 0", name="ck_forum_posts_helpful_votes_non_negative"),
        sa.CheckConstraint("replies_count >= 0", name="ck_forum_posts_replies_non_negative"),
        sa.ForeignKeyConstraint(["author_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_forum_posts_author", "forum_posts", ["author_user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("idx_forum_posts_author", table_name="forum_posts")
    op.drop_table("forum_posts")

    op.drop_index("uq_course_progress_user_course", table_name="course_progress")
    op.drop_index("idx_course_progress_user_progress", table_name="course_progress")
    op.drop_table("course_progress")

    op.drop_index("idx_outbox_events_user_created", table_name="outbox_events")
    op.drop_index("idx_outbox_events_pending_created", table_name="outbox_events")
    op.drop_table("outbox_events")

    op.drop_index("idx_points_ledger_reason", table_name="points_ledger_entries")
    op.drop_index("idx_points_ledger_user_created", table_name="points_ledger_entries")
    op.drop_table("points_ledger_entries")

    op.drop_index("idx_user_badges_user_kind", table_name="user_badges")
    op.drop_table("user_badges")

    op.drop_index("idx_game_stats_games_won", table_name="game_stats")
    op.drop_table("game_stats")

    op.drop_index("idx_duel_sessions_opponent_created", table_name="duel_sessions")
    op.drop_index("idx_duel_sessions_host_created", table_name="duel_sessions")
    op.drop_index("idx_duel_sessions_status_expires", table_name="duel_sessions")
    op.drop_index("idx_duel_sessions_status_created", table_name="duel_sessions")
    op.drop_table("duel_sessions")

    op.drop_index("uq_premium_access_user_kind", table_name="premium_access")
    op.drop_table("premium_access")

    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_index("idx_users_points_created", table_name="users")
    op.drop_table("users")
