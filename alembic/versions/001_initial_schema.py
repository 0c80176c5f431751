"""Initial schema: app users and their data, push notifications, admin accounts.

Creates users, food_logs, usage_records, refresh_tokens, broadcast_campaigns,
notification_logs, push_tokens, user_notification_preferences and
admin_users. Every user-owned table cascades on user delete;
notification_logs.broadcast_id is nulled when its campaign is deleted.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _user_fk() -> sa.Column:
    return sa.Column(
        "user_id",
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Create all tables."""
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=True),
        sa.Column("display_name", sa.String(128), nullable=True),
        sa.Column("height_cm", sa.Float(), nullable=True),
        sa.Column("weight_kg", sa.Float(), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("sex", sa.String(16), nullable=True),
        sa.Column("activity_level", sa.String(32), nullable=True),
        sa.Column("tdee", sa.Integer(), nullable=True),
        sa.Column("budget_cap", sa.Integer(), nullable=True),
        sa.Column("deficit_percent", sa.Float(), server_default="20", nullable=False),
        sa.Column("pessimism_level", sa.String(16), server_default="MEDIUM", nullable=False),
        sa.Column("weekly_goal", sa.String(32), nullable=True),
        sa.Column("charge_rate", sa.Float(), nullable=True),
        sa.Column("bmr_value", sa.Integer(), nullable=True),
        sa.Column("base_limit", sa.Integer(), nullable=True),
        sa.Column("manual_base_limit", sa.Integer(), nullable=True),
        sa.Column("default_food_pessimism", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("current_streak", sa.Integer(), server_default="0", nullable=False),
        sa.Column("longest_streak", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_log_date", sa.Date(), nullable=True),
        sa.Column("subscription_tier", sa.String(16), server_default="FREE", nullable=False),
        sa.Column("subscription_status", sa.String(16), server_default="ACTIVE", nullable=False),
        sa.Column("subscription_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subscription_start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("apple_user_id", sa.String(128), nullable=True),
        sa.Column("revenue_cat_app_user_id", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("apple_user_id", name="uq_users_apple_user_id"),
    )

    # --- food_logs ---
    op.create_table(
        "food_logs",
        sa.Column("id", sa.String(36), nullable=False),
        _user_fk(),
        sa.Column("calories", sa.Integer(), nullable=False),
        sa.Column("base_calories", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), server_default="", nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("is_greasy", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("source", sa.String(16), server_default="MANUAL", nullable=False),
        sa.Column("confidence", sa.String(16), nullable=True),
        sa.Column("protein", sa.Float(), nullable=True),
        sa.Column("carbs", sa.Float(), nullable=True),
        sa.Column("fat", sa.Float(), nullable=True),
        sa.Column("items", JSON, nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_food_logs"),
    )
    op.create_index("ix_food_logs_user_id", "food_logs", ["user_id"])
    op.create_index("ix_food_logs_date", "food_logs", ["date"])

    # --- usage_records ---
    op.create_table(
        "usage_records",
        sa.Column("id", sa.String(36), nullable=False),
        _user_fk(),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("scan_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_scan_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_usage_records"),
        sa.UniqueConstraint("user_id", "date", name="uq_usage_records_user_date"),
    )
    op.create_index("ix_usage_records_user_id", "usage_records", ["user_id"])

    # --- refresh_tokens ---
    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.String(36), nullable=False),
        _user_fk(),
        sa.Column("token", sa.String(512), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_refresh_tokens"),
        sa.UniqueConstraint("token", name="uq_refresh_tokens_token"),
    )
    op.create_index("ix_refresh_tokens_user_id", "refresh_tokens", ["user_id"])
    op.create_index("ix_refresh_tokens_expires_at", "refresh_tokens", ["expires_at"])

    # --- broadcast_campaigns ---
    op.create_table(
        "broadcast_campaigns",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("notification_title", sa.String(50), nullable=False),
        sa.Column("notification_body", sa.String(200), nullable=False),
        sa.Column("data", JSON, nullable=True),
        sa.Column("status", sa.String(16), server_default="DRAFT", nullable=False),
        sa.Column("target_tiers", JSON, nullable=False),
        sa.Column("target_platforms", JSON, nullable=False),
        sa.Column("total_recipients", sa.Integer(), server_default="0", nullable=False),
        sa.Column("sent_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("failed_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(320), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_broadcast_campaigns"),
        sa.CheckConstraint(
            "total_recipients = 0 OR sent_count + failed_count <= total_recipients",
            name="ck_broadcast_campaigns_counters_within_recipients",
        ),
    )
    op.create_index("ix_broadcast_campaigns_status", "broadcast_campaigns", ["status"])

    # --- notification_logs ---
    op.create_table(
        "notification_logs",
        sa.Column("id", sa.String(36), nullable=False),
        _user_fk(),
        sa.Column(
            "broadcast_id",
            sa.String(36),
            sa.ForeignKey("broadcast_campaigns.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("type", sa.String(32), server_default="BROADCAST", nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("data", JSON, nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("failed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_notification_logs"),
    )
    op.create_index("ix_notification_logs_user_id", "notification_logs", ["user_id"])
    op.create_index("ix_notification_logs_broadcast_id", "notification_logs", ["broadcast_id"])

    # --- push_tokens ---
    op.create_table(
        "push_tokens",
        sa.Column("id", sa.String(36), nullable=False),
        _user_fk(),
        sa.Column("token", sa.String(512), nullable=False),
        sa.Column("platform", sa.String(16), server_default="ios", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_push_tokens"),
        sa.UniqueConstraint("token", name="uq_push_tokens_token"),
    )
    op.create_index("ix_push_tokens_user_id", "push_tokens", ["user_id"])

    # --- user_notification_preferences ---
    op.create_table(
        "user_notification_preferences",
        sa.Column("id", sa.String(36), nullable=False),
        _user_fk(),
        sa.Column("notifications_enabled", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_user_notification_preferences"),
        sa.UniqueConstraint("user_id", name="uq_user_notification_preferences_user_id"),
    )

    # --- admin_users ---
    op.create_table(
        "admin_users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_admin_users"),
        sa.UniqueConstraint("email", name="uq_admin_users_email"),
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("admin_users")
    op.drop_table("user_notification_preferences")
    op.drop_table("push_tokens")
    op.drop_table("notification_logs")
    op.drop_table("broadcast_campaigns")
    op.drop_table("refresh_tokens")
    op.drop_table("usage_records")
    op.drop_table("food_logs")
    op.drop_table("users")
