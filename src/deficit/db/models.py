"""ORM models for the Deficit relational store.

The mobile backend owns writes to most of these tables; the admin surface
reads them and performs point edits and deletes. Children of ``users`` are
declared ``ON DELETE CASCADE`` so deleting a user removes their rows in the
database itself (``passive_deletes`` keeps the ORM from loading them first).
"""

from __future__ import annotations

import datetime as dt
import enum
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deficit.db.base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite round-trips, client input without offset) as UTC."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def start_of_day(now: datetime) -> datetime:
    """UTC midnight of ``now``'s day."""
    return as_utc(now).astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


class SubscriptionTier(enum.StrEnum):
    FREE = "FREE"
    PRO_MONTHLY = "PRO_MONTHLY"
    PRO_ANNUAL = "PRO_ANNUAL"
    LIFETIME = "LIFETIME"


class SubscriptionStatus(enum.StrEnum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class FoodSource(enum.StrEnum):
    AI = "AI"
    MANUAL = "MANUAL"
    BARCODE = "BARCODE"
    VOICE = "VOICE"


class Confidence(enum.StrEnum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class CampaignStatus(enum.StrEnum):
    DRAFT = "DRAFT"
    QUEUED = "QUEUED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """An app account, with its subscription, profile and streak state."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(256), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # --- Profile / physiology ---
    height_cm: Mapped[float | None] = mapped_column(Float, nullable=True)
    weight_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sex: Mapped[str | None] = mapped_column(String(16), nullable=True)
    activity_level: Mapped[str | None] = mapped_column(String(32), nullable=True)
    tdee: Mapped[int | None] = mapped_column(Integer, nullable=True)
    budget_cap: Mapped[int | None] = mapped_column(Integer, nullable=True)
    deficit_percent: Mapped[float] = mapped_column(Float, default=20.0, nullable=False)
    pessimism_level: Mapped[str] = mapped_column(String(16), default="MEDIUM", nullable=False)
    weekly_goal: Mapped[str | None] = mapped_column(String(32), nullable=True)
    charge_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    bmr_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    base_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    manual_base_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    default_food_pessimism: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # --- Streaks ---
    current_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_log_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    # --- Subscription ---
    subscription_tier: Mapped[str] = mapped_column(String(16), default=SubscriptionTier.FREE, nullable=False)
    subscription_status: Mapped[str] = mapped_column(String(16), default=SubscriptionStatus.ACTIVE, nullable=False)
    subscription_expiry: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    subscription_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # --- External identity ---
    apple_user_id: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)
    revenue_cat_app_user_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    food_logs: Mapped[list[FoodLog]] = relationship(back_populates="user", passive_deletes=True)
    usage_records: Mapped[list[UsageRecord]] = relationship(back_populates="user", passive_deletes=True)
    refresh_tokens: Mapped[list[RefreshToken]] = relationship(back_populates="user", passive_deletes=True)


class FoodLog(Base):
    """One logged meal."""

    __tablename__ = "food_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    calories: Mapped[int] = mapped_column(Integer, nullable=False)
    base_calories: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_greasy: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    source: Mapped[str] = mapped_column(String(16), default=FoodSource.MANUAL, nullable=False)
    confidence: Mapped[str | None] = mapped_column(String(16), nullable=True)
    protein: Mapped[float | None] = mapped_column(Float, nullable=True)
    carbs: Mapped[float | None] = mapped_column(Float, nullable=True)
    fat: Mapped[float | None] = mapped_column(Float, nullable=True)
    items: Mapped[Any | None] = mapped_column(JSONType, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    user: Mapped[User] = relationship(back_populates="food_logs")


class UsageRecord(Base):
    """Per-user, per-day scan counter."""

    __tablename__ = "usage_records"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_usage_records_user_date"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    scan_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_scan_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped[User] = relationship(back_populates="usage_records")


class RefreshToken(Base):
    """Mobile app refresh token. Live while ``expires_at > now``."""

    __tablename__ = "refresh_tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    user: Mapped[User] = relationship(back_populates="refresh_tokens")


# ---------------------------------------------------------------------------
# Push notifications
# ---------------------------------------------------------------------------


class BroadcastCampaign(Base):
    """A push-notification campaign sent to a tier/platform segment."""

    __tablename__ = "broadcast_campaigns"
    __table_args__ = (
        CheckConstraint(
            "total_recipients = 0 OR sent_count + failed_count <= total_recipients",
            name="counters_within_recipients",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    notification_title: Mapped[str] = mapped_column(String(50), nullable=False)
    notification_body: Mapped[str] = mapped_column(String(200), nullable=False)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default=CampaignStatus.DRAFT, nullable=False, index=True)
    target_tiers: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    target_platforms: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    total_recipients: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sent_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failed_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    scheduled_for: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(320), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    logs: Mapped[list[NotificationLog]] = relationship(back_populates="broadcast", passive_deletes=True)


class NotificationLog(Base):
    """One delivery attempt. Exactly one of ``sent_at`` / ``failed_at`` is set once resolved."""

    __tablename__ = "notification_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    broadcast_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("broadcast_campaigns.id", ondelete="SET NULL"), nullable=True, index=True
    )
    type: Mapped[str] = mapped_column(String(32), default="BROADCAST", nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    failed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    user: Mapped[User] = relationship()
    broadcast: Mapped[BroadcastCampaign | None] = relationship(back_populates="logs")


class PushToken(Base):
    """APNs/FCM device token registered by the app."""

    __tablename__ = "push_tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    platform: Mapped[str] = mapped_column(String(16), default="ios", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class UserNotificationPreference(Base):
    __tablename__ = "user_notification_preferences"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    notifications_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class AdminUser(Base):
    """Dashboard operator. Unrelated to app users."""

    __tablename__ = "admin_users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
