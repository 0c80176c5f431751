"""Row builders for seeding the test database."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from deficit.admin_auth.password import hash_password
from deficit.db.models import (
    AdminUser,
    BroadcastCampaign,
    FoodLog,
    NotificationLog,
    PushToken,
    RefreshToken,
    UsageRecord,
    User,
    UserNotificationPreference,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _save(db: AsyncSession, row: Any) -> Any:
    db.add(row)
    await db.commit()
    return row


async def create_admin(db: AsyncSession, email: str = "admin@deficit.app", password: str = "correct-horse") -> AdminUser:
    return await _save(db, AdminUser(email=email, password_hash=hash_password(password)))


async def create_user(db: AsyncSession, **overrides: Any) -> User:
    fields: dict[str, Any] = {"email": f"user-{uuid.uuid4().hex[:8]}@example.com"}
    fields.update(overrides)
    return await _save(db, User(**fields))


async def create_food_log(db: AsyncSession, user: User, **overrides: Any) -> FoodLog:
    fields: dict[str, Any] = {
        "user_id": user.id,
        "calories": 450,
        "description": "Chicken burrito",
        "date": _now().date(),
    }
    fields.update(overrides)
    return await _save(db, FoodLog(**fields))


async def create_usage_record(db: AsyncSession, user: User, **overrides: Any) -> UsageRecord:
    fields: dict[str, Any] = {"user_id": user.id, "date": _now().date(), "scan_count": 3}
    fields.update(overrides)
    return await _save(db, UsageRecord(**fields))


async def create_refresh_token(db: AsyncSession, user: User, *, expires_in: timedelta, **overrides: Any) -> RefreshToken:
    fields: dict[str, Any] = {
        "user_id": user.id,
        "token": uuid.uuid4().hex,
        "expires_at": _now() + expires_in,
    }
    fields.update(overrides)
    return await _save(db, RefreshToken(**fields))


async def create_campaign(db: AsyncSession, **overrides: Any) -> BroadcastCampaign:
    fields: dict[str, Any] = {
        "title": "Weekend reminder",
        "notification_title": "Log your lunch",
        "notification_body": "A quick photo keeps the streak alive.",
        "target_tiers": [],
        "target_platforms": [],
    }
    fields.update(overrides)
    return await _save(db, BroadcastCampaign(**fields))


async def create_notification_log(db: AsyncSession, user: User, **overrides: Any) -> NotificationLog:
    fields: dict[str, Any] = {
        "user_id": user.id,
        "title": "Log your lunch",
        "body": "Tap to log today's meals.",
    }
    fields.update(overrides)
    return await _save(db, NotificationLog(**fields))


async def create_push_token(db: AsyncSession, user: User, **overrides: Any) -> PushToken:
    fields: dict[str, Any] = {"user_id": user.id, "token": uuid.uuid4().hex}
    fields.update(overrides)
    return await _save(db, PushToken(**fields))


async def create_notification_preference(db: AsyncSession, user: User, *, enabled: bool) -> UserNotificationPreference:
    return await _save(db, UserNotificationPreference(user_id=user.id, notifications_enabled=enabled))
