"""Dashboard aggregation.

Counts are computed on every request straight from the relational store;
nothing is cached.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.db.models import (
    FoodLog,
    FoodSource,
    NotificationLog,
    PushToken,
    RefreshToken,
    SubscriptionTier,
    UsageRecord,
    User,
    start_of_day,
    utcnow,
)


async def _scalar(db: AsyncSession, query: Any) -> int:
    return int((await db.execute(query)).scalar_one() or 0)


def _count(model: Any) -> Any:
    return select(func.count()).select_from(model)


async def _grouped(db: AsyncSession, column: Any, keys: list[str]) -> dict[str, int]:
    """Row counts per value of ``column``; every key in ``keys`` is present, zero if unseen."""
    result = await db.execute(select(column, func.count()).group_by(column))
    counts = {str(value): int(n) for value, n in result.all()}
    return {key: counts.get(key, 0) for key in keys}


async def get_db_stats(db: AsyncSession, *, now: datetime | None = None) -> dict[str, Any]:
    """Totals for the admin dashboard cards."""
    now = now or utcnow()
    today_start = start_of_day(now)

    tiers = await _grouped(db, User.subscription_tier, [t.value for t in SubscriptionTier])
    sources = await _grouped(db, FoodLog.source, [s.value for s in FoodSource])

    return {
        "users": {
            "total": await _scalar(db, _count(User)),
            "free": tiers[SubscriptionTier.FREE],
            "pro_monthly": tiers[SubscriptionTier.PRO_MONTHLY],
            "pro_annual": tiers[SubscriptionTier.PRO_ANNUAL],
            "lifetime": tiers[SubscriptionTier.LIFETIME],
            "with_apple_id": await _scalar(db, _count(User).where(User.apple_user_id.is_not(None))),
            "today_signups": await _scalar(db, _count(User).where(User.created_at >= today_start)),
        },
        "food_logs": {
            "total": await _scalar(db, _count(FoodLog)),
            "today": await _scalar(db, _count(FoodLog).where(FoodLog.date == today_start.date())),
            "by_source": sources,
        },
        "usage_records": {
            "total": await _scalar(db, _count(UsageRecord)),
            "total_scans": await _scalar(db, select(func.coalesce(func.sum(UsageRecord.scan_count), 0))),
        },
        "refresh_tokens": {
            "total": await _scalar(db, _count(RefreshToken)),
            "active": await _scalar(db, _count(RefreshToken).where(RefreshToken.expires_at > now)),
        },
        "notifications": {
            "total_logs": await _scalar(db, _count(NotificationLog)),
            "total_push_tokens": await _scalar(db, _count(PushToken)),
            "active_push_tokens": await _scalar(db, _count(PushToken).where(PushToken.is_active.is_(True))),
        },
    }
