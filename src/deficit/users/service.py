"""App user queries, profile edits and cascading deletes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.crud import apply_updates, count_by_user, delete_or_404, get_or_404
from deficit.db.models import FoodLog, RefreshToken, UsageRecord, User
from deficit.errors import Duplicate
from deficit.pagination import PageParams, paginate

logger = structlog.get_logger()

RECENT_FOOD_LOGS = 10
RECENT_USAGE_RECORDS = 10
RECENT_REFRESH_TOKENS = 5

EDITABLE_FIELDS = (
    "email",
    "display_name",
    "subscription_tier",
    "subscription_status",
    "subscription_expiry",
    "subscription_start_date",
    "height_cm",
    "weight_kg",
    "age",
    "sex",
    "activity_level",
    "tdee",
    "budget_cap",
    "deficit_percent",
    "pessimism_level",
    "weekly_goal",
    "charge_rate",
    "bmr_value",
    "base_limit",
    "manual_base_limit",
    "current_streak",
    "longest_streak",
    "last_log_date",
    "default_food_pessimism",
)


@dataclass
class UserRow:
    """A listed user plus its child-row counts."""

    user: User
    food_logs: int = 0
    usage_records: int = 0


@dataclass
class UserDetail:
    user: User
    food_logs: list[FoodLog] = field(default_factory=list)
    usage_records: list[UsageRecord] = field(default_factory=list)
    refresh_tokens: list[RefreshToken] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)


async def list_users(
    db: AsyncSession,
    params: PageParams,
    *,
    search: str | None = None,
    tier: str | None = None,
) -> tuple[list[UserRow], int]:
    """Newest-first page of users with food log and usage record counts."""
    query = select(User)
    if search:
        query = query.where(
            or_(
                User.email.icontains(search, autoescape=True),
                User.display_name.icontains(search, autoescape=True),
                User.id.contains(search, autoescape=True),
            )
        )
    if tier:
        query = query.where(User.subscription_tier == tier)
    query = query.order_by(User.created_at.desc(), User.id)

    users, total = await paginate(db, query, params)
    ids = [u.id for u in users]
    food_counts = await count_by_user(db, FoodLog, ids)
    usage_counts = await count_by_user(db, UsageRecord, ids)
    rows = [
        UserRow(user=u, food_logs=food_counts.get(u.id, 0), usage_records=usage_counts.get(u.id, 0))
        for u in users
    ]
    return rows, total


async def _recent(db: AsyncSession, query: Any, limit: int) -> list[Any]:
    return list((await db.execute(query.limit(limit))).scalars().all())


async def get_user_detail(db: AsyncSession, user_id: str) -> UserDetail:
    """The user with recent child rows and exact counts of each kind."""
    user = await get_or_404(db, User, user_id, "User")

    food_logs = await _recent(
        db,
        select(FoodLog).where(FoodLog.user_id == user_id).order_by(FoodLog.created_at.desc()),
        RECENT_FOOD_LOGS,
    )
    usage_records = await _recent(
        db,
        select(UsageRecord).where(UsageRecord.user_id == user_id).order_by(UsageRecord.date.desc()),
        RECENT_USAGE_RECORDS,
    )
    refresh_tokens = await _recent(
        db,
        select(RefreshToken).where(RefreshToken.user_id == user_id).order_by(RefreshToken.created_at.desc()),
        RECENT_REFRESH_TOKENS,
    )
    counts = {
        "food_logs": (await count_by_user(db, FoodLog, [user_id])).get(user_id, 0),
        "usage_records": (await count_by_user(db, UsageRecord, [user_id])).get(user_id, 0),
        "refresh_tokens": (await count_by_user(db, RefreshToken, [user_id])).get(user_id, 0),
    }
    return UserDetail(
        user=user,
        food_logs=food_logs,
        usage_records=usage_records,
        refresh_tokens=refresh_tokens,
        counts=counts,
    )


async def update_user(db: AsyncSession, user_id: str, fields: dict[str, Any]) -> User:
    user = await get_or_404(db, User, user_id, "User")
    if fields.get("email"):
        fields = {**fields, "email": fields["email"].strip().lower()}
    applied = apply_updates(user, fields, EDITABLE_FIELDS)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        msg = "Email or Apple ID already in use"
        raise Duplicate(msg) from e
    logger.info("user_updated", user_id=user_id, fields=applied)
    return user


async def delete_user(db: AsyncSession, user_id: str) -> None:
    """Delete a user; the database cascades to every child table."""
    await delete_or_404(db, User, user_id, "User")
    logger.info("user_deleted", user_id=user_id)
