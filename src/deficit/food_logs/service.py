"""Food log queries and point edits for the admin dashboard."""

from __future__ import annotations

import datetime as dt
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from deficit.crud import apply_updates, delete_or_404, get_or_404
from deficit.db.models import FoodLog
from deficit.pagination import PageParams, paginate

logger = structlog.get_logger()

EDITABLE_FIELDS = (
    "calories",
    "base_calories",
    "description",
    "image_url",
    "is_greasy",
    "source",
    "confidence",
    "protein",
    "carbs",
    "fat",
    "items",
    "notes",
    "date",
)


async def list_food_logs(
    db: AsyncSession,
    params: PageParams,
    *,
    search: str | None = None,
    user_id: str | None = None,
    source: str | None = None,
    date: dt.date | None = None,
) -> tuple[list[FoodLog], int]:
    """Newest-first page of food logs with the owning user attached."""
    query = select(FoodLog)
    if search:
        query = query.where(FoodLog.description.icontains(search, autoescape=True))
    if user_id:
        query = query.where(FoodLog.user_id == user_id)
    if source:
        query = query.where(FoodLog.source == source)
    if date:
        query = query.where(FoodLog.date == date)
    query = query.order_by(FoodLog.created_at.desc(), FoodLog.id)
    return await paginate(db, query, params, selectinload(FoodLog.user))


async def get_food_log(db: AsyncSession, log_id: str) -> FoodLog:
    return await get_or_404(db, FoodLog, log_id, "Food log", selectinload(FoodLog.user))


async def update_food_log(db: AsyncSession, log_id: str, fields: dict[str, Any]) -> FoodLog:
    food_log = await get_or_404(db, FoodLog, log_id, "Food log")
    applied = apply_updates(food_log, fields, EDITABLE_FIELDS)
    await db.flush()
    logger.info("food_log_updated", food_log_id=log_id, fields=applied)
    return food_log


async def delete_food_log(db: AsyncSession, log_id: str) -> None:
    await delete_or_404(db, FoodLog, log_id, "Food log")
    logger.info("food_log_deleted", food_log_id=log_id)
