"""Usage record queries and point edits."""

from __future__ import annotations

import datetime as dt
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from deficit.crud import apply_updates, delete_or_404, get_or_404
from deficit.db.models import UsageRecord
from deficit.pagination import PageParams, paginate

logger = structlog.get_logger()

EDITABLE_FIELDS = ("scan_count", "last_scan_at")


async def list_usage_records(
    db: AsyncSession,
    params: PageParams,
    *,
    user_id: str | None = None,
    date: dt.date | None = None,
) -> tuple[list[UsageRecord], int]:
    query = select(UsageRecord)
    if user_id:
        query = query.where(UsageRecord.user_id == user_id)
    if date:
        query = query.where(UsageRecord.date == date)
    query = query.order_by(UsageRecord.date.desc(), UsageRecord.id)
    return await paginate(db, query, params, selectinload(UsageRecord.user))


async def update_usage_record(db: AsyncSession, record_id: str, fields: dict[str, Any]) -> UsageRecord:
    record = await get_or_404(db, UsageRecord, record_id, "Usage record")
    applied = apply_updates(record, fields, EDITABLE_FIELDS)
    await db.flush()
    logger.info("usage_record_updated", usage_record_id=record_id, fields=applied)
    return record


async def delete_usage_record(db: AsyncSession, record_id: str) -> None:
    await delete_or_404(db, UsageRecord, record_id, "Usage record")
    logger.info("usage_record_deleted", usage_record_id=record_id)
