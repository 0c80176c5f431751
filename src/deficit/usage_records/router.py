"""Admin usage record endpoints."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.admin_auth.guard import require_admin
from deficit.database import get_session
from deficit.pagination import PageParams, build_pagination, page_params
from deficit.schemas import SuccessResponse
from deficit.usage_records.schemas import (
    UsageRecordListResponse,
    UsageRecordResponse,
    UsageRecordUpdate,
    UsageRecordWithUser,
)
from deficit.usage_records.service import delete_usage_record, list_usage_records, update_usage_record

router = APIRouter(
    prefix="/api/admin/usage-records",
    tags=["Admin: Usage records"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=UsageRecordListResponse)
async def list_usage_records_endpoint(
    params: PageParams = Depends(page_params),
    user_id: str | None = Query(None, alias="userId"),
    date: dt.date | None = Query(None),
    db: AsyncSession = Depends(get_session),
):
    records, total = await list_usage_records(db, params, user_id=user_id, date=date)
    return UsageRecordListResponse(
        items=[UsageRecordWithUser.model_validate(r) for r in records],
        pagination=build_pagination(params, total),
    )


@router.patch("/{record_id}", response_model=UsageRecordResponse)
async def update_usage_record_endpoint(
    record_id: str,
    body: UsageRecordUpdate,
    db: AsyncSession = Depends(get_session),
):
    record = await update_usage_record(db, record_id, body.model_dump(exclude_unset=True))
    await db.commit()
    return record


@router.delete("/{record_id}", response_model=SuccessResponse)
async def delete_usage_record_endpoint(record_id: str, db: AsyncSession = Depends(get_session)):
    await delete_usage_record(db, record_id)
    await db.commit()
    return SuccessResponse()
