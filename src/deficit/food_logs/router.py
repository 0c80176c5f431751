"""Admin food log endpoints."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.admin_auth.guard import require_admin
from deficit.database import get_session
from deficit.db.models import FoodSource
from deficit.food_logs.schemas import FoodLogListResponse, FoodLogResponse, FoodLogUpdate, FoodLogWithUser
from deficit.food_logs.service import delete_food_log, get_food_log, list_food_logs, update_food_log
from deficit.pagination import PageParams, build_pagination, page_params
from deficit.schemas import SuccessResponse

router = APIRouter(prefix="/api/admin/food-logs", tags=["Admin: Food logs"], dependencies=[Depends(require_admin)])


@router.get("", response_model=FoodLogListResponse)
async def list_food_logs_endpoint(
    params: PageParams = Depends(page_params),
    search: str | None = Query(None),
    user_id: str | None = Query(None, alias="userId"),
    source: FoodSource | None = Query(None),
    date: dt.date | None = Query(None),
    db: AsyncSession = Depends(get_session),
):
    logs, total = await list_food_logs(db, params, search=search, user_id=user_id, source=source, date=date)
    return FoodLogListResponse(
        items=[FoodLogWithUser.model_validate(log) for log in logs],
        pagination=build_pagination(params, total),
    )


@router.get("/{log_id}", response_model=FoodLogWithUser)
async def get_food_log_endpoint(log_id: str, db: AsyncSession = Depends(get_session)):
    return await get_food_log(db, log_id)


@router.patch("/{log_id}", response_model=FoodLogResponse)
async def update_food_log_endpoint(
    log_id: str,
    body: FoodLogUpdate,
    db: AsyncSession = Depends(get_session),
):
    """Edit allow-listed fields; omitted fields are left alone."""
    food_log = await update_food_log(db, log_id, body.model_dump(exclude_unset=True))
    await db.commit()
    return food_log


@router.delete("/{log_id}", response_model=SuccessResponse)
async def delete_food_log_endpoint(log_id: str, db: AsyncSession = Depends(get_session)):
    await delete_food_log(db, log_id)
    await db.commit()
    return SuccessResponse()
