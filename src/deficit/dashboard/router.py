"""Admin dashboard aggregates."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.admin_auth.guard import require_admin
from deficit.dashboard.schemas import DbStatsResponse
from deficit.dashboard.service import get_db_stats
from deficit.database import get_session

router = APIRouter(prefix="/api/admin", tags=["Admin: Dashboard"], dependencies=[Depends(require_admin)])


@router.get("/db-stats", response_model=DbStatsResponse)
async def db_stats_endpoint(db: AsyncSession = Depends(get_session)):
    """User, food log, usage, token and notification totals."""
    return DbStatsResponse.model_validate(await get_db_stats(db))
