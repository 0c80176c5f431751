"""Admin refresh token endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.admin_auth.guard import require_admin
from deficit.database import get_session
from deficit.errors import BadRequest
from deficit.pagination import PageParams, build_pagination, page_params
from deficit.refresh_tokens.schemas import RefreshTokenListResponse, RefreshTokenWithUser
from deficit.refresh_tokens.service import (
    TokenStatus,
    cleanup_expired_tokens,
    delete_refresh_token,
    list_refresh_tokens,
)
from deficit.schemas import DeletedCountResponse, SuccessResponse

router = APIRouter(
    prefix="/api/admin/refresh-tokens",
    tags=["Admin: Refresh tokens"],
    dependencies=[Depends(require_admin)],
)

CLEANUP_EXPIRED = "cleanup-expired"


@router.get("", response_model=RefreshTokenListResponse)
async def list_refresh_tokens_endpoint(
    params: PageParams = Depends(page_params),
    user_id: str | None = Query(None, alias="userId"),
    status: TokenStatus | None = Query(None),
    db: AsyncSession = Depends(get_session),
):
    tokens, total = await list_refresh_tokens(db, params, user_id=user_id, status=status)
    return RefreshTokenListResponse(
        items=[RefreshTokenWithUser.model_validate(t) for t in tokens],
        pagination=build_pagination(params, total),
    )


@router.delete("", response_model=DeletedCountResponse)
async def bulk_refresh_tokens_endpoint(
    action: str | None = Query(None),
    db: AsyncSession = Depends(get_session),
):
    """Bulk actions on the collection. Only ``action=cleanup-expired`` exists."""
    if action != CLEANUP_EXPIRED:
        msg = "Invalid action"
        raise BadRequest(msg)
    deleted = await cleanup_expired_tokens(db)
    await db.commit()
    return DeletedCountResponse(deleted=deleted)


@router.delete("/{token_id}", response_model=SuccessResponse)
async def delete_refresh_token_endpoint(token_id: str, db: AsyncSession = Depends(get_session)):
    await delete_refresh_token(db, token_id)
    await db.commit()
    return SuccessResponse()
