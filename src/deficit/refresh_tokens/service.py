"""Refresh token listing, revocation and expiry cleanup."""

from __future__ import annotations

import enum
from datetime import datetime

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from deficit.crud import delete_or_404
from deficit.db.models import RefreshToken, utcnow
from deficit.pagination import PageParams, paginate

logger = structlog.get_logger()


class TokenStatus(enum.StrEnum):
    ACTIVE = "active"
    EXPIRED = "expired"


async def list_refresh_tokens(
    db: AsyncSession,
    params: PageParams,
    *,
    user_id: str | None = None,
    status: TokenStatus | None = None,
    now: datetime | None = None,
) -> tuple[list[RefreshToken], int]:
    """Newest-first page of tokens. ``status`` splits on ``expires_at`` vs now."""
    now = now or utcnow()
    query = select(RefreshToken)
    if user_id:
        query = query.where(RefreshToken.user_id == user_id)
    if status == TokenStatus.ACTIVE:
        query = query.where(RefreshToken.expires_at > now)
    elif status == TokenStatus.EXPIRED:
        query = query.where(RefreshToken.expires_at <= now)
    query = query.order_by(RefreshToken.created_at.desc(), RefreshToken.id)
    return await paginate(db, query, params, selectinload(RefreshToken.user))


async def delete_refresh_token(db: AsyncSession, token_id: str) -> None:
    await delete_or_404(db, RefreshToken, token_id, "Refresh token")
    logger.info("refresh_token_revoked", refresh_token_id=token_id)


async def cleanup_expired_tokens(db: AsyncSession, *, now: datetime | None = None) -> int:
    """Delete every token with ``expires_at <= now``; returns how many went."""
    now = now or utcnow()
    result = await db.execute(delete(RefreshToken).where(RefreshToken.expires_at <= now))
    deleted = result.rowcount or 0
    logger.info("refresh_tokens_cleaned", deleted=deleted)
    return deleted
