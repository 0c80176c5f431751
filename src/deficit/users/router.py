"""Admin endpoints for app users."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.admin_auth.guard import require_admin
from deficit.database import get_session
from deficit.db.models import SubscriptionTier
from deficit.food_logs.schemas import FoodLogResponse
from deficit.pagination import PageParams, build_pagination, page_params
from deficit.refresh_tokens.schemas import RefreshTokenResponse
from deficit.schemas import SuccessResponse
from deficit.usage_records.schemas import UsageRecordResponse
from deficit.users.schemas import (
    UserDetailCounts,
    UserDetailResponse,
    UserListCounts,
    UserListItem,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from deficit.users.service import UserDetail, UserRow, delete_user, get_user_detail, list_users, update_user

router = APIRouter(prefix="/api/admin/users", tags=["Admin: Users"], dependencies=[Depends(require_admin)])


# ── Helpers ──


def build_user_list_item(row: UserRow) -> UserListItem:
    return UserListItem(
        **UserResponse.model_validate(row.user).model_dump(),
        counts=UserListCounts(food_logs=row.food_logs, usage_records=row.usage_records),
    )


def build_user_detail(detail: UserDetail) -> UserDetailResponse:
    return UserDetailResponse(
        **UserResponse.model_validate(detail.user).model_dump(),
        food_logs=[FoodLogResponse.model_validate(f) for f in detail.food_logs],
        usage_records=[UsageRecordResponse.model_validate(u) for u in detail.usage_records],
        refresh_tokens=[RefreshTokenResponse.model_validate(t) for t in detail.refresh_tokens],
        counts=UserDetailCounts(**detail.counts),
    )


# ── Endpoints ──


@router.get("", response_model=UserListResponse)
async def list_users_endpoint(
    params: PageParams = Depends(page_params),
    search: str | None = Query(None),
    tier: SubscriptionTier | None = Query(None),
    db: AsyncSession = Depends(get_session),
):
    """Search by email, display name or id; filter by subscription tier."""
    rows, total = await list_users(db, params, search=search, tier=tier)
    return UserListResponse(
        items=[build_user_list_item(r) for r in rows],
        pagination=build_pagination(params, total),
    )


@router.get("/{user_id}", response_model=UserDetailResponse)
async def get_user_endpoint(user_id: str, db: AsyncSession = Depends(get_session)):
    return build_user_detail(await get_user_detail(db, user_id))


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user_endpoint(
    user_id: str,
    body: UserUpdate,
    db: AsyncSession = Depends(get_session),
):
    user = await update_user(db, user_id, body.model_dump(exclude_unset=True))
    await db.commit()
    return user


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user_endpoint(user_id: str, db: AsyncSession = Depends(get_session)):
    """Delete the user and, through ON DELETE CASCADE, everything they own."""
    await delete_user(db, user_id)
    await db.commit()
    return SuccessResponse()
