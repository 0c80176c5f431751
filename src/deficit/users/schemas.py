"""Request/response schemas for app user endpoints."""

from __future__ import annotations

import datetime as dt
from datetime import datetime

from pydantic import Field

from deficit.db.models import SubscriptionStatus, SubscriptionTier
from deficit.food_logs.schemas import FoodLogResponse
from deficit.refresh_tokens.schemas import RefreshTokenResponse
from deficit.schemas import CamelModel, Pagination
from deficit.usage_records.schemas import UsageRecordResponse


class UserResponse(CamelModel):
    """Every user column except the password hash."""

    id: str
    email: str
    display_name: str | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    age: int | None = None
    sex: str | None = None
    activity_level: str | None = None
    tdee: int | None = None
    budget_cap: int | None = None
    deficit_percent: float
    pessimism_level: str
    weekly_goal: str | None = None
    charge_rate: float | None = None
    bmr_value: int | None = None
    base_limit: int | None = None
    manual_base_limit: int | None = None
    default_food_pessimism: bool
    current_streak: int
    longest_streak: int
    last_log_date: dt.date | None = None
    subscription_tier: str
    subscription_status: str
    subscription_expiry: datetime | None = None
    subscription_start_date: datetime | None = None
    apple_user_id: str | None = None
    revenue_cat_app_user_id: str | None = None
    created_at: datetime
    updated_at: datetime
    last_login_at: datetime | None = None


class UserListCounts(CamelModel):
    food_logs: int = 0
    usage_records: int = 0


class UserListItem(UserResponse):
    counts: UserListCounts = Field(alias="_count")


class UserListResponse(CamelModel):
    items: list[UserListItem]
    pagination: Pagination


class UserDetailCounts(UserListCounts):
    refresh_tokens: int = 0


class UserDetailResponse(UserResponse):
    food_logs: list[FoodLogResponse]
    usage_records: list[UsageRecordResponse]
    refresh_tokens: list[RefreshTokenResponse]
    counts: UserDetailCounts = Field(alias="_count")


class UserUpdate(CamelModel):
    """Editable user fields. Unknown keys are ignored; null clears nullable columns."""

    email: str | None = None
    display_name: str | None = None
    subscription_tier: SubscriptionTier | None = None
    subscription_status: SubscriptionStatus | None = None
    subscription_expiry: datetime | None = None
    subscription_start_date: datetime | None = None
    height_cm: float | None = None
    weight_kg: float | None = None
    age: int | None = None
    sex: str | None = None
    activity_level: str | None = None
    tdee: int | None = None
    budget_cap: int | None = None
    deficit_percent: float | None = None
    pessimism_level: str | None = None
    weekly_goal: str | None = None
    charge_rate: float | None = None
    bmr_value: int | None = None
    base_limit: int | None = None
    manual_base_limit: int | None = None
    current_streak: int | None = None
    longest_streak: int | None = None
    last_log_date: dt.date | None = None
    default_food_pessimism: bool | None = None
