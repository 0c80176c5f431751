"""Response schema for the dashboard aggregates."""

from __future__ import annotations

from deficit.schemas import CamelModel


class UserStats(CamelModel):
    total: int
    free: int
    pro_monthly: int
    pro_annual: int
    lifetime: int
    with_apple_id: int
    today_signups: int


class FoodLogStats(CamelModel):
    total: int
    today: int
    by_source: dict[str, int]


class UsageRecordStats(CamelModel):
    total: int
    total_scans: int


class RefreshTokenStats(CamelModel):
    total: int
    active: int


class NotificationTotals(CamelModel):
    total_logs: int
    total_push_tokens: int
    active_push_tokens: int


class DbStatsResponse(CamelModel):
    users: UserStats
    food_logs: FoodLogStats
    usage_records: UsageRecordStats
    refresh_tokens: RefreshTokenStats
    notifications: NotificationTotals
