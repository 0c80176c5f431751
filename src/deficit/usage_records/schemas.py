"""Request/response schemas for usage record endpoints."""

from __future__ import annotations

import datetime as dt
from datetime import datetime

from deficit.schemas import CamelModel, Pagination, UserSummary


class UsageUserSummary(UserSummary):
    subscription_tier: str


class UsageRecordResponse(CamelModel):
    id: str
    user_id: str
    date: dt.date
    scan_count: int
    last_scan_at: datetime | None = None


class UsageRecordWithUser(UsageRecordResponse):
    user: UsageUserSummary


class UsageRecordListResponse(CamelModel):
    items: list[UsageRecordWithUser]
    pagination: Pagination


class UsageRecordUpdate(CamelModel):
    scan_count: int | None = None
    last_scan_at: datetime | None = None
