"""Request/response schemas for refresh token endpoints."""

from __future__ import annotations

from datetime import datetime

from deficit.schemas import CamelModel, Pagination, UserSummary


class RefreshTokenResponse(CamelModel):
    id: str
    user_id: str
    token: str
    expires_at: datetime
    created_at: datetime


class RefreshTokenWithUser(RefreshTokenResponse):
    user: UserSummary


class RefreshTokenListResponse(CamelModel):
    items: list[RefreshTokenWithUser]
    pagination: Pagination
