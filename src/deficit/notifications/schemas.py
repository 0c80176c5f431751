"""Request/response schemas for broadcast campaigns and delivery logs."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from deficit.db.models import SubscriptionTier
from deficit.schemas import CamelModel, Pagination, UserSummary


class CampaignResponse(CamelModel):
    id: str
    title: str
    notification_title: str
    notification_body: str
    data: dict[str, Any] | None = None
    status: str
    target_tiers: list[str]
    target_platforms: list[str]
    total_recipients: int
    sent_count: int
    failed_count: int
    scheduled_for: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime


class CampaignCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    notification_title: str = Field(min_length=1, max_length=50)
    notification_body: str = Field(min_length=1, max_length=200)
    data: dict[str, Any] | None = None
    target_tiers: list[SubscriptionTier] = Field(default_factory=list)
    target_platforms: list[str] = Field(default_factory=list)
    scheduled_for: datetime | None = None
    created_by: str | None = None


class CampaignUpdate(CamelModel):
    """Mutable campaign fields; omitted keys are left alone."""

    title: str | None = Field(None, min_length=1, max_length=200)
    notification_title: str | None = Field(None, min_length=1, max_length=50)
    notification_body: str | None = Field(None, min_length=1, max_length=200)
    data: dict[str, Any] | None = None
    target_tiers: list[SubscriptionTier] | None = None
    target_platforms: list[str] | None = None
    scheduled_for: datetime | None = None


class CampaignEnvelope(CamelModel):
    campaign: CampaignResponse


class DeliveryStats(CamelModel):
    sent: int
    failed: int


class CampaignDetailResponse(CamelModel):
    campaign: CampaignResponse
    stats: DeliveryStats


class CampaignListResponse(CamelModel):
    items: list[CampaignResponse]
    pagination: Pagination


class MessageResponse(CamelModel):
    message: str


class BroadcastSummary(CamelModel):
    id: str
    title: str


class NotificationLogResponse(CamelModel):
    id: str
    user_id: str
    broadcast_id: str | None = None
    type: str
    title: str
    body: str
    data: dict[str, Any] | None = None
    sent_at: datetime | None = None
    failed_at: datetime | None = None
    failure_reason: str | None = None
    created_at: datetime
    user: UserSummary


class NotificationLogWithBroadcast(NotificationLogResponse):
    broadcast: BroadcastSummary | None = None


class CampaignLogListResponse(CamelModel):
    items: list[NotificationLogResponse]
    pagination: Pagination


class NotificationLogListResponse(CamelModel):
    items: list[NotificationLogWithBroadcast]
    pagination: Pagination


class NotificationStatsResponse(CamelModel):
    total_campaigns: int
    active_campaigns: int
    total_notifications_sent: int
    notifications_sent_today: int
    notifications_sent_this_week: int
    total_push_tokens: int
    active_push_tokens: int
    users_with_notifications_enabled: int
