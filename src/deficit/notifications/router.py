"""Admin broadcast campaign endpoints."""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.admin_auth.guard import require_admin
from deficit.admin_auth.session import AdminIdentity
from deficit.database import get_session
from deficit.db.models import CampaignStatus
from deficit.notifications.backend import BroadcastBackend, get_broadcast_backend
from deficit.notifications.schemas import (
    CampaignCreate,
    CampaignDetailResponse,
    CampaignEnvelope,
    CampaignListResponse,
    CampaignLogListResponse,
    CampaignResponse,
    CampaignUpdate,
    DeliveryStats,
    MessageResponse,
    NotificationLogListResponse,
    NotificationLogResponse,
    NotificationLogWithBroadcast,
    NotificationStatsResponse,
)
from deficit.notifications.service import (
    cancel_campaign,
    create_campaign,
    delete_campaign,
    get_campaign_with_stats,
    list_campaign_logs,
    list_campaigns,
    list_logs,
    notification_stats,
    send_campaign,
    update_campaign,
)
from deficit.pagination import PageParams, build_pagination, log_page_params, page_params

router = APIRouter(
    prefix="/api/admin/notifications",
    tags=["Admin: Notifications"],
    dependencies=[Depends(require_admin)],
)

DeliveryStatus = Literal["sent", "failed"]


def _proxy_result(campaign: Any, payload: dict[str, Any]) -> dict[str, Any]:
    """Backend payload with the local campaign state laid over it."""
    return {**payload, "campaign": CampaignResponse.model_validate(campaign).model_dump(mode="json", by_alias=True)}


# ── Collection ──


@router.get("", response_model=CampaignListResponse)
async def list_campaigns_endpoint(
    params: PageParams = Depends(page_params),
    status: CampaignStatus | None = Query(None),
    db: AsyncSession = Depends(get_session),
):
    campaigns, total = await list_campaigns(db, params, status=status)
    return CampaignListResponse(
        items=[CampaignResponse.model_validate(c) for c in campaigns],
        pagination=build_pagination(params, total),
    )


@router.post("", response_model=CampaignEnvelope, status_code=201)
async def create_campaign_endpoint(
    body: CampaignCreate,
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """Create a campaign. Scheduled campaigns start QUEUED, others DRAFT."""
    campaign = await create_campaign(db, body.model_dump(), created_by=admin.email)
    await db.commit()
    return CampaignEnvelope(campaign=CampaignResponse.model_validate(campaign))


@router.get("/logs", response_model=NotificationLogListResponse)
async def list_logs_endpoint(
    params: PageParams = Depends(log_page_params),
    type: str | None = Query(None),
    status: DeliveryStatus | None = Query(None),
    user_id: str | None = Query(None, alias="userId"),
    search: str | None = Query(None),
    db: AsyncSession = Depends(get_session),
):
    logs, total = await list_logs(db, params, type=type, status=status, user_id=user_id, search=search)
    return NotificationLogListResponse(
        items=[NotificationLogWithBroadcast.model_validate(log) for log in logs],
        pagination=build_pagination(params, total),
    )


@router.get("/stats", response_model=NotificationStatsResponse)
async def notification_stats_endpoint(db: AsyncSession = Depends(get_session)):
    return NotificationStatsResponse(**await notification_stats(db))


# ── Single campaign ──


@router.get("/{campaign_id}", response_model=CampaignDetailResponse)
async def get_campaign_endpoint(campaign_id: str, db: AsyncSession = Depends(get_session)):
    campaign, stats = await get_campaign_with_stats(db, campaign_id)
    return CampaignDetailResponse(
        campaign=CampaignResponse.model_validate(campaign),
        stats=DeliveryStats(**stats),
    )


@router.patch("/{campaign_id}", response_model=CampaignEnvelope)
async def update_campaign_endpoint(
    campaign_id: str,
    body: CampaignUpdate,
    db: AsyncSession = Depends(get_session),
):
    campaign = await update_campaign(db, campaign_id, body.model_dump(exclude_unset=True))
    await db.commit()
    return CampaignEnvelope(campaign=CampaignResponse.model_validate(campaign))


@router.delete("/{campaign_id}", response_model=MessageResponse)
async def delete_campaign_endpoint(campaign_id: str, db: AsyncSession = Depends(get_session)):
    await delete_campaign(db, campaign_id)
    await db.commit()
    return MessageResponse(message="Campaign deleted")


@router.post("/{campaign_id}/send")
async def send_campaign_endpoint(
    campaign_id: str,
    db: AsyncSession = Depends(get_session),
    backend: BroadcastBackend = Depends(get_broadcast_backend),
):
    """Hand the campaign to the delivery backend."""
    campaign, payload = await send_campaign(db, backend, campaign_id)
    await db.commit()
    return _proxy_result(campaign, payload)


@router.post("/{campaign_id}/cancel")
async def cancel_campaign_endpoint(
    campaign_id: str,
    db: AsyncSession = Depends(get_session),
    backend: BroadcastBackend = Depends(get_broadcast_backend),
):
    campaign, payload = await cancel_campaign(db, backend, campaign_id)
    await db.commit()
    return _proxy_result(campaign, payload)


@router.get("/{campaign_id}/logs", response_model=CampaignLogListResponse)
async def list_campaign_logs_endpoint(
    campaign_id: str,
    params: PageParams = Depends(log_page_params),
    status: DeliveryStatus | None = Query(None),
    db: AsyncSession = Depends(get_session),
):
    logs, total = await list_campaign_logs(db, campaign_id, params, status=status)
    return CampaignLogListResponse(
        items=[NotificationLogResponse.model_validate(log) for log in logs],
        pagination=build_pagination(params, total),
    )
