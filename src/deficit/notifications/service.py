"""Broadcast campaign management.

Campaign rows are created and edited here; delivery itself is the backend's
job. Every status change is checked against ``lifecycle.TRANSITIONS`` before
anything is written or proxied.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from deficit.crud import apply_updates, get_or_404
from deficit.db.models import (
    BroadcastCampaign,
    CampaignStatus,
    NotificationLog,
    PushToken,
    User,
    UserNotificationPreference,
    as_utc,
    start_of_day,
    utcnow,
)
from deficit.errors import BadRequest
from deficit.notifications.backend import BroadcastBackend
from deficit.notifications.lifecycle import (
    Action,
    initial_status,
    is_reachable,
    move_to,
    reported_status,
    require_transition,
)
from deficit.pagination import PageParams, paginate

logger = structlog.get_logger()

EDITABLE_FIELDS = (
    "title",
    "notification_title",
    "notification_body",
    "data",
    "target_tiers",
    "target_platforms",
    "scheduled_for",
)

SENT = "sent"
FAILED = "failed"


def _check_schedule(scheduled_for: datetime | None, now: datetime) -> None:
    if scheduled_for is not None and as_utc(scheduled_for) <= now:
        msg = "scheduledFor must be in the future"
        raise BadRequest(msg)


def _as_strings(values: list[Any] | None) -> list[str] | None:
    return None if values is None else [str(v) for v in values]


def _delivery_filter(query: Any, status: str | None) -> Any:
    if status == SENT:
        return query.where(NotificationLog.sent_at.is_not(None))
    if status == FAILED:
        return query.where(NotificationLog.failed_at.is_not(None))
    return query


async def _count(db: AsyncSession, query: Any) -> int:
    return int((await db.execute(query)).scalar_one())


# ── Campaign CRUD ──


async def create_campaign(
    db: AsyncSession,
    fields: dict[str, Any],
    *,
    created_by: str | None = None,
    now: datetime | None = None,
) -> BroadcastCampaign:
    """Create a campaign: QUEUED when scheduled in the future, DRAFT otherwise."""
    now = now or utcnow()
    scheduled_for = fields.get("scheduled_for")
    _check_schedule(scheduled_for, now)

    campaign = BroadcastCampaign(
        title=fields["title"],
        notification_title=fields["notification_title"],
        notification_body=fields["notification_body"],
        data=fields.get("data"),
        target_tiers=_as_strings(fields.get("target_tiers")) or [],
        target_platforms=_as_strings(fields.get("target_platforms")) or [],
        scheduled_for=scheduled_for,
        created_by=fields.get("created_by") or created_by,
        status=initial_status(scheduled_for),
    )
    db.add(campaign)
    await db.flush()
    logger.info("campaign_created", campaign_id=campaign.id, status=campaign.status)
    return campaign


async def update_campaign(
    db: AsyncSession,
    campaign_id: str,
    fields: dict[str, Any],
    *,
    now: datetime | None = None,
) -> BroadcastCampaign:
    """Edit copy, targeting or schedule of a DRAFT/QUEUED campaign. Status is unchanged."""
    campaign = await get_or_404(db, BroadcastCampaign, campaign_id, "Campaign")
    require_transition(campaign.status, Action.EDIT)
    _check_schedule(fields.get("scheduled_for"), now or utcnow())

    for key in ("target_tiers", "target_platforms"):
        if key in fields:
            fields = {**fields, key: _as_strings(fields[key])}
    applied = apply_updates(campaign, fields, EDITABLE_FIELDS)
    await db.flush()
    logger.info("campaign_updated", campaign_id=campaign_id, fields=applied)
    return campaign


async def delete_campaign(db: AsyncSession, campaign_id: str) -> None:
    """Delete a DRAFT campaign. Anything that was ever queued is kept for audit."""
    campaign = await get_or_404(db, BroadcastCampaign, campaign_id, "Campaign")
    require_transition(campaign.status, Action.DELETE)
    await db.delete(campaign)
    await db.flush()
    logger.info("campaign_deleted", campaign_id=campaign_id)


async def get_campaign_with_stats(db: AsyncSession, campaign_id: str) -> tuple[BroadcastCampaign, dict[str, int]]:
    """The campaign plus sent/failed counts taken from its delivery logs."""
    campaign = await get_or_404(db, BroadcastCampaign, campaign_id, "Campaign")
    base = select(func.count()).select_from(NotificationLog).where(NotificationLog.broadcast_id == campaign_id)
    stats = {
        "sent": await _count(db, _delivery_filter(base, SENT)),
        "failed": await _count(db, _delivery_filter(base, FAILED)),
    }
    return campaign, stats


async def list_campaigns(
    db: AsyncSession,
    params: PageParams,
    *,
    status: str | None = None,
) -> tuple[list[BroadcastCampaign], int]:
    query = select(BroadcastCampaign)
    if status:
        query = query.where(BroadcastCampaign.status == status)
    query = query.order_by(BroadcastCampaign.created_at.desc(), BroadcastCampaign.id)
    return await paginate(db, query, params)


# ── Transitions proxied to the backend ──


def _adopt_reported_status(campaign: BroadcastCampaign, payload: dict[str, Any], now: datetime) -> None:
    reported = reported_status(payload)
    if reported is None or reported == campaign.status:
        return
    if is_reachable(campaign.status, reported):
        move_to(campaign, reported, now)
    else:
        logger.warning(
            "campaign_status_ignored",
            campaign_id=campaign.id,
            local_status=campaign.status,
            reported_status=reported,
        )


async def send_campaign(
    db: AsyncSession,
    backend: BroadcastBackend,
    campaign_id: str,
    *,
    now: datetime | None = None,
) -> tuple[BroadcastCampaign, dict[str, Any]]:
    """Ask the backend to start delivery, then record the transition locally.

    Backend errors propagate unchanged and leave the campaign untouched.
    """
    campaign = await get_or_404(db, BroadcastCampaign, campaign_id, "Campaign")
    next_status = require_transition(campaign.status, Action.SEND)
    payload = await backend.send(campaign_id)

    now = now or utcnow()
    if next_status is not None:
        move_to(campaign, next_status, now)
    _adopt_reported_status(campaign, payload, now)
    await db.flush()
    logger.info("campaign_send_proxied", campaign_id=campaign_id, status=campaign.status)
    return campaign, payload


async def cancel_campaign(
    db: AsyncSession,
    backend: BroadcastBackend,
    campaign_id: str,
    *,
    now: datetime | None = None,
) -> tuple[BroadcastCampaign, dict[str, Any]]:
    campaign = await get_or_404(db, BroadcastCampaign, campaign_id, "Campaign")
    next_status = require_transition(campaign.status, Action.CANCEL)
    payload = await backend.cancel(campaign_id)

    if next_status is not None:
        move_to(campaign, next_status, now or utcnow())
    await db.flush()
    logger.info("campaign_cancel_proxied", campaign_id=campaign_id, status=campaign.status)
    return campaign, payload


# ── Delivery logs ──


async def list_campaign_logs(
    db: AsyncSession,
    campaign_id: str,
    params: PageParams,
    *,
    status: str | None = None,
) -> tuple[list[NotificationLog], int]:
    await get_or_404(db, BroadcastCampaign, campaign_id, "Campaign")
    query = select(NotificationLog).where(NotificationLog.broadcast_id == campaign_id)
    query = _delivery_filter(query, status).order_by(NotificationLog.created_at.desc(), NotificationLog.id)
    return await paginate(db, query, params, selectinload(NotificationLog.user))


async def list_logs(
    db: AsyncSession,
    params: PageParams,
    *,
    type: str | None = None,
    status: str | None = None,
    user_id: str | None = None,
    search: str | None = None,
) -> tuple[list[NotificationLog], int]:
    """All delivery logs, searchable over title, body and recipient email."""
    query = select(NotificationLog)
    if type:
        query = query.where(NotificationLog.type == type)
    query = _delivery_filter(query, status)
    if user_id:
        query = query.where(NotificationLog.user_id == user_id)
    if search:
        query = query.where(
            or_(
                NotificationLog.title.icontains(search, autoescape=True),
                NotificationLog.body.icontains(search, autoescape=True),
                NotificationLog.user_id.in_(
                    select(User.id).where(User.email.icontains(search, autoescape=True))
                ),
            )
        )
    query = query.order_by(NotificationLog.created_at.desc(), NotificationLog.id)
    return await paginate(
        db,
        query,
        params,
        selectinload(NotificationLog.user),
        selectinload(NotificationLog.broadcast),
    )


async def notification_stats(db: AsyncSession, *, now: datetime | None = None) -> dict[str, int]:
    now = now or utcnow()
    today = start_of_day(now)
    week_ago = today - timedelta(days=7)

    def count(model: Any) -> Any:
        return select(func.count()).select_from(model)

    return {
        "total_campaigns": await _count(db, count(BroadcastCampaign)),
        "active_campaigns": await _count(
            db, count(BroadcastCampaign).where(BroadcastCampaign.status == CampaignStatus.PROCESSING)
        ),
        "total_notifications_sent": await _count(db, count(NotificationLog).where(NotificationLog.sent_at.is_not(None))),
        "notifications_sent_today": await _count(db, count(NotificationLog).where(NotificationLog.sent_at >= today)),
        "notifications_sent_this_week": await _count(
            db, count(NotificationLog).where(NotificationLog.sent_at >= week_ago)
        ),
        "total_push_tokens": await _count(db, count(PushToken)),
        "active_push_tokens": await _count(db, count(PushToken).where(PushToken.is_active.is_(True))),
        "users_with_notifications_enabled": await _count(
            db,
            count(UserNotificationPreference).where(UserNotificationPreference.notifications_enabled.is_(True)),
        ),
    }
