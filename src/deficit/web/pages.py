"""Server-rendered pages: the public site and the admin dashboard.

Admin pages read through the same service functions as the JSON API. Edits,
deletes and campaign actions are ``fetch`` calls from ``static/admin.js``
back to ``/api/admin/*``.
"""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.admin_auth.guard import read_session, require_admin
from deficit.admin_auth.session import AdminIdentity
from deficit.dashboard.service import get_db_stats
from deficit.database import get_session
from deficit.db.models import CampaignStatus, FoodSource, SubscriptionStatus, SubscriptionTier, as_utc, utcnow
from deficit.errors import AppError
from deficit.food_logs.service import get_food_log, list_food_logs
from deficit.notifications.service import (
    get_campaign_with_stats,
    list_campaign_logs,
    list_campaigns,
    notification_stats,
)
from deficit.pagination import PageParams, build_pagination, log_page_params, page_params, total_pages
from deficit.pricing.middleware import request_country
from deficit.pricing.table import pricing_payload
from deficit.refresh_tokens.service import TokenStatus, list_refresh_tokens
from deficit.usage_records.service import list_usage_records
from deficit.users.service import get_user_detail, list_users
from deficit.waitlist.service import waitlist_stats
from deficit.waitlist.store import SORTABLE_COLUMNS, WaitlistStore, get_waitlist_store

logger = structlog.get_logger()

TEMPLATES_DIR = Path(__file__).parent / "templates"
STATIC_DIR = Path(__file__).parent / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def format_when(value: datetime | dt.date | None) -> str:
    if value is None:
        return "-"
    if isinstance(value, datetime):
        return as_utc(value).strftime("%Y-%m-%d %H:%M UTC")
    return value.isoformat()


def is_expired(value: datetime) -> bool:
    return as_utc(value) <= utcnow()


templates.env.filters["when"] = format_when
templates.env.tests["expired"] = is_expired

public_router = APIRouter(include_in_schema=False)
admin_router = APIRouter(prefix="/admin", include_in_schema=False)


def _render(request: Request, name: str, **context: Any) -> HTMLResponse:
    return templates.TemplateResponse(request, name, context)


# ── Public site ──


@public_router.get("/", response_class=HTMLResponse)
async def landing_page(request: Request):
    """Landing page with the waitlist form and localized prices."""
    return _render(request, "landing.html", pricing=pricing_payload(request_country(request)))


@public_router.get("/privacy", response_class=HTMLResponse)
async def privacy_page(request: Request):
    return _render(request, "privacy.html")


@public_router.get("/terms", response_class=HTMLResponse)
async def terms_page(request: Request):
    return _render(request, "terms.html")


@public_router.get("/support", response_class=HTMLResponse)
async def support_page(request: Request):
    return _render(request, "support.html")


# ── Admin ──


@admin_router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request) -> Response:
    if read_session(request) is not None:
        return RedirectResponse("/admin", status_code=303)
    return _render(request, "admin/login.html")


@admin_router.get("", response_class=HTMLResponse)
async def dashboard_page(
    request: Request,
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    store: WaitlistStore = Depends(get_waitlist_store),
):
    stats = await get_db_stats(db)
    try:
        signups = await waitlist_stats(store)
    except AppError as e:
        logger.warning("dashboard_waitlist_unavailable", error=e.message)
        signups = None
    return _render(request, "admin/dashboard.html", admin=admin, stats=stats, signups=signups)


@admin_router.get("/users", response_class=HTMLResponse)
async def users_page(
    request: Request,
    params: PageParams = Depends(page_params),
    search: str | None = Query(None),
    tier: SubscriptionTier | None = Query(None),
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    rows, total = await list_users(db, params, search=search, tier=tier)
    return _render(
        request,
        "admin/users.html",
        admin=admin,
        rows=rows,
        pagination=build_pagination(params, total),
        search=search or "",
        tier=tier or "",
        tiers=list(SubscriptionTier),
    )


@admin_router.get("/users/{user_id}", response_class=HTMLResponse)
async def user_detail_page(
    request: Request,
    user_id: str,
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    detail = await get_user_detail(db, user_id)
    return _render(
        request,
        "admin/user_detail.html",
        admin=admin,
        detail=detail,
        user=detail.user,
        tiers=list(SubscriptionTier),
        statuses=list(SubscriptionStatus),
    )


@admin_router.get("/food-logs", response_class=HTMLResponse)
async def food_logs_page(
    request: Request,
    params: PageParams = Depends(page_params),
    search: str | None = Query(None),
    user_id: str | None = Query(None, alias="userId"),
    source: FoodSource | None = Query(None),
    date: dt.date | None = Query(None),
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    logs, total = await list_food_logs(db, params, search=search, user_id=user_id, source=source, date=date)
    return _render(
        request,
        "admin/food_logs.html",
        admin=admin,
        logs=logs,
        pagination=build_pagination(params, total),
        search=search or "",
        user_id=user_id or "",
        source=source or "",
        date=date.isoformat() if date else "",
        sources=list(FoodSource),
    )


@admin_router.get("/food-logs/{log_id}", response_class=HTMLResponse)
async def food_log_detail_page(
    request: Request,
    log_id: str,
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    food_log = await get_food_log(db, log_id)
    return _render(request, "admin/food_log_detail.html", admin=admin, log=food_log, sources=list(FoodSource))


@admin_router.get("/usage-records", response_class=HTMLResponse)
async def usage_records_page(
    request: Request,
    params: PageParams = Depends(page_params),
    user_id: str | None = Query(None, alias="userId"),
    date: dt.date | None = Query(None),
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    records, total = await list_usage_records(db, params, user_id=user_id, date=date)
    return _render(
        request,
        "admin/usage_records.html",
        admin=admin,
        records=records,
        pagination=build_pagination(params, total),
        user_id=user_id or "",
        date=date.isoformat() if date else "",
    )


@admin_router.get("/refresh-tokens", response_class=HTMLResponse)
async def refresh_tokens_page(
    request: Request,
    params: PageParams = Depends(page_params),
    user_id: str | None = Query(None, alias="userId"),
    status: TokenStatus | None = Query(None),
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    tokens, total = await list_refresh_tokens(db, params, user_id=user_id, status=status)
    return _render(
        request,
        "admin/refresh_tokens.html",
        admin=admin,
        tokens=tokens,
        pagination=build_pagination(params, total),
        user_id=user_id or "",
        status=status or "",
    )


@admin_router.get("/notifications", response_class=HTMLResponse)
async def notifications_page(
    request: Request,
    params: PageParams = Depends(page_params),
    status: CampaignStatus | None = Query(None),
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    campaigns, total = await list_campaigns(db, params, status=status)
    return _render(
        request,
        "admin/notifications.html",
        admin=admin,
        campaigns=campaigns,
        pagination=build_pagination(params, total),
        stats=await notification_stats(db),
        status=status or "",
        statuses=list(CampaignStatus),
        tiers=list(SubscriptionTier),
    )


@admin_router.get("/notifications/{campaign_id}", response_class=HTMLResponse)
async def campaign_detail_page(
    request: Request,
    campaign_id: str,
    params: PageParams = Depends(log_page_params),
    admin: AdminIdentity = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    campaign, stats = await get_campaign_with_stats(db, campaign_id)
    logs, total = await list_campaign_logs(db, campaign_id, params)
    return _render(
        request,
        "admin/campaign_detail.html",
        admin=admin,
        campaign=campaign,
        stats=stats,
        logs=logs,
        pagination=build_pagination(params, total),
    )


@admin_router.get("/waitlist", response_class=HTMLResponse)
async def waitlist_page(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    search: str | None = Query(None),
    sort: str = Query("created_at"),
    order: str = Query("desc"),
    admin: AdminIdentity = Depends(require_admin),
    store: WaitlistStore = Depends(get_waitlist_store),
):
    rows, total = await store.list_entries(
        offset=(page - 1) * limit,
        limit=limit,
        search=search,
        sort=sort if sort in SORTABLE_COLUMNS else "created_at",
        ascending=order == "asc",
    )
    return _render(
        request,
        "admin/waitlist.html",
        admin=admin,
        rows=rows,
        pagination={"page": page, "limit": limit, "total": total, "total_pages": total_pages(total, limit)},
        search=search or "",
        sort=sort,
        order=order,
    )
