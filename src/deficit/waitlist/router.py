"""Waitlist endpoints: the public signup and the admin listing."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, Request

from deficit.admin_auth.guard import require_admin
from deficit.pagination import MAX_LIMIT, total_pages
from deficit.schemas import DeletedCountResponse, SuccessResponse
from deficit.waitlist.schemas import DeleteEntriesRequest, JoinRequest, WaitlistPage, WaitlistStats
from deficit.waitlist.service import delete_entries, join_waitlist, waitlist_stats
from deficit.waitlist.store import WaitlistStore, get_waitlist_store

public_router = APIRouter(prefix="/api", tags=["Waitlist"])
admin_router = APIRouter(prefix="/api/admin", tags=["Admin: Waitlist"], dependencies=[Depends(require_admin)])

SortColumn = Literal["created_at", "email", "referral_source"]


@public_router.post("/waitlist", response_model=SuccessResponse)
@public_router.post("/public/waitlist", response_model=SuccessResponse, include_in_schema=False)
async def join_waitlist_endpoint(
    body: JoinRequest,
    request: Request,
    store: WaitlistStore = Depends(get_waitlist_store),
):
    """Join the waitlist (unauthenticated)."""
    await join_waitlist(
        store,
        body.email,
        referer=request.headers.get("referer", ""),
        user_agent=request.headers.get("user-agent", ""),
    )
    return SuccessResponse()


@admin_router.get("/waitlist", response_model=WaitlistPage)
async def list_waitlist_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=MAX_LIMIT),
    search: str | None = Query(None),
    sort: SortColumn = Query("created_at"),
    order: Literal["asc", "desc"] = Query("desc"),
    store: WaitlistStore = Depends(get_waitlist_store),
):
    rows, total = await store.list_entries(
        offset=(page - 1) * limit,
        limit=limit,
        search=search,
        sort=sort,
        ascending=order == "asc",
    )
    return WaitlistPage(data=rows, total=total, page=page, limit=limit, total_pages=total_pages(total, limit))


@admin_router.delete("/waitlist", response_model=DeletedCountResponse)
async def delete_waitlist_endpoint(
    body: DeleteEntriesRequest,
    store: WaitlistStore = Depends(get_waitlist_store),
):
    """Bulk delete by id."""
    deleted = await delete_entries(store, body.ids)
    return DeletedCountResponse(deleted=deleted)


@admin_router.get("/stats", response_model=WaitlistStats)
async def waitlist_stats_endpoint(store: WaitlistStore = Depends(get_waitlist_store)):
    """Signup totals and a 30-day daily series for the dashboard chart."""
    return WaitlistStats(**await waitlist_stats(store))
