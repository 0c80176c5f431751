"""Waitlist signup, admin listing and signup statistics."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

import structlog

from deficit.db.models import as_utc, start_of_day, utcnow
from deficit.errors import BadRequest, Duplicate
from deficit.waitlist.store import WaitlistStore

logger = structlog.get_logger()

CHART_DAYS = 30


async def join_waitlist(
    store: WaitlistStore,
    email: str | None,
    *,
    referer: str = "",
    user_agent: str = "",
    now: datetime | None = None,
) -> None:
    """Add an email to the waitlist. Duplicates (case-insensitive) are rejected."""
    if not email or "@" not in email:
        msg = "Valid email required"
        raise BadRequest(msg)
    email = email.strip().lower()

    if await store.find_by_email(email) is not None:
        msg = "Already on the waitlist"
        raise Duplicate(msg)

    await store.insert(
        {
            "email": email,
            "referral_source": referer,
            "user_agent": user_agent,
            "created_at": (now or utcnow()).isoformat(),
        }
    )
    logger.info("waitlist_joined", referral_source=referer or None)


async def delete_entries(store: WaitlistStore, ids: Sequence[int | str] | None) -> int:
    if not ids:
        msg = "IDs required"
        raise BadRequest(msg)
    deleted = await store.delete_ids(ids)
    logger.info("waitlist_entries_deleted", requested=len(ids), deleted=deleted)
    return deleted


def _parse_timestamp(value: str) -> datetime:
    # PostgREST emits "+00:00" offsets; older rows may carry a trailing "Z".
    return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00"))).astimezone(timezone.utc)


def daily_counts(timestamps: Sequence[str], now: datetime, days: int = CHART_DAYS) -> list[dict[str, object]]:
    """Signups per UTC day for the ``days`` days ending today, zero-filled, oldest first."""
    counts = Counter(_parse_timestamp(ts).date().isoformat() for ts in timestamps)
    today = start_of_day(now).date()
    chart = []
    for offset in range(days - 1, -1, -1):
        day = (today - timedelta(days=offset)).isoformat()
        chart.append({"date": day, "count": counts.get(day, 0)})
    return chart


async def waitlist_stats(store: WaitlistStore, *, now: datetime | None = None) -> dict[str, object]:
    now = now or utcnow()
    today = start_of_day(now)
    window_start = today - timedelta(days=CHART_DAYS - 1)
    return {
        "total_signups": await store.count(),
        "today_signups": await store.count(since=today),
        "chart_data": daily_counts(await store.signup_times(window_start), now),
    }
