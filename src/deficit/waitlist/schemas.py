"""Request/response schemas for the waitlist."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from deficit.schemas import CamelModel


class JoinRequest(BaseModel):
    """Public signup. ``email`` is checked by hand so a bad one is a 400, not a 422."""

    email: str | None = None


class DeleteEntriesRequest(BaseModel):
    ids: list[int | str] | None = None


class WaitlistPage(CamelModel):
    data: list[dict[str, Any]]
    total: int
    page: int
    limit: int
    total_pages: int


class ChartPoint(BaseModel):
    date: str
    count: int


class WaitlistStats(CamelModel):
    total_signups: int
    today_signups: int
    chart_data: list[ChartPoint]
