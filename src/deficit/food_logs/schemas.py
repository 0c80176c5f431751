"""Request/response schemas for food log endpoints."""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from typing import Any

from deficit.db.models import Confidence, FoodSource
from deficit.schemas import CamelModel, Pagination, UserSummary


class FoodLogResponse(CamelModel):
    id: str
    user_id: str
    calories: int
    base_calories: int | None = None
    description: str
    image_url: str | None = None
    is_greasy: bool
    source: str
    confidence: str | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    items: Any = None
    notes: str | None = None
    date: dt.date
    created_at: datetime


class FoodLogWithUser(FoodLogResponse):
    user: UserSummary


class FoodLogListResponse(CamelModel):
    items: list[FoodLogWithUser]
    pagination: Pagination


class FoodLogUpdate(CamelModel):
    """Editable food log fields. Unknown keys are ignored."""

    calories: int | None = None
    base_calories: int | None = None
    description: str | None = None
    image_url: str | None = None
    is_greasy: bool | None = None
    source: FoodSource | None = None
    confidence: Confidence | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    items: Any = None
    notes: str | None = None
    date: dt.date | None = None
