"""Offset pagination for admin list endpoints.

Admin tables are small enough that OFFSET/LIMIT with an exact COUNT is fine;
every list response carries ``{page, limit, total, totalPages}``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from fastapi import Query
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.schemas import Pagination

MAX_LIMIT = 100


@dataclass(frozen=True)
class PageParams:
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_LIMIT),
) -> PageParams:
    """FastAPI dependency for ``?page=&limit=`` with the default page size."""
    return PageParams(page=page, limit=limit)


def log_page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=MAX_LIMIT),
) -> PageParams:
    """Delivery-log and waitlist listings default to 50 rows per page."""
    return PageParams(page=page, limit=limit)


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def build_pagination(params: PageParams, total: int) -> Pagination:
    return Pagination(
        page=params.page,
        limit=params.limit,
        total=total,
        total_pages=total_pages(total, params.limit),
    )


async def paginate(
    db: AsyncSession,
    query: Select[Any],
    params: PageParams,
    *options: Any,
) -> tuple[list[Any], int]:
    """Run ``query`` for one page and count the full filtered set.

    ``query`` must already carry its filters and ORDER BY. Loader ``options``
    apply to the page fetch only, never to the count. Returns ``(rows, total)``.
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar_one()

    if options:
        query = query.options(*options)
    result = await db.execute(query.offset(params.offset).limit(params.limit))
    return list(result.scalars().all()), int(total)
