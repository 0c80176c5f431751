"""Small helpers shared by the admin resource services."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.db.base import Base
from deficit.errors import BadRequest, NotFound

ModelT = TypeVar("ModelT", bound=Base)


async def get_or_404(db: AsyncSession, model: type[ModelT], row_id: str, label: str, *options: Any) -> ModelT:
    """Fetch a row by primary key or raise NotFound("<label> not found")."""
    query = select(model).where(model.id == row_id)  # type: ignore[attr-defined]
    if options:
        query = query.options(*options)
    row = (await db.execute(query)).scalar_one_or_none()
    if row is None:
        msg = f"{label} not found"
        raise NotFound(msg)
    return row


def apply_updates(row: Base, fields: dict[str, Any], allowed: Iterable[str]) -> list[str]:
    """Copy allow-listed ``fields`` onto ``row``; returns the names that were applied.

    Anything outside ``allowed`` is dropped silently. Null is accepted only for
    nullable columns.
    """
    columns = row.__table__.columns  # type: ignore[attr-defined]
    applied = []
    for name in allowed:
        if name not in fields:
            continue
        value = fields[name]
        if value is None and not columns[name].nullable:
            msg = f"{name} cannot be null"
            raise BadRequest(msg)
        setattr(row, name, value)
        applied.append(name)
    return applied


async def delete_or_404(db: AsyncSession, model: type[Base], row_id: str, label: str) -> None:
    """Delete one row by id; NotFound if nothing matched. Cascades are left to the database."""
    result = await db.execute(delete(model).where(model.id == row_id))  # type: ignore[attr-defined]
    if result.rowcount == 0:  # type: ignore[attr-defined]
        msg = f"{label} not found"
        raise NotFound(msg)


async def count_by_user(db: AsyncSession, model: type[Base], user_ids: list[str]) -> dict[str, int]:
    """Exact child-row counts per user for a page of users."""
    if not user_ids:
        return {}
    user_col = model.user_id  # type: ignore[attr-defined]
    result = await db.execute(
        select(user_col, func.count()).where(user_col.in_(user_ids)).group_by(user_col)
    )
    return {user_id: int(count) for user_id, count in result.all()}
