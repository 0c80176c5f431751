"""Shared response/request schema bases.

The dashboard speaks camelCase JSON; models are declared in snake_case and
aliased on the way out. Requests accept either spelling.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class SuccessResponse(BaseModel):
    success: bool = True


class DeletedCountResponse(BaseModel):
    success: bool = True
    deleted: int


class UserSummary(CamelModel):
    """The user fields embedded in child-row listings."""

    id: str
    email: str
    display_name: str | None = None
