"""Waitlist table client.

The waitlist lives in a hosted Supabase table, reached through its PostgREST
endpoint (``{supabase_url}/rest/v1/{table}``) with the service-role key.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

import httpx
import structlog

from deficit.config import get_settings
from deficit.errors import AppError, BadRequest, Duplicate, UpstreamFailure

logger = structlog.get_logger()

SORTABLE_COLUMNS = ("created_at", "email", "referral_source")
_UNIQUE_VIOLATION = "23505"


def _total_from_content_range(header: str | None) -> int:
    """``Content-Range: 0-49/312`` -> 312. ``*/0`` and a missing header -> 0."""
    if not header or "/" not in header:
        return 0
    total = header.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else 0


def _ilike_pattern(term: str) -> str:
    # PostgREST uses * as the LIKE wildcard; strip the characters that would break the filter syntax.
    cleaned = "".join(ch for ch in term if ch not in '*,()"')
    return f"ilike.*{cleaned}*"


def _in_filter(values: Sequence[int | str]) -> str:
    """``in.("1","2")``. Each value is double-quoted so a comma inside one cannot widen the set."""
    quoted = []
    for value in values:
        text = str(value).replace("\\", "\\\\").replace('"', '\\"')
        quoted.append(f'"{text}"')
    return f"in.({','.join(quoted)})"


class WaitlistStore:
    """Reads and writes waitlist rows over PostgREST."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        table: str = "waitlist",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.table = table
        self.timeout = timeout
        self.transport = transport

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    async def _request(
        self,
        method: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
        failure: str,
    ) -> httpx.Response:
        if not self.base_url or not self.service_key:
            msg = "Missing Supabase configuration"
            raise AppError(msg, status_code=500)

        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
        }
        if prefer:
            headers["Prefer"] = prefer
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.request(method, self.table_url, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.error("waitlist_store_unreachable", method=method, error=str(e))
            raise UpstreamFailure(failure) from e

        if response.is_error:
            body = _json_or_empty(response)
            if response.status_code == 409 or body.get("code") == _UNIQUE_VIOLATION:
                msg = "Already on the waitlist"
                raise Duplicate(msg)
            logger.error(
                "waitlist_store_error",
                method=method,
                status=response.status_code,
                error=body.get("message"),
            )
            raise UpstreamFailure(failure)
        return response

    async def find_by_email(self, email: str) -> dict[str, Any] | None:
        response = await self._request(
            "GET",
            params={"select": "id", "email": f"eq.{email}", "limit": "1"},
            failure="Failed to join waitlist",
        )
        rows = response.json()
        return rows[0] if rows else None

    async def insert(self, entry: dict[str, Any]) -> None:
        await self._request("POST", json=entry, prefer="return=minimal", failure="Failed to join waitlist")

    async def list_entries(
        self,
        *,
        offset: int,
        limit: int,
        search: str | None = None,
        sort: str = "created_at",
        ascending: bool = False,
    ) -> tuple[list[dict[str, Any]], int]:
        """One page of entries plus the exact filtered count."""
        if sort not in SORTABLE_COLUMNS:
            msg = f"Cannot sort by {sort}"
            raise BadRequest(msg)
        params = {
            "select": "*",
            "order": f"{sort}.{'asc' if ascending else 'desc'}",
            "offset": str(offset),
            "limit": str(limit),
        }
        if search:
            params["email"] = _ilike_pattern(search)
        response = await self._request("GET", params=params, prefer="count=exact", failure="Failed to fetch waitlist")
        return response.json(), _total_from_content_range(response.headers.get("content-range"))

    async def delete_ids(self, ids: Sequence[int | str]) -> int:
        """Delete the given ids; returns how many rows actually went."""
        response = await self._request(
            "DELETE",
            params={"id": _in_filter(ids)},
            prefer="return=representation",
            failure="Failed to delete entries",
        )
        return len(response.json())

    async def count(self, *, since: datetime | None = None) -> int:
        params = {"select": "id", "limit": "1"}
        if since is not None:
            params["created_at"] = f"gte.{since.isoformat()}"
        response = await self._request("GET", params=params, prefer="count=exact", failure="Failed to fetch stats")
        return _total_from_content_range(response.headers.get("content-range"))

    async def signup_times(self, since: datetime) -> list[str]:
        """``created_at`` of every signup since ``since``, oldest first."""
        response = await self._request(
            "GET",
            params={"select": "created_at", "created_at": f"gte.{since.isoformat()}", "order": "created_at.asc"},
            failure="Failed to fetch stats",
        )
        return [row["created_at"] for row in response.json()]


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def get_waitlist_store() -> WaitlistStore:
    """FastAPI dependency; tests override it with a mock-transport store."""
    settings = get_settings()
    return WaitlistStore(settings.supabase_url, settings.supabase_service_key, settings.waitlist_table)
