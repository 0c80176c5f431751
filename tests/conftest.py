"""Shared test fixtures."""

from __future__ import annotations

import json
import re
from collections.abc import AsyncGenerator
from datetime import datetime
from typing import Any

import fakeredis
import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

import deficit.redis_client
from deficit.admin_auth.session import create_session_token
from deficit.config import get_settings
from deficit.database import close_db, get_engine, get_session, init_db
from deficit.db.base import Base
from deficit.main import create_app
from deficit.notifications.backend import BroadcastBackend, get_broadcast_backend
from deficit.waitlist.store import WaitlistStore, get_waitlist_store

ADMIN_EMAIL = "admin@deficit.app"
BACKEND_URL = "https://backend.test"
SUPABASE_URL = "https://waitlist.test"


def parse_in_filter(value: str) -> set[str]:
    """Values of a PostgREST ``in.(...)`` filter, honouring double-quoted entries."""
    inner = value[len("in.(") : -1]
    return {
        re.sub(r"\\(.)", r"\1", quoted) if quoted else bare
        for quoted, bare in re.findall(r'"((?:[^"\\]|\\.)*)"|([^,]+)', inner)
    }


class FakeWaitlistTable:
    """In-memory stand-in for the Supabase PostgREST waitlist table."""

    def __init__(self) -> None:
        self.rows: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None
        self._next_id = 1

    def add(self, email: str, created_at: str, referral_source: str = "") -> dict[str, Any]:
        row = {
            "id": self._next_id,
            "email": email,
            "referral_source": referral_source,
            "user_agent": "",
            "created_at": created_at,
        }
        self._next_id += 1
        self.rows.append(row)
        return row

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"message": "upstream exploded"})

        params = request.url.params
        if request.method == "POST":
            entry = json.loads(request.content)
            if any(r["email"] == entry["email"] for r in self.rows):
                return httpx.Response(409, json={"code": "23505", "message": "duplicate key value"})
            self.add(entry["email"], entry["created_at"], entry.get("referral_source", ""))
            return httpx.Response(201)

        if request.method == "DELETE":
            ids = parse_in_filter(params["id"])
            deleted = [r for r in self.rows if str(r["id"]) in ids]
            self.rows = [r for r in self.rows if str(r["id"]) not in ids]
            return httpx.Response(200, json=deleted)

        rows = self._filtered(params)
        total = len(rows)
        if "order" in params:
            column, direction = params["order"].rsplit(".", 1)
            rows = sorted(rows, key=lambda r: r[column] or "", reverse=direction == "desc")
        offset = int(params.get("offset", "0"))
        limit = int(params.get("limit", str(max(total, 1))))
        page = rows[offset : offset + limit]

        headers = {}
        if "count=exact" in request.headers.get("prefer", ""):
            headers["content-range"] = f"{offset}-{offset + len(page) - 1}/{total}" if page else f"*/{total}"
        select = params.get("select", "*")
        if select != "*":
            columns = select.split(",")
            page = [{c: r[c] for c in columns} for r in page]
        return httpx.Response(200, json=page, headers=headers)

    def _filtered(self, params: httpx.QueryParams) -> list[dict[str, Any]]:
        rows = list(self.rows)
        email = params.get("email")
        if email and email.startswith("eq."):
            rows = [r for r in rows if r["email"] == email[len("eq.") :]]
        elif email and email.startswith("ilike."):
            term = email[len("ilike.") :].strip("*").lower()
            rows = [r for r in rows if term in r["email"].lower()]
        created = params.get("created_at")
        if created and created.startswith("gte."):
            since = datetime.fromisoformat(created[len("gte.") :])
            rows = [r for r in rows if datetime.fromisoformat(r["created_at"]) >= since]
        return rows


class FakeBroadcastApi:
    """Records calls to the backend broadcast endpoints and answers with a canned response."""

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.status_code = 200
        self.payload: Any = {"success": True}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch):
    """Deterministic settings for every test; no .env leakage."""
    monkeypatch.setenv("DEFICIT_ADMIN_JWT_SECRET", "test-jwt-secret")
    monkeypatch.setenv("DEFICIT_BACKEND_API_URL", BACKEND_URL)
    monkeypatch.setenv("DEFICIT_BACKEND_ADMIN_SECRET", "test-admin-secret")
    monkeypatch.setenv("DEFICIT_SUPABASE_URL", SUPABASE_URL)
    monkeypatch.setenv("DEFICIT_SUPABASE_SERVICE_KEY", "test-service-key")
    monkeypatch.setenv("DEFICIT_LOG_FORMAT", "console")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[None, None]:
    """A fresh SQLite database with the full schema."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'deficit.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def redis_client(monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[fakeredis.FakeAsyncRedis, None]:
    rc = fakeredis.FakeAsyncRedis(decode_responses=True)
    monkeypatch.setattr(deficit.redis_client, "_pool", rc)
    yield rc
    await rc.flushall()


@pytest.fixture
def waitlist_table() -> FakeWaitlistTable:
    return FakeWaitlistTable()


@pytest.fixture
def broadcast_api() -> FakeBroadcastApi:
    return FakeBroadcastApi()


@pytest.fixture
def app(database, redis_client, waitlist_table: FakeWaitlistTable, broadcast_api: FakeBroadcastApi) -> FastAPI:
    application = create_app()
    settings = get_settings()
    application.dependency_overrides[get_waitlist_store] = lambda: WaitlistStore(
        settings.supabase_url,
        settings.supabase_service_key,
        transport=httpx.MockTransport(waitlist_table.handler),
    )
    application.dependency_overrides[get_broadcast_backend] = lambda: BroadcastBackend(
        settings.backend_api_url,
        settings.backend_admin_secret,
        transport=httpx.MockTransport(broadcast_api.handler),
    )
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated HTTP client against the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_client(client: AsyncClient) -> AsyncClient:
    """Client holding a valid admin session cookie."""
    client.cookies.set(get_settings().admin_cookie_name, create_session_token("admin-1", ADMIN_EMAIL))
    return client


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for seeding and assertions."""
    async for session in get_session():
        yield session
        break
