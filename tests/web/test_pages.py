"""Tests for the server-rendered public site and admin pages."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from urllib.parse import unquote

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.conftest import FakeWaitlistTable
from tests.factories import (
    create_campaign,
    create_food_log,
    create_notification_log,
    create_refresh_token,
    create_usage_record,
    create_user,
)


def _pricing_cookie(response) -> dict:
    for header in response.headers.get_list("set-cookie"):
        if header.startswith("pricing="):
            return json.loads(unquote(header.split(";", 1)[0][len("pricing=") :]))
    raise AssertionError("no pricing cookie set")


class TestLandingPage:
    async def test_default_country_pricing(self, client: AsyncClient):
        response = await client.get("/")
        assert response.status_code == 200
        assert "$4.99" in response.text
        assert _pricing_cookie(response) == {
            "country": "US",
            "currency": "USD",
            "symbol": "$",
            "annual": 34.99,
            "lifetime": 99.99,
            "monthly": 4.99,
        }

    async def test_country_from_edge_header(self, client: AsyncClient):
        response = await client.get("/", headers={"x-vercel-ip-country": "gb"})
        assert "£3.99" in response.text
        cookie = _pricing_cookie(response)
        assert cookie["country"] == "GB"
        assert cookie["currency"] == "GBP"

    async def test_cookie_is_readable_by_scripts(self, client: AsyncClient):
        response = await client.get("/")
        header = next(h for h in response.headers.get_list("set-cookie") if h.startswith("pricing="))
        assert "HttpOnly" not in header
        assert "Max-Age=86400" in header

    async def test_cookie_only_on_landing(self, client: AsyncClient):
        response = await client.get("/privacy")
        assert not any(h.startswith("pricing=") for h in response.headers.get_list("set-cookie"))

    @pytest.mark.parametrize("path", ["/privacy", "/terms", "/support"])
    async def test_static_pages(self, client: AsyncClient, path: str):
        response = await client.get(path)
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]

    async def test_admin_script_served(self, client: AsyncClient):
        response = await client.get("/static/admin.js")
        assert response.status_code == 200


class TestAdminPages:
    async def test_dashboard(self, admin_client: AsyncClient, db_session: AsyncSession, waitlist_table: FakeWaitlistTable):
        await create_user(db_session)
        waitlist_table.add("early@example.com", datetime.now(timezone.utc).isoformat())

        response = await admin_client.get("/admin")
        assert response.status_code == 200
        assert "Dashboard" in response.text
        assert "admin@deficit.app" in response.text
        assert "Waitlist store unavailable" not in response.text

    async def test_dashboard_survives_waitlist_outage(
        self, admin_client: AsyncClient, waitlist_table: FakeWaitlistTable
    ):
        waitlist_table.fail_with = 500
        response = await admin_client.get("/admin")
        assert response.status_code == 200
        assert "Waitlist store unavailable" in response.text

    async def test_users_and_detail(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session, email="page-user@example.com")
        await create_food_log(db_session, user, description="Ramen")
        await create_usage_record(db_session, user)
        await create_refresh_token(db_session, user, expires_in=timedelta(days=1))

        listing = await admin_client.get("/admin/users", params={"search": "page-user"})
        assert listing.status_code == 200
        assert "page-user@example.com" in listing.text

        detail = await admin_client.get(f"/admin/users/{user.id}")
        assert detail.status_code == 200
        assert "Ramen" in detail.text

    async def test_unknown_user_page(self, admin_client: AsyncClient):
        response = await admin_client.get("/admin/users/missing")
        assert response.status_code == 404

    async def test_resource_pages(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)
        log = await create_food_log(db_session, user, description="Burrito bowl")
        await create_usage_record(db_session, user)
        await create_refresh_token(db_session, user, expires_in=-timedelta(days=1))

        for path in ("/admin/food-logs", f"/admin/food-logs/{log.id}", "/admin/usage-records", "/admin/refresh-tokens"):
            response = await admin_client.get(path)
            assert response.status_code == 200, path
        assert "Burrito bowl" in (await admin_client.get("/admin/food-logs")).text

    async def test_notification_pages(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)
        campaign = await create_campaign(db_session, title="Page campaign", status="QUEUED")
        await create_notification_log(db_session, user, broadcast_id=campaign.id, sent_at=datetime.now(timezone.utc))

        listing = await admin_client.get("/admin/notifications")
        assert listing.status_code == 200
        assert "Page campaign" in listing.text

        detail = await admin_client.get(f"/admin/notifications/{campaign.id}")
        assert detail.status_code == 200
        assert "Send now" in detail.text
        assert "Cancel" in detail.text

    async def test_waitlist_page(self, admin_client: AsyncClient, waitlist_table: FakeWaitlistTable):
        waitlist_table.add("listed@example.com", datetime.now(timezone.utc).isoformat())
        response = await admin_client.get("/admin/waitlist", params={"sort": "bogus"})
        assert response.status_code == 200
        assert "listed@example.com" in response.text
