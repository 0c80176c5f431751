"""Integration tests for admin login, logout, session check and setup."""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.db.models import AdminUser
from tests.factories import create_admin

EMAIL = "admin@deficit.app"
PASSWORD = "correct-horse"


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> AdminUser:
    return await create_admin(db_session, EMAIL, PASSWORD)


class TestLogin:
    async def test_login_sets_httponly_cookie(self, client: AsyncClient, admin: AdminUser):
        response = await client.post("/api/admin/auth/login", json={"email": EMAIL, "password": PASSWORD})
        assert response.status_code == 200
        assert response.json() == {"success": True}
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("admin_token=")
        assert "HttpOnly" in set_cookie
        assert "samesite=lax" in set_cookie.lower()

    async def test_login_email_is_case_insensitive(self, client: AsyncClient, admin: AdminUser):
        response = await client.post("/api/admin/auth/login", json={"email": "Admin@Deficit.App", "password": PASSWORD})
        assert response.status_code == 200

    async def test_login_stamps_last_login(self, client: AsyncClient, admin: AdminUser, db_session: AsyncSession):
        await client.post("/api/admin/auth/login", json={"email": EMAIL, "password": PASSWORD})
        await db_session.refresh(admin)
        assert admin.last_login_at is not None

    async def test_wrong_password(self, client: AsyncClient, admin: AdminUser):
        response = await client.post("/api/admin/auth/login", json={"email": EMAIL, "password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"
        assert "set-cookie" not in response.headers

    async def test_unknown_email(self, client: AsyncClient, admin: AdminUser):
        response = await client.post("/api/admin/auth/login", json={"email": "who@deficit.app", "password": PASSWORD})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    async def test_missing_fields(self, client: AsyncClient):
        response = await client.post("/api/admin/auth/login", json={"email": EMAIL})
        assert response.status_code == 400
        assert response.json()["detail"] == "Email and password are required"


class TestLoginThrottle:
    async def test_sixth_attempt_refused_even_with_right_password(self, client: AsyncClient, admin: AdminUser):
        for _ in range(5):
            response = await client.post("/api/admin/auth/login", json={"email": EMAIL, "password": "wrong"})
            assert response.status_code == 401

        response = await client.post("/api/admin/auth/login", json={"email": EMAIL, "password": PASSWORD})
        assert response.status_code == 429
        assert response.json()["detail"] == "Too many login attempts. Please try again later."

    @pytest.mark.parametrize("payload", [{}, {"email": EMAIL}, {"password": PASSWORD}])
    async def test_locked_out_ip_refused_before_field_checks(
        self, client: AsyncClient, admin: AdminUser, payload: dict
    ):
        for _ in range(5):
            await client.post("/api/admin/auth/login", json={"email": EMAIL, "password": "wrong"})

        response = await client.post("/api/admin/auth/login", json=payload)
        assert response.status_code == 429
        assert response.json()["code"] == "rate_limited"

    async def test_window_is_set_on_the_counter(self, client: AsyncClient, admin: AdminUser, redis_client):
        await client.post("/api/admin/auth/login", json={"email": EMAIL, "password": "wrong"})
        keys = await redis_client.keys("admin_login_attempts:*")
        assert len(keys) == 1
        ttl = await redis_client.ttl(keys[0])
        assert 0 < ttl <= 15 * 60

    async def test_success_clears_failures(self, client: AsyncClient, admin: AdminUser):
        for _ in range(4):
            await client.post("/api/admin/auth/login", json={"email": EMAIL, "password": "wrong"})
        response = await client.post("/api/admin/auth/login", json={"email": EMAIL, "password": PASSWORD})
        assert response.status_code == 200

        for _ in range(4):
            response = await client.post("/api/admin/auth/login", json={"email": EMAIL, "password": "wrong"})
            assert response.status_code == 401
        response = await client.post("/api/admin/auth/login", json={"email": EMAIL, "password": PASSWORD})
        assert response.status_code == 200

    async def test_limit_is_per_ip(self, client: AsyncClient, admin: AdminUser):
        for _ in range(5):
            await client.post(
                "/api/admin/auth/login",
                json={"email": EMAIL, "password": "wrong"},
                headers={"X-Forwarded-For": "203.0.113.7"},
            )
        blocked = await client.post(
            "/api/admin/auth/login",
            json={"email": EMAIL, "password": PASSWORD},
            headers={"X-Forwarded-For": "203.0.113.7"},
        )
        other = await client.post(
            "/api/admin/auth/login",
            json={"email": EMAIL, "password": PASSWORD},
            headers={"X-Forwarded-For": "198.51.100.2"},
        )
        assert blocked.status_code == 429
        assert other.status_code == 200


class TestSessionCheck:
    async def test_check_with_session(self, admin_client: AsyncClient):
        response = await admin_client.get("/api/admin/auth/check")
        assert response.status_code == 200
        assert response.json() == {"authenticated": True, "email": "admin@deficit.app"}

    async def test_check_without_session(self, client: AsyncClient):
        response = await client.get("/api/admin/auth/check")
        assert response.status_code == 401
        assert response.json() == {"authenticated": False}

    async def test_check_with_tampered_cookie(self, client: AsyncClient):
        client.cookies.set("admin_token", "tampered.token.value")
        response = await client.get("/api/admin/auth/check")
        assert response.status_code == 401

    async def test_login_then_check(self, client: AsyncClient, admin: AdminUser):
        await client.post("/api/admin/auth/login", json={"email": EMAIL, "password": PASSWORD})
        response = await client.get("/api/admin/auth/check")
        assert response.json()["email"] == EMAIL

    async def test_logout_clears_cookie(self, admin_client: AsyncClient):
        response = await admin_client.post("/api/admin/auth/logout")
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert 'admin_token=""' in response.headers["set-cookie"] or "Max-Age=0" in response.headers["set-cookie"]


class TestSetup:
    async def test_disabled_by_default(self, client: AsyncClient):
        response = await client.post("/api/admin/auth/setup", json={"email": EMAIL, "password": PASSWORD})
        assert response.status_code == 403
        assert response.json()["detail"] == "Setup endpoint is disabled"

    async def test_creates_admin_when_enabled(
        self, client: AsyncClient, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch, test_settings
    ):
        monkeypatch.setattr(test_settings, "admin_setup_enabled", True)
        response = await client.post("/api/admin/auth/setup", json={"email": "New@Deficit.App", "password": PASSWORD})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["email"] == "new@deficit.app"

        row = (await db_session.execute(select(AdminUser).where(AdminUser.email == "new@deficit.app"))).scalar_one()
        assert row.password_hash.startswith("$argon2id$")

        login = await client.post("/api/admin/auth/login", json={"email": "new@deficit.app", "password": PASSWORD})
        assert login.status_code == 200

    async def test_setup_key_required_when_configured(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch, test_settings
    ):
        monkeypatch.setattr(test_settings, "admin_setup_enabled", True)
        monkeypatch.setattr(test_settings, "admin_setup_key", "let-me-in")
        payload = {"email": EMAIL, "password": PASSWORD}

        refused = await client.post("/api/admin/auth/setup", json=payload, headers={"X-Setup-Key": "guess"})
        accepted = await client.post("/api/admin/auth/setup", json=payload, headers={"X-Setup-Key": "let-me-in"})
        assert refused.status_code == 403
        assert accepted.status_code == 200

    async def test_duplicate_admin(
        self, client: AsyncClient, admin: AdminUser, monkeypatch: pytest.MonkeyPatch, test_settings
    ):
        monkeypatch.setattr(test_settings, "admin_setup_enabled", True)
        response = await client.post("/api/admin/auth/setup", json={"email": EMAIL, "password": PASSWORD})
        assert response.status_code == 409

    async def test_short_password(self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch, test_settings):
        monkeypatch.setattr(test_settings, "admin_setup_enabled", True)
        response = await client.post("/api/admin/auth/setup", json={"email": EMAIL, "password": "short"})
        assert response.status_code == 400
        assert "at least 8 characters" in response.json()["detail"]
