"""Integration tests for the admin user endpoints."""

from __future__ import annotations

from datetime import timedelta

from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from deficit.db.models import FoodLog, NotificationLog, PushToken, RefreshToken, UsageRecord, User
from tests.factories import (
    create_food_log,
    create_notification_log,
    create_push_token,
    create_refresh_token,
    create_usage_record,
    create_user,
)


async def _count(db: AsyncSession, model, user: User) -> int:
    return (await db.execute(select(func.count()).select_from(model).where(model.user_id == user.id))).scalar_one()


class TestListUsers:
    async def test_list_with_counts(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session, email="alice@example.com", display_name="Alice")
        await create_food_log(db_session, user)
        await create_food_log(db_session, user)
        await create_usage_record(db_session, user)

        response = await admin_client.get("/api/admin/users")
        assert response.status_code == 200
        body = response.json()
        assert body["pagination"] == {"page": 1, "limit": 20, "total": 1, "totalPages": 1}
        item = body["items"][0]
        assert item["email"] == "alice@example.com"
        assert item["displayName"] == "Alice"
        assert item["_count"] == {"foodLogs": 2, "usageRecords": 1}
        assert "passwordHash" not in item
        assert "password_hash" not in item

    async def test_search_matches_email_name_or_id(self, admin_client: AsyncClient, db_session: AsyncSession):
        alice = await create_user(db_session, email="alice@example.com")
        bob = await create_user(db_session, email="bob@example.com", display_name="Bobby Tables")

        by_email = (await admin_client.get("/api/admin/users", params={"search": "ALICE"})).json()
        by_name = (await admin_client.get("/api/admin/users", params={"search": "tables"})).json()
        by_id = (await admin_client.get("/api/admin/users", params={"search": bob.id[:8]})).json()

        assert [u["id"] for u in by_email["items"]] == [alice.id]
        assert [u["id"] for u in by_name["items"]] == [bob.id]
        assert [u["id"] for u in by_id["items"]] == [bob.id]

    async def test_filter_by_tier(self, admin_client: AsyncClient, db_session: AsyncSession):
        await create_user(db_session, subscription_tier="FREE")
        pro = await create_user(db_session, subscription_tier="PRO_ANNUAL")

        body = (await admin_client.get("/api/admin/users", params={"tier": "PRO_ANNUAL"})).json()
        assert [u["id"] for u in body["items"]] == [pro.id]

    async def test_pagination(self, admin_client: AsyncClient, db_session: AsyncSession):
        for _ in range(5):
            await create_user(db_session)

        body = (await admin_client.get("/api/admin/users", params={"page": 2, "limit": 2})).json()
        assert len(body["items"]) == 2
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}

    async def test_limit_is_capped(self, admin_client: AsyncClient):
        response = await admin_client.get("/api/admin/users", params={"limit": 500})
        assert response.status_code == 422


class TestUserDetail:
    async def test_detail_with_recent_rows_and_counts(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)
        for i in range(12):
            await create_food_log(db_session, user, description=f"meal {i}")
        await create_usage_record(db_session, user)
        for _ in range(7):
            await create_refresh_token(db_session, user, expires_in=timedelta(days=30))

        response = await admin_client.get(f"/api/admin/users/{user.id}")
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == user.id
        assert len(body["foodLogs"]) == 10
        assert len(body["usageRecords"]) == 1
        assert len(body["refreshTokens"]) == 5
        assert body["_count"] == {"foodLogs": 12, "usageRecords": 1, "refreshTokens": 7}

    async def test_unknown_user(self, admin_client: AsyncClient):
        response = await admin_client.get("/api/admin/users/does-not-exist")
        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"


class TestUpdateUser:
    async def test_update_allowed_fields(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)

        response = await admin_client.patch(
            f"/api/admin/users/{user.id}",
            json={"subscriptionTier": "LIFETIME", "displayName": "Renamed", "currentStreak": 9},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["subscriptionTier"] == "LIFETIME"
        assert body["displayName"] == "Renamed"
        assert body["currentStreak"] == 9

    async def test_unknown_fields_ignored(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session, email="keep@example.com")

        response = await admin_client.patch(
            f"/api/admin/users/{user.id}",
            json={"id": "hijacked", "passwordHash": "x", "createdAt": "2000-01-01T00:00:00Z", "age": 31},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == user.id
        assert body["age"] == 31

        await db_session.refresh(user)
        assert user.password_hash is None

    async def test_null_clears_nullable_field(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session, display_name="Someone")
        response = await admin_client.patch(f"/api/admin/users/{user.id}", json={"displayName": None})
        assert response.status_code == 200
        assert response.json()["displayName"] is None

    async def test_null_on_required_field_rejected(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)
        response = await admin_client.patch(f"/api/admin/users/{user.id}", json={"currentStreak": None})
        assert response.status_code == 400
        assert response.json()["detail"] == "current_streak cannot be null"

    async def test_invalid_tier_rejected(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)
        response = await admin_client.patch(f"/api/admin/users/{user.id}", json={"subscriptionTier": "PLATINUM"})
        assert response.status_code == 422

    async def test_email_collision(self, admin_client: AsyncClient, db_session: AsyncSession):
        await create_user(db_session, email="taken@example.com")
        user = await create_user(db_session)
        response = await admin_client.patch(f"/api/admin/users/{user.id}", json={"email": "Taken@Example.com"})
        assert response.status_code == 409

    async def test_unknown_user(self, admin_client: AsyncClient):
        response = await admin_client.patch("/api/admin/users/nope", json={"age": 30})
        assert response.status_code == 404


class TestDeleteUser:
    async def test_delete_cascades_to_owned_rows_only(self, admin_client: AsyncClient, db_session: AsyncSession):
        doomed = await create_user(db_session)
        survivor = await create_user(db_session)
        for owner in (doomed, survivor):
            await create_food_log(db_session, owner)
            await create_usage_record(db_session, owner)
            await create_refresh_token(db_session, owner, expires_in=timedelta(days=1))
            await create_notification_log(db_session, owner)
            await create_push_token(db_session, owner)

        response = await admin_client.delete(f"/api/admin/users/{doomed.id}")
        assert response.status_code == 200
        assert response.json() == {"success": True}

        for model in (FoodLog, UsageRecord, RefreshToken, NotificationLog, PushToken):
            assert await _count(db_session, model, doomed) == 0, model.__name__
            assert await _count(db_session, model, survivor) == 1, model.__name__
        assert (await admin_client.get(f"/api/admin/users/{doomed.id}")).status_code == 404

    async def test_delete_unknown_user(self, admin_client: AsyncClient):
        response = await admin_client.delete("/api/admin/users/nope")
        assert response.status_code == 404
