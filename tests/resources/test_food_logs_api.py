"""Integration tests for the admin food log endpoints."""

from __future__ import annotations

import datetime as dt

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import create_food_log, create_user


class TestListFoodLogs:
    async def test_list_embeds_user(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session, email="eater@example.com", display_name="Eater")
        await create_food_log(db_session, user, calories=720, is_greasy=True, source="AI", confidence="HIGH")

        response = await admin_client.get("/api/admin/food-logs")
        assert response.status_code == 200
        body = response.json()
        assert body["pagination"]["total"] == 1
        item = body["items"][0]
        assert item["calories"] == 720
        assert item["isGreasy"] is True
        assert item["source"] == "AI"
        assert item["user"] == {"id": user.id, "email": "eater@example.com", "displayName": "Eater"}

    async def test_filters(self, admin_client: AsyncClient, db_session: AsyncSession):
        alice = await create_user(db_session)
        bob = await create_user(db_session)
        await create_food_log(db_session, alice, description="Pad thai", source="AI", date=dt.date(2026, 3, 1))
        await create_food_log(db_session, alice, description="Oatmeal", source="MANUAL", date=dt.date(2026, 3, 2))
        await create_food_log(db_session, bob, description="Pad see ew", source="BARCODE", date=dt.date(2026, 3, 1))

        async def ids(**params) -> list[str]:
            body = (await admin_client.get("/api/admin/food-logs", params=params)).json()
            return sorted(item["description"] for item in body["items"])

        assert await ids(userId=alice.id) == ["Oatmeal", "Pad thai"]
        assert await ids(source="BARCODE") == ["Pad see ew"]
        assert await ids(date="2026-03-01") == ["Pad see ew", "Pad thai"]
        assert await ids(search="pad") == ["Pad see ew", "Pad thai"]
        assert await ids(search="pad", userId=bob.id) == ["Pad see ew"]

    async def test_search_treats_wildcards_literally(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)
        await create_food_log(db_session, user, description="100% juice")
        await create_food_log(db_session, user, description="Water")

        body = (await admin_client.get("/api/admin/food-logs", params={"search": "%"})).json()
        assert [item["description"] for item in body["items"]] == ["100% juice"]

    async def test_invalid_source(self, admin_client: AsyncClient):
        response = await admin_client.get("/api/admin/food-logs", params={"source": "TELEPATHY"})
        assert response.status_code == 422


class TestFoodLogDetail:
    async def test_get(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)
        log = await create_food_log(db_session, user, items=[{"name": "rice", "calories": 200}])

        response = await admin_client.get(f"/api/admin/food-logs/{log.id}")
        assert response.status_code == 200
        body = response.json()
        assert body["items"] == [{"name": "rice", "calories": 200}]
        assert body["user"]["id"] == user.id

    async def test_not_found(self, admin_client: AsyncClient):
        response = await admin_client.get("/api/admin/food-logs/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "Food log not found"


class TestUpdateFoodLog:
    async def test_partial_update(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)
        log = await create_food_log(db_session, user, calories=400, description="Salad", notes="no dressing")

        response = await admin_client.patch(
            f"/api/admin/food-logs/{log.id}",
            json={"calories": 650, "isGreasy": True, "userId": "someone-else"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["calories"] == 650
        assert body["isGreasy"] is True
        assert body["description"] == "Salad"
        assert body["notes"] == "no dressing"
        assert body["userId"] == user.id

    async def test_clear_notes(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)
        log = await create_food_log(db_session, user, notes="typo")
        response = await admin_client.patch(f"/api/admin/food-logs/{log.id}", json={"notes": None})
        assert response.json()["notes"] is None

    async def test_calories_cannot_be_null(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)
        log = await create_food_log(db_session, user)
        response = await admin_client.patch(f"/api/admin/food-logs/{log.id}", json={"calories": None})
        assert response.status_code == 400

    async def test_not_found(self, admin_client: AsyncClient):
        response = await admin_client.patch("/api/admin/food-logs/missing", json={"calories": 1})
        assert response.status_code == 404


class TestDeleteFoodLog:
    async def test_delete(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)
        log = await create_food_log(db_session, user)

        response = await admin_client.delete(f"/api/admin/food-logs/{log.id}")
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert (await admin_client.get(f"/api/admin/food-logs/{log.id}")).status_code == 404
        assert (await admin_client.get(f"/api/admin/users/{user.id}")).status_code == 200

    async def test_delete_twice(self, admin_client: AsyncClient, db_session: AsyncSession):
        user = await create_user(db_session)
        log = await create_food_log(db_session, user)
        await admin_client.delete(f"/api/admin/food-logs/{log.id}")
        response = await admin_client.delete(f"/api/admin/food-logs/{log.id}")
        assert response.status_code == 404
