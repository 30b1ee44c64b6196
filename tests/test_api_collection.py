"""Tests for collection API endpoints."""

from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pokecollection.db.database import get_session
from pokecollection.main import app
from pokecollection.models.db import Base


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def client(async_engine):
    """Provide an async test client with overridden database session."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def _second_card(card_payload: dict[str, Any]) -> dict[str, Any]:
    return {
        **card_payload,
        "id": "sv3-62",
        "name": "Pikachu",
        "set": {**card_payload["set"], "id": "sv3", "name": "Obsidian Flames"},
        "cardmarket": {"prices": {"averageSellPrice": 1.0}},
    }


class TestGetCollection:
    async def test_get_empty_collection(self, client: AsyncClient) -> None:
        """A user with nothing tracked gets empty lists."""
        response = await client.get("/collection/new-user")

        assert response.status_code == 200
        assert response.json() == {"user_id": "new-user", "owned": [], "wishlist": []}

    async def test_filter_by_status(
        self, client: AsyncClient, card_payload: dict[str, Any]
    ) -> None:
        await client.post("/collection/ash/cards", json={"card": card_payload, "status": "owned"})
        await client.post(
            "/collection/ash/cards",
            json={"card": _second_card(card_payload), "status": "wishlist"},
        )

        response = await client.get("/collection/ash", params={"status": "wishlist"})

        data = response.json()
        assert data["owned"] == []
        assert [e["card_id"] for e in data["wishlist"]] == ["sv3-62"]


class TestAddCard:
    async def test_add_owned(self, client: AsyncClient, card_payload: dict[str, Any]) -> None:
        """Adding a card stores a snapshot of its catalog data."""
        response = await client.post(
            "/collection/ash/cards", json={"card": card_payload, "status": "owned"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["card_id"] == "sv3pt5-6"
        assert data["status"] == "owned"
        assert data["condition"] == "mint"
        assert data["card"]["name"] == "Charizard ex"
        assert data["card"]["set"]["id"] == "sv3pt5"
        assert data["card"]["estimated_price"] == 12.5

    async def test_wishlist_then_owned_leaves_one_owned_entry(
        self, client: AsyncClient, card_payload: dict[str, Any]
    ) -> None:
        """Moving a card from wishlist to owned never duplicates it."""
        await client.post(
            "/collection/ash/cards", json={"card": card_payload, "status": "wishlist"}
        )
        await client.post("/collection/ash/cards", json={"card": card_payload, "status": "owned"})

        data = (await client.get("/collection/ash")).json()

        assert [e["card_id"] for e in data["owned"]] == ["sv3pt5-6"]
        assert data["wishlist"] == []

    async def test_invalid_status(self, client: AsyncClient, card_payload: dict[str, Any]) -> None:
        response = await client.post(
            "/collection/ash/cards", json={"card": card_payload, "status": "traded"}
        )

        assert response.status_code == 422


class TestMembership:
    async def test_untracked_card(self, client: AsyncClient) -> None:
        response = await client.get("/collection/ash/cards/sv3pt5-6")

        assert response.status_code == 200
        data = response.json()
        assert data["exists"] is False
        assert data["entry"] is None

    async def test_tracked_card(self, client: AsyncClient, card_payload: dict[str, Any]) -> None:
        await client.post(
            "/collection/ash/cards", json={"card": card_payload, "status": "wishlist"}
        )

        data = (await client.get("/collection/ash/cards/sv3pt5-6")).json()

        assert data["exists"] is True
        assert data["wishlist"] is True
        assert data["owned"] is False


class TestUpdates:
    async def test_move_card(self, client: AsyncClient, card_payload: dict[str, Any]) -> None:
        await client.post("/collection/ash/cards", json={"card": card_payload, "status": "owned"})

        response = await client.put(
            "/collection/ash/cards/sv3pt5-6/status", json={"status": "wishlist"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "wishlist"

    async def test_move_untracked_card(self, client: AsyncClient) -> None:
        response = await client.put("/collection/ash/cards/nope/status", json={"status": "owned"})

        assert response.status_code == 404

    async def test_update_notes(self, client: AsyncClient, card_payload: dict[str, Any]) -> None:
        await client.post("/collection/ash/cards", json={"card": card_payload, "status": "owned"})

        response = await client.put(
            "/collection/ash/cards/sv3pt5-6/notes", json={"notes": "first pull"}
        )

        assert response.json()["notes"] == "first pull"


class TestStats:
    async def test_stats(self, client: AsyncClient, card_payload: dict[str, Any]) -> None:
        """Only owned cards count toward value; completion is the owned share."""
        await client.post("/collection/ash/cards", json={"card": card_payload, "status": "owned"})
        await client.post(
            "/collection/ash/cards",
            json={"card": _second_card(card_payload), "status": "wishlist"},
        )

        data = (await client.get("/collection/ash/stats")).json()

        assert data["total_cards"] == 2
        assert data["owned_cards"] == 1
        assert data["wishlist_cards"] == 1
        assert data["completion_rate"] == 50
        assert data["total_value"] == 12.5

    async def test_stats_empty(self, client: AsyncClient) -> None:
        data = (await client.get("/collection/nobody/stats")).json()

        assert data["completion_rate"] == 0
        assert data["total_value"] == 0.0


class TestSetCollection:
    async def test_cards_grouped_for_set(
        self, client: AsyncClient, card_payload: dict[str, Any]
    ) -> None:
        await client.post("/collection/ash/cards", json={"card": card_payload, "status": "owned"})
        await client.post(
            "/collection/ash/cards",
            json={"card": _second_card(card_payload), "status": "wishlist"},
        )

        data = (await client.get("/collection/ash/sets/sv3")).json()

        assert data["set_id"] == "sv3"
        assert data["owned"] == []
        assert [e["card_id"] for e in data["wishlist"]] == ["sv3-62"]


class TestDelete:
    async def test_remove_card(self, client: AsyncClient, card_payload: dict[str, Any]) -> None:
        await client.post("/collection/ash/cards", json={"card": card_payload, "status": "owned"})

        response = await client.delete("/collection/ash/cards/sv3pt5-6")
        again = await client.delete("/collection/ash/cards/sv3pt5-6")

        assert response.status_code == 200
        assert response.json()["deleted"] is True
        assert again.status_code == 404

    async def test_clear_collection(
        self, client: AsyncClient, card_payload: dict[str, Any]
    ) -> None:
        await client.post("/collection/ash/cards", json={"card": card_payload, "status": "owned"})
        await client.post(
            "/collection/ash/cards",
            json={"card": _second_card(card_payload), "status": "wishlist"},
        )

        response = await client.delete("/collection/ash")

        assert response.json()["removed"] == 2
        assert (await client.get("/collection/ash")).json()["owned"] == []

    async def test_clear_empty_collection(self, client: AsyncClient) -> None:
        response = await client.delete("/collection/nobody")

        data = response.json()
        assert data["deleted"] is False
        assert data["removed"] == 0
