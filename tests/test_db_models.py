"""Tests for SQLAlchemy ORM models."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pokecollection.models.db import Base, CollectionEntryDB


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


class TestCollectionEntryDB:
    async def test_create_entry(self, session: AsyncSession) -> None:
        """Can store a tracked card with its snapshot."""
        entry = CollectionEntryDB(
            user_id="ash",
            card_id="sv3-125",
            status="owned",
            card_data={"name": "Charizard ex", "set": {"id": "sv3"}},
        )
        session.add(entry)
        await session.commit()

        result = await session.execute(
            select(CollectionEntryDB).where(CollectionEntryDB.card_id == "sv3-125")
        )
        saved = result.scalar_one()

        assert saved.id is not None
        assert saved.card_data["set"]["id"] == "sv3"
        assert saved.condition == "mint"
        assert saved.notes == ""
        assert saved.tags == []
        assert saved.added_at is not None

    async def test_one_entry_per_user_and_card(self, session: AsyncSession) -> None:
        """The same user cannot track the same card twice."""
        session.add(CollectionEntryDB(user_id="ash", card_id="sv3-125", status="owned"))
        await session.commit()

        session.add(CollectionEntryDB(user_id="ash", card_id="sv3-125", status="wishlist"))
        with pytest.raises(IntegrityError):
            await session.commit()

    async def test_same_card_for_different_users(self, session: AsyncSession) -> None:
        session.add(CollectionEntryDB(user_id="ash", card_id="sv3-125", status="owned"))
        session.add(CollectionEntryDB(user_id="misty", card_id="sv3-125", status="owned"))
        await session.commit()

        result = await session.execute(select(CollectionEntryDB))
        assert len(result.scalars().all()) == 2

    def test_repr(self) -> None:
        entry = CollectionEntryDB(user_id="ash", card_id="sv3-125", status="owned")
        assert "sv3-125" in repr(entry)
