"""
Database CRUD operations.

Async functions for reading and changing a user's tracked cards. A card
appears at most once per user; its status says whether it is owned or
wishlisted.
"""

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from pokecollection.models.collection import (
    CardCondition,
    CardSnapshot,
    CollectionEntry,
    CollectionStatus,
)
from pokecollection.models.db import CollectionEntryDB

# --- Queries ---


async def get_entries(
    session: AsyncSession,
    user_id: str,
    status: CollectionStatus | None = None,
) -> list[CollectionEntryDB]:
    """All of a user's entries, newest first, optionally limited to one status."""
    stmt = select(CollectionEntryDB).where(CollectionEntryDB.user_id == user_id)
    if status is not None:
        stmt = stmt.where(CollectionEntryDB.status == status.value)
    stmt = stmt.order_by(CollectionEntryDB.added_at.desc(), CollectionEntryDB.id.desc())

    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_entry(session: AsyncSession, user_id: str, card_id: str) -> CollectionEntryDB | None:
    """
    Get one tracked card.

    Returns None if the user does not track this card.
    """
    result = await session.execute(
        select(CollectionEntryDB).where(
            CollectionEntryDB.user_id == user_id,
            CollectionEntryDB.card_id == card_id,
        )
    )
    return result.scalar_one_or_none()


async def get_entries_for_set(
    session: AsyncSession, user_id: str, set_id: str
) -> list[CollectionEntryDB]:
    """A user's entries whose card belongs to `set_id`."""
    entries = await get_entries(session, user_id)
    return [e for e in entries if (e.card_data.get("set") or {}).get("id") == set_id]


# --- Changes ---


_UPSERT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


async def add_to_collection(
    session: AsyncSession,
    user_id: str,
    card_id: str,
    card: CardSnapshot,
    status: CollectionStatus,
    notes: str = "",
    condition: CardCondition | None = None,
    tags: list[str] | None = None,
) -> CollectionEntryDB:
    """
    Track a card with the given status.

    If the user already tracks the card, the existing row is updated in
    place: status and card snapshot are replaced, so a wishlisted card
    added as owned stops being wishlisted. Notes, condition and tags
    are kept unless new values are given. New entries default to mint.

    The row is created with INSERT .. ON CONFLICT DO NOTHING, so two
    concurrent adds of the same card both end up updating one row.
    """
    insert = _UPSERT_INSERTS[session.get_bind().dialect.name]
    await session.execute(
        insert(CollectionEntryDB)
        .values(
            user_id=user_id,
            card_id=card_id,
            status=status.value,
            card_data=card.to_dict(),
            notes=notes,
            condition=(condition or CardCondition.MINT).value,
            tags=list(tags or []),
        )
        .on_conflict_do_nothing(index_elements=["user_id", "card_id"])
    )

    entry = await get_entry(session, user_id, card_id)
    if entry is None:
        raise RuntimeError(f"Entry for {user_id}/{card_id} vanished after insert")

    entry.status = status.value
    entry.card_data = card.to_dict()
    if notes:
        entry.notes = notes
    if tags is not None:
        entry.tags = list(tags)
    if condition is not None:
        entry.condition = condition.value

    await session.flush()
    return entry


async def update_status(
    session: AsyncSession, user_id: str, card_id: str, status: CollectionStatus
) -> CollectionEntryDB | None:
    """
    Move a tracked card between owned and wishlist.

    Returns None if the user does not track this card.
    """
    entry = await get_entry(session, user_id, card_id)
    if entry is None:
        return None

    entry.status = status.value
    await session.flush()
    return entry


async def update_notes(
    session: AsyncSession, user_id: str, card_id: str, notes: str
) -> CollectionEntryDB | None:
    """Replace a tracked card's notes. Returns None if the card is not tracked."""
    entry = await get_entry(session, user_id, card_id)
    if entry is None:
        return None

    entry.notes = notes
    await session.flush()
    return entry


async def remove_from_collection(session: AsyncSession, user_id: str, card_id: str) -> bool:
    """
    Stop tracking a card.

    Returns True if deleted, False if not found.
    """
    entry = await get_entry(session, user_id, card_id)
    if entry is None:
        return False

    await session.delete(entry)
    await session.flush()
    return True


async def clear_collection(session: AsyncSession, user_id: str) -> int:
    """Delete every entry of a user. Returns the number of rows removed."""
    result = await session.execute(
        delete(CollectionEntryDB).where(CollectionEntryDB.user_id == user_id)
    )
    return result.rowcount or 0


def entry_to_model(entry: CollectionEntryDB) -> CollectionEntry:
    """Convert a database row to a domain model."""
    return CollectionEntry(
        user_id=entry.user_id,
        card_id=entry.card_id,
        status=CollectionStatus(entry.status),
        card=CardSnapshot.from_dict(entry.card_data or {}),
        notes=entry.notes or "",
        condition=CardCondition(entry.condition),
        tags=list(entry.tags or []),
        added_at=entry.added_at,
    )
