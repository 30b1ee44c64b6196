"""
Collection API endpoints.

Tracks which cards a user owns or wants. Cards are added with a snapshot
of their catalog data so collections display without catalog calls.
"""

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from pokecollection.db import (
    add_to_collection,
    clear_collection,
    entry_to_model,
    get_entries,
    get_entries_for_set,
    get_entry,
    remove_from_collection,
    update_notes,
    update_status,
)
from pokecollection.db.database import get_session
from pokecollection.models.catalog import Card
from pokecollection.models.collection import (
    CardCondition,
    CardSnapshot,
    CollectionEntry,
    CollectionStatus,
    calculate_stats,
)
from pokecollection.models.db import CollectionEntryDB

router = APIRouter(prefix="/collection", tags=["collection"])

Session = Annotated[AsyncSession, Depends(get_session)]


class EntryResponse(BaseModel):
    """Response model for one tracked card."""

    card_id: str
    status: CollectionStatus
    card: dict[str, Any]
    notes: str = ""
    condition: CardCondition = CardCondition.MINT
    tags: list[str] = Field(default_factory=list)
    added_at: datetime | None = None

    @classmethod
    def from_entry(cls, entry: CollectionEntry) -> "EntryResponse":
        return cls(
            card_id=entry.card_id,
            status=entry.status,
            card=entry.card.to_dict(),
            notes=entry.notes,
            condition=entry.condition,
            tags=entry.tags,
            added_at=entry.added_at,
        )


class CollectionResponse(BaseModel):
    """Response model for a user's whole collection."""

    user_id: str
    owned: list[EntryResponse] = Field(default_factory=list)
    wishlist: list[EntryResponse] = Field(default_factory=list)


class SetCollectionResponse(CollectionResponse):
    """A user's owned and wishlisted cards from one set."""

    set_id: str


class MembershipResponse(BaseModel):
    """Whether a user tracks a card, and how."""

    user_id: str
    card_id: str
    owned: bool = False
    wishlist: bool = False
    exists: bool = False
    entry: EntryResponse | None = None


class CollectionStatsResponse(BaseModel):
    """Response model for collection statistics."""

    user_id: str
    total_cards: int = 0
    owned_cards: int = 0
    wishlist_cards: int = 0
    completion_rate: int = Field(
        default=0,
        description="Owned share of all tracked cards, as a whole percentage",
    )
    total_value: float = Field(
        default=0.0,
        description="Sum of estimated prices of owned cards",
    )


class AddCardRequest(BaseModel):
    """Request model for adding a card to a collection or wishlist."""

    card: Card = Field(..., description="Card as returned by the catalog endpoints")
    status: CollectionStatus = CollectionStatus.OWNED
    notes: str = ""
    condition: CardCondition | None = Field(None, description="Defaults to mint for new entries")
    tags: list[str] | None = None


class StatusUpdateRequest(BaseModel):
    status: CollectionStatus


class NotesUpdateRequest(BaseModel):
    notes: str = Field(..., max_length=2000)


class DeleteResponse(BaseModel):
    """Response model for delete operations."""

    user_id: str
    deleted: bool
    removed: int = 0
    message: str = ""


def _split(user_id: str, entries: list[CollectionEntryDB]) -> CollectionResponse:
    response = CollectionResponse(user_id=user_id)
    for row in entries:
        entry = EntryResponse.from_entry(entry_to_model(row))
        if entry.status is CollectionStatus.OWNED:
            response.owned.append(entry)
        else:
            response.wishlist.append(entry)
    return response


def _not_tracked(user_id: str, card_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Card {card_id} is not in the collection of user {user_id}",
    )


@router.get("/{user_id}", response_model=CollectionResponse)
async def get_user_collection(
    user_id: str,
    session: Session,
    status_filter: Annotated[CollectionStatus | None, Query(alias="status")] = None,
) -> CollectionResponse:
    """
    Get a user's owned and wishlisted cards, newest first.

    Pass `status` to list only one of the two. A user with nothing
    tracked gets two empty lists.
    """
    entries = await get_entries(session, user_id, status_filter)
    return _split(user_id, entries)


@router.delete("/{user_id}", response_model=DeleteResponse)
async def delete_user_collection(user_id: str, session: Session) -> DeleteResponse:
    """Remove every tracked card of a user."""
    removed = await clear_collection(session, user_id)
    return DeleteResponse(
        user_id=user_id,
        deleted=removed > 0,
        removed=removed,
        message=f"Removed {removed} cards" if removed else "Collection was already empty",
    )


@router.get("/{user_id}/stats", response_model=CollectionStatsResponse)
async def get_collection_stats(user_id: str, session: Session) -> CollectionStatsResponse:
    entries = [entry_to_model(row) for row in await get_entries(session, user_id)]
    stats = calculate_stats(entries)
    return CollectionStatsResponse(
        user_id=user_id,
        total_cards=stats.total_cards,
        owned_cards=stats.owned_cards,
        wishlist_cards=stats.wishlist_cards,
        completion_rate=stats.completion_rate,
        total_value=stats.total_value,
    )


@router.get("/{user_id}/sets/{set_id}", response_model=SetCollectionResponse)
async def get_set_collection(user_id: str, set_id: str, session: Session) -> SetCollectionResponse:
    """A user's owned and wishlisted cards belonging to one set."""
    entries = await get_entries_for_set(session, user_id, set_id)
    split = _split(user_id, entries)
    return SetCollectionResponse(
        user_id=user_id, set_id=set_id, owned=split.owned, wishlist=split.wishlist
    )


@router.post(
    "/{user_id}/cards",
    response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_card(user_id: str, request: AddCardRequest, session: Session) -> EntryResponse:
    """
    Add a card as owned or wishlisted.

    A card already tracked with the other status is moved rather than
    duplicated: a user holds at most one entry per card.
    """
    row = await add_to_collection(
        session,
        user_id,
        request.card.id,
        CardSnapshot.from_card(request.card),
        request.status,
        notes=request.notes,
        condition=request.condition,
        tags=request.tags,
    )
    return EntryResponse.from_entry(entry_to_model(row))


@router.get("/{user_id}/cards/{card_id}", response_model=MembershipResponse)
async def get_card_membership(user_id: str, card_id: str, session: Session) -> MembershipResponse:
    """Whether the user owns or wishlists a card. Untracked cards are not an error."""
    row = await get_entry(session, user_id, card_id)
    if row is None:
        return MembershipResponse(user_id=user_id, card_id=card_id)

    entry = EntryResponse.from_entry(entry_to_model(row))
    return MembershipResponse(
        user_id=user_id,
        card_id=card_id,
        owned=entry.status is CollectionStatus.OWNED,
        wishlist=entry.status is CollectionStatus.WISHLIST,
        exists=True,
        entry=entry,
    )


@router.delete("/{user_id}/cards/{card_id}", response_model=DeleteResponse)
async def remove_card(user_id: str, card_id: str, session: Session) -> DeleteResponse:
    if not await remove_from_collection(session, user_id, card_id):
        raise _not_tracked(user_id, card_id)
    return DeleteResponse(user_id=user_id, deleted=True, removed=1, message=f"Removed {card_id}")


@router.put("/{user_id}/cards/{card_id}/status", response_model=EntryResponse)
async def move_card(
    user_id: str, card_id: str, request: StatusUpdateRequest, session: Session
) -> EntryResponse:
    """Move a tracked card between owned and wishlist."""
    row = await update_status(session, user_id, card_id, request.status)
    if row is None:
        raise _not_tracked(user_id, card_id)
    return EntryResponse.from_entry(entry_to_model(row))


@router.put("/{user_id}/cards/{card_id}/notes", response_model=EntryResponse)
async def set_card_notes(
    user_id: str, card_id: str, request: NotesUpdateRequest, session: Session
) -> EntryResponse:
    row = await update_notes(session, user_id, card_id, request.notes)
    if row is None:
        raise _not_tracked(user_id, card_id)
    return EntryResponse.from_entry(entry_to_model(row))
