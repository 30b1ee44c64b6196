from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pokecollection.models.catalog import Card


class CollectionStatus(str, Enum):
    """Whether a card is owned or wanted."""

    OWNED = "owned"
    WISHLIST = "wishlist"


class CardCondition(str, Enum):
    MINT = "mint"
    NEAR_MINT = "near-mint"
    EXCELLENT = "excellent"
    GOOD = "good"
    LIGHT_PLAYED = "light-played"
    PLAYED = "played"
    POOR = "poor"


@dataclass(frozen=True, slots=True)
class CardSnapshot:
    """
    Denormalized copy of the card fields needed to display a collection
    entry without re-fetching it from the catalog.
    """

    name: str
    card_set: dict[str, Any] | None = None
    number: str | None = None
    rarity: str | None = None
    images: dict[str, Any] | None = None
    types: list[str] = field(default_factory=list)
    estimated_price: float = 0.0

    @classmethod
    def from_card(cls, card: Card) -> "CardSnapshot":
        card_set = card.card_set.model_dump(mode="json", by_alias=True) if card.card_set else None
        return cls(
            name=card.name,
            card_set=card_set,
            number=card.number,
            rarity=card.rarity,
            images=card.images.model_dump(mode="json") if card.images else None,
            types=list(card.types),
            estimated_price=card.market_price or 0.0,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CardSnapshot":
        return cls(
            name=data.get("name", ""),
            card_set=data.get("set"),
            number=data.get("number"),
            rarity=data.get("rarity"),
            images=data.get("images"),
            types=list(data.get("types") or []),
            estimated_price=float(data.get("estimated_price") or 0.0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "set": self.card_set,
            "number": self.number,
            "rarity": self.rarity,
            "images": self.images,
            "types": list(self.types),
            "estimated_price": self.estimated_price,
        }

    @property
    def set_id(self) -> str | None:
        return self.card_set.get("id") if self.card_set else None


@dataclass
class CollectionEntry:
    """One card in a user's collection or wishlist."""

    user_id: str
    card_id: str
    status: CollectionStatus
    card: CardSnapshot
    notes: str = ""
    condition: CardCondition = CardCondition.MINT
    tags: list[str] = field(default_factory=list)
    added_at: datetime | None = None


@dataclass(frozen=True)
class CollectionStats:
    """Aggregate numbers for a user's collection."""

    total_cards: int = 0
    owned_cards: int = 0
    wishlist_cards: int = 0
    completion_rate: int = 0
    total_value: float = 0.0


def calculate_stats(entries: list[CollectionEntry]) -> CollectionStats:
    """
    Compute collection statistics.

    Completion rate is the owned share of all tracked cards, as a whole
    percentage. Total value sums the estimated price of owned cards only.
    """
    owned = [e for e in entries if e.status is CollectionStatus.OWNED]
    wishlist_count = len(entries) - len(owned)

    total_value = sum(e.card.estimated_price for e in owned)
    tracked = len(owned) + wishlist_count

    return CollectionStats(
        total_cards=tracked,
        owned_cards=len(owned),
        wishlist_cards=wishlist_count,
        completion_rate=round(len(owned) / tracked * 100) if owned else 0,
        total_value=round(total_value, 2),
    )
