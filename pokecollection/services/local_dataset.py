"""
Local card dataset service.

Loads the bundled offline catalog and answers set, card and search
queries against it. Serves offline mode and every catalog fallback.
"""

import json
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from pokecollection.config import MIN_SUGGESTION_QUERY_LENGTH, settings
from pokecollection.models.catalog import (
    Card,
    CardPage,
    CardSet,
    SearchFilters,
    sort_sets_newest_first,
)

DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_DATASET_PATH = DATA_DIR / "offline_catalog.json"

_LEADING_DIGITS = re.compile(r"\d+")


def _number_key(card: Card) -> tuple[int, str]:
    """Sort key for collector numbers like "25", "GG69", "TG01"."""
    number = card.number or ""
    match = _LEADING_DIGITS.search(number)
    return (int(match.group()) if match else 0, number)


def _release_key(card: Card) -> str:
    if card.card_set and card.card_set.release_date:
        return card.card_set.release_date.isoformat()
    return ""


class LocalCardDataset:
    """
    In-memory copy of a small slice of the catalog.

    Cards reference their set by id in the file; the full set record is
    attached on load so local cards look like catalog cards.
    """

    def __init__(
        self,
        sets: list[CardSet],
        cards: list[Card],
        types: list[str] | None = None,
        subtypes: list[str] | None = None,
        rarities: list[str] | None = None,
        last_update: str | None = None,
    ) -> None:
        self._sets = {s.id: s for s in sets}
        self._cards = cards
        self._cards_by_id = {c.id: c for c in cards}
        self._types = types or sorted({t for c in cards for t in c.types})
        self._subtypes = subtypes or sorted({t for c in cards for t in c.subtypes})
        self._rarities = rarities or sorted({c.rarity for c in cards if c.rarity})
        self.last_update = last_update

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "LocalCardDataset":
        sets = [CardSet.model_validate(raw) for raw in payload.get("sets", [])]
        by_id = {s.id: s for s in sets}

        cards: list[Card] = []
        for raw in payload.get("cards", []):
            set_ref = raw.get("set") or {}
            full_set = by_id.get(set_ref.get("id", ""))
            card = Card.model_validate({**raw, "set": None})
            cards.append(card.model_copy(update={"card_set": full_set}))

        return cls(
            sets=sets,
            cards=cards,
            types=payload.get("types"),
            subtypes=payload.get("subtypes"),
            rarities=payload.get("rarities"),
            last_update=payload.get("lastUpdate"),
        )

    # --- Sets ---

    def list_sets(self) -> list[CardSet]:
        """All sets, newest release first."""
        return sort_sets_newest_first(self._sets.values())

    def get_set(self, set_id: str) -> CardSet | None:
        return self._sets.get(set_id)

    def sets_count(self) -> int:
        return len(self._sets)

    # --- Cards ---

    def cards_count(self) -> int:
        return len(self._cards)

    def get_card(self, card_id: str) -> Card | None:
        return self._cards_by_id.get(card_id)

    def list_cards_by_set(self, set_id: str, page: int = 1, page_size: int = 50) -> CardPage:
        """Cards of one set ordered by collector number, paginated."""
        cards = [c for c in self._cards if c.card_set and c.card_set.id == set_id]
        cards.sort(key=_number_key)
        return CardPage.paginate(cards, page, page_size)

    def search(self, query: str | None, filters: SearchFilters | None = None) -> list[Card]:
        """
        Filter cards by name prefix and optional set, rarity and type.

        All conditions are AND-ed. Name and filter matching ignore case.
        Results are ordered like the catalog: set release date ascending,
        then collector number descending.
        """
        filters = filters or SearchFilters()
        needle = (query or "").strip().lower()

        cards = self._cards
        if needle:
            cards = [c for c in cards if c.name.lower().startswith(needle)]
        if filters.set_id:
            cards = [c for c in cards if c.card_set and c.card_set.id == filters.set_id]
        if filters.rarity:
            rarity = filters.rarity.lower()
            cards = [c for c in cards if (c.rarity or "").lower() == rarity]
        if filters.card_type:
            card_type = filters.card_type.lower()
            cards = [c for c in cards if card_type in (t.lower() for t in c.types)]

        ordered = sorted(cards, key=_number_key, reverse=True)
        ordered.sort(key=_release_key)
        return ordered

    def search_page(
        self,
        query: str | None,
        filters: SearchFilters | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> CardPage:
        return CardPage.paginate(self.search(query, filters), page, page_size)

    def suggestions(self, query: str, limit: int = 10) -> list[str]:
        """Distinct card names starting with `query`, in dataset order."""
        needle = (query or "").strip().lower()
        if len(needle) < MIN_SUGGESTION_QUERY_LENGTH:
            return []

        names: list[str] = []
        for card in self._cards:
            if card.name.lower().startswith(needle) and card.name not in names:
                names.append(card.name)
                if len(names) >= limit:
                    break
        return names

    def popular_cards(self, limit: int = 20) -> list[Card]:
        """Holo rares, most valuable first."""
        holos = [c for c in self._cards if (c.rarity or "").startswith("Rare Holo")]
        holos.sort(key=lambda c: c.market_price or 0.0, reverse=True)
        return holos[:limit]

    # --- Lookup lists ---

    def list_types(self) -> list[str]:
        return list(self._types)

    def list_subtypes(self) -> list[str]:
        return list(self._subtypes)

    def list_rarities(self) -> list[str]:
        return list(self._rarities)


def load_local_dataset(path: Path | None = None) -> LocalCardDataset:
    """
    Load the offline dataset from file.

    Args:
        path: Path to JSON file. Defaults to the bundled data/offline_catalog.json

    Raises:
        FileNotFoundError: If the dataset file doesn't exist
    """
    if path is None:
        path = DEFAULT_DATASET_PATH

    if not path.exists():
        raise FileNotFoundError(
            f"Offline dataset not found at {path}. "
            "Run `python -m pokecollection.jobs.snapshot_catalog` to create it."
        )

    with open(path, encoding="utf-8") as f:
        payload = json.load(f)

    return LocalCardDataset.from_dict(payload)


@lru_cache(maxsize=1)
def get_local_dataset() -> LocalCardDataset:
    """
    Get the process-wide offline dataset.

    Cached after first load.
    """
    return load_local_dataset(settings.offline_dataset_path)
