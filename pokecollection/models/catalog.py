"""
Catalog models.

Pydantic mirrors of the Pokémon TCG catalog's JSON shapes (camelCase on the
wire, snake_case in Python) plus the paging and provenance wrappers the
access layer returns.
"""

import math
from collections.abc import Iterable, Sequence
from datetime import date
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel


class AccessMode(str, Enum):
    """How the catalog is reached for this process."""

    OFFLINE = "offline"
    PROXY = "proxy"
    DIRECT = "direct"

    @property
    def is_online(self) -> bool:
        return self is not AccessMode.OFFLINE


class DataSource(str, Enum):
    """Provenance of catalog data returned to callers."""

    # Catalog answered
    LIVE = "live"
    # Catalog failed, local dataset substituted
    FALLBACK = "fallback"
    # Offline mode configured, network never attempted
    OFFLINE = "offline"


class CatalogModel(BaseModel):
    """Base for catalog payloads: camelCase aliases, immutable once fetched."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class SetImages(CatalogModel):
    symbol: str | None = None
    logo: str | None = None


class CardSet(CatalogModel):
    """A card set (expansion)."""

    id: str
    name: str
    series: str | None = None
    release_date: date | None = None
    total: int | None = None
    ptcgo_code: str | None = None
    images: SetImages | None = None

    @field_validator("release_date", mode="before")
    @classmethod
    def _parse_release_date(cls, value: Any) -> Any:
        # Catalog sends "2024/01/26", dataset snapshots use "2024-01-26"
        if isinstance(value, str):
            return value.strip().replace("/", "-") or None
        return value


class CardImages(CatalogModel):
    small: str | None = None
    large: str | None = None


class Card(CatalogModel):
    """A single card as returned by the catalog."""

    id: str
    name: str
    card_set: CardSet | None = Field(default=None, alias="set")
    number: str | None = None
    rarity: str | None = None
    types: list[str] = Field(default_factory=list)
    supertype: str | None = None
    subtypes: list[str] = Field(default_factory=list)
    hp: str | None = None
    images: CardImages | None = None
    cardmarket: dict[str, Any] | None = None
    tcgplayer: dict[str, Any] | None = None
    market: dict[str, Any] | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def market_price(self) -> float | None:
        """
        Best known market price.

        Checks Cardmarket average sell price, then the first TCGplayer
        market price, then the bundled dataset's own price.
        """
        if self.cardmarket:
            price = (self.cardmarket.get("prices") or {}).get("averageSellPrice")
            if isinstance(price, int | float):
                return float(price)
        if self.tcgplayer:
            for variant in (self.tcgplayer.get("prices") or {}).values():
                price = variant.get("market") if isinstance(variant, dict) else None
                if isinstance(price, int | float):
                    return float(price)
        if self.market:
            price = self.market.get("averageSellPrice")
            if isinstance(price, int | float):
                return float(price)
        return None


def sort_sets_newest_first(sets: Iterable[CardSet]) -> list[CardSet]:
    """Order sets by release date descending. Undated sets go last."""
    return sorted(sets, key=lambda s: s.release_date or date.min, reverse=True)


def check_paging(page: int, page_size: int) -> None:
    """Reject page numbers below 1 and non-positive page sizes."""
    if page < 1:
        raise ValueError("page must be at least 1")
    if page_size < 1:
        raise ValueError("page_size must be positive")


def count_pages(total_count: int, page_size: int) -> int:
    """Number of pages needed for `total_count` items."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return math.ceil(total_count / page_size)


class CardPage(CatalogModel):
    """One page of cards plus paging metadata."""

    cards: list[Card] = Field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 50
    total_pages: int = 0

    @classmethod
    def paginate(cls, cards: Sequence[Card], page: int, page_size: int) -> "CardPage":
        """
        Slice a full result list into one page.

        Pages past the end are empty, not an error.
        """
        check_paging(page, page_size)
        total_count = len(cards)
        start = (page - 1) * page_size
        return cls(
            cards=list(cards[start : start + page_size]),
            total_count=total_count,
            page=page,
            page_size=page_size,
            total_pages=count_pages(total_count, page_size),
        )


class SearchFilters(CatalogModel):
    """Optional equality filters AND-ed onto a card search."""

    set_id: str | None = Field(default=None, alias="set")
    rarity: str | None = None
    card_type: str | None = Field(default=None, alias="type")

    def is_empty(self) -> bool:
        return not (self.set_id or self.rarity or self.card_type)


T = TypeVar("T")


class CatalogResult(BaseModel, Generic[T]):
    """
    Catalog data tagged with where it came from.

    Lets callers tell a true empty result from a degraded local one.
    """

    data: T
    source: DataSource

    @property
    def degraded(self) -> bool:
        return self.source is not DataSource.LIVE


class FilterOptions(CatalogModel):
    """Values used to populate search filter controls."""

    sets: list[CardSet] = Field(default_factory=list)
    rarities: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    subtypes: list[str] = Field(default_factory=list)
    source: DataSource = DataSource.LIVE


class ConnectivityReport(CatalogModel):
    """Result of probing the catalog."""

    mode: AccessMode
    catalog_reachable: bool
    local_sets: int
    local_cards: int
    local_last_update: str | None = None
