"""
Response cache for read-only catalog calls.

Fixed-TTL memoization keyed by operation and parameters. Expired entries
are refreshed on the next read; nothing is evicted. One instance lives per
process and is shared through dependency injection.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from pokecollection.models.catalog import Card, CardPage, CardSet, SearchFilters
from pokecollection.services.catalog_client import CatalogClient

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0

T = TypeVar("T")


class _Miss:
    def __repr__(self) -> str:
        return "MISS"


MISS: Any = _Miss()


@dataclass(frozen=True, slots=True)
class CacheEntry:
    payload: Any
    timestamp: float


class ResponseCache:
    """
    Key-value cache whose entries are valid for `ttl_seconds`.

    The clock is injectable so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any:
        """Return the stored payload while fresh, else MISS."""
        entry = self._entries.get(key)
        if entry is None or self._clock() - entry.timestamp >= self.ttl_seconds:
            return MISS
        return entry.payload

    def put(self, key: str, payload: Any) -> None:
        """Store payload stamped with the current time, replacing any prior entry."""
        self._entries[key] = CacheEntry(payload=payload, timestamp=self._clock())

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[T]]) -> T:
        """Return the cached payload or await `loader` and cache its result."""
        cached = self.get(key)
        if cached is not MISS:
            logger.debug("Cache hit for %s", key)
            return cached  # type: ignore[no-any-return]

        payload = await loader()
        self.put(key, payload)
        return payload

    def __len__(self) -> int:
        return len(self._entries)


def sets_key() -> str:
    return "sets"


def cards_by_set_key(set_id: str, page: int, page_size: int) -> str:
    return f"cards-{set_id}-{page}-{page_size}"


class CachedCatalogClient:
    """
    Catalog client with set listing and per-set card pages cached.

    Search, suggestions and the rest pass straight through: their key space
    is unbounded and rarely reused.
    """

    def __init__(self, client: CatalogClient, cache: ResponseCache) -> None:
        self.client = client
        self.cache = cache

    async def list_sets(self) -> list[CardSet]:
        return await self.cache.get_or_load(sets_key(), self.client.list_sets)

    async def list_cards_by_set(self, set_id: str, page: int = 1, page_size: int = 50) -> CardPage:
        return await self.cache.get_or_load(
            cards_by_set_key(set_id, page, page_size),
            lambda: self.client.list_cards_by_set(set_id, page, page_size),
        )

    async def ping(self) -> None:
        await self.client.ping()

    async def get_set(self, set_id: str) -> CardSet:
        return await self.client.get_set(set_id)

    async def search_cards(
        self,
        query: str | None,
        filters: SearchFilters | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> CardPage:
        return await self.client.search_cards(query, filters, page, page_size)

    async def get_suggestions(self, query: str, limit: int = 10) -> list[str]:
        return await self.client.get_suggestions(query, limit)

    async def get_card(self, card_id: str) -> Card:
        return await self.client.get_card(card_id)

    async def get_popular_cards(self, limit: int = 20) -> list[Card]:
        return await self.client.get_popular_cards(limit)

    async def list_types(self) -> list[str]:
        return await self.client.list_types()

    async def list_subtypes(self) -> list[str]:
        return await self.client.list_subtypes()

    async def list_rarities(self) -> list[str]:
        return await self.client.list_rarities()

    async def aclose(self) -> None:
        await self.client.aclose()
