"""
Catalog service with local fallback.

Every catalog read goes through here. In offline mode the network is never
touched and the bundled dataset answers after a short simulated delay.
Online, the catalog is tried first; any failure (timeout, transport error,
error status, bad payload) is logged and the equivalent local operation
answers instead. Results carry their provenance so callers can tell a
degraded answer from a live one.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from functools import lru_cache
from typing import TypeVar

from pokecollection.config import (
    FILTER_SET_LIMIT,
    MIN_SUGGESTION_QUERY_LENGTH,
    Settings,
    settings,
)
from pokecollection.models.catalog import (
    AccessMode,
    Card,
    CardPage,
    CardSet,
    CatalogResult,
    ConnectivityReport,
    DataSource,
    FilterOptions,
    SearchFilters,
    check_paging,
)
from pokecollection.services.access_mode import resolve_access_mode
from pokecollection.services.catalog_client import CatalogClient
from pokecollection.services.local_dataset import LocalCardDataset, get_local_dataset
from pokecollection.services.response_cache import CachedCatalogClient, ResponseCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class CatalogItemNotFoundError(LookupError):
    """Raised when a set or card is found neither in the catalog nor locally."""

    pass


def _describe(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


def _combine_sources(sources: list[DataSource]) -> DataSource:
    if DataSource.OFFLINE in sources:
        return DataSource.OFFLINE
    if DataSource.FALLBACK in sources:
        return DataSource.FALLBACK
    return DataSource.LIVE


class CatalogService:
    """
    Resilient catalog access.

    Args:
        mode: Resolved access mode
        client: Catalog client (usually cached); unused and may be None offline
        local: Offline dataset used for offline mode and fallbacks
        search_timeout: Seconds a search or suggestion call may take before
            the local dataset answers instead
        offline_latency: (min, max) seconds of simulated delay in offline mode
        request_interval: Pause between sequential lookups, to stay under the
            catalog's unauthenticated rate limit
        sleep: Awaitable sleep, injectable for tests
        rng: Random source for simulated latency
    """

    def __init__(
        self,
        mode: AccessMode,
        client: CachedCatalogClient | CatalogClient | None,
        local: LocalCardDataset,
        search_timeout: float = 5.0,
        offline_latency: tuple[float, float] = (0.1, 0.8),
        request_interval: float = 0.2,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        if mode.is_online and client is None:
            raise ValueError(f"Access mode {mode.value} needs a catalog client")
        self.mode = mode
        self.client = client
        self.local = local
        self.search_timeout = search_timeout
        self.offline_latency = offline_latency
        self.request_interval = request_interval
        self._sleep = sleep
        self._rng = rng or random.Random()

    @classmethod
    def from_settings(cls, config: Settings) -> "CatalogService":
        """Wire mode, client, cache and dataset from configuration."""
        mode = resolve_access_mode(config)
        client = None
        if mode.is_online:
            client = CachedCatalogClient(
                CatalogClient.for_mode(mode, config),
                ResponseCache(ttl_seconds=config.cache_ttl_seconds),
            )
        return cls(
            mode=mode,
            client=client,
            local=get_local_dataset(),
            search_timeout=config.search_timeout_seconds,
            offline_latency=(
                config.offline_latency_min_seconds,
                config.offline_latency_max_seconds,
            ),
            request_interval=config.catalog_request_interval_seconds,
        )

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()

    async def _simulate_latency(self) -> None:
        low, high = self.offline_latency
        delay = self._rng.uniform(low, high) if high > 0 else 0.0
        if delay > 0:
            await self._sleep(delay)

    async def _serve(
        self,
        operation: str,
        live: Callable[[], Awaitable[T]],
        local: Callable[[], T],
        timeout: float | None = None,
    ) -> CatalogResult[T]:
        if not self.mode.is_online:
            logger.debug("Offline mode, serving %s from local dataset", operation)
            await self._simulate_latency()
            return CatalogResult[T](data=local(), source=DataSource.OFFLINE)

        try:
            if timeout is None:
                data = await live()
            else:
                data = await asyncio.wait_for(live(), timeout=timeout)
        except Exception as e:
            logger.warning(
                "Catalog %s failed (%s), falling back to local dataset",
                operation,
                _describe(e),
            )
            return CatalogResult[T](data=local(), source=DataSource.FALLBACK)

        return CatalogResult[T](data=data, source=DataSource.LIVE)

    @property
    def _live(self) -> CachedCatalogClient | CatalogClient:
        if self.client is None:
            raise RuntimeError(f"Access mode {self.mode.value} has no catalog client")
        return self.client

    # --- Sets ---

    async def list_sets(self) -> CatalogResult[list[CardSet]]:
        """All sets, newest release first."""
        return await self._serve(
            "list_sets",
            lambda: self._live.list_sets(),
            self.local.list_sets,
        )

    async def get_set(self, set_id: str) -> CatalogResult[CardSet]:
        """
        One set by id.

        Raises:
            CatalogItemNotFoundError: If neither source knows the set
        """
        result = await self._serve(
            "get_set",
            lambda: self._live.get_set(set_id),
            lambda: self.local.get_set(set_id),
        )
        if result.data is None:
            raise CatalogItemNotFoundError(f"Set '{set_id}' not found")
        return CatalogResult[CardSet](data=result.data, source=result.source)

    async def sets_by_series(self) -> CatalogResult[dict[str, list[CardSet]]]:
        """Sets grouped by series, each group newest first."""
        result = await self.list_sets()
        grouped: dict[str, list[CardSet]] = {}
        for card_set in result.data:
            grouped.setdefault(card_set.series or "Other", []).append(card_set)
        return CatalogResult[dict[str, list[CardSet]]](data=grouped, source=result.source)

    # --- Cards ---

    async def list_cards_by_set(
        self, set_id: str, page: int = 1, page_size: int = 50
    ) -> CatalogResult[CardPage]:
        check_paging(page, page_size)
        return await self._serve(
            "list_cards_by_set",
            lambda: self._live.list_cards_by_set(set_id, page, page_size),
            lambda: self.local.list_cards_by_set(set_id, page, page_size),
        )

    async def search_cards(
        self,
        query: str | None,
        filters: SearchFilters | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> CatalogResult[CardPage]:
        """
        Search by name prefix and optional filters.

        The catalog gets `search_timeout` seconds; after that, or on any
        failure, the local dataset answers with the same page shape.
        """
        check_paging(page, page_size)
        return await self._serve(
            "search_cards",
            lambda: self._live.search_cards(query, filters, page, page_size),
            lambda: self.local.search_page(query, filters, page, page_size),
            timeout=self.search_timeout,
        )

    async def get_suggestions(self, query: str, limit: int = 10) -> CatalogResult[list[str]]:
        """Card names for search-as-you-type. Short input returns [] at once."""
        if not query or len(query.strip()) < MIN_SUGGESTION_QUERY_LENGTH:
            source = DataSource.LIVE if self.mode.is_online else DataSource.OFFLINE
            return CatalogResult[list[str]](data=[], source=source)

        return await self._serve(
            "get_suggestions",
            lambda: self._live.get_suggestions(query, limit),
            lambda: self.local.suggestions(query, limit),
            timeout=self.search_timeout,
        )

    async def get_card(self, card_id: str) -> CatalogResult[Card]:
        """
        One card by id.

        Raises:
            CatalogItemNotFoundError: If neither source knows the card
        """
        result = await self._serve(
            "get_card",
            lambda: self._live.get_card(card_id),
            lambda: self.local.get_card(card_id),
        )
        if result.data is None:
            raise CatalogItemNotFoundError(f"Card '{card_id}' not found")
        return CatalogResult[Card](data=result.data, source=result.source)

    async def get_popular_cards(self, limit: int = 20) -> CatalogResult[list[Card]]:
        return await self._serve(
            "get_popular_cards",
            lambda: self._live.get_popular_cards(limit),
            lambda: self.local.popular_cards(limit),
        )

    # --- Lookup lists ---

    async def list_types(self) -> CatalogResult[list[str]]:
        return await self._serve(
            "list_types", lambda: self._live.list_types(), self.local.list_types
        )

    async def list_subtypes(self) -> CatalogResult[list[str]]:
        return await self._serve(
            "list_subtypes", lambda: self._live.list_subtypes(), self.local.list_subtypes
        )

    async def list_rarities(self) -> CatalogResult[list[str]]:
        return await self._serve(
            "list_rarities", lambda: self._live.list_rarities(), self.local.list_rarities
        )

    async def load_filter_options(self) -> FilterOptions:
        """
        Everything the search filter controls need.

        Lookups run one at a time with `request_interval` between them so a
        cold page load stays under the catalog's rate limit.
        """
        sets = await self.list_sets()
        await self._sleep(self.request_interval)
        rarities = await self.list_rarities()
        await self._sleep(self.request_interval)
        types = await self.list_types()
        await self._sleep(self.request_interval)
        subtypes = await self.list_subtypes()

        return FilterOptions(
            sets=sets.data[:FILTER_SET_LIMIT],
            rarities=rarities.data,
            types=types.data,
            subtypes=subtypes.data,
            source=_combine_sources([sets.source, rarities.source, types.source, subtypes.source]),
        )

    async def check_connectivity(self) -> ConnectivityReport:
        """Probe the catalog and describe the local dataset."""
        reachable = False
        if self.mode.is_online:
            try:
                await self._live.ping()
                reachable = True
            except Exception as e:
                logger.warning("Catalog unreachable, local dataset will answer: %s", _describe(e))

        return ConnectivityReport(
            mode=self.mode,
            catalog_reachable=reachable,
            local_sets=self.local.sets_count(),
            local_cards=self.local.cards_count(),
            local_last_update=self.local.last_update,
        )


@lru_cache(maxsize=1)
def get_catalog_service() -> CatalogService:
    """
    Process-wide catalog service.

    Built once from settings on first use. Override in tests through
    FastAPI's dependency_overrides.
    """
    return CatalogService.from_settings(settings)


async def close_catalog_service() -> None:
    """Release the shared service's HTTP client, if it was ever built."""
    if get_catalog_service.cache_info().currsize:
        await get_catalog_service().aclose()
        get_catalog_service.cache_clear()
