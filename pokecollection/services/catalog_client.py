"""
Pokémon TCG catalog client.

Builds catalog search queries, issues the HTTP calls (straight to the
catalog or through the same-origin proxy) and normalizes responses into
catalog models. Stateless apart from its pooled HTTP client.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from pokecollection.config import MIN_SUGGESTION_QUERY_LENGTH, Settings
from pokecollection.models.catalog import (
    AccessMode,
    Card,
    CardPage,
    CardSet,
    SearchFilters,
    check_paging,
    count_pages,
    sort_sets_newest_first,
)

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-Api-Key"

SET_CARDS_ORDER = "number"
SEARCH_ORDER = "set.releaseDate,-number"
SUGGESTION_FIELDS = "name,id,images"
POPULAR_RARITIES = ("Rare Holo", "Rare Holo EX", "Rare Holo GX")


class CatalogError(Exception):
    """Raised when the catalog cannot answer a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CatalogNotFoundError(CatalogError):
    """Raised when the catalog reports a missing resource (404)."""


def _clean(value: str) -> str:
    # Double quotes would terminate the quoted term early
    return value.replace('"', "").strip()


def build_set_query(set_id: str) -> str:
    """Query selecting every card of one set."""
    return f"set.id:{_clean(set_id)}"


def build_search_query(query: str | None, filters: SearchFilters | None = None) -> str:
    """
    Build a conjunctive catalog query.

    The name is prefix-matched; set, rarity and type are equality filters.
    Each present term is AND-ed on. With no terms at all, matches everything.

    Example:
        >>> build_search_query("char", SearchFilters(type="Fire"))
        'name:"char*" AND types:"Fire"'
    """
    filters = filters or SearchFilters()
    clauses: list[str] = []

    if query and _clean(query):
        clauses.append(f'name:"{_clean(query)}*"')
    if filters.set_id:
        clauses.append(f"set.id:{_clean(filters.set_id)}")
    if filters.rarity:
        clauses.append(f'rarity:"{_clean(filters.rarity)}"')
    if filters.card_type:
        clauses.append(f'types:"{_clean(filters.card_type)}"')

    return " AND ".join(clauses) or "*"


class CatalogClient:
    """
    Async client for the catalog's v2 REST API.

    In direct mode the API key is attached to every request. Through the
    proxy no key is sent; the proxy injects its own.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        retry_delay: float = 1.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.retry_delay = retry_delay
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers[API_KEY_HEADER] = api_key
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    @classmethod
    def for_mode(cls, mode: AccessMode, config: Settings) -> "CatalogClient":
        """Build a client targeting the catalog or the proxy, per access mode."""
        if mode is AccessMode.DIRECT:
            return cls(
                config.catalog_base_url,
                api_key=config.pokemon_api_key or None,
                timeout=config.catalog_timeout_seconds,
                retry_delay=config.catalog_retry_delay_seconds,
            )
        if mode is AccessMode.PROXY:
            return cls(
                config.proxy_base_url,
                timeout=config.catalog_timeout_seconds,
                retry_delay=config.catalog_retry_delay_seconds,
            )
        raise ValueError("Offline mode has no catalog client")

    @property
    def sends_api_key(self) -> bool:
        return API_KEY_HEADER in self._headers

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _send(self, url: str, params: dict[str, Any] | None) -> httpx.Response:
        """Issue the GET, retrying a network-level error once after `retry_delay`."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(httpx.NetworkError),
            stop=stop_after_attempt(2),
            wait=wait_fixed(self.retry_delay),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return await retrying(self._client.get, url, params=params, headers=self._headers)

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        GET a catalog endpoint and return its JSON object.

        A network-level error is retried once after `retry_delay`.
        Timeouts and HTTP error statuses are not retried.

        Raises:
            CatalogNotFoundError: On 404
            CatalogError: On any other failure
        """
        url = f"{self.base_url}{path}"

        try:
            response = await self._send(url, params)
        except httpx.TimeoutException as e:
            raise CatalogError(f"Catalog request {path} timed out") from e
        except httpx.NetworkError as e:
            raise CatalogError(f"Catalog unreachable for {path}: {e}") from e
        except httpx.HTTPError as e:
            raise CatalogError(f"Catalog request {path} failed: {e}") from e

        if response.status_code == 404:
            raise CatalogNotFoundError(f"Catalog has no resource at {path}", 404)
        if not response.is_success:
            raise CatalogError(
                f"Catalog request {path} failed with status {response.status_code}",
                response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise CatalogError(f"Catalog returned invalid JSON for {path}", 502) from e

        if not isinstance(payload, dict):
            raise CatalogError(f"Catalog returned unexpected payload for {path}", 502)
        return payload

    @staticmethod
    def _parse_cards(payload: dict[str, Any]) -> list[Card]:
        try:
            return [Card.model_validate(raw) for raw in payload.get("data") or []]
        except ValidationError as e:
            raise CatalogError(f"Catalog returned malformed cards: {e}", 502) from e

    @staticmethod
    def _parse_page(payload: dict[str, Any], page: int, page_size: int) -> CardPage:
        cards = CatalogClient._parse_cards(payload)
        total_count = int(payload.get("totalCount") or 0)
        return CardPage(
            cards=cards,
            total_count=total_count,
            page=int(payload.get("page") or page),
            page_size=int(payload.get("pageSize") or page_size),
            total_pages=count_pages(total_count, page_size),
        )

    async def ping(self) -> None:
        """Cheapest request that proves the catalog answers."""
        await self._get("/sets", params={"pageSize": 1})

    # --- Sets ---

    async def list_sets(self) -> list[CardSet]:
        """All sets, newest release first. The catalog holds too few to page."""
        payload = await self._get("/sets")
        try:
            sets = [CardSet.model_validate(raw) for raw in payload.get("data") or []]
        except ValidationError as e:
            raise CatalogError(f"Catalog returned malformed sets: {e}", 502) from e
        return sort_sets_newest_first(sets)

    async def get_set(self, set_id: str) -> CardSet:
        payload = await self._get(f"/sets/{set_id}")
        try:
            return CardSet.model_validate(payload.get("data"))
        except ValidationError as e:
            raise CatalogError(f"Catalog returned a malformed set: {e}", 502) from e

    # --- Cards ---

    async def list_cards_by_set(self, set_id: str, page: int = 1, page_size: int = 50) -> CardPage:
        check_paging(page, page_size)
        payload = await self._get(
            "/cards",
            params={
                "q": build_set_query(set_id),
                "page": page,
                "pageSize": page_size,
                "orderBy": SET_CARDS_ORDER,
            },
        )
        return self._parse_page(payload, page, page_size)

    async def search_cards(
        self,
        query: str | None,
        filters: SearchFilters | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> CardPage:
        check_paging(page, page_size)
        payload = await self._get(
            "/cards",
            params={
                "q": build_search_query(query, filters),
                "page": page,
                "pageSize": page_size,
                "orderBy": SEARCH_ORDER,
            },
        )
        return self._parse_page(payload, page, page_size)

    async def get_suggestions(self, query: str, limit: int = 10) -> list[str]:
        """
        Distinct card names starting with `query`.

        Input shorter than two characters returns [] without a request.
        """
        if not query or len(query.strip()) < MIN_SUGGESTION_QUERY_LENGTH:
            return []

        payload = await self._get(
            "/cards",
            params={
                "q": f'name:"{_clean(query)}*"',
                "pageSize": limit,
                "select": SUGGESTION_FIELDS,
            },
        )

        names: list[str] = []
        for raw in payload.get("data") or []:
            name = raw.get("name") if isinstance(raw, dict) else None
            if name and name not in names:
                names.append(name)
        return names[:limit]

    async def get_card(self, card_id: str) -> Card:
        payload = await self._get(f"/cards/{card_id}")
        try:
            return Card.model_validate(payload.get("data"))
        except ValidationError as e:
            raise CatalogError(f"Catalog returned a malformed card: {e}", 502) from e

    async def get_popular_cards(self, limit: int = 20) -> list[Card]:
        rarity_query = " OR ".join(f'rarity:"{r}"' for r in POPULAR_RARITIES)
        payload = await self._get(
            "/cards",
            params={"q": rarity_query, "pageSize": limit, "orderBy": "set.releaseDate"},
        )
        return self._parse_cards(payload)

    # --- Lookup lists ---

    async def _names(self, path: str) -> list[str]:
        payload = await self._get(path)
        return [str(item) for item in payload.get("data") or []]

    async def list_types(self) -> list[str]:
        return await self._names("/types")

    async def list_subtypes(self) -> list[str]:
        return await self._names("/subtypes")

    async def list_rarities(self) -> list[str]:
        return await self._names("/rarities")
