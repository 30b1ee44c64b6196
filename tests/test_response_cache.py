"""Tests for the response cache."""

from unittest.mock import AsyncMock

from pokecollection.models.catalog import CardPage, CardSet
from pokecollection.services.response_cache import (
    MISS,
    CachedCatalogClient,
    ResponseCache,
    cards_by_set_key,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _client() -> AsyncMock:
    client = AsyncMock()
    client.list_sets.return_value = [CardSet(id="sv3", name="Obsidian Flames")]
    client.list_cards_by_set.return_value = CardPage()
    client.search_cards.return_value = CardPage()
    return client


class TestResponseCache:
    def test_miss_when_absent(self) -> None:
        assert ResponseCache().get("sets") is MISS

    def test_hit_within_ttl(self) -> None:
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=300, clock=clock)
        cache.put("sets", ["a"])

        clock.now += 299
        assert cache.get("sets") == ["a"]

    def test_expires_at_ttl(self) -> None:
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=300, clock=clock)
        cache.put("sets", ["a"])

        clock.now += 300
        assert cache.get("sets") is MISS

    def test_expired_entries_not_evicted(self) -> None:
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=1, clock=clock)
        cache.put("sets", ["a"])
        clock.now += 10

        assert cache.get("sets") is MISS
        assert len(cache) == 1

    def test_caches_falsy_payloads(self) -> None:
        cache = ResponseCache()
        cache.put("sets", [])
        assert cache.get("sets") == []

    async def test_get_or_load_refreshes_after_expiry(self) -> None:
        clock = FakeClock()
        cache = ResponseCache(ttl_seconds=300, clock=clock)
        loader = AsyncMock(side_effect=[1, 2])

        assert await cache.get_or_load("k", loader) == 1
        assert await cache.get_or_load("k", loader) == 1
        clock.now += 301
        assert await cache.get_or_load("k", loader) == 2
        assert loader.await_count == 2

    def test_key_includes_paging(self) -> None:
        assert cards_by_set_key("sv3", 2, 50) == "cards-sv3-2-50"


class TestCachedCatalogClient:
    async def test_list_sets_one_upstream_call_within_ttl(self) -> None:
        clock = FakeClock()
        client = _client()
        cached = CachedCatalogClient(client, ResponseCache(ttl_seconds=300, clock=clock))

        first = await cached.list_sets()
        second = await cached.list_sets()

        assert first == second
        assert client.list_sets.await_count == 1

    async def test_list_sets_refetched_after_ttl(self) -> None:
        clock = FakeClock()
        client = _client()
        cached = CachedCatalogClient(client, ResponseCache(ttl_seconds=300, clock=clock))

        await cached.list_sets()
        clock.now += 300
        await cached.list_sets()

        assert client.list_sets.await_count == 2

    async def test_cards_by_set_keyed_per_page(self) -> None:
        client = _client()
        cached = CachedCatalogClient(client, ResponseCache())

        await cached.list_cards_by_set("sv3", 1, 50)
        await cached.list_cards_by_set("sv3", 1, 50)
        await cached.list_cards_by_set("sv3", 2, 50)

        assert client.list_cards_by_set.await_count == 2

    async def test_search_not_cached(self) -> None:
        client = _client()
        cached = CachedCatalogClient(client, ResponseCache())

        await cached.search_cards("pika")
        await cached.search_cards("pika")

        assert client.search_cards.await_count == 2
