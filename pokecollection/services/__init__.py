"""
PokeCollection services.

Catalog access (client, cache, fallback orchestration, offline dataset)
and search helpers.
"""

from pokecollection.services.access_mode import is_offline_host, resolve_access_mode
from pokecollection.services.catalog_client import (
    CatalogClient,
    CatalogError,
    CatalogNotFoundError,
    build_search_query,
    build_set_query,
)
from pokecollection.services.catalog_service import (
    CatalogItemNotFoundError,
    CatalogService,
    close_catalog_service,
    get_catalog_service,
)
from pokecollection.services.debounce import Debouncer
from pokecollection.services.local_dataset import (
    LocalCardDataset,
    get_local_dataset,
    load_local_dataset,
)
from pokecollection.services.recent_searches import (
    RecentSearchError,
    RecentSearches,
    recent_searches_for,
)
from pokecollection.services.response_cache import (
    MISS,
    CachedCatalogClient,
    ResponseCache,
)

__all__ = [
    "MISS",
    "CachedCatalogClient",
    "CatalogClient",
    "CatalogError",
    "CatalogItemNotFoundError",
    "CatalogNotFoundError",
    "CatalogService",
    "Debouncer",
    "LocalCardDataset",
    "RecentSearchError",
    "RecentSearches",
    "ResponseCache",
    "build_search_query",
    "build_set_query",
    "close_catalog_service",
    "get_catalog_service",
    "get_local_dataset",
    "is_offline_host",
    "load_local_dataset",
    "recent_searches_for",
    "resolve_access_mode",
]
