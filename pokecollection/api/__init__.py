from pokecollection.api.catalog import router as catalog_router
from pokecollection.api.collection import router as collection_router
from pokecollection.api.health import router as health_router
from pokecollection.api.proxy import router as proxy_router

__all__ = [
    "catalog_router",
    "collection_router",
    "health_router",
    "proxy_router",
]
