from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from pokecollection.api import (
    catalog_router,
    collection_router,
    health_router,
    proxy_router,
)
from pokecollection.config import settings
from pokecollection.db.database import init_db
from pokecollection.services.catalog_service import close_catalog_service


class SiteCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that leaves paths under `skip_prefix` to their own handlers."""

    def __init__(self, app: ASGIApp, skip_prefix: str, **options) -> None:
        super().__init__(app, **options)
        self.skip_prefix = skip_prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"].startswith(self.skip_prefix):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    yield
    await close_catalog_service()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("pokecollection"),
    lifespan=lifespan,
)

app.include_router(catalog_router)
app.include_router(collection_router)
app.include_router(health_router)
app.include_router(proxy_router)

# The proxy answers its own preflights with a narrower policy
app.add_middleware(
    SiteCORSMiddleware,
    skip_prefix=f"{proxy_router.prefix}/",
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
