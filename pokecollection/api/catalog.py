"""
Catalog API endpoints.

Read-only catalog browsing. Every response says where its data came from
(live catalog, local fallback, or offline dataset), so clients can warn
when results are degraded.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from pydantic import BaseModel, Field, ValidationError

from pokecollection.config import settings
from pokecollection.models.catalog import (
    Card,
    CardPage,
    CardSet,
    CatalogResult,
    ConnectivityReport,
    DataSource,
    FilterOptions,
    SearchFilters,
)
from pokecollection.services.catalog_service import (
    CatalogItemNotFoundError,
    CatalogService,
    get_catalog_service,
)
from pokecollection.services.debounce import Debouncer
from pokecollection.services.recent_searches import RecentSearchError, recent_searches_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["catalog"])

Service = Annotated[CatalogService, Depends(get_catalog_service)]


def get_recent_searches_dir() -> Path:
    """Directory holding per-user search history files."""
    return settings.recent_searches_dir


def get_suggestion_debounce() -> float:
    """Quiet period before a search-as-you-type query is sent."""
    return settings.suggestion_debounce_seconds


RecentDir = Annotated[Path, Depends(get_recent_searches_dir)]


class RecentSearchesResponse(BaseModel):
    """Response model for a user's search history."""

    user_id: str
    searches: list[str] = Field(default_factory=list)


class SuggestionRequest(BaseModel):
    """One search-as-you-type message received over the websocket."""

    query: str = ""
    limit: int = Field(default=10, ge=1, le=50)


class SuggestionMessage(BaseModel):
    """Suggestions sent back for the latest query of a burst."""

    query: str
    suggestions: list[str]
    source: DataSource


# --- Status ---


@router.get("/status", response_model=ConnectivityReport)
async def catalog_status(service: Service) -> ConnectivityReport:
    """Access mode, whether the catalog answers, and local dataset size."""
    return await service.check_connectivity()


# --- Sets ---


@router.get("/sets", response_model=CatalogResult[list[CardSet]])
async def list_sets(service: Service) -> CatalogResult[list[CardSet]]:
    """All sets, newest release first."""
    return await service.list_sets()


@router.get("/sets/by-series", response_model=CatalogResult[dict[str, list[CardSet]]])
async def sets_by_series(service: Service) -> CatalogResult[dict[str, list[CardSet]]]:
    return await service.sets_by_series()


@router.get("/sets/{set_id}", response_model=CatalogResult[CardSet])
async def get_set(set_id: str, service: Service) -> CatalogResult[CardSet]:
    try:
        return await service.get_set(set_id)
    except CatalogItemNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/sets/{set_id}/cards", response_model=CatalogResult[CardPage])
async def list_cards_by_set(
    set_id: str,
    service: Service,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=250)] = 50,
) -> CatalogResult[CardPage]:
    """Cards of one set ordered by collector number, one page at a time."""
    return await service.list_cards_by_set(set_id, page, page_size)


# --- Cards ---


@router.get("/cards/search", response_model=CatalogResult[CardPage])
async def search_cards(
    service: Service,
    recent_dir: RecentDir,
    q: str | None = None,
    set_id: Annotated[str | None, Query(alias="set")] = None,
    rarity: str | None = None,
    card_type: Annotated[str | None, Query(alias="type")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=250)] = 50,
    user_id: str | None = None,
) -> CatalogResult[CardPage]:
    """
    Search cards by name prefix, optionally narrowed by set, rarity and type.

    At least a query or one filter is required. When `user_id` is given,
    the query is added to that user's recent searches.
    """
    query = (q or "").strip()
    filters = SearchFilters(set=set_id or None, rarity=rarity or None, type=card_type or None)
    if not query and filters.is_empty():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide a search query or at least one filter",
        )

    if user_id and query:
        try:
            recent_searches_for(user_id, recent_dir).record(query)
        except RecentSearchError as e:
            logger.warning("Could not record search for %s: %s", user_id, e)

    return await service.search_cards(query or None, filters, page, page_size)


@router.get("/cards/popular", response_model=CatalogResult[list[Card]])
async def popular_cards(
    service: Service,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> CatalogResult[list[Card]]:
    return await service.get_popular_cards(limit)


@router.get("/cards/{card_id}", response_model=CatalogResult[Card])
async def get_card(card_id: str, service: Service) -> CatalogResult[Card]:
    try:
        return await service.get_card(card_id)
    except CatalogItemNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/suggestions", response_model=CatalogResult[list[str]])
async def suggestions(
    service: Service,
    q: str = "",
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> CatalogResult[list[str]]:
    """Card names starting with `q`. Fewer than two characters returns []."""
    return await service.get_suggestions(q, limit)


# --- Lookup lists ---


@router.get("/types", response_model=CatalogResult[list[str]])
async def list_types(service: Service) -> CatalogResult[list[str]]:
    return await service.list_types()


@router.get("/subtypes", response_model=CatalogResult[list[str]])
async def list_subtypes(service: Service) -> CatalogResult[list[str]]:
    return await service.list_subtypes()


@router.get("/rarities", response_model=CatalogResult[list[str]])
async def list_rarities(service: Service) -> CatalogResult[list[str]]:
    return await service.list_rarities()


@router.get("/filters", response_model=FilterOptions)
async def filter_options(service: Service) -> FilterOptions:
    """Recent sets, rarities, types and subtypes for the search filter controls."""
    return await service.load_filter_options()


# --- Recent searches ---


@router.get("/recent-searches/{user_id}", response_model=RecentSearchesResponse)
async def get_recent_searches(user_id: str, recent_dir: RecentDir) -> RecentSearchesResponse:
    """A user's last searches, most recent first."""
    searches = recent_searches_for(user_id, recent_dir).load()
    return RecentSearchesResponse(user_id=user_id, searches=searches)


@router.delete("/recent-searches/{user_id}", response_model=RecentSearchesResponse)
async def clear_recent_searches(user_id: str, recent_dir: RecentDir) -> RecentSearchesResponse:
    try:
        recent_searches_for(user_id, recent_dir).clear()
    except RecentSearchError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        ) from e
    return RecentSearchesResponse(user_id=user_id)


# --- Search-as-you-type ---


@router.websocket("/ws/suggestions")
async def suggestions_socket(
    websocket: WebSocket,
    service: Service,
    debounce: Annotated[float, Depends(get_suggestion_debounce)],
) -> None:
    """
    Debounced suggestions over a websocket.

    Clients send {"query": ..., "limit": ...} on every keystroke. Only the
    last query of a burst is looked up; superseded queries get no reply.
    """
    await websocket.accept()

    async def lookup(request: SuggestionRequest) -> SuggestionMessage:
        result = await service.get_suggestions(request.query, request.limit)
        return SuggestionMessage(query=request.query, suggestions=result.data, source=result.source)

    debouncer = Debouncer(lookup, wait=debounce)
    pending: set[asyncio.Task[None]] = set()

    async def reply(request: SuggestionRequest) -> None:
        message = await debouncer(request)
        if message is not None:
            await websocket.send_json(message.model_dump(mode="json"))

    try:
        while True:
            data = await websocket.receive_json()
            try:
                request = SuggestionRequest.model_validate(data)
            except ValidationError as e:
                await websocket.send_json({"error": "invalid request", "detail": str(e)})
                continue

            task = asyncio.create_task(reply(request))
            pending.add(task)
            task.add_done_callback(pending.discard)
    except WebSocketDisconnect:
        logger.debug("Suggestion socket closed")
    finally:
        debouncer.cancel()
        for task in pending:
            task.cancel()
