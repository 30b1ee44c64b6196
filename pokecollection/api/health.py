"""
Health check endpoints.

Liveness and readiness probes. Readiness checks the collection database;
the catalog is not required since the local dataset can always answer.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from pokecollection.db.database import get_session
from pokecollection.models.catalog import AccessMode
from pokecollection.services.catalog_service import CatalogService, get_catalog_service

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    catalog_mode: AccessMode | None = None


@router.get("/health", response_model=HealthResponse)
async def health(
    service: Annotated[CatalogService, Depends(get_catalog_service)],
) -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running, along with the catalog
    access mode. Does not check dependencies.
    """
    return HealthResponse(status="healthy", catalog_mode=service.mode)


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """
    Readiness probe.

    Checks database connectivity. Returns 503 if the database is unavailable.
    """
    try:
        await session.execute(text("SELECT 1"))
        return HealthResponse(status="ready", database="connected")
    except Exception:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")
