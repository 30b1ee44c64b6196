"""
Same-origin catalog proxy.

Forwards GET requests under /api/pokemon/ to the catalog, attaching the
server-side API key so browsers never see it. Any upstream failure comes
back as a structured 500 so callers can fall back to local data.
"""

import logging
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from typing import Annotated, Any

import httpx
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from pokecollection.config import settings
from pokecollection.services.catalog_client import API_KEY_HEADER

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pokemon", tags=["proxy"])

USER_AGENT = "PokeCollection/1.0"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Api-Key",
}


class UpstreamError(Exception):
    """Raised when the catalog does not return a usable JSON response."""

    pass


async def get_upstream_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Dependency that provides the HTTP client used to reach the catalog."""
    async with httpx.AsyncClient(
        timeout=settings.proxy_timeout_seconds, follow_redirects=True
    ) as client:
        yield client


def build_upstream_url(path: str, query: str) -> str:
    """Catalog URL for a proxied path, query string forwarded verbatim."""
    url = f"{settings.catalog_base_url.rstrip('/')}/{path.lstrip('/')}"
    return f"{url}?{query}" if query else url


def upstream_headers() -> dict[str, str]:
    # Only the server's own key is forwarded, never one sent by the browser
    headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    if settings.pokemon_api_key:
        headers[API_KEY_HEADER] = settings.pokemon_api_key
    return headers


async def fetch_upstream(client: httpx.AsyncClient, url: str) -> tuple[int, Any]:
    """
    GET the catalog and return (status, JSON body).

    Raises:
        UpstreamError: On timeout, transport failure, non-2xx status or a
            body that is not JSON
    """
    try:
        response = await client.get(url, headers=upstream_headers())
    except httpx.TimeoutException as e:
        raise UpstreamError("Catalog request timed out") from e
    except httpx.HTTPError as e:
        raise UpstreamError(f"Catalog request failed: {e}") from e

    if not response.is_success:
        raise UpstreamError(f"API responded with status: {response.status_code}")

    try:
        return response.status_code, response.json()
    except ValueError as e:
        raise UpstreamError("Catalog returned a non-JSON body") from e


@router.options("/{path:path}")
async def preflight(path: str) -> Response:
    """CORS preflight: empty 200 with the allowed methods and headers."""
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


@router.get("/{path:path}")
async def forward(
    path: str,
    request: Request,
    client: Annotated[httpx.AsyncClient, Depends(get_upstream_client)],
) -> JSONResponse:
    """
    Forward a catalog GET.

    The upstream status and body pass through unchanged on success.
    Failures become a 500 with error, message, timestamp and path.
    """
    url = build_upstream_url(path, request.url.query)
    logger.info("Proxying catalog request to %s", url)

    try:
        upstream_status, body = await fetch_upstream(client, url)
    except UpstreamError as e:
        logger.error("Proxy request for /%s failed: %s", path, e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Proxy API Error",
                "message": str(e),
                "timestamp": datetime.now(UTC).isoformat(),
                "path": path,
            },
            headers=CORS_HEADERS,
        )

    return JSONResponse(status_code=upstream_status, content=body, headers=CORS_HEADERS)
