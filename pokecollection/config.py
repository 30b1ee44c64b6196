from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pokecollection.models.catalog import AccessMode


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "PokeCollection"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/pokecollection"

    # Deployment signals, only consulted when access_mode is not set explicitly
    environment: Literal["development", "production"] = "development"
    public_hostname: str = ""
    offline_host_patterns: list[str] = ["webexige.fr", "o2switch"]

    access_mode: AccessMode | None = None

    catalog_base_url: str = "https://api.pokemontcg.io/v2"
    proxy_base_url: str = "http://localhost:8000/api/pokemon"

    # Server-side secret; never accepted from clients
    pokemon_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("POKEMON_API_KEY", "VITE_POKEMON_API_KEY"),
    )

    catalog_timeout_seconds: float = 30.0
    catalog_retry_delay_seconds: float = 1.0
    proxy_timeout_seconds: float = 30.0

    cache_ttl_seconds: float = 300.0
    search_timeout_seconds: float = 5.0

    offline_latency_min_seconds: float = 0.1
    offline_latency_max_seconds: float = 0.8

    # Unauthenticated catalog limit is 30 requests/minute
    catalog_request_interval_seconds: float = 0.2

    suggestion_debounce_seconds: float = 0.5

    recent_searches_dir: Path = Path(".recent-searches")
    offline_dataset_path: Path | None = None


settings = Settings()


# =============================================================================
# CATALOG LIMITS
# =============================================================================

# Suggestions are not requested for shorter input
MIN_SUGGESTION_QUERY_LENGTH = 2

# Recent searches kept per user
MAX_RECENT_SEARCHES = 5

# Sets offered in the search filter controls
FILTER_SET_LIMIT = 20
