"""
Catalog access mode resolution.

An explicitly configured ACCESS_MODE always wins. Without one, the legacy
deployment rule applies: production builds served from a static host with
no server-side code go offline, other production hosts use the
same-origin proxy, and development talks to the catalog directly.
"""

import logging
from collections.abc import Iterable

from pokecollection.config import Settings
from pokecollection.models.catalog import AccessMode

logger = logging.getLogger(__name__)


def is_offline_host(production: bool, hostname: str, patterns: Iterable[str]) -> bool:
    """True only for production builds whose hostname matches a static-host pattern."""
    if not production:
        return False
    host = hostname.lower()
    return any(pattern.lower() in host for pattern in patterns if pattern)


def resolve_access_mode(config: Settings) -> AccessMode:
    """Decide how this process reaches the catalog."""
    if config.access_mode is not None:
        logger.debug("Using configured access mode %s", config.access_mode.value)
        return config.access_mode

    production = config.environment == "production"
    if is_offline_host(production, config.public_hostname, config.offline_host_patterns):
        mode = AccessMode.OFFLINE
    elif production:
        mode = AccessMode.PROXY
    else:
        mode = AccessMode.DIRECT

    logger.info(
        "Resolved access mode %s from environment=%s hostname=%r",
        mode.value,
        config.environment,
        config.public_hostname,
    )
    return mode
