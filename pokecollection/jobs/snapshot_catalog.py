"""
Refresh the bundled offline catalog.

Pulls the most recent sets, a page of cards from each and the lookup
lists from the live catalog, then rewrites the offline dataset used by
offline mode and every fallback. Requests are spaced out to stay under
the catalog's rate limit.
"""

import argparse
import asyncio
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

from pokecollection.config import settings
from pokecollection.models.catalog import AccessMode, Card, CardSet
from pokecollection.services.catalog_client import CatalogClient
from pokecollection.services.local_dataset import DEFAULT_DATASET_PATH

logger = logging.getLogger(__name__)

DEFAULT_SET_COUNT = 7
DEFAULT_CARDS_PER_SET = 20


def _set_to_dict(card_set: CardSet) -> dict[str, Any]:
    return card_set.model_dump(mode="json", by_alias=True, exclude_none=True)


def _card_to_dict(card: Card) -> dict[str, Any]:
    raw = card.model_dump(mode="json", by_alias=True, exclude_none=True)
    # Sets are stored once at top level; cards keep only the reference
    raw["set"] = {"id": card.card_set.id} if card.card_set else None
    raw.pop("marketPrice", None)
    return raw


async def build_snapshot(
    client: CatalogClient,
    set_count: int = DEFAULT_SET_COUNT,
    cards_per_set: int = DEFAULT_CARDS_PER_SET,
    interval: float = 0.2,
) -> dict[str, Any]:
    """
    Fetch a catalog slice in the offline dataset's layout.

    Args:
        client: Catalog client, normally in direct mode
        set_count: How many of the newest sets to keep
        cards_per_set: Cards fetched per set, lowest numbers first
        interval: Seconds to wait between requests

    Returns:
        Dict ready to be written as the offline dataset
    """
    sets = (await client.list_sets())[:set_count]
    logger.info("Snapshotting %d sets", len(sets))

    cards: list[Card] = []
    for card_set in sets:
        await asyncio.sleep(interval)
        page = await client.list_cards_by_set(card_set.id, page=1, page_size=cards_per_set)
        logger.info("Fetched %d cards from %s", len(page.cards), card_set.id)
        cards.extend(page.cards)

    await asyncio.sleep(interval)
    types = await client.list_types()
    await asyncio.sleep(interval)
    subtypes = await client.list_subtypes()
    await asyncio.sleep(interval)
    rarities = await client.list_rarities()

    return {
        "lastUpdate": date.today().isoformat(),
        "types": types,
        "subtypes": subtypes,
        "rarities": rarities,
        "sets": [_set_to_dict(s) for s in sets],
        "cards": [_card_to_dict(c) for c in cards],
    }


def write_snapshot(snapshot: dict[str, Any], path: Path) -> None:
    """Write the dataset atomically so a failed run leaves the old file intact."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".tmp")
    tmp_path.write_text(json.dumps(snapshot, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp_path.replace(path)


async def run_snapshot(
    output: Path,
    set_count: int = DEFAULT_SET_COUNT,
    cards_per_set: int = DEFAULT_CARDS_PER_SET,
) -> int:
    """Snapshot the live catalog to `output`. Returns the number of cards written."""
    client = CatalogClient.for_mode(AccessMode.DIRECT, settings)
    if not client.sends_api_key:
        logger.warning("No catalog API key configured, requests are rate limited")

    try:
        snapshot = await build_snapshot(
            client,
            set_count=set_count,
            cards_per_set=cards_per_set,
            interval=settings.catalog_request_interval_seconds,
        )
    except Exception as e:
        logger.error("Failed to snapshot catalog: %s", e)
        raise
    finally:
        await client.aclose()

    write_snapshot(snapshot, output)
    logger.info(
        "Wrote %d sets and %d cards to %s", len(snapshot["sets"]), len(snapshot["cards"]), output
    )
    return len(snapshot["cards"])


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Refresh the offline card dataset")
    parser.add_argument("--sets", type=int, default=DEFAULT_SET_COUNT)
    parser.add_argument("--cards-per-set", type=int, default=DEFAULT_CARDS_PER_SET)
    parser.add_argument("--output", type=Path, default=DEFAULT_DATASET_PATH)
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_snapshot(args.output, args.sets, args.cards_per_set))


if __name__ == "__main__":
    main()
