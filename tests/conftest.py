from typing import Any

import pytest

from pokecollection.models.catalog import AccessMode
from pokecollection.services.catalog_service import CatalogService
from pokecollection.services.local_dataset import LocalCardDataset, load_local_dataset


@pytest.fixture
def dataset() -> LocalCardDataset:
    """The bundled offline dataset."""
    return load_local_dataset()


@pytest.fixture
def offline_service(dataset: LocalCardDataset) -> CatalogService:
    """Offline catalog service with no simulated delay."""
    return CatalogService(
        AccessMode.OFFLINE,
        None,
        dataset,
        offline_latency=(0.0, 0.0),
        request_interval=0.0,
    )


@pytest.fixture
def card_payload() -> dict[str, Any]:
    """A card as the catalog returns it."""
    return {
        "id": "sv3pt5-6",
        "name": "Charizard ex",
        "supertype": "Pokémon",
        "subtypes": ["Stage 2", "ex"],
        "hp": "330",
        "types": ["Fire"],
        "number": "6",
        "rarity": "Double Rare",
        "set": {
            "id": "sv3pt5",
            "name": "151",
            "series": "Scarlet & Violet",
            "total": 207,
            "ptcgoCode": "MEW",
            "releaseDate": "2023/09/22",
            "images": {
                "symbol": "https://images.pokemontcg.io/sv3pt5/symbol.png",
                "logo": "https://images.pokemontcg.io/sv3pt5/logo.png",
            },
        },
        "images": {
            "small": "https://images.pokemontcg.io/sv3pt5/6.png",
            "large": "https://images.pokemontcg.io/sv3pt5/6_hires.png",
        },
        "cardmarket": {"prices": {"averageSellPrice": 12.5}},
        "tcgplayer": {"prices": {"holofoil": {"market": 14.0}}},
    }
