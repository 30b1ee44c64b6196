from pokecollection.models.catalog import (
    AccessMode,
    Card,
    CardImages,
    CardPage,
    CardSet,
    CatalogResult,
    ConnectivityReport,
    DataSource,
    FilterOptions,
    SearchFilters,
    SetImages,
    check_paging,
    count_pages,
    sort_sets_newest_first,
)
from pokecollection.models.collection import (
    CardCondition,
    CardSnapshot,
    CollectionEntry,
    CollectionStats,
    CollectionStatus,
    calculate_stats,
)

__all__ = [
    "AccessMode",
    "Card",
    "CardCondition",
    "CardImages",
    "CardPage",
    "CardSet",
    "CardSnapshot",
    "CatalogResult",
    "CollectionEntry",
    "CollectionStats",
    "CollectionStatus",
    "ConnectivityReport",
    "DataSource",
    "FilterOptions",
    "SearchFilters",
    "SetImages",
    "calculate_stats",
    "check_paging",
    "count_pages",
    "sort_sets_newest_first",
]
