from pokecollection.db.database import get_session, init_db
from pokecollection.db.operations import (
    add_to_collection,
    clear_collection,
    entry_to_model,
    get_entries,
    get_entries_for_set,
    get_entry,
    remove_from_collection,
    update_notes,
    update_status,
)

__all__ = [
    "add_to_collection",
    "clear_collection",
    "entry_to_model",
    "get_entries",
    "get_entries_for_set",
    "get_entry",
    "get_session",
    "init_db",
    "remove_from_collection",
    "update_notes",
    "update_status",
]
