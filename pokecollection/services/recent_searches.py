"""
Recent search history.

Keeps the last few search strings per user, most recent first, in a small
JSON file. Corrupt or missing files read as an empty history.
"""

import json
import logging
import re
from pathlib import Path

from pokecollection.config import MAX_RECENT_SEARCHES, settings

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class RecentSearchError(Exception):
    """Raised when the search history cannot be written."""

    pass


class RecentSearches:
    """Ordered, de-duplicated list of recent search strings stored as JSON text."""

    def __init__(self, path: Path, limit: int = MAX_RECENT_SEARCHES) -> None:
        self.path = path
        self.limit = limit

    def load(self) -> list[str]:
        if not self.path.exists():
            return []

        try:
            stored = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable search history %s: %s", self.path, e)
            return []

        if not isinstance(stored, list):
            logger.warning("Ignoring malformed search history %s", self.path)
            return []
        return [s for s in stored if isinstance(s, str)][: self.limit]

    def record(self, query: str) -> list[str]:
        """
        Put `query` first, dropping any older copy and anything past the limit.

        Blank queries leave the history unchanged.

        Raises:
            RecentSearchError: If the history file cannot be written
        """
        query = query.strip()
        current = self.load()
        if not query:
            return current

        updated = [query, *(s for s in current if s != query)][: self.limit]
        self._write(updated)
        return updated

    def clear(self) -> None:
        self._write([])

    def _write(self, searches: list[str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(searches), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise RecentSearchError(f"Could not save search history to {self.path}") from e


def recent_searches_for(user_id: str, directory: Path | None = None) -> RecentSearches:
    """History store for one user, under `directory` (default from settings)."""
    if directory is None:
        directory = settings.recent_searches_dir

    safe_id = _UNSAFE_FILENAME_CHARS.sub("_", user_id.strip()) or "_"
    return RecentSearches(directory / f"{safe_id}.json")
