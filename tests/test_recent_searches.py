"""Tests for per-user recent search history."""

from pathlib import Path

import pytest

from pokecollection.services.recent_searches import (
    RecentSearchError,
    RecentSearches,
    recent_searches_for,
)


@pytest.fixture
def history(tmp_path: Path) -> RecentSearches:
    return RecentSearches(tmp_path / "ash.json")


class TestRecentSearches:
    def test_empty_when_missing(self, history: RecentSearches) -> None:
        assert history.load() == []

    def test_most_recent_first(self, history: RecentSearches) -> None:
        history.record("pikachu")
        history.record("charizard")

        assert history.load() == ["charizard", "pikachu"]

    def test_duplicates_move_to_front(self, history: RecentSearches) -> None:
        for query in ("pikachu", "charizard", "pikachu"):
            history.record(query)

        assert history.load() == ["pikachu", "charizard"]

    def test_keeps_five(self, history: RecentSearches) -> None:
        for i in range(7):
            history.record(f"query {i}")

        assert history.load() == [f"query {i}" for i in (6, 5, 4, 3, 2)]

    def test_blank_ignored(self, history: RecentSearches) -> None:
        history.record("mew")
        assert history.record("   ") == ["mew"]
        assert history.load() == ["mew"]

    def test_query_trimmed(self, history: RecentSearches) -> None:
        history.record("  mew  ")
        assert history.load() == ["mew"]

    def test_corrupt_file_reads_empty(self, history: RecentSearches) -> None:
        history.path.write_text("{not json")
        assert history.load() == []

    def test_non_list_reads_empty(self, history: RecentSearches) -> None:
        history.path.write_text('{"searches": ["mew"]}')
        assert history.load() == []

    def test_clear(self, history: RecentSearches) -> None:
        history.record("mew")
        history.clear()
        assert history.load() == []

    def test_write_failure_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        history = RecentSearches(blocker / "ash.json")

        with pytest.raises(RecentSearchError):
            history.record("mew")


class TestRecentSearchesFor:
    def test_one_file_per_user(self, tmp_path: Path) -> None:
        recent_searches_for("ash", tmp_path).record("pikachu")
        recent_searches_for("misty", tmp_path).record("staryu")

        assert recent_searches_for("ash", tmp_path).load() == ["pikachu"]
        assert recent_searches_for("misty", tmp_path).load() == ["staryu"]

    def test_user_id_cannot_escape_directory(self, tmp_path: Path) -> None:
        history = recent_searches_for("../../etc/passwd", tmp_path)
        assert history.path.parent == tmp_path
