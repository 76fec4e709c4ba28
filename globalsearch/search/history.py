"""Search history persistence and query suggestions."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any

from globalsearch.search.errors import HistoryPersistenceFailed, InvalidFilter
from globalsearch.search.models import (
    SearchFilter,
    SearchHistoryEntry,
    SearchSuggestion,
    SearchSuggestionType,
)
from globalsearch.search.stores import HistoryCollection
from globalsearch.utils.logger import sanitize_log_content
from globalsearch.utils.mixins import LoggerMixin

DEFAULT_POPULAR_TERMS = ("urgent", "bug", "feature", "design", "backend")
POPULAR_TERM_FREQUENCY = 10


class SearchHistoryStore(LoggerMixin):
    """Owner-scoped search history with a derived suggestion list.

    The cached history and suggestions only change after the backing
    collection confirmed the write or delete.
    """

    def __init__(
        self,
        collection: HistoryCollection,
        popular_terms: Sequence[str] = DEFAULT_POPULAR_TERMS,
        history_limit: int = 20,
        suggestion_limit: int = 10,
        recent_query_count: int = 5,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.collection = collection
        self.popular_terms = tuple(popular_terms)
        self.history_limit = history_limit
        self.suggestion_limit = suggestion_limit
        self.recent_query_count = recent_query_count
        self.clock = clock

        self._owner_id: str | None = None
        self._history: list[SearchHistoryEntry] = []
        self._suggestions: list[SearchSuggestion] = []
        self._rebuild_suggestions()

    @property
    def owner_id(self) -> str | None:
        return self._owner_id

    @property
    def history(self) -> list[SearchHistoryEntry]:
        return list(self._history)

    @property
    def suggestions(self) -> list[SearchSuggestion]:
        return list(self._suggestions)

    async def load(self, owner_id: str) -> list[SearchHistoryEntry]:
        """Reload the owner's most recent entries into the cache."""
        try:
            records = await self.collection.query_by_owner(owner_id, self.history_limit)
        except HistoryPersistenceFailed:
            raise
        except Exception as e:
            raise HistoryPersistenceFailed(
                f"Failed to load search history: {e}"
            ) from e

        self._owner_id = owner_id
        self._history = self._parse_records(records)
        self._rebuild_suggestions()
        return self.history

    async def record_search(
        self,
        query: str,
        filters: SearchFilter,
        result_count: int,
        owner_id: str,
    ) -> SearchHistoryEntry:
        """Persist one completed search, then reload the owner's history."""
        query = query.strip()
        if not query:
            raise ValueError("Cannot record an empty search query")

        entry = SearchHistoryEntry(
            id="",
            query=query,
            filters=filters,
            timestamp=self.clock(),
            result_count=result_count,
            owner_id=owner_id,
        )

        try:
            entry_id = await self.collection.add(entry.to_record())
        except HistoryPersistenceFailed:
            raise
        except Exception as e:
            raise HistoryPersistenceFailed(
                f"Failed to save search to history: {e}"
            ) from e

        stored = entry.model_copy(update={"id": entry_id})
        await self.load(owner_id)

        self.logger.debug(
            "Search recorded",
            entry_id=entry_id,
            query=sanitize_log_content(query),
            result_count=result_count,
        )
        return stored

    async def clear_history(self, owner_id: str) -> int:
        """Delete every entry of the owner; all-or-nothing."""
        try:
            deleted = await self.collection.delete_by_owner(owner_id)
        except HistoryPersistenceFailed:
            raise
        except Exception as e:
            raise HistoryPersistenceFailed(
                f"Failed to clear search history: {e}"
            ) from e

        if owner_id == self._owner_id:
            self._history = []
            self._rebuild_suggestions()

        self.logger.info("Search history cleared", owner_id=owner_id, deleted=deleted)
        return deleted

    def suggestions_for(self, prefix: str) -> list[SearchSuggestion]:
        """Suggestions whose text contains ``prefix`` (case-insensitive)."""
        needle = prefix.strip().lower()
        if not needle:
            return self._suggestions[: self.suggestion_limit]
        return [s for s in self._suggestions if needle in s.text.lower()][
            : self.suggestion_limit
        ]

    def _parse_records(
        self, records: Sequence[Mapping[str, Any]]
    ) -> list[SearchHistoryEntry]:
        entries: list[SearchHistoryEntry] = []
        for record in records:
            try:
                entries.append(SearchHistoryEntry.from_record(record))
            except (InvalidFilter, ValueError, TypeError, AttributeError) as e:
                # 壊れたレコードは読み飛ばす
                self.logger.warning(
                    "Skipping malformed history record",
                    record_id=(
                        record.get("id") if isinstance(record, Mapping) else None
                    ),
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return entries

    def _rebuild_suggestions(self) -> None:
        suggestions: list[SearchSuggestion] = []
        seen: set[str] = set()

        for entry in self._history:
            if len(suggestions) >= self.recent_query_count:
                break
            key = entry.query.lower()
            if key in seen:
                continue
            seen.add(key)
            uses = [e for e in self._history if e.query.lower() == key]
            suggestions.append(
                SearchSuggestion(
                    text=entry.query,
                    suggestion_type=SearchSuggestionType.QUERY,
                    frequency=len(uses),
                    last_used_at=max(e.timestamp for e in uses),
                )
            )

        now = self.clock()
        for term in self.popular_terms:
            if term.lower() in seen:
                continue
            seen.add(term.lower())
            suggestions.append(
                SearchSuggestion(
                    text=term,
                    suggestion_type=SearchSuggestionType.TAG,
                    frequency=POPULAR_TERM_FREQUENCY,
                    last_used_at=now,
                )
            )

        self._suggestions = suggestions
