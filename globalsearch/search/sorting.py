"""Stable secondary orderings for merged search results."""

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from globalsearch.search.models import SearchResult, SearchSortOption

PRIORITY_RANKS: dict[str, int] = {
    "urgent": 4,
    "high": 3,
    "medium": 2,
    "low": 1,
}


def priority_rank(priority: Any) -> int:
    """Ordinal for a ``metadata['priority']`` value; unknown values rank 0."""
    if not isinstance(priority, str):
        return 0
    return PRIORITY_RANKS.get(priority, 0)


def _created(result: SearchResult) -> datetime:
    return result.created_at or datetime.min


def _updated(result: SearchResult) -> datetime:
    return result.updated_at or datetime.min


def _title(result: SearchResult) -> str:
    return result.title


def _priority(result: SearchResult) -> int:
    return priority_rank(result.metadata.get("priority"))


class Sorter:
    """Re-orders results on one key without disturbing ties.

    ``list.sort`` is stable in both directions, so results with equal keys
    keep the order they arrived in (relevance order after the merge).
    """

    KEYS: dict[SearchSortOption, Callable[[SearchResult], Any]] = {
        SearchSortOption.CREATED_DATE: _created,
        SearchSortOption.UPDATED_DATE: _updated,
        SearchSortOption.ALPHABETICAL: _title,
        SearchSortOption.PRIORITY: _priority,
    }

    def apply(
        self,
        results: Sequence[SearchResult],
        sort_by: SearchSortOption,
        ascending: bool = False,
    ) -> list[SearchResult]:
        ordered = list(results)
        key = self.KEYS.get(sort_by)
        if key is None:
            # Relevance: merge order is final.
            return ordered
        ordered.sort(key=key, reverse=not ascending)
        return ordered

    @staticmethod
    def by_relevance(results: Sequence[SearchResult]) -> list[SearchResult]:
        """Stable descending order on ``relevance_score``."""
        return sorted(results, key=lambda r: r.relevance_score, reverse=True)
