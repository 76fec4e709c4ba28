"""Live query input: debouncing, suggestions and stale-response rejection."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Protocol

from globalsearch.search.coordinator import QueryCoordinator
from globalsearch.search.history import SearchHistoryStore
from globalsearch.search.models import (
    DateRange,
    SearchFilter,
    SearchHistoryEntry,
    SearchRequest,
    SearchResponse,
    SearchResult,
    SearchResultType,
    SearchSortOption,
    SearchSuggestion,
)
from globalsearch.utils.logger import sanitize_log_content
from globalsearch.utils.mixins import LoggerMixin


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Source of delayed callbacks; swapped for a manual clock in tests."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """Schedules callbacks on the running asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class PipelineState(str, Enum):
    """Where the input session currently is."""

    IDLE = "idle"
    TYPING = "typing"
    SEARCHING = "searching"
    RESULTS = "results"
    EMPTY = "empty"


class InputPipeline(LoggerMixin):
    """Owns the mutable state of one search session.

    Keystrokes refresh suggestions immediately and re-arm a single debounce
    timer; the federated search only runs once typing pauses. Every search
    carries a sequence number and a response is applied only if it belongs
    to the latest search and the text it was issued for is still current.
    Superseded searches are not cancelled, their results are dropped.
    """

    def __init__(
        self,
        coordinator: QueryCoordinator,
        history: SearchHistoryStore | None = None,
        owner_id: str | None = None,
        debounce_seconds: float = 0.5,
        limit: int | None = None,
        scheduler: Scheduler | None = None,
        filters: SearchFilter | None = None,
    ):
        self.coordinator = coordinator
        self.history = history
        self.owner_id = owner_id
        self.debounce_seconds = debounce_seconds
        self.limit = limit
        self.scheduler = scheduler or LoopScheduler()

        self._query = ""
        self._filters = filters or SearchFilter()
        self._state = PipelineState.IDLE
        self._results: list[SearchResult] = []
        self._message: str | None = None
        self._suggestions: list[SearchSuggestion] = self._suggestions_for("")
        self._timer: TimerHandle | None = None
        self._sequence = 0
        self._in_flight: set[asyncio.Task[SearchResponse | None]] = set()

    # ------------------------------------------------------------------ state

    @property
    def query(self) -> str:
        return self._query

    @property
    def filters(self) -> SearchFilter:
        return self._filters

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def results(self) -> list[SearchResult]:
        return list(self._results)

    @property
    def suggestions(self) -> list[SearchSuggestion]:
        return list(self._suggestions)

    @property
    def message(self) -> str | None:
        return self._message

    @property
    def sequence(self) -> int:
        """Sequence number of the most recently issued search."""
        return self._sequence

    @property
    def has_query(self) -> bool:
        return bool(self._query.strip())

    @property
    def has_results(self) -> bool:
        return bool(self._results)

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    @property
    def is_searching(self) -> bool:
        return self._state is PipelineState.SEARCHING

    @property
    def search_history(self) -> list[SearchHistoryEntry]:
        return self.history.history if self.history else []

    # ----------------------------------------------------------------- typing

    def on_text_changed(self, text: str) -> None:
        """Handle a keystroke."""
        if text == self._query:
            return
        self._query = text

        if not text.strip():
            self._reset_results()
            self._suggestions = self._suggestions_for("")
            return

        self._suggestions = self._suggestions_for(text)
        self._state = PipelineState.TYPING
        self._arm_timer()

    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._timer = self.scheduler.call_later(
            self.debounce_seconds, self._on_debounce_elapsed
        )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_debounce_elapsed(self) -> None:
        self._timer = None
        if not self.has_query:
            return
        task = asyncio.get_running_loop().create_task(self._search(self._query))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def wait_idle(self) -> None:
        """Wait for every search started by the debounce timer."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    # -------------------------------------------------------------- searching

    async def submit(self, text: str | None = None) -> SearchResponse | None:
        """Search right away, skipping the debounce timer."""
        self._cancel_timer()
        if text is not None and text != self._query:
            self._query = text
            self._suggestions = self._suggestions_for(text)

        if not self.has_query:
            self._reset_results()
            return None
        return await self._search(self._query)

    async def _search(self, text: str) -> SearchResponse | None:
        self._sequence += 1
        request = SearchRequest(
            query=text,
            filters=self._filters,
            limit=self.coordinator.default_limit if self.limit is None else self.limit,
            owner_id=self.owner_id,
            sequence=self._sequence,
        )
        self._state = PipelineState.SEARCHING

        response = await self.coordinator.execute(request)

        if not self._is_current(response):
            self.logger.debug(
                "Discarding stale search response",
                query=sanitize_log_content(text),
                sequence=response.sequence,
                latest_sequence=self._sequence,
            )
            return None

        self._results = list(response.results)
        self._message = response.message
        self._state = (
            PipelineState.RESULTS if response.results else PipelineState.EMPTY
        )
        # The coordinator may have just recorded this query in the history.
        self._suggestions = self._suggestions_for(self._query)
        return response

    def _is_current(self, response: SearchResponse) -> bool:
        return (
            response.sequence == self._sequence
            and response.request.query == self._query
        )

    def _reset_results(self) -> None:
        self._cancel_timer()
        # Bumping the sequence turns any in-flight response stale.
        self._sequence += 1
        self._results = []
        self._message = None
        self._state = PipelineState.IDLE

    def clear_all(self) -> None:
        """Reset query, results and filters."""
        self._query = ""
        self._filters = SearchFilter()
        self._reset_results()
        self._suggestions = self._suggestions_for("")

    def close(self) -> None:
        self._cancel_timer()
        self._sequence += 1

    # ------------------------------------------------------------ suggestions

    def _suggestions_for(self, prefix: str) -> list[SearchSuggestion]:
        if self.history is None:
            return []
        return self.history.suggestions_for(prefix)

    def refresh_suggestions(self) -> list[SearchSuggestion]:
        self._suggestions = self._suggestions_for(self._query)
        return self.suggestions

    async def select_suggestion(
        self, suggestion: SearchSuggestion
    ) -> SearchResponse | None:
        return await self.submit(suggestion.text)

    async def select_history(self, entry: SearchHistoryEntry) -> SearchResponse | None:
        self._filters = entry.filters
        return await self.submit(entry.query)

    async def clear_history(self) -> None:
        if self.history is None or not self.owner_id:
            return
        await self.history.clear_history(self.owner_id)
        self.refresh_suggestions()

    # ---------------------------------------------------------------- filters

    async def update_filters(self, filters: SearchFilter) -> SearchResponse | None:
        """Replace the filter and re-run the search if there is a query."""
        if filters == self._filters:
            return None
        self._filters = filters
        if self.has_query:
            return await self.submit()
        return None

    async def add_type_filter(self, domain_type: SearchResultType) -> SearchResponse | None:
        return await self.update_filters(self._filters.with_type(domain_type))

    async def remove_type_filter(
        self, domain_type: SearchResultType
    ) -> SearchResponse | None:
        return await self.update_filters(self._filters.without_type(domain_type))

    async def add_tag_filter(self, tag: str) -> SearchResponse | None:
        return await self.update_filters(self._filters.with_tag(tag))

    async def remove_tag_filter(self, tag: str) -> SearchResponse | None:
        return await self.update_filters(self._filters.without_tag(tag))

    async def set_date_range(
        self, start: datetime | None, end: datetime | None = None
    ) -> SearchResponse | None:
        date_range = None
        if start is not None and end is not None:
            date_range = DateRange(start=start, end=end)
        return await self.update_filters(self._filters.copy_with(date_range=date_range))

    async def set_sort_option(
        self, sort_by: SearchSortOption, ascending: bool = False
    ) -> SearchResponse | None:
        return await self.update_filters(
            self._filters.copy_with(sort_by=sort_by, sort_ascending=ascending)
        )

    async def clear_filters(self) -> SearchResponse | None:
        return await self.update_filters(SearchFilter())

    # ------------------------------------------------------------- UI helpers

    @property
    def placeholder(self) -> str:
        if self._filters.types:
            names = ", ".join(
                sorted(t.display_name.lower() for t in self._filters.types)
            )
            return f"Search {names}..."
        return "Search tasks, teams, projects, users..."

    @property
    def filter_summary(self) -> str:
        parts = []
        if self._filters.types:
            parts.append(f"{len(self._filters.types)} types")
        if self._filters.date_range is not None:
            parts.append("date range")
        if self._filters.tags:
            parts.append(f"{len(self._filters.tags)} tags")
        if self._filters.custom_filters:
            parts.append(f"{len(self._filters.custom_filters)} custom")

        if not parts:
            return "No filters applied"
        return f"Filtered by: {', '.join(parts)}"

    @property
    def result_summary(self) -> str:
        query = self._query.strip()
        if not self._results:
            return f'No results found for "{query}"' if query else ""

        count = len(self._results)
        suffix = f' for "{query}"' if query else ""
        return f"{count} result{'' if count == 1 else 's'}{suffix}"

    def result_counts_by_type(self) -> dict[SearchResultType, int]:
        counts: dict[SearchResultType, int] = {}
        for result in self._results:
            counts[result.domain_type] = counts.get(result.domain_type, 0) + 1
        return counts

    def results_by_type(self, domain_type: SearchResultType) -> list[SearchResult]:
        return [r for r in self._results if r.domain_type == domain_type]
