"""Entry point wiring sources, coordinator and history from settings."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime

from globalsearch.config import Settings, get_settings
from globalsearch.search.coordinator import QueryCoordinator
from globalsearch.search.history import SearchHistoryStore
from globalsearch.search.models import (
    SearchFilter,
    SearchHistoryEntry,
    SearchResponse,
    SearchResultType,
    SearchSuggestion,
)
from globalsearch.search.pipeline import InputPipeline, Scheduler
from globalsearch.search.scoring import RelevanceScorer
from globalsearch.search.sources import create_default_registry
from globalsearch.search.stores import (
    HistoryCollection,
    JsonHistoryCollection,
    RecordCollection,
)
from globalsearch.utils.error_handler import safe_with_default
from globalsearch.utils.logger import setup_logging
from globalsearch.utils.mixins import LoggerMixin


class GlobalSearchService(LoggerMixin):
    """Caller-facing search operations for one signed-in owner."""

    def __init__(
        self,
        coordinator: QueryCoordinator,
        history: SearchHistoryStore,
        owner_id: str | None = None,
        settings: Settings | None = None,
    ):
        self.coordinator = coordinator
        self.history = history
        self.owner_id = owner_id
        self.settings = settings or get_settings()

    @classmethod
    def create(
        cls,
        collections: Mapping[SearchResultType, RecordCollection],
        history_collection: HistoryCollection | None = None,
        owner_id: str | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = datetime.now,
        configure_logging: bool = True,
    ) -> GlobalSearchService:
        settings = settings or get_settings()
        if configure_logging:
            setup_logging(settings)

        scorer = RelevanceScorer(
            recency_window_days=settings.recency_window_days, clock=clock
        )
        registry = create_default_registry(collections, scorer=scorer)

        if history_collection is None:
            history_collection = JsonHistoryCollection(
                settings.history_file, retention=settings.history_retention
            )
        history = SearchHistoryStore(
            history_collection,
            popular_terms=settings.popular_search_terms,
            history_limit=settings.history_limit,
            suggestion_limit=settings.suggestion_limit,
            recent_query_count=settings.recent_query_suggestions,
            clock=clock,
        )
        coordinator = QueryCoordinator(
            registry, history=history, default_limit=settings.default_result_limit
        )
        return cls(coordinator, history, owner_id=owner_id, settings=settings)

    @safe_with_default("load search history", default_value=[])
    async def load_history(self) -> list[SearchHistoryEntry]:
        """Warm the history cache; failures leave it empty."""
        if not self.owner_id:
            return []
        return await self.history.load(self.owner_id)

    async def search(
        self,
        query: str,
        filters: SearchFilter | None = None,
        limit: int | None = None,
    ) -> SearchResponse:
        return await self.coordinator.search(
            query, filters=filters, limit=limit, owner_id=self.owner_id
        )

    def suggestions_for(self, prefix: str) -> list[SearchSuggestion]:
        return self.history.suggestions_for(prefix)

    async def clear_history(self, owner_id: str | None = None) -> int:
        owner_id = owner_id or self.owner_id
        if not owner_id:
            return 0
        return await self.history.clear_history(owner_id)

    def create_pipeline(self, scheduler: Scheduler | None = None) -> InputPipeline:
        return InputPipeline(
            self.coordinator,
            history=self.history,
            owner_id=self.owner_id,
            debounce_seconds=self.settings.debounce_seconds,
            scheduler=scheduler,
        )
