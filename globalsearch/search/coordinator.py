"""Federated search across the registered domain sources."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

from globalsearch.search.errors import HistoryPersistenceFailed
from globalsearch.search.history import SearchHistoryStore
from globalsearch.search.models import (
    SearchFilter,
    SearchRequest,
    SearchResponse,
    SearchResult,
    SearchResultType,
)
from globalsearch.search.sorting import Sorter
from globalsearch.search.sources import SourceRegistry
from globalsearch.utils.error_handler import ErrorHandler
from globalsearch.utils.logger import sanitize_log_content
from globalsearch.utils.mixins import LoggerMixin

SEARCH_FAILED_MESSAGE = "Failed to perform search. Please try again."
PARTIAL_RESULTS_MESSAGE = "Some results could not be loaded"

# Every selected domain gets limit // DOMAIN_SHARE results, however many
# domains are actually selected.
DOMAIN_SHARE = 4


class QueryCoordinator(LoggerMixin):
    """Fans a query out to the selected domains and merges the answers.

    The coordinator keeps no per-search state: each call builds its own
    request/response pair, so overlapping searches never interfere.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        history: SearchHistoryStore | None = None,
        sorter: Sorter | None = None,
        default_limit: int = 50,
    ):
        self.registry = registry
        self.history = history
        self.sorter = sorter or Sorter()
        self.default_limit = default_limit

    async def search(
        self,
        query: str,
        filters: SearchFilter | None = None,
        limit: int | None = None,
        owner_id: str | None = None,
        sequence: int = 0,
    ) -> SearchResponse:
        request = SearchRequest(
            query=query,
            filters=filters or SearchFilter(),
            limit=self.default_limit if limit is None else limit,
            owner_id=owner_id,
            sequence=sequence,
        )
        return await self.execute(request)

    async def execute(self, request: SearchRequest) -> SearchResponse:
        """Run one search; failures degrade to an empty, flagged response."""
        if request.is_empty:
            return SearchResponse(request=request)

        started = time.perf_counter()
        try:
            results, failed = await self._federate(request)
        except Exception as e:
            return ErrorHandler.log_and_return_default(
                "perform search",
                e,
                SearchResponse(
                    request=request,
                    message=SEARCH_FAILED_MESSAGE,
                    elapsed_ms=_elapsed_ms(started),
                ),
                query=sanitize_log_content(request.query),
            )

        await self._record_history(request, len(results))

        message = None
        if failed:
            domains = ", ".join(sorted(d.value for d in failed))
            message = f"{PARTIAL_RESULTS_MESSAGE}: {domains}"

        response = SearchResponse(
            request=request,
            results=results,
            failed_domains=failed,
            message=message,
            elapsed_ms=_elapsed_ms(started),
        )
        self.logger.info(
            "Search completed",
            query=sanitize_log_content(request.query),
            sequence=request.sequence,
            total_results=len(results),
            failed_domains=sorted(d.value for d in failed),
            elapsed_ms=round(response.elapsed_ms, 2),
        )
        return response

    async def _federate(
        self, request: SearchRequest
    ) -> tuple[list[SearchResult], frozenset[SearchResultType]]:
        query = request.normalized_query
        filters = request.filters
        sources = self.registry.select(filters.types)
        if not sources:
            self.logger.info(
                "No search sources selected",
                types=sorted(t.value for t in filters.types),
            )
            return [], frozenset()

        domain_limit = request.limit // DOMAIN_SHARE
        outcomes = await asyncio.gather(
            *(source.collect(query, filters, domain_limit) for source in sources),
            return_exceptions=True,
        )

        merged: list[SearchResult] = []
        failed: set[SearchResultType] = set()
        for source, outcome in zip(sources, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                failed.add(source.domain_type)
                self.logger.warning(
                    "Search source failed",
                    domain=source.domain_type.value,
                    error=str(outcome),
                    error_type=type(outcome).__name__,
                )
                continue
            merged.extend(outcome)

        ranked = Sorter.by_relevance(_deduplicate(merged))
        ordered = self.sorter.apply(ranked, filters.sort_by, filters.sort_ascending)
        return ordered[: request.limit], frozenset(failed)

    async def _record_history(self, request: SearchRequest, result_count: int) -> None:
        if self.history is None or not request.owner_id:
            return
        try:
            await self.history.record_search(
                request.normalized_query,
                request.filters,
                result_count,
                request.owner_id,
            )
        except HistoryPersistenceFailed as e:
            self.logger.warning(
                "Failed to save search to history",
                owner_id=request.owner_id,
                error=str(e),
            )
        except Exception as e:
            ErrorHandler.log_and_return_default(
                "record search history", e, None, owner_id=request.owner_id
            )


def _deduplicate(results: Sequence[SearchResult]) -> list[SearchResult]:
    seen: set[tuple[SearchResultType, str]] = set()
    unique: list[SearchResult] = []
    for result in results:
        if result.key in seen:
            continue
        seen.add(result.key)
        unique.append(result)
    return unique


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
