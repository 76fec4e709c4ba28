"""Domain source adapter shared by every searchable entity domain."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from globalsearch.search.errors import SourceUnavailable
from globalsearch.search.filters import FilterEngine
from globalsearch.search.models import SearchFilter, SearchResult, SearchResultType
from globalsearch.search.scoring import DomainRules, RelevanceScorer
from globalsearch.search.stores import RecordCollection
from globalsearch.utils.logger import sanitize_log_content
from globalsearch.utils.mixins import LoggerMixin

ResultBuilder = Callable[[Mapping[str, Any], float], SearchResult]


class PassKind(str, Enum):
    """Store lookup used by a search pass."""

    PREFIX = "prefix"
    ARRAY_CONTAINS = "array_contains"


@dataclass(frozen=True)
class SearchPass:
    """One store lookup run while a domain still has room for results."""

    field: str
    kind: PassKind = PassKind.PREFIX
    lowercase_query: bool = False


@dataclass(frozen=True)
class DomainSpec:
    """Everything that differs between domains."""

    domain_type: SearchResultType
    passes: tuple[SearchPass, ...]
    rules: DomainRules
    build_result: ResultBuilder


class DomainSource(LoggerMixin):
    """Searches one domain's collection and wraps hits as results.

    Passes run in order until ``limit`` results are collected. A record
    reached by more than one pass is only emitted once, and records the
    filter rejects do not count towards the limit.

    The coordinator calls :meth:`collect`, which raises, so it can report
    the domain as failed.
    :meth:`search` is for callers querying a single domain on its own.
    """

    def __init__(
        self,
        spec: DomainSpec,
        collection: RecordCollection,
        scorer: RelevanceScorer | None = None,
        filter_engine: FilterEngine | None = None,
    ):
        self.spec = spec
        self.collection = collection
        self.scorer = scorer or RelevanceScorer()
        self.filter_engine = filter_engine or FilterEngine()

    @property
    def domain_type(self) -> SearchResultType:
        return self.spec.domain_type

    def score(self, record: Mapping[str, Any], query: str) -> float:
        return self.scorer.score(self.spec.rules, record, query)

    async def collect(
        self, query: str, filters: SearchFilter, limit: int
    ) -> list[SearchResult]:
        """Run the passes; store failures raise :class:`SourceUnavailable`."""
        results: list[SearchResult] = []
        seen: set[str] = set()

        for search_pass in self.spec.passes:
            remaining = limit - len(results)
            if remaining <= 0:
                break

            records = await self._run_pass(search_pass, query, remaining)
            for record in records:
                record_id = str(record.get("id") or "")
                if not record_id or record_id in seen:
                    continue
                if not self.filter_engine.passes(record, filters):
                    continue
                seen.add(record_id)
                results.append(
                    self.spec.build_result(record, self.score(record, query))
                )

        return results

    async def search(
        self, query: str, filters: SearchFilter, limit: int
    ) -> list[SearchResult]:
        """Like :meth:`collect`, but a failing store yields no results."""
        try:
            return await self.collect(query, filters, limit)
        except SourceUnavailable as e:
            self.logger.warning(
                "Search source unavailable",
                domain=self.domain_type.value,
                query=sanitize_log_content(query),
                error=str(e),
            )
            return []

    async def _run_pass(
        self, search_pass: SearchPass, query: str, limit: int
    ) -> list[dict[str, Any]]:
        term = query.lower() if search_pass.lowercase_query else query
        try:
            if search_pass.kind is PassKind.ARRAY_CONTAINS:
                return await self.collection.array_contains(
                    search_pass.field, term, limit
                )
            return await self.collection.prefix_query(search_pass.field, term, limit)
        except Exception as e:
            raise SourceUnavailable(
                self.domain_type.value,
                f"{self.domain_type.value} lookup on '{search_pass.field}' "
                f"failed: {e}",
            ) from e
