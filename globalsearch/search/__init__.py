"""Federated search across tasks, teams, projects and users."""

from globalsearch.search.coordinator import QueryCoordinator
from globalsearch.search.errors import (
    HistoryPersistenceFailed,
    InvalidFilter,
    SearchError,
    SourceUnavailable,
)
from globalsearch.search.filters import FilterEngine
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
    SearchSuggestionType,
)
from globalsearch.search.pipeline import InputPipeline, PipelineState
from globalsearch.search.scoring import RelevanceScorer
from globalsearch.search.service import GlobalSearchService
from globalsearch.search.sorting import Sorter
from globalsearch.search.sources import DomainSource, SourceRegistry
from globalsearch.search.stores import (
    InMemoryCollection,
    InMemoryHistoryCollection,
    JsonHistoryCollection,
)

__all__ = [
    "DateRange",
    "DomainSource",
    "FilterEngine",
    "GlobalSearchService",
    "HistoryPersistenceFailed",
    "InMemoryCollection",
    "InMemoryHistoryCollection",
    "InputPipeline",
    "InvalidFilter",
    "JsonHistoryCollection",
    "PipelineState",
    "QueryCoordinator",
    "RelevanceScorer",
    "SearchError",
    "SearchFilter",
    "SearchHistoryEntry",
    "SearchHistoryStore",
    "SearchRequest",
    "SearchResponse",
    "SearchResult",
    "SearchResultType",
    "SearchSortOption",
    "SearchSuggestion",
    "SearchSuggestionType",
    "Sorter",
    "SourceRegistry",
    "SourceUnavailable",
]
