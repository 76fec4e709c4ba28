"""Search data models."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from globalsearch.search.errors import InvalidFilter


def coerce_datetime(value: Any) -> datetime | None:
    """Normalise a stored timestamp to a naive local ``datetime``.

    Stores hand back ``datetime`` objects, ISO-8601 strings or epoch seconds
    depending on the backend; anything unparseable is treated as missing.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, datetime.min.time())
    elif isinstance(value, bool):
        return None
    elif isinstance(value, int | float):
        parsed = datetime.fromtimestamp(value)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


class SearchResultType(str, Enum):
    """Entity domain a search result belongs to."""

    TASK = "task"
    TEAM = "team"
    PROJECT = "project"
    USER = "user"
    NOTIFICATION = "notification"
    COMMENT = "comment"
    FILE = "file"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_string(cls, value: str | None) -> SearchResultType:
        """Map a stored value to a type, falling back to ``OTHER``."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class SearchSortOption(str, Enum):
    """Secondary ordering applied after relevance merge."""

    RELEVANCE = "relevance"
    CREATED_DATE = "date_created"
    UPDATED_DATE = "date_updated"
    ALPHABETICAL = "alphabetical"
    PRIORITY = "priority"

    @property
    def display_name(self) -> str:
        return {
            SearchSortOption.RELEVANCE: "Relevance",
            SearchSortOption.CREATED_DATE: "Date Created",
            SearchSortOption.UPDATED_DATE: "Date Updated",
            SearchSortOption.ALPHABETICAL: "Alphabetical",
            SearchSortOption.PRIORITY: "Priority",
        }[self]

    @classmethod
    def from_string(cls, value: str | None) -> SearchSortOption:
        try:
            return cls(value)
        except ValueError:
            return cls.RELEVANCE


class SearchSuggestionType(str, Enum):
    """Source of a search suggestion."""

    QUERY = "query"
    TAG = "tag"
    USER = "user"
    TEAM = "team"
    PROJECT = "project"

    @classmethod
    def from_string(cls, value: str | None) -> SearchSuggestionType:
        try:
            return cls(value)
        except ValueError:
            return cls.QUERY


class DateRange(BaseModel):
    """Creation-time window; both bounds are exclusive."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator("start", "end", mode="before")
    @classmethod
    def _normalise_bound(cls, value: Any) -> Any:
        # レコード側と同じくナイーブなローカル時刻に揃える
        return coerce_datetime(value) or value

    @model_validator(mode="after")
    def _check_order(self) -> DateRange:
        if self.start > self.end:
            raise InvalidFilter(
                f"Date range start {self.start.isoformat()} is after end "
                f"{self.end.isoformat()}"
            )
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start < moment < self.end


class SearchFilter(BaseModel):
    """Immutable search constraints plus the requested ordering.

    An empty ``types``/``tags``/``custom_filters`` or a missing ``date_range``
    means "no restriction". Instances are replaced, never mutated, so one
    filter can be shared between overlapping searches.
    """

    model_config = ConfigDict(frozen=True)

    types: frozenset[SearchResultType] = Field(default_factory=frozenset)
    date_range: DateRange | None = None
    tags: frozenset[str] = Field(default_factory=frozenset)
    custom_filters: dict[str, Any] = Field(default_factory=dict)
    sort_by: SearchSortOption = SearchSortOption.RELEVANCE
    sort_ascending: bool = False

    @property
    def has_active_filters(self) -> bool:
        return bool(
            self.types or self.date_range or self.tags or self.custom_filters
        )

    def copy_with(self, **changes: Any) -> SearchFilter:
        """Return a validated copy with the given fields replaced."""
        data = self.model_dump()
        data.update(changes)
        return SearchFilter.model_validate(data)

    def with_type(self, domain_type: SearchResultType) -> SearchFilter:
        return self.copy_with(types=self.types | {domain_type})

    def without_type(self, domain_type: SearchResultType) -> SearchFilter:
        return self.copy_with(types=self.types - {domain_type})

    def with_tag(self, tag: str) -> SearchFilter:
        return self.copy_with(tags=self.tags | {tag})

    def without_tag(self, tag: str) -> SearchFilter:
        return self.copy_with(tags=self.tags - {tag})

    def to_record(self) -> dict[str, Any]:
        """Serialise to a plain key/value record."""
        return {
            "types": sorted(t.value for t in self.types),
            "dateRange": (
                {
                    "start": self.date_range.start.isoformat(),
                    "end": self.date_range.end.isoformat(),
                }
                if self.date_range
                else None
            ),
            "tags": sorted(self.tags),
            "customFilters": dict(self.custom_filters),
            "sortBy": self.sort_by.value,
            "sortAscending": self.sort_ascending,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | None) -> SearchFilter:
        """Rebuild a filter from :meth:`to_record` output.

        Unknown type or sort values degrade to ``other``/``relevance``; a
        reversed date range raises :class:`InvalidFilter`.
        """
        record = record or {}
        raw_range = record.get("dateRange")
        date_range = None
        if raw_range:
            start = coerce_datetime(raw_range.get("start"))
            end = coerce_datetime(raw_range.get("end"))
            if start is None or end is None:
                raise InvalidFilter(f"Malformed date range: {raw_range!r}")
            date_range = DateRange(start=start, end=end)

        return cls(
            types=frozenset(
                SearchResultType.from_string(t) for t in record.get("types") or []
            ),
            date_range=date_range,
            tags=frozenset(record.get("tags") or []),
            custom_filters=dict(record.get("customFilters") or {}),
            sort_by=SearchSortOption.from_string(record.get("sortBy")),
            sort_ascending=bool(record.get("sortAscending", False)),
        )


class SearchResult(BaseModel):
    """Unified projection of any domain entity matched by a search."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    subtitle: str = ""
    description: str = ""
    domain_type: SearchResultType = SearchResultType.OTHER
    relevance_score: float = Field(default=0.0, ge=0)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    tags: tuple[str, ...] = ()
    metadata: dict[str, Any] = Field(default_factory=dict)
    image_url: str | None = None
    action_target: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _unique_tags(cls, value: Iterable[str] | None) -> tuple[str, ...]:
        if not value:
            return ()
        return tuple(dict.fromkeys(str(tag) for tag in value))

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _normalise_timestamp(cls, value: Any) -> datetime | None:
        return coerce_datetime(value)

    @property
    def key(self) -> tuple[SearchResultType, str]:
        """Identity of the result within one result set."""
        return (self.domain_type, self.id)

    @property
    def last_modified(self) -> datetime | None:
        return self.updated_at

    def copy_with(self, **changes: Any) -> SearchResult:
        data = self.model_dump()
        data.update(changes)
        return SearchResult.model_validate(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "description": self.description,
            "type": self.domain_type.value,
            "relevanceScore": self.relevance_score,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "metadata": dict(self.metadata),
            "tags": list(self.tags),
            "imageUrl": self.image_url,
            "actionTarget": self.action_target,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SearchResult:
        return cls(
            id=data.get("id") or "",
            title=data.get("title") or "",
            subtitle=data.get("subtitle") or "",
            description=data.get("description") or "",
            domain_type=SearchResultType.from_string(data.get("type")),
            relevance_score=float(data.get("relevanceScore") or 0.0),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            tags=data.get("tags") or (),
            metadata=dict(data.get("metadata") or {}),
            image_url=data.get("imageUrl"),
            action_target=data.get("actionTarget"),
        )


class SearchHistoryEntry(BaseModel):
    """One completed search, scoped to its owner."""

    model_config = ConfigDict(frozen=True)

    id: str
    query: str
    filters: SearchFilter = Field(default_factory=SearchFilter)
    timestamp: datetime
    result_count: int = Field(default=0, ge=0)
    owner_id: str

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "query": self.query,
            "filters": self.filters.to_record(),
            "timestamp": self.timestamp.isoformat(),
            "resultCount": self.result_count,
            "ownerId": self.owner_id,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> SearchHistoryEntry:
        return cls(
            id=str(record.get("id") or ""),
            query=record.get("query") or "",
            filters=SearchFilter.from_record(record.get("filters")),
            timestamp=coerce_datetime(record.get("timestamp")) or datetime.now(),
            result_count=int(record.get("resultCount") or 0),
            owner_id=record.get("ownerId") or "",
        )


class SearchSuggestion(BaseModel):
    """Derived query suggestion; regenerated from history on every load."""

    model_config = ConfigDict(frozen=True)

    text: str
    suggestion_type: SearchSuggestionType = SearchSuggestionType.QUERY
    frequency: int = Field(default=0, ge=0)
    last_used_at: datetime = Field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "type": self.suggestion_type.value,
            "frequency": self.frequency,
            "lastUsed": self.last_used_at.isoformat(),
        }


class SearchRequest(BaseModel):
    """A single federated search issued to the coordinator."""

    model_config = ConfigDict(frozen=True)

    query: str
    filters: SearchFilter = Field(default_factory=SearchFilter)
    limit: int = Field(default=50, ge=0)
    owner_id: str | None = None
    sequence: int = 0

    @property
    def normalized_query(self) -> str:
        return self.query.strip()

    @property
    def is_empty(self) -> bool:
        return not self.normalized_query


class SearchResponse(BaseModel):
    """Outcome of a :class:`SearchRequest`."""

    model_config = ConfigDict(frozen=True)

    request: SearchRequest
    results: list[SearchResult] = Field(default_factory=list)
    failed_domains: frozenset[SearchResultType] = Field(default_factory=frozenset)
    message: str | None = None
    elapsed_ms: float = 0.0

    @property
    def sequence(self) -> int:
        return self.request.sequence

    @property
    def is_degraded(self) -> bool:
        return self.message is not None

    def counts_by_type(self) -> dict[SearchResultType, int]:
        counts: dict[SearchResultType, int] = {}
        for result in self.results:
            counts[result.domain_type] = counts.get(result.domain_type, 0) + 1
        return counts

    def results_of_type(self, domain_type: SearchResultType) -> list[SearchResult]:
        return [r for r in self.results if r.domain_type == domain_type]
