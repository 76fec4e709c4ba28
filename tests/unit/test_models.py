"""Unit tests for search data models."""

from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from globalsearch.search.errors import InvalidFilter
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
    coerce_datetime,
)


class TestCoerceDatetime:
    def test_accepts_common_representations(self):
        moment = datetime(2025, 5, 1, 9, 30)

        assert coerce_datetime(moment) == moment
        assert coerce_datetime(date(2025, 5, 1)) == datetime(2025, 5, 1)
        assert coerce_datetime("2025-05-01T09:30:00") == moment
        assert coerce_datetime(moment.timestamp()) == moment

    def test_aware_values_become_naive_local(self):
        aware = datetime(2025, 5, 1, 9, 30, tzinfo=timezone.utc)
        converted = coerce_datetime(aware)

        assert converted is not None
        assert converted.tzinfo is None
        assert converted == aware.astimezone().replace(tzinfo=None)

    @pytest.mark.parametrize("value", [None, "yesterday", True, object()])
    def test_unusable_values_are_missing(self, value):
        assert coerce_datetime(value) is None


class TestEnums:
    def test_result_type_display_and_fallback(self):
        assert SearchResultType.PROJECT.display_name == "Project"
        assert SearchResultType.from_string("team") is SearchResultType.TEAM
        assert SearchResultType.from_string("widget") is SearchResultType.OTHER
        assert SearchResultType.from_string(None) is SearchResultType.OTHER

    def test_sort_option_fallback(self):
        created = SearchSortOption.from_string("date_created")

        assert created is SearchSortOption.CREATED_DATE
        assert SearchSortOption.from_string("bogus") is SearchSortOption.RELEVANCE
        assert SearchSortOption.UPDATED_DATE.display_name == "Date Updated"

    def test_suggestion_type_fallback(self):
        assert SearchSuggestionType.from_string("tag") is SearchSuggestionType.TAG
        assert SearchSuggestionType.from_string("nope") is SearchSuggestionType.QUERY


class TestDateRange:
    def test_bounds_are_exclusive(self):
        window = DateRange(start=datetime(2025, 5, 1), end=datetime(2025, 6, 1))

        assert not window.contains(datetime(2025, 5, 1))
        assert window.contains(datetime(2025, 5, 1, 0, 1))
        assert window.contains(datetime(2025, 5, 31, 23, 59))
        assert not window.contains(datetime(2025, 6, 1))
        assert not window.contains(datetime(2025, 4, 30, 23, 59))

    def test_reversed_range_is_rejected(self):
        with pytest.raises(InvalidFilter):
            DateRange(start=datetime(2025, 6, 1), end=datetime(2025, 5, 1))

    def test_empty_range_is_allowed_but_matches_nothing(self):
        moment = datetime(2025, 5, 1)
        window = DateRange(start=moment, end=moment)

        assert not window.contains(moment)

    def test_aware_bounds_are_normalised_to_local_time(self):
        start = datetime(2025, 5, 1, tzinfo=timezone.utc)
        end = datetime(2025, 6, 1, tzinfo=timezone.utc)
        window = DateRange(start=start, end=end)

        assert window.start == start.astimezone().replace(tzinfo=None)
        assert window.start.tzinfo is None
        assert window.end.tzinfo is None
        assert window.contains(datetime(2025, 5, 15))

    def test_iso_string_bounds_are_accepted(self):
        window = DateRange(start="2025-05-01T00:00:00", end="2025-06-01T00:00:00")

        assert window.start == datetime(2025, 5, 1)


class TestSearchFilter:
    def test_default_filter_has_no_constraints(self):
        filters = SearchFilter()

        assert not filters.has_active_filters
        assert filters.sort_by is SearchSortOption.RELEVANCE
        assert filters.sort_ascending is False

    def test_sort_option_alone_is_not_an_active_filter(self):
        filters = SearchFilter(sort_by=SearchSortOption.PRIORITY)

        assert not filters.has_active_filters

    def test_filters_are_immutable(self):
        filters = SearchFilter()

        with pytest.raises(ValidationError):
            filters.tags = frozenset({"bug"})  # type: ignore[misc]

    def test_helpers_return_new_instances(self):
        base = SearchFilter()
        with_task = base.with_type(SearchResultType.TASK)
        tagged = with_task.with_tag("bug")

        assert base.types == frozenset()
        assert with_task.types == {SearchResultType.TASK}
        assert tagged.tags == {"bug"}
        assert tagged.without_tag("bug").tags == frozenset()
        assert tagged.without_type(SearchResultType.TASK).types == frozenset()
        assert tagged.has_active_filters

    def test_copy_with_validates_date_range(self):
        with pytest.raises(InvalidFilter):
            SearchFilter().copy_with(
                date_range={
                    "start": datetime(2025, 6, 1),
                    "end": datetime(2025, 5, 1),
                }
            )

    def test_record_round_trip(self):
        filters = SearchFilter(
            types=frozenset({SearchResultType.USER, SearchResultType.TASK}),
            date_range=DateRange(
                start=datetime(2025, 5, 1), end=datetime(2025, 6, 1)
            ),
            tags=frozenset({"urgent", "bug"}),
            custom_filters={"status": "todo"},
            sort_by=SearchSortOption.UPDATED_DATE,
            sort_ascending=True,
        )

        record = filters.to_record()

        assert record["types"] == ["task", "user"]
        assert record["tags"] == ["bug", "urgent"]
        assert record["dateRange"] == {
            "start": "2025-05-01T00:00:00",
            "end": "2025-06-01T00:00:00",
        }
        assert record["sortBy"] == "date_updated"
        assert SearchFilter.from_record(record) == filters

    def test_from_record_tolerates_missing_and_unknown_values(self):
        filters = SearchFilter.from_record(
            {"types": ["task", "gizmo"], "sortBy": "weird"}
        )

        assert filters.types == {SearchResultType.TASK, SearchResultType.OTHER}
        assert filters.sort_by is SearchSortOption.RELEVANCE
        assert SearchFilter.from_record(None) == SearchFilter()

    def test_from_record_rejects_bad_date_range(self):
        with pytest.raises(InvalidFilter):
            SearchFilter.from_record(
                {"dateRange": {"start": "2025-06-01", "end": "2025-05-01"}}
            )
        with pytest.raises(InvalidFilter):
            SearchFilter.from_record({"dateRange": {"start": "2025-06-01"}})


class TestSearchResult:
    def test_tags_are_deduplicated_in_order(self):
        result = SearchResult(id="t1", title="Task", tags=["bug", "ui", "bug"])

        assert result.tags == ("bug", "ui")

    def test_negative_score_is_rejected(self):
        with pytest.raises(ValueError):
            SearchResult(id="t1", title="Task", relevance_score=-1)

    def test_key_and_copy_with(self):
        result = SearchResult(
            id="t1",
            title="Task",
            domain_type=SearchResultType.TASK,
            relevance_score=10,
            updated_at="2025-05-02T09:00:00",
        )
        rescored = result.copy_with(relevance_score=42)

        assert result.key == (SearchResultType.TASK, "t1")
        assert result.last_modified == datetime(2025, 5, 2, 9, 0)
        assert rescored.relevance_score == 42
        assert result.relevance_score == 10

    def test_dict_representation(self):
        result = SearchResult(
            id="p1",
            title="urgent migration",
            subtitle="Project • active",
            domain_type=SearchResultType.PROJECT,
            relevance_score=150,
            created_at=datetime(2025, 2, 15, 9, 0),
            metadata={"progress": 50},
            action_target="/projects/p1",
        )

        data = result.to_dict()

        assert data["type"] == "project"
        assert data["relevanceScore"] == 150
        assert data["createdAt"] == "2025-02-15T09:00:00"
        assert data["updatedAt"] is None
        assert data["actionTarget"] == "/projects/p1"
        assert SearchResult.from_dict(data) == result


class TestHistoryAndRequests:
    def test_history_entry_record_round_trip(self):
        entry = SearchHistoryEntry(
            id="h1",
            query="urgent",
            filters=SearchFilter(tags=frozenset({"bug"})),
            timestamp=datetime(2025, 6, 1, 8, 0),
            result_count=3,
            owner_id="user-1",
        )

        record = entry.to_record()

        assert record["resultCount"] == 3
        assert record["ownerId"] == "user-1"
        assert record["filters"]["tags"] == ["bug"]
        assert SearchHistoryEntry.from_record(record) == entry

    def test_suggestion_dict(self):
        suggestion = SearchSuggestion(
            text="bug",
            suggestion_type=SearchSuggestionType.TAG,
            frequency=10,
            last_used_at=datetime(2025, 6, 1),
        )

        assert suggestion.to_dict() == {
            "text": "bug",
            "type": "tag",
            "frequency": 10,
            "lastUsed": "2025-06-01T00:00:00",
        }

    def test_request_normalises_query(self):
        assert SearchRequest(query="  urgent ").normalized_query == "urgent"
        assert SearchRequest(query="   ").is_empty

    def test_response_grouping(self):
        request = SearchRequest(query="urgent", sequence=3)
        response = SearchResponse(
            request=request,
            results=[
                SearchResult(id="t1", title="a", domain_type=SearchResultType.TASK),
                SearchResult(id="u1", title="b", domain_type=SearchResultType.USER),
                SearchResult(id="t2", title="c", domain_type=SearchResultType.TASK),
            ],
        )

        assert response.sequence == 3
        assert not response.is_degraded
        assert response.counts_by_type() == {
            SearchResultType.TASK: 2,
            SearchResultType.USER: 1,
        }
        assert [r.id for r in response.results_of_type(SearchResultType.TASK)] == [
            "t1",
            "t2",
        ]
