"""Candidate filtering against a :class:`SearchFilter`."""

from collections.abc import Mapping
from typing import Any

from globalsearch.search.models import SearchFilter, coerce_datetime

# Sentinel for "field absent from record" so that ``None`` can still be
# matched explicitly by a custom filter.
_MISSING = object()


class FilterEngine:
    """Checks raw domain records against filter constraints.

    All active constraints must hold. A record missing the field a
    constraint needs fails that constraint.
    """

    def __init__(self, created_field: str = "createdAt", tags_field: str = "tags"):
        self.created_field = created_field
        self.tags_field = tags_field

    def passes(self, record: Mapping[str, Any], filters: SearchFilter) -> bool:
        return (
            self._matches_date_range(record, filters)
            and self._matches_tags(record, filters)
            and self._matches_custom(record, filters)
        )

    def _matches_date_range(
        self, record: Mapping[str, Any], filters: SearchFilter
    ) -> bool:
        if filters.date_range is None:
            return True
        created = coerce_datetime(record.get(self.created_field))
        if created is None:
            return False
        return filters.date_range.contains(created)

    def _matches_tags(self, record: Mapping[str, Any], filters: SearchFilter) -> bool:
        if not filters.tags:
            return True
        record_tags = record.get(self.tags_field)
        if not isinstance(record_tags, list | tuple):
            return False

        record_tags_lower = [str(tag).lower() for tag in record_tags]
        return any(
            filter_tag.lower() in tag
            for filter_tag in filters.tags
            for tag in record_tags_lower
        )

    def _matches_custom(self, record: Mapping[str, Any], filters: SearchFilter) -> bool:
        for key, expected in filters.custom_filters.items():
            actual = record.get(key, _MISSING)
            if actual is _MISSING or actual != expected:
                return False
        return True
