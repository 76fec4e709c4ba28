"""Relevance scoring for search candidates.

Scores are additive and domain-local: each domain has a rule table naming
the text fields it matches and the boosts it adds on top. Scores from
different domains are compared as raw numbers when results are merged.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Protocol

from globalsearch.search.models import SearchResultType, coerce_datetime

Clock = Callable[[], datetime]


def _text(record: Mapping[str, Any], field_name: str) -> str:
    value = record.get(field_name)
    return str(value).lower() if value is not None else ""


class Boost(Protocol):
    """One additive scoring rule."""

    name: str

    def points(
        self, record: Mapping[str, Any], query: str, now: datetime
    ) -> float: ...


@dataclass(frozen=True)
class TierBoost:
    """Looks up ``record[field]`` in a tier table."""

    name: str
    field: str
    tiers: Mapping[str, float]
    default: str | None = None

    def points(self, record: Mapping[str, Any], query: str, now: datetime) -> float:
        tier = record.get(self.field)
        if tier is None:
            tier = self.default
        return float(self.tiers.get(tier, 0.0)) if isinstance(tier, str) else 0.0


@dataclass(frozen=True)
class FlagBoost:
    """Fixed bonus when ``record[field] is True``."""

    name: str
    field: str
    weight: float

    def points(self, record: Mapping[str, Any], query: str, now: datetime) -> float:
        return self.weight if record.get(self.field) is True else 0.0


@dataclass(frozen=True)
class CountBoost:
    """Bonus per element of a list field."""

    name: str
    field: str
    per_item: float

    def points(self, record: Mapping[str, Any], query: str, now: datetime) -> float:
        items = record.get(self.field)
        if not isinstance(items, list | tuple):
            return 0.0
        return len(items) * self.per_item


@dataclass(frozen=True)
class ScaledBoost:
    """Numeric field multiplied by a factor; negatives contribute nothing."""

    name: str
    field: str
    factor: float

    def points(self, record: Mapping[str, Any], query: str, now: datetime) -> float:
        value = record.get(self.field)
        if isinstance(value, bool) or not isinstance(value, int | float):
            return 0.0
        return max(0.0, float(value) * self.factor)


@dataclass(frozen=True)
class TextMatchBoost:
    """Extra text field scored separately from the primary/secondary pair."""

    name: str
    field: str
    prefix_weight: float
    contains_weight: float

    def points(self, record: Mapping[str, Any], query: str, now: datetime) -> float:
        text = _text(record, self.field)
        if not query or query not in text:
            return 0.0
        return self.prefix_weight if text.startswith(query) else self.contains_weight


@dataclass(frozen=True)
class RecencyBoost:
    """Bonus when the record was touched inside the window."""

    name: str = "recency"
    field: str = "updatedAt"
    window: timedelta = timedelta(days=7)
    weight: float = 10.0

    def points(self, record: Mapping[str, Any], query: str, now: datetime) -> float:
        updated = coerce_datetime(record.get(self.field))
        if updated is None:
            return 0.0
        return self.weight if now - updated < self.window else 0.0


@dataclass(frozen=True)
class TextWeights:
    primary_prefix: float = 100.0
    primary_contains: float = 80.0
    secondary_contains: float = 40.0
    tag_contains: float = 60.0


@dataclass(frozen=True)
class DomainRules:
    """Declarative scoring table for one domain."""

    primary_field: str
    secondary_fields: tuple[str, ...] = ("description",)
    tag_field: str | None = None
    boosts: tuple[Boost, ...] = ()
    weights: TextWeights = field(default_factory=TextWeights)


TASK_RULES = DomainRules(
    primary_field="title",
    tag_field="tags",
    boosts=(
        TierBoost(
            "priority",
            "priority",
            {"urgent": 20.0, "high": 15.0, "medium": 10.0, "low": 5.0},
            default="medium",
        ),
    ),
)

TEAM_RULES = DomainRules(
    primary_field="name",
    boosts=(
        FlagBoost("active", "isActive", 20.0),
        CountBoost("members", "members", 2.0),
    ),
)

PROJECT_RULES = DomainRules(
    primary_field="name",
    boosts=(
        TierBoost(
            "status",
            "status",
            {"active": 30.0, "planning": 20.0, "completed": 10.0},
            default="planning",
        ),
        ScaledBoost("progress", "progress", 0.2),
    ),
)

USER_RULES = DomainRules(
    primary_field="displayName",
    secondary_fields=("bio",),
    boosts=(
        TextMatchBoost("email", "email", 90.0, 60.0),
        FlagBoost("active", "isActive", 20.0),
        TierBoost(
            "role",
            "role",
            {"super_admin": 15.0, "admin": 12.0, "team_member": 8.0, "viewer": 5.0},
            default="team_member",
        ),
    ),
)

DEFAULT_RULES: dict[SearchResultType, DomainRules] = {
    SearchResultType.TASK: TASK_RULES,
    SearchResultType.TEAM: TEAM_RULES,
    SearchResultType.PROJECT: PROJECT_RULES,
    SearchResultType.USER: USER_RULES,
}


class RelevanceScorer:
    """Applies a domain's rule table to a raw record."""

    def __init__(
        self,
        recency_window_days: int = 7,
        clock: Clock = datetime.now,
        recency_weight: float = 10.0,
    ):
        self.recency = RecencyBoost(
            window=timedelta(days=recency_window_days), weight=recency_weight
        )
        self.clock = clock

    def explain(
        self, rules: DomainRules, record: Mapping[str, Any], query: str
    ) -> dict[str, float]:
        """Break a score down into the points each rule contributed.

        Rules that contributed nothing are omitted.
        """
        query = query.strip().lower()
        weights = rules.weights
        parts: dict[str, float] = {}

        primary = _text(record, rules.primary_field)
        if query and query in primary:
            parts["primary"] = (
                weights.primary_prefix
                if primary.startswith(query)
                else weights.primary_contains
            )

        if query and any(query in _text(record, f) for f in rules.secondary_fields):
            parts["secondary"] = weights.secondary_contains

        if query and rules.tag_field:
            tags = record.get(rules.tag_field) or []
            if isinstance(tags, list | tuple) and any(
                query in str(tag).lower() for tag in tags
            ):
                parts["tag"] = weights.tag_contains

        now = self.clock()
        for boost in (*rules.boosts, self.recency):
            points = boost.points(record, query, now)
            if points:
                parts[boost.name] = points

        return parts

    def score(self, rules: DomainRules, record: Mapping[str, Any], query: str) -> float:
        return max(0.0, sum(self.explain(rules, record, query).values()))
