"""Per-domain search sources."""

from collections.abc import Mapping

from globalsearch.search.filters import FilterEngine
from globalsearch.search.models import SearchResultType
from globalsearch.search.scoring import RelevanceScorer
from globalsearch.search.sources.base import (
    DomainSource,
    DomainSpec,
    PassKind,
    SearchPass,
)
from globalsearch.search.sources.projects import PROJECT_SPEC
from globalsearch.search.sources.registry import SourceRegistry
from globalsearch.search.sources.tasks import TASK_SPEC
from globalsearch.search.sources.teams import TEAM_SPEC
from globalsearch.search.sources.users import USER_SPEC
from globalsearch.search.stores import RecordCollection

DEFAULT_SPECS: dict[SearchResultType, DomainSpec] = {
    spec.domain_type: spec for spec in (TASK_SPEC, TEAM_SPEC, PROJECT_SPEC, USER_SPEC)
}


def create_default_registry(
    collections: Mapping[SearchResultType, RecordCollection],
    scorer: RelevanceScorer | None = None,
    filter_engine: FilterEngine | None = None,
) -> SourceRegistry:
    """Build a registry for every domain that has a collection.

    Sources are registered in task, team, project, user order; the merge
    step relies on that order to break relevance ties.
    """
    scorer = scorer or RelevanceScorer()
    filter_engine = filter_engine or FilterEngine()
    registry = SourceRegistry()
    for domain_type, spec in DEFAULT_SPECS.items():
        collection = collections.get(domain_type)
        if collection is not None:
            registry.register(DomainSource(spec, collection, scorer, filter_engine))
    return registry


__all__ = [
    "DEFAULT_SPECS",
    "DomainSource",
    "DomainSpec",
    "PassKind",
    "SearchPass",
    "SourceRegistry",
    "create_default_registry",
]
