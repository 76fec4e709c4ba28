"""Registry mapping domain types to their search sources."""

from __future__ import annotations

from collections.abc import Iterable

from globalsearch.search.models import SearchResultType
from globalsearch.search.sources.base import DomainSource


class SourceRegistry:
    """Lightweight registry of domain sources keyed by ``domain_type``."""

    def __init__(self, sources: Iterable[DomainSource] = ()) -> None:
        self._registry: dict[SearchResultType, DomainSource] = {}
        for source in sources:
            self.register(source)

    def __len__(self) -> int:
        return len(self._registry)

    def __contains__(self, domain_type: object) -> bool:
        return domain_type in self._registry

    def register(self, source: DomainSource) -> None:
        """Register a source, replacing any previous one for its domain."""
        self._registry[source.domain_type] = source

    def unregister(self, domain_type: SearchResultType) -> None:
        """Remove a source from the registry if it exists."""
        self._registry.pop(domain_type, None)

    def get(self, domain_type: SearchResultType) -> DomainSource | None:
        return self._registry.get(domain_type)

    def available(self) -> dict[SearchResultType, DomainSource]:
        """Return a snapshot of all registered sources."""
        return dict(self._registry)

    def select(self, types: Iterable[SearchResultType]) -> list[DomainSource]:
        """Sources for the requested types, in registration order.

        An empty selection means every registered source. Requested types
        without a source are skipped.
        """
        wanted = set(types)
        return [
            source
            for domain_type, source in self._registry.items()
            if not wanted or domain_type in wanted
        ]
