"""Search error taxonomy."""


class SearchError(Exception):
    """Base class for search engine errors"""


class SourceUnavailable(SearchError):
    """A domain store call failed; only that domain's results are lost"""

    def __init__(self, domain: str, message: str | None = None):
        super().__init__(message or f"Search source '{domain}' is unavailable")
        self.domain = domain


class HistoryPersistenceFailed(SearchError):
    """Reading, writing or deleting search history failed"""


class InvalidFilter(SearchError):
    """A search filter was constructed with contradictory values"""
