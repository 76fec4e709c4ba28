"""Project search source."""

from collections.abc import Mapping
from typing import Any

from globalsearch.search.models import SearchResult, SearchResultType
from globalsearch.search.scoring import PROJECT_RULES
from globalsearch.search.sources.base import DomainSpec, SearchPass


def build_project_result(record: Mapping[str, Any], score: float) -> SearchResult:
    project_id = str(record.get("id") or "")
    return SearchResult(
        id=project_id,
        title=record.get("name") or "Untitled Project",
        subtitle=f"Project • {record.get('status') or 'Unknown'}",
        description=record.get("description") or "",
        domain_type=SearchResultType.PROJECT,
        relevance_score=score,
        created_at=record.get("createdAt"),
        updated_at=record.get("updatedAt"),
        metadata={
            "status": record.get("status"),
            "progress": record.get("progress"),
            "teamId": record.get("teamId"),
            "ownerId": record.get("ownerId"),
        },
        tags=record.get("tags") or (),
        image_url=record.get("imageUrl"),
        action_target=f"/projects/{project_id}",
    )


PROJECT_SPEC = DomainSpec(
    domain_type=SearchResultType.PROJECT,
    passes=(SearchPass("name"), SearchPass("description")),
    rules=PROJECT_RULES,
    build_result=build_project_result,
)
