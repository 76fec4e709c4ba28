"""Task (work item) search source."""

from collections.abc import Mapping
from typing import Any

from globalsearch.search.models import SearchResult, SearchResultType
from globalsearch.search.scoring import TASK_RULES
from globalsearch.search.sources.base import DomainSpec, PassKind, SearchPass


def build_task_result(record: Mapping[str, Any], score: float) -> SearchResult:
    task_id = str(record.get("id") or "")
    return SearchResult(
        id=task_id,
        title=record.get("title") or "Untitled Task",
        subtitle=f"Task • {record.get('status') or 'Unknown'}",
        description=record.get("description") or "",
        domain_type=SearchResultType.TASK,
        relevance_score=score,
        created_at=record.get("createdAt"),
        updated_at=record.get("updatedAt"),
        metadata={
            "priority": record.get("priority"),
            "status": record.get("status"),
            "assignedTo": record.get("assignedTo"),
            "teamId": record.get("teamId"),
            "projectId": record.get("projectId"),
        },
        tags=record.get("tags") or (),
        action_target=f"/tasks/{task_id}",
    )


TASK_SPEC = DomainSpec(
    domain_type=SearchResultType.TASK,
    passes=(
        SearchPass("title"),
        SearchPass("description"),
        SearchPass("tags", kind=PassKind.ARRAY_CONTAINS, lowercase_query=True),
    ),
    rules=TASK_RULES,
    build_result=build_task_result,
)
