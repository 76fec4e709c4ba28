"""Team (group) search source."""

from collections.abc import Mapping
from typing import Any

from globalsearch.search.models import SearchResult, SearchResultType
from globalsearch.search.scoring import TEAM_RULES
from globalsearch.search.sources.base import DomainSpec, SearchPass


def build_team_result(record: Mapping[str, Any], score: float) -> SearchResult:
    team_id = str(record.get("id") or "")
    members = record.get("members")
    member_count = len(members) if isinstance(members, list | tuple) else 0
    return SearchResult(
        id=team_id,
        title=record.get("name") or "Untitled Team",
        subtitle=f"Team • {member_count} members",
        description=record.get("description") or "",
        domain_type=SearchResultType.TEAM,
        relevance_score=score,
        created_at=record.get("createdAt"),
        updated_at=record.get("updatedAt"),
        metadata={
            "memberCount": member_count,
            "isActive": record.get("isActive"),
            "ownerId": record.get("ownerId"),
        },
        tags=record.get("tags") or (),
        image_url=record.get("imageUrl"),
        action_target=f"/teams/{team_id}",
    )


TEAM_SPEC = DomainSpec(
    domain_type=SearchResultType.TEAM,
    passes=(SearchPass("name"), SearchPass("description")),
    rules=TEAM_RULES,
    build_result=build_team_result,
)
