"""User (account) search source."""

from collections.abc import Mapping
from typing import Any

from globalsearch.search.models import SearchResult, SearchResultType
from globalsearch.search.scoring import USER_RULES
from globalsearch.search.sources.base import DomainSpec, SearchPass


def build_user_result(record: Mapping[str, Any], score: float) -> SearchResult:
    user_id = str(record.get("id") or "")
    return SearchResult(
        id=user_id,
        title=record.get("displayName") or record.get("email") or "Unknown User",
        subtitle=f"User • {record.get('role') or 'Unknown'}",
        description=record.get("bio") or "",
        domain_type=SearchResultType.USER,
        relevance_score=score,
        created_at=record.get("createdAt"),
        updated_at=record.get("updatedAt"),
        metadata={
            "email": record.get("email"),
            "role": record.get("role"),
            "isActive": record.get("isActive"),
        },
        tags=record.get("tags") or (),
        image_url=record.get("photoURL"),
        action_target=f"/users/{user_id}",
    )


# Accounts are looked up by display name, then by email address.
USER_SPEC = DomainSpec(
    domain_type=SearchResultType.USER,
    passes=(SearchPass("displayName"), SearchPass("email")),
    rules=USER_RULES,
    build_result=build_user_result,
)
