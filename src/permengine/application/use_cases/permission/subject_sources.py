"""Membership lookup shared by resolution and checks."""

import asyncio
import logging

from permengine.application.ports import SubjectMembershipResolver
from permengine.domain.exceptions import MembershipResolutionFailure
from permengine.domain.services.permission_merge import GrantSource, grant_sources

logger = logging.getLogger(__name__)


async def resolve_grant_sources(
    membership_resolver: SubjectMembershipResolver,
    user_id: str,
    timeout: float | None,
) -> tuple[list[GrantSource], str | None]:
    """Sources whose grants reach user_id, and a failure message if membership was unavailable.

    On failure only the direct source is returned: group and organization
    grants never contribute when membership is unknown.
    """
    try:
        async with asyncio.timeout(timeout):
            groups = await membership_resolver.get_groups(user_id)
            organizations = await membership_resolver.get_org_ancestors(user_id)
    except TimeoutError:
        failure = f"Membership resolution timed out after {timeout}s"
    except MembershipResolutionFailure as e:
        failure = str(e) or "Membership resolution failed"
    else:
        return grant_sources(user_id, groups, organizations), None

    logger.warning(
        "Membership resolution failed for user %s, using direct grants only: %s",
        user_id,
        failure,
    )
    return grant_sources(user_id), failure
