"""Subject membership resolver port - supplied by the organization/group subsystem."""

from typing import Protocol

from permengine.domain.entities import GroupMembership, OrganizationAncestor
from permengine.domain.value_objects import SubjectType


class SubjectMembershipResolver(Protocol):
    """Read-only view of group memberships and organization ancestry.

    Implementations raise MembershipResolutionFailure when the backing
    service is unavailable.
    """

    async def get_groups(self, user_id: str) -> list[GroupMembership]: ...

    async def get_org_ancestors(self, user_id: str) -> list[OrganizationAncestor]:
        """Organizations of the user, leaf to root (distance ascending)."""
        ...

    async def subject_exists(self, subject_type: SubjectType, subject_id: str) -> bool: ...
