"""Membership edges supplied by the organization/group subsystem."""

from dataclasses import dataclass


@dataclass(frozen=True)
class GroupMembership:
    """User belongs to group; only inheriting memberships contribute grants."""

    group_id: str
    inherit_group_permissions: bool = True


@dataclass(frozen=True)
class OrganizationAncestor:
    """Organization on a user's chain. distance 0 is the user's own organization."""

    organization_id: str
    distance: int = 0


@dataclass(frozen=True)
class Organization:
    """Organization row as far as permission inheritance cares."""

    id: str
    parent_id: str | None = None
    inherit_parent_permissions: bool = True
