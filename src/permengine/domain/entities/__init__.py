"""Domain entities."""

from permengine.domain.entities.check_log import PermissionCheckLog
from permengine.domain.entities.effective_permission import (
    EffectivePermission,
    PermissionSource,
)
from permengine.domain.entities.grant import Grant, GrantKey
from permengine.domain.entities.membership import (
    GroupMembership,
    Organization,
    OrganizationAncestor,
)
from permengine.domain.entities.resource import Resource
from permengine.domain.entities.scope import Scope

__all__ = [
    "EffectivePermission",
    "Grant",
    "GrantKey",
    "GroupMembership",
    "Organization",
    "OrganizationAncestor",
    "PermissionCheckLog",
    "PermissionSource",
    "Resource",
    "Scope",
]
