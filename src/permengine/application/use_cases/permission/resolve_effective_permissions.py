"""Resolve effective permissions use case."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from permengine.application.ports import SubjectMembershipResolver
from permengine.application.use_cases.catalog.resource_catalog import ResourceCatalog
from permengine.application.use_cases.permission.subject_sources import (
    resolve_grant_sources,
)
from permengine.domain.entities import EffectivePermission, Grant
from permengine.domain.services.permission_merge import contributing, merge, subject_keys
from permengine.domain.value_objects import SubjectType


@dataclass
class ResolvedPermissions:
    """Effective permissions of a user.

    ``complete`` is False when membership could not be resolved; the
    permissions then hold direct grants only.
    """

    user_id: str
    permissions: dict[UUID, EffectivePermission] = field(default_factory=dict)
    complete: bool = True
    failure: str | None = None


def group_by_subject(grants: list[Grant]) -> dict[tuple[SubjectType, str], list[Grant]]:
    grouped: dict[tuple[SubjectType, str], list[Grant]] = defaultdict(list)
    for grant in grants:
        grouped[(grant.subject_type, grant.subject_id)].append(grant)
    return grouped


class ResolveEffectivePermissionsUseCase:
    """Merge direct, group and organization grants into per-resource scopes."""

    def __init__(
        self,
        unit_of_work_factory: type,
        membership_resolver: SubjectMembershipResolver,
        catalog: ResourceCatalog,
        membership_timeout: float | None = 5.0,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._membership = membership_resolver
        self._catalog = catalog
        self._membership_timeout = membership_timeout

    async def execute(
        self,
        user_id: str,
        client_id: str | None = None,
        at: datetime | None = None,
    ) -> ResolvedPermissions:
        """Resolve user_id's scopes on every resource, optionally for one client."""
        at = at or datetime.now(UTC)
        sources, failure = await resolve_grant_sources(
            self._membership, user_id, self._membership_timeout
        )
        tree = await self._catalog.load(client_id)

        async with self._uow_factory() as uow:
            grants = await uow.grants.list_by_subjects(subject_keys(sources))

        pairs = contributing(sources, group_by_subject(grants), at)
        return ResolvedPermissions(
            user_id=user_id,
            permissions=merge(pairs, tree),
            complete=failure is None,
            failure=failure,
        )
