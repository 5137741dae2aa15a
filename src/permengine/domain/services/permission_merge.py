"""Additive merge of grants into effective permissions.

Authorization is a plain union: no deny scopes, no precedence between
sources. The same rules serve full resolution and the single-resource check,
so both give identical answers.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from permengine.domain.entities import (
    EffectivePermission,
    Grant,
    GroupMembership,
    OrganizationAncestor,
    PermissionSource,
)
from permengine.domain.services.resource_tree import ResourceTree
from permengine.domain.value_objects import SourceKind, SubjectType


@dataclass(frozen=True)
class GrantSource:
    """A subject whose grants flow to the user being resolved.

    ``distance`` counts organization hops above the user's own organization.
    Grants of an ancestor organization (distance > 0) flow down only when
    marked inherit_to_children.
    """

    kind: SourceKind
    subject_type: SubjectType
    subject_id: str
    distance: int = 0

    def admits(self, grant: Grant) -> bool:
        return self.distance == 0 or grant.inherit_to_children


def grant_sources(
    user_id: str,
    groups: Iterable[GroupMembership] = (),
    organizations: Iterable[OrganizationAncestor] = (),
) -> list[GrantSource]:
    """Direct source plus inheriting groups and the organization chain."""
    sources = [GrantSource(SourceKind.DIRECT, SubjectType.USER, user_id)]

    seen_groups: set[str] = set()
    for membership in groups:
        if not membership.inherit_group_permissions or membership.group_id in seen_groups:
            continue
        seen_groups.add(membership.group_id)
        sources.append(GrantSource(SourceKind.GROUP, SubjectType.GROUP, membership.group_id))

    nearest: dict[str, int] = {}
    for org in organizations:
        if org.organization_id not in nearest or org.distance < nearest[org.organization_id]:
            nearest[org.organization_id] = org.distance
    for org_id, distance in sorted(nearest.items(), key=lambda item: (item[1], item[0])):
        sources.append(
            GrantSource(SourceKind.ORGANIZATION, SubjectType.ORGANIZATION, org_id, distance)
        )
    return sources


def subject_keys(sources: Iterable[GrantSource]) -> list[tuple[SubjectType, str]]:
    return [(s.subject_type, s.subject_id) for s in sources]


def contributing(
    sources: Iterable[GrantSource],
    grants_by_subject: dict[tuple[SubjectType, str], list[Grant]],
    at: datetime,
) -> list[tuple[GrantSource, Grant]]:
    """Pair each source with its active, admitted grants."""
    pairs = []
    for source in sources:
        for grant in grants_by_subject.get((source.subject_type, source.subject_id), []):
            if grant.is_active(at) and source.admits(grant):
                pairs.append((source, grant))
    return pairs


def affected_resources(grant: Grant, tree: ResourceTree) -> set[UUID]:
    """The grant's resource, plus every descendant when it inherits."""
    affected = {grant.resource_id}
    if grant.inherit_to_children:
        affected |= tree.descendants(grant.resource_id)
    return affected


def _provenance(source: GrantSource, grant: Grant) -> PermissionSource:
    return PermissionSource(
        kind=source.kind,
        subject_id=grant.subject_id,
        subject_name=grant.subject_name,
    )


def _sorted_sources(sources: set[PermissionSource]) -> tuple[PermissionSource, ...]:
    return tuple(sorted(sources, key=PermissionSource.sort_key))


def merge(
    pairs: Iterable[tuple[GrantSource, Grant]],
    tree: ResourceTree,
) -> dict[UUID, EffectivePermission]:
    """Union scopes per affected resource and attach provenance.

    Grants on resources missing from the tree are skipped. Disabled resources
    still carry inheritance to their children but are left out of the result.
    """
    scopes: dict[UUID, set[str]] = {}
    sources: dict[UUID, set[PermissionSource]] = {}
    for source, grant in pairs:
        if grant.resource_id not in tree:
            continue
        entry = _provenance(source, grant)
        for resource_id in affected_resources(grant, tree):
            scopes.setdefault(resource_id, set()).update(grant.scopes)
            sources.setdefault(resource_id, set()).add(entry)

    result: dict[UUID, EffectivePermission] = {}
    for resource_id in sorted(scopes, key=str):
        resource = tree.get(resource_id)
        if not resource.enabled:
            continue
        result[resource_id] = EffectivePermission(
            resource_id=resource_id,
            client_id=resource.client_id,
            resource_code=resource.code,
            resource_name=resource.name,
            scopes=frozenset(scopes[resource_id]),
            sources=_sorted_sources(sources[resource_id]),
        )
    return result


def scopes_on_resource(
    pairs: Iterable[tuple[GrantSource, Grant]],
    tree: ResourceTree,
    resource_id: UUID,
) -> tuple[frozenset[str], tuple[PermissionSource, ...]]:
    """Scopes reaching one resource: grants on it, or inheriting grants on an ancestor."""
    if not tree.get(resource_id).enabled:
        return frozenset(), ()
    strict_ancestors = set(tree.ancestors(resource_id)[1:])
    held: set[str] = set()
    sources: set[PermissionSource] = set()
    for source, grant in pairs:
        if grant.resource_id == resource_id or (
            grant.inherit_to_children and grant.resource_id in strict_ancestors
        ):
            held.update(grant.scopes)
            sources.add(_provenance(source, grant))
    return frozenset(held), _sorted_sources(sources)
