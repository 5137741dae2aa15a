"""Organization chain of a user."""

from collections.abc import Iterable

from permengine.domain.entities import Organization, OrganizationAncestor

MAX_CHAIN_DEPTH = 64


def walk_organization_chain(
    member_of: Iterable[str],
    organizations: Iterable[Organization],
) -> list[OrganizationAncestor]:
    """Organizations whose grants reach a member of ``member_of``.

    The user's own organizations sit at distance 0. From each organization
    the walk climbs to its parent only while that organization inherits
    parent permissions. An organization reached along several paths keeps
    its shortest distance. Unknown ids are skipped.
    """
    by_id = {org.id: org for org in organizations}
    distances: dict[str, int] = {}
    frontier = sorted({org_id for org_id in member_of if org_id in by_id})
    distance = 0
    while frontier and distance <= MAX_CHAIN_DEPTH:
        next_frontier = set()
        for org_id in frontier:
            if org_id in distances:
                continue
            distances[org_id] = distance
            org = by_id[org_id]
            if org.inherit_parent_permissions and org.parent_id in by_id:
                next_frontier.add(org.parent_id)
        frontier = sorted(next_frontier)
        distance += 1

    return [
        OrganizationAncestor(organization_id=org_id, distance=d)
        for org_id, d in sorted(distances.items(), key=lambda item: (item[1], item[0]))
    ]
