"""Resource forest held as an arena of id -> resource with a children index."""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from uuid import UUID

from permengine.domain.entities import Resource
from permengine.domain.exceptions import NotFound, ResourceTreeError


@dataclass
class ResourceNode:
    """Resource with its ordered children, for tree listings."""

    resource: Resource
    children: list["ResourceNode"] = field(default_factory=list)


def _order(resource: Resource) -> tuple[int, str]:
    return (resource.sort_order, resource.name)


class ResourceTree:
    """Forest of resources keyed by client_id.

    Built once per query from a flat list. Construction validates that parents
    exist and share the child's client_id, that (client_id, code) is unique and
    that there are no cycles.
    """

    def __init__(self, resources: Iterable[Resource]) -> None:
        self._by_id: dict[UUID, Resource] = {}
        self._by_code: dict[tuple[str, str], UUID] = {}
        self._children: dict[UUID | None, list[UUID]] = defaultdict(list)

        for resource in resources:
            if resource.id in self._by_id:
                raise ResourceTreeError(f"Duplicate resource id {resource.id}")
            code_key = (resource.client_id, resource.code)
            if code_key in self._by_code:
                raise ResourceTreeError(
                    f"Duplicate resource code {resource.code!r} in client {resource.client_id!r}"
                )
            self._by_id[resource.id] = resource
            self._by_code[code_key] = resource.id

        for resource in self._by_id.values():
            if resource.parent_id is not None:
                parent = self._by_id.get(resource.parent_id)
                if parent is None:
                    raise ResourceTreeError(
                        f"Resource {resource.id} references missing parent {resource.parent_id}"
                    )
                if parent.client_id != resource.client_id:
                    raise ResourceTreeError(
                        f"Resource {resource.id} and parent {parent.id} belong to different clients"
                    )
            self._children[resource.parent_id].append(resource.id)

        for ids in self._children.values():
            ids.sort(key=lambda rid: _order(self._by_id[rid]))

        self._check_acyclic()

    def _check_acyclic(self) -> None:
        settled: set[UUID] = set()
        for start in self._by_id:
            path: set[UUID] = set()
            current: UUID | None = start
            while current is not None and current not in settled:
                if current in path:
                    raise ResourceTreeError(f"Cycle in resource tree at {current}")
                path.add(current)
                current = self._by_id[current].parent_id
            settled |= path

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._by_id

    def exists(self, resource_id: UUID) -> bool:
        return resource_id in self._by_id

    def get(self, resource_id: UUID) -> Resource:
        try:
            return self._by_id[resource_id]
        except KeyError:
            raise NotFound("Resource", resource_id) from None

    def find_by_code(self, client_id: str, code: str) -> Resource:
        resource_id = self._by_code.get((client_id, code))
        if resource_id is None:
            raise NotFound("Resource", f"{client_id}/{code}")
        return self._by_id[resource_id]

    def resources(self) -> list[Resource]:
        return list(self._by_id.values())

    def children(self, resource_id: UUID) -> list[Resource]:
        self.get(resource_id)
        return [self._by_id[c] for c in self._children.get(resource_id, [])]

    def descendants(self, resource_id: UUID) -> set[UUID]:
        """Transitive children of resource_id, excluding itself."""
        self.get(resource_id)
        found: set[UUID] = set()
        stack = list(self._children.get(resource_id, []))
        while stack:
            current = stack.pop()
            found.add(current)
            stack.extend(self._children.get(current, []))
        return found

    def ancestors(self, resource_id: UUID) -> list[UUID]:
        """Ids from resource_id itself up to its root."""
        chain = [self.get(resource_id).id]
        parent_id = self._by_id[resource_id].parent_id
        while parent_id is not None:
            chain.append(parent_id)
            parent_id = self._by_id[parent_id].parent_id
        return chain

    def roots(self, client_id: str | None = None) -> list[Resource]:
        roots = [self._by_id[rid] for rid in self._children.get(None, [])]
        if client_id is not None:
            roots = [r for r in roots if r.client_id == client_id]
        return sorted(roots, key=lambda r: (r.client_id, *_order(r)))

    def build_nodes(
        self, client_id: str | None = None, include_disabled: bool = False
    ) -> list[ResourceNode]:
        """Nested forest. Disabled resources are pruned with their subtrees."""

        def build(resource: Resource) -> ResourceNode:
            return ResourceNode(
                resource=resource,
                children=[
                    build(child)
                    for child in (self._by_id[c] for c in self._children.get(resource.id, []))
                    if include_disabled or child.enabled
                ],
            )

        return [
            build(root)
            for root in self.roots(client_id)
            if include_disabled or root.enabled
        ]
