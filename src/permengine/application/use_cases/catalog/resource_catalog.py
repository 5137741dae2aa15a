"""Resource catalog - tree queries over the resource forest."""

from uuid import UUID

from permengine.domain.entities import Resource
from permengine.domain.exceptions import NotFound, ValidationError
from permengine.domain.services.resource_tree import ResourceNode, ResourceTree


class ResourceCatalog:
    """Answers tree, ancestor and descendant queries for resources.

    Unknown resource ids raise NotFound so callers can tell "no descendants"
    from "no such resource".
    """

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def load(self, client_id: str | None = None) -> ResourceTree:
        """Build the forest of one client, or of every client."""
        async with self._uow_factory() as uow:
            resources = await uow.resources.list_all(client_id)
        return ResourceTree(resources)

    async def lineage(self, resource_id: UUID) -> ResourceTree:
        """Tree holding only the resource and its ancestors."""
        async with self._uow_factory() as uow:
            resources = await uow.resources.list_lineage(resource_id)
        if not resources:
            raise NotFound("Resource", resource_id)
        return ResourceTree(resources)

    async def find(
        self,
        resource_id: UUID | None = None,
        client_id: str | None = None,
        code: str | None = None,
    ) -> Resource:
        """Look a resource up by id, or by (client_id, code)."""
        async with self._uow_factory() as uow:
            if resource_id is not None:
                resource = await uow.resources.get_by_id(resource_id)
                ref: object = resource_id
            elif client_id and code:
                resource = await uow.resources.get_by_code(client_id, code)
                ref = f"{client_id}/{code}"
            else:
                raise ValidationError("Provide resource_id or client_id and resource_code")
        if resource is None:
            raise NotFound("Resource", ref)
        return resource

    async def get_tree(self, client_id: str | None = None) -> list[ResourceNode]:
        tree = await self.load(client_id)
        return tree.build_nodes(client_id)

    async def get_descendants(self, resource_id: UUID) -> set[UUID]:
        resource = await self.find(resource_id)
        tree = await self.load(resource.client_id)
        return tree.descendants(resource_id)

    async def get_ancestors(self, resource_id: UUID) -> list[UUID]:
        """Ids from the resource itself up to its root."""
        tree = await self.lineage(resource_id)
        return tree.ancestors(resource_id)

    async def exists(self, resource_id: UUID) -> bool:
        async with self._uow_factory() as uow:
            return await uow.resources.get_by_id(resource_id) is not None
