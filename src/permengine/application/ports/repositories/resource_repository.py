"""Resource repository port."""

from typing import Protocol
from uuid import UUID

from permengine.domain.entities import Resource


class ResourceRepository(Protocol):
    """Port for reading the resource catalog."""

    async def list_all(self, client_id: str | None = None) -> list[Resource]: ...

    async def get_by_id(self, resource_id: UUID) -> Resource | None: ...

    async def get_by_code(self, client_id: str, code: str) -> Resource | None: ...

    async def list_lineage(self, resource_id: UUID) -> list[Resource]:
        """The resource and all of its ancestors; empty when it does not exist."""
        ...
