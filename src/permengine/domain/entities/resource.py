"""Resource entity - protected unit in a per-client tree."""

from dataclasses import dataclass
from uuid import UUID


@dataclass
class Resource:
    """Resource - page, API or feature identified by (client_id, code)."""

    id: UUID
    client_id: str
    code: str
    name: str
    resource_type: str
    parent_id: UUID | None = None
    sort_order: int = 0
    enabled: bool = True
    client_name: str | None = None
    description: str | None = None
    uri: str | None = None
