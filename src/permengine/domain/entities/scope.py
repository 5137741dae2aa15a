"""Scope entity - named capability in the flat scope registry."""

from dataclasses import dataclass
from uuid import UUID


@dataclass
class Scope:
    """Scope - e.g. read, write, all."""

    id: UUID
    code: str
    name: str
    description: str | None = None
    sort_order: int = 0
