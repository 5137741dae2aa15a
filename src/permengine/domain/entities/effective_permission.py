"""Effective permission - resolver output, never persisted."""

from dataclasses import dataclass, field
from uuid import UUID

from permengine.domain.value_objects import SourceKind


@dataclass(frozen=True)
class PermissionSource:
    """Provenance entry - which subject's grant contributed scopes."""

    kind: SourceKind
    subject_id: str
    subject_name: str | None = None

    def sort_key(self) -> tuple[int, str, str]:
        return (self.kind.order, self.subject_name or "", self.subject_id)


@dataclass
class EffectivePermission:
    """Merged scopes a subject holds on one resource, with provenance."""

    resource_id: UUID
    client_id: str
    resource_code: str
    resource_name: str
    scopes: frozenset[str] = frozenset()
    sources: tuple[PermissionSource, ...] = field(default_factory=tuple)
