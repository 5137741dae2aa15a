"""Grant DTOs."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from permengine.domain.entities import GrantKey
from permengine.domain.value_objects import SubjectType


@dataclass
class GrantItem:
    """One (subject, resource, scopes) entry of a grant or batch-grant request."""

    subject_type: SubjectType
    subject_id: str
    resource_id: UUID
    scopes: frozenset[str]
    subject_name: str | None = None
    inherit_to_children: bool = False
    expires_at: datetime | None = None

    @property
    def key(self) -> GrantKey:
        return GrantKey(self.subject_type, self.subject_id, self.resource_id)
