"""Grant entity - subject holds scopes on a resource."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from permengine.domain.value_objects import SubjectType


@dataclass(frozen=True)
class GrantKey:
    """Identity of the single active grant a subject may hold on a resource."""

    subject_type: SubjectType
    subject_id: str
    resource_id: UUID

    def sort_key(self) -> tuple[str, str, str]:
        return (self.subject_type.value, self.subject_id, str(self.resource_id))


@dataclass
class Grant:
    """Grant - scopes of one subject on one resource, optionally inherited by descendants.

    ``expires_at`` of None means permanent. A past ``expires_at`` only makes the
    grant inactive; the row stays until an explicit cleanup. ``version`` is the
    optimistic concurrency token and is bumped on every mutation of the row.
    """

    id: UUID
    subject_type: SubjectType
    subject_id: str
    resource_id: UUID
    scopes: frozenset[str]
    granted_at: datetime
    subject_name: str | None = None
    inherit_to_children: bool = False
    enabled: bool = True
    granted_by: str | None = None
    expires_at: datetime | None = None
    version: int = 1
    tenant_id: UUID | None = field(default=None, compare=False)

    @property
    def key(self) -> GrantKey:
        return GrantKey(self.subject_type, self.subject_id, self.resource_id)

    def is_expired(self, at: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= at

    def is_active(self, at: datetime) -> bool:
        """Enabled and not expired at ``at``."""
        return self.enabled and not self.is_expired(at)

    def same_terms(
        self,
        scopes: frozenset[str],
        inherit_to_children: bool,
        expires_at: datetime | None,
    ) -> bool:
        """True when granting these terms again would change nothing."""
        return (
            self.scopes == scopes
            and self.inherit_to_children == inherit_to_children
            and self.expires_at == expires_at
        )
