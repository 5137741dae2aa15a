"""Permission check log entity - append-only audit record."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass
class PermissionCheckLog:
    """One permission check and its outcome. Audit only, never read for decisions."""

    id: UUID
    checked_at: datetime
    client_id: str
    subject_id: str
    resource_code: str
    requested_scope: str
    granted_scopes: str
    allowed: bool
    latency_ms: int
    error_code: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
