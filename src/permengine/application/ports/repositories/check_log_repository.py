"""Permission check log repository port."""

from typing import Protocol

from permengine.domain.entities import PermissionCheckLog


class CheckLogRepository(Protocol):
    """Append-only audit log of permission checks."""

    async def append(self, log: PermissionCheckLog) -> None: ...

    async def list_recent(self, limit: int = 100) -> list[PermissionCheckLog]: ...
