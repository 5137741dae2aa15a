"""Unit of Work port - transactional boundary."""

from collections.abc import AsyncIterator
from typing import Protocol

from permengine.application.ports.repositories.check_log_repository import (
    CheckLogRepository,
)
from permengine.application.ports.repositories.grant_repository import GrantRepository
from permengine.application.ports.repositories.resource_repository import (
    ResourceRepository,
)
from permengine.application.ports.repositories.scope_repository import ScopeRepository


class UnitOfWork(Protocol):
    """Unit of Work - manages transaction and repository access."""

    @property
    def resources(self) -> ResourceRepository: ...

    @property
    def scopes(self) -> ScopeRepository: ...

    @property
    def grants(self) -> GrantRepository: ...

    @property
    def check_logs(self) -> CheckLogRepository: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class UnitOfWorkFactory(Protocol):
    """Factory for creating UnitOfWork instances."""

    async def __call__(self) -> AsyncIterator[UnitOfWork]: ...
