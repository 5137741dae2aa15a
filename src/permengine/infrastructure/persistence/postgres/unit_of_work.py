"""PostgreSQL Unit of Work implementation."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from psycopg_pool import AsyncConnectionPool

from permengine.infrastructure.persistence.postgres.check_log_repository import (
    PostgresCheckLogRepository,
)
from permengine.infrastructure.persistence.postgres.grant_repository import (
    PostgresGrantRepository,
)
from permengine.infrastructure.persistence.postgres.resource_repository import (
    PostgresResourceRepository,
)
from permengine.infrastructure.persistence.postgres.scope_repository import (
    PostgresScopeRepository,
)


class PostgresUnitOfWork:
    """PostgreSQL Unit of Work - one connection, one transaction.

    Advisory locks taken through ``grants.lock_key`` live until this
    transaction commits or rolls back.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool
        self._conn: object | None = None
        self._conn_cm: object | None = None

    async def __aenter__(self) -> "PostgresUnitOfWork":
        self._conn_cm = self._pool.connection()
        self._conn = await self._conn_cm.__aenter__()
        self._resources = PostgresResourceRepository(self._conn)
        self._scopes = PostgresScopeRepository(self._conn)
        self._grants = PostgresGrantRepository(self._conn)
        self._check_logs = PostgresCheckLogRepository(self._conn)
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        if exc_type and self._conn:
            await self._conn.rollback()
        if self._conn_cm:
            await self._conn_cm.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def resources(self) -> PostgresResourceRepository:
        return self._resources

    @property
    def scopes(self) -> PostgresScopeRepository:
        return self._scopes

    @property
    def grants(self) -> PostgresGrantRepository:
        return self._grants

    @property
    def check_logs(self) -> PostgresCheckLogRepository:
        return self._check_logs

    async def commit(self) -> None:
        if self._conn:
            await self._conn.commit()

    async def rollback(self) -> None:
        if self._conn:
            await self._conn.rollback()


def create_uow_factory(pool: AsyncConnectionPool) -> object:
    """Create UnitOfWork factory (async context manager)."""

    @asynccontextmanager
    async def factory() -> AsyncIterator[PostgresUnitOfWork]:
        uow = PostgresUnitOfWork(pool)
        async with uow:
            try:
                yield uow
                await uow.commit()
            except BaseException:
                await uow.rollback()
                raise

    return factory
