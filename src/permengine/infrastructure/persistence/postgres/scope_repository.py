"""PostgreSQL scope repository implementation."""

from psycopg import AsyncConnection

from permengine.domain.entities import Scope


class PostgresScopeRepository:
    """Scope registry implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def list_all(self) -> list[Scope]:
        cur = await self._conn.execute(
            "SELECT id, code, name, description, sort_order FROM scope ORDER BY sort_order, code"
        )
        rows = await cur.fetchall()
        return [
            Scope(id=r[0], code=r[1], name=r[2], description=r[3], sort_order=r[4])
            for r in rows
        ]

    async def get_by_code(self, code: str) -> Scope | None:
        cur = await self._conn.execute(
            "SELECT id, code, name, description, sort_order FROM scope WHERE code = %s",
            (code,),
        )
        r = await cur.fetchone()
        if not r:
            return None
        return Scope(id=r[0], code=r[1], name=r[2], description=r[3], sort_order=r[4])

    async def list_codes(self) -> set[str]:
        cur = await self._conn.execute("SELECT code FROM scope")
        rows = await cur.fetchall()
        return {r[0] for r in rows}
