"""PostgreSQL resource repository implementation."""

from uuid import UUID

from psycopg import AsyncConnection

from permengine.domain.entities import Resource

_COLUMNS = (
    "id, client_id, code, name, resource_type, parent_id, sort_order, is_enabled, "
    "client_name, description, uri"
)


def _row_to_resource(r: tuple) -> Resource:
    return Resource(
        id=r[0],
        client_id=r[1],
        code=r[2],
        name=r[3],
        resource_type=r[4],
        parent_id=r[5],
        sort_order=r[6],
        enabled=r[7],
        client_name=r[8],
        description=r[9],
        uri=r[10],
    )


class PostgresResourceRepository:
    """Resource repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def list_all(self, client_id: str | None = None) -> list[Resource]:
        """List resources, disabled ones included."""
        if client_id is None:
            cur = await self._conn.execute(
                f"SELECT {_COLUMNS} FROM resource ORDER BY client_id, sort_order, name"
            )
        else:
            cur = await self._conn.execute(
                f"SELECT {_COLUMNS} FROM resource WHERE client_id = %s ORDER BY sort_order, name",
                (client_id,),
            )
        rows = await cur.fetchall()
        return [_row_to_resource(r) for r in rows]

    async def get_by_id(self, resource_id: UUID) -> Resource | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM resource WHERE id = %s",
            (resource_id,),
        )
        r = await cur.fetchone()
        return _row_to_resource(r) if r else None

    async def get_by_code(self, client_id: str, code: str) -> Resource | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM resource WHERE client_id = %s AND code = %s",
            (client_id, code),
        )
        r = await cur.fetchone()
        return _row_to_resource(r) if r else None

    async def list_lineage(self, resource_id: UUID) -> list[Resource]:
        """Resource and its ancestors, walked with a recursive CTE."""
        # depth guard stops a corrupted cyclic chain; ResourceTree reports the cycle
        cur = await self._conn.execute(
            "WITH RECURSIVE lineage AS ("
            f"  SELECT {_COLUMNS}, 0 AS depth FROM resource WHERE id = %s"
            "  UNION ALL"
            "  SELECT r.id, r.client_id, r.code, r.name, r.resource_type, r.parent_id,"
            "         r.sort_order, r.is_enabled, r.client_name, r.description, r.uri,"
            "         l.depth + 1"
            "  FROM resource r JOIN lineage l ON r.id = l.parent_id"
            "  WHERE l.depth < 1000"
            f") SELECT DISTINCT ON (id) {_COLUMNS} FROM lineage ORDER BY id",
            (resource_id,),
        )
        rows = await cur.fetchall()
        return [_row_to_resource(r) for r in rows]
