"""PostgreSQL permission check log repository implementation."""

from psycopg import AsyncConnection

from permengine.domain.entities import PermissionCheckLog


class PostgresCheckLogRepository:
    """Append-only check log."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def append(self, log: PermissionCheckLog) -> None:
        await self._conn.execute(
            "INSERT INTO permission_check_log (id, checked_at, client_id, subject_id, resource_code, "
            "requested_scope, granted_scopes, allowed, latency_ms, error_code, ip_address, user_agent) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
            (
                log.id,
                log.checked_at,
                log.client_id,
                log.subject_id,
                log.resource_code,
                log.requested_scope,
                log.granted_scopes,
                log.allowed,
                log.latency_ms,
                log.error_code,
                log.ip_address,
                log.user_agent,
            ),
        )

    async def list_recent(self, limit: int = 100) -> list[PermissionCheckLog]:
        cur = await self._conn.execute(
            "SELECT id, checked_at, client_id, subject_id, resource_code, requested_scope, "
            "granted_scopes, allowed, latency_ms, error_code, ip_address, user_agent "
            "FROM permission_check_log ORDER BY checked_at DESC LIMIT %s",
            (limit,),
        )
        rows = await cur.fetchall()
        return [
            PermissionCheckLog(
                id=r[0],
                checked_at=r[1],
                client_id=r[2],
                subject_id=r[3],
                resource_code=r[4],
                requested_scope=r[5],
                granted_scopes=r[6],
                allowed=r[7],
                latency_ms=r[8],
                error_code=r[9],
                ip_address=r[10],
                user_agent=r[11],
            )
            for r in rows
        ]
