"""PostgreSQL grant repository implementation."""

from collections.abc import Iterable
from uuid import UUID

from psycopg import AsyncConnection
from psycopg.errors import UniqueViolation

from permengine.domain.entities import Grant, GrantKey
from permengine.domain.exceptions import ConcurrentMutationConflict, NotFound
from permengine.domain.value_objects import SubjectType
from permengine.domain.value_objects.scope_codes import decode_scopes, encode_legacy

_COLUMNS = (
    "g.id, g.subject_type, g.subject_id, g.subject_name, g.resource_id, g.scopes, "
    "g.inherit_to_children, g.is_enabled, g.granted_by, g.granted_at, g.expires_at, "
    "g.version, g.tenant_id"
)


def _row_to_grant(r: tuple) -> Grant:
    return Grant(
        id=r[0],
        subject_type=SubjectType(r[1]),
        subject_id=r[2],
        subject_name=r[3],
        resource_id=r[4],
        scopes=decode_scopes(r[5]),
        inherit_to_children=r[6],
        enabled=r[7],
        granted_by=r[8],
        granted_at=r[9],
        expires_at=r[10],
        version=r[11],
        tenant_id=r[12],
    )


def _lock_name(key: GrantKey) -> str:
    return f"grant:{key.subject_type.value}:{key.subject_id}:{key.resource_id}"


class PostgresGrantRepository:
    """Grant repository implementation.

    Scopes are stored in the legacy ``@a@b`` column format and decoded here.
    """

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, grant_id: UUID) -> Grant | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission_grant g WHERE g.id = %s",
            (grant_id,),
        )
        r = await cur.fetchone()
        return _row_to_grant(r) if r else None

    async def list_by_subject(
        self,
        subject_type: SubjectType,
        subject_id: str,
        include_disabled: bool = False,
    ) -> list[Grant]:
        q = (
            f"SELECT {_COLUMNS} FROM permission_grant g "
            "WHERE g.subject_type = %s AND g.subject_id = %s"
        )
        if not include_disabled:
            q += " AND g.is_enabled"
        q += " ORDER BY g.granted_at DESC"
        cur = await self._conn.execute(q, (subject_type.value, subject_id))
        rows = await cur.fetchall()
        return [_row_to_grant(r) for r in rows]

    async def list_by_subjects(
        self,
        subjects: Iterable[tuple[SubjectType, str]],
        resource_ids: Iterable[UUID] | None = None,
    ) -> list[Grant]:
        """Enabled grants of any of the subjects, optionally limited to some resources."""
        subjects = list(subjects)
        if not subjects:
            return []
        q = (
            f"SELECT {_COLUMNS} FROM permission_grant g "
            "JOIN unnest(%s::text[], %s::text[]) AS s(subject_type, subject_id) "
            "ON g.subject_type = s.subject_type AND g.subject_id = s.subject_id "
            "WHERE g.is_enabled"
        )
        params: list[object] = [
            [t.value for t, _ in subjects],
            [i for _, i in subjects],
        ]
        if resource_ids is not None:
            q += " AND g.resource_id = ANY(%s)"
            params.append(list(resource_ids))
        cur = await self._conn.execute(q, tuple(params))
        rows = await cur.fetchall()
        return [_row_to_grant(r) for r in rows]

    async def list_by_resource(self, resource_id: UUID) -> list[Grant]:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission_grant g "
            "WHERE g.resource_id = %s AND g.is_enabled "
            "ORDER BY g.subject_type, g.subject_id",
            (resource_id,),
        )
        rows = await cur.fetchall()
        return [_row_to_grant(r) for r in rows]

    async def get_active(self, key: GrantKey) -> Grant | None:
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission_grant g "
            "WHERE g.subject_type = %s AND g.subject_id = %s AND g.resource_id = %s "
            "AND g.is_enabled",
            (key.subject_type.value, key.subject_id, key.resource_id),
        )
        r = await cur.fetchone()
        return _row_to_grant(r) if r else None

    async def lock_key(self, key: GrantKey) -> None:
        """Serialize writers of one key until the transaction ends."""
        await self._conn.execute(
            "SELECT pg_advisory_xact_lock(hashtextextended(%s, 0))",
            (_lock_name(key),),
        )

    async def create(self, grant: Grant) -> Grant:
        try:
            await self._conn.execute(
                "INSERT INTO permission_grant (id, subject_type, subject_id, subject_name, "
                "resource_id, scopes, inherit_to_children, is_enabled, granted_by, granted_at, "
                "expires_at, version, tenant_id) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
                (
                    grant.id,
                    grant.subject_type.value,
                    grant.subject_id,
                    grant.subject_name,
                    grant.resource_id,
                    encode_legacy(grant.scopes),
                    grant.inherit_to_children,
                    grant.enabled,
                    grant.granted_by,
                    grant.granted_at,
                    grant.expires_at,
                    grant.version,
                    grant.tenant_id,
                ),
            )
        except UniqueViolation as e:
            raise ConcurrentMutationConflict(
                f"Active grant already exists for {grant.subject_type}/{grant.subject_id} "
                f"on resource {grant.resource_id}"
            ) from e
        return grant

    async def disable(self, grant_id: UUID, expected_version: int) -> Grant:
        """Soft-disable a grant and bump its version."""
        cur = await self._conn.execute(
            "UPDATE permission_grant g SET is_enabled = false, version = g.version + 1 "
            "WHERE g.id = %s AND g.version = %s "
            f"RETURNING {_COLUMNS}",
            (grant_id, expected_version),
        )
        r = await cur.fetchone()
        if r:
            return _row_to_grant(r)
        current = await self.get_by_id(grant_id)
        if current is None:
            raise NotFound("Grant", grant_id)
        raise ConcurrentMutationConflict(
            f"Grant {grant_id} is at version {current.version}, expected {expected_version}"
        )
