"""Membership resolver backed by the identity tables of the admin database."""

import logging

import psycopg
from psycopg_pool import AsyncConnectionPool

from permengine.domain.entities import GroupMembership, Organization, OrganizationAncestor
from permengine.domain.exceptions import MembershipResolutionFailure
from permengine.domain.services.organization_chain import walk_organization_chain
from permengine.domain.value_objects import SubjectType

logger = logging.getLogger(__name__)

_SUBJECT_TABLES = {
    SubjectType.USER: "app_user",
    SubjectType.GROUP: "app_group",
    SubjectType.ORGANIZATION: "organization",
    SubjectType.ROLE: "app_role",
}

# Organizations of the user and all their ancestors. UNION stops on cycles.
_ORG_ANCESTRY_SQL = """
WITH RECURSIVE chain AS (
    SELECT o.id, o.parent_id, o.inherit_parent_permissions
    FROM organization_member m
    JOIN organization o ON o.id = m.organization_id
    WHERE m.user_id = %s
    UNION
    SELECT p.id, p.parent_id, p.inherit_parent_permissions
    FROM chain c
    JOIN organization p ON p.id = c.parent_id
)
SELECT id, parent_id, inherit_parent_permissions FROM chain
"""


class PostgresMembershipResolver:
    """Reads group membership and organization ancestry with its own pooled connections."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def _fetch(self, query: str, params: tuple) -> list[tuple]:
        try:
            async with self._pool.connection() as conn:
                cur = await conn.execute(query, params)
                return await cur.fetchall()
        except psycopg.Error as e:
            logger.error("Membership query failed: %s", e)
            raise MembershipResolutionFailure("Membership store unavailable") from e

    async def get_groups(self, user_id: str) -> list[GroupMembership]:
        rows = await self._fetch(
            "SELECT group_id, inherit_group_permissions FROM group_member "
            "WHERE user_id = %s ORDER BY group_id",
            (user_id,),
        )
        return [GroupMembership(group_id=r[0], inherit_group_permissions=r[1]) for r in rows]

    async def get_org_ancestors(self, user_id: str) -> list[OrganizationAncestor]:
        member_rows = await self._fetch(
            "SELECT organization_id FROM organization_member WHERE user_id = %s",
            (user_id,),
        )
        if not member_rows:
            return []
        rows = await self._fetch(_ORG_ANCESTRY_SQL, (user_id,))
        return walk_organization_chain(
            [r[0] for r in member_rows],
            [
                Organization(id=r[0], parent_id=r[1], inherit_parent_permissions=r[2])
                for r in rows
            ],
        )

    async def subject_exists(self, subject_type: SubjectType, subject_id: str) -> bool:
        table = _SUBJECT_TABLES[subject_type]
        rows = await self._fetch(f"SELECT 1 FROM {table} WHERE id = %s", (subject_id,))
        return bool(rows)
