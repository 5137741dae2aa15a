"""Revoke permission use case."""

import logging
from uuid import UUID

from permengine.domain.entities import Grant
from permengine.domain.exceptions import ConcurrentMutationConflict, NotFound

logger = logging.getLogger(__name__)


class RevokePermissionUseCase:
    """Disable one grant. The row is kept for history."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(self, grant_id: UUID, expected_version: int | None = None) -> Grant:
        """Revoke grant_id. Revoking an already revoked grant returns it unchanged."""
        async with self._uow_factory() as uow:
            grant = await uow.grants.get_by_id(grant_id)
            if grant is None:
                raise NotFound("Grant", grant_id)

            await uow.grants.lock_key(grant.key)
            grant = await uow.grants.get_by_id(grant_id)
            if expected_version is not None and grant.version != expected_version:
                raise ConcurrentMutationConflict(
                    f"Grant {grant_id} is at version {grant.version}, expected {expected_version}"
                )
            if not grant.enabled:
                return grant
            revoked = await uow.grants.disable(grant.id, grant.version)

        logger.info(
            "Revoked grant %s of %s/%s on resource %s",
            grant_id,
            revoked.subject_type,
            revoked.subject_id,
            revoked.resource_id,
        )
        return revoked
