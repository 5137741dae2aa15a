"""Batch revoke use case."""

import logging
from uuid import UUID

logger = logging.getLogger(__name__)


class BatchRevokeUseCase:
    """Disable many grants in one transaction."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(self, grant_ids: list[UUID]) -> int:
        """Return how many grants went from enabled to disabled. Unknown ids are ignored."""
        revoked = 0
        async with self._uow_factory() as uow:
            found = []
            for grant_id in dict.fromkeys(grant_ids):
                grant = await uow.grants.get_by_id(grant_id)
                if grant is not None:
                    found.append(grant)

            for grant in sorted(found, key=lambda g: g.key.sort_key()):
                await uow.grants.lock_key(grant.key)
                current = await uow.grants.get_by_id(grant.id)
                if current.enabled:
                    await uow.grants.disable(current.id, current.version)
                    revoked += 1

        logger.info("Batch revoke disabled %d of %d grant(s)", revoked, len(grant_ids))
        return revoked
