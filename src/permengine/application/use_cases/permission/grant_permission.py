"""Grant permission use case."""

import logging

from permengine.application.dto.grant_dto import GrantItem
from permengine.application.use_cases.permission.batch_grant import BatchGrantUseCase
from permengine.domain.entities import Grant

logger = logging.getLogger(__name__)


class GrantPermissionUseCase:
    """Grant scopes on one resource to one subject."""

    def __init__(self, batch_grant: BatchGrantUseCase) -> None:
        self._batch_grant = batch_grant

    async def execute(self, item: GrantItem, granted_by: str) -> Grant:
        (grant,) = await self._batch_grant.execute([item], granted_by)
        logger.info(
            "Granted %s to %s/%s on resource %s",
            sorted(grant.scopes),
            grant.subject_type,
            grant.subject_id,
            grant.resource_id,
        )
        return grant
