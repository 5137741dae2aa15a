"""Update permission use case."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from permengine.application.dto.grant_dto import GrantItem
from permengine.application.ports import SubjectMembershipResolver
from permengine.application.use_cases.permission.batch_grant import (
    apply_grant,
    validate_items,
)
from permengine.domain.entities import Grant
from permengine.domain.exceptions import ConcurrentMutationConflict, NotFound

logger = logging.getLogger(__name__)


class UpdatePermissionUseCase:
    """Change scopes, inheritance or expiry of an active grant.

    The old row is disabled and a new one created on the same key, so the
    grant id changes. Passing ``expected_version`` makes the update fail with
    ConcurrentMutationConflict when the grant changed since it was read.
    """

    def __init__(
        self,
        unit_of_work_factory: type,
        membership_resolver: SubjectMembershipResolver,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._membership = membership_resolver

    async def execute(
        self,
        grant_id: UUID,
        scopes: frozenset[str],
        granted_by: str,
        inherit_to_children: bool | None = None,
        expires_at: datetime | None = None,
        expected_version: int | None = None,
    ) -> Grant:
        async with self._uow_factory() as uow:
            current = await uow.grants.get_by_id(grant_id)
            if current is None:
                raise NotFound("Grant", grant_id)

            await uow.grants.lock_key(current.key)
            current = await uow.grants.get_by_id(grant_id)
            if not current.enabled:
                raise ConcurrentMutationConflict(f"Grant {grant_id} is no longer active")
            if expected_version is not None and current.version != expected_version:
                raise ConcurrentMutationConflict(
                    f"Grant {grant_id} is at version {current.version}, expected {expected_version}"
                )

            item = GrantItem(
                subject_type=current.subject_type,
                subject_id=current.subject_id,
                subject_name=current.subject_name,
                resource_id=current.resource_id,
                scopes=frozenset(scopes),
                inherit_to_children=(
                    current.inherit_to_children
                    if inherit_to_children is None
                    else inherit_to_children
                ),
                expires_at=expires_at,
            )
            await validate_items(uow, self._membership, [item])
            grant = await apply_grant(uow, item, granted_by, datetime.now(UTC))

        logger.info("Updated grant %s -> %s by %s", grant_id, grant.id, granted_by)
        return grant
