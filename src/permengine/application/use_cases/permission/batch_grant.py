"""Batch grant use case - atomic revoke-then-grant over many keys."""

import logging
from datetime import UTC, datetime
from uuid import uuid4

from permengine.application.dto.grant_dto import GrantItem
from permengine.application.ports import SubjectMembershipResolver, UnitOfWork
from permengine.domain.entities import Grant
from permengine.domain.exceptions import InvalidScope, NotFound, ValidationError
from permengine.domain.value_objects import SubjectType
from permengine.domain.value_objects.scope_codes import canonicalize

logger = logging.getLogger(__name__)


async def validate_items(
    uow: UnitOfWork,
    membership_resolver: SubjectMembershipResolver,
    items: list[GrantItem],
) -> None:
    """Reject the whole batch before any write.

    Unknown scope codes are collected over all items and reported together.
    Known codes are rewritten in place to their registered spelling.
    """
    if not items:
        raise ValidationError("At least one grant item is required")

    seen = set()
    for item in items:
        if not isinstance(item.subject_type, SubjectType):
            raise ValidationError(f"Unknown subject type: {item.subject_type}")
        if not item.subject_id:
            raise ValidationError("subject_id is required")
        if not item.scopes:
            raise ValidationError(f"Scopes must not be empty for resource {item.resource_id}")
        if item.key in seen:
            raise ValidationError(
                f"Duplicate grant for {item.subject_type}/{item.subject_id} "
                f"on resource {item.resource_id}"
            )
        seen.add(item.key)

    registered = await uow.scopes.list_codes()
    unknown = set()
    for item in items:
        item.scopes, missing = canonicalize(item.scopes, registered)
        unknown.update(missing)
    if unknown:
        raise InvalidScope(unknown)

    for resource_id in sorted({item.resource_id for item in items}, key=str):
        resource = await uow.resources.get_by_id(resource_id)
        if resource is None or not resource.enabled:
            raise NotFound("Resource", resource_id)

    subjects = sorted({(item.subject_type, item.subject_id) for item in items})
    for subject_type, subject_id in subjects:
        if not await membership_resolver.subject_exists(subject_type, subject_id):
            raise NotFound(subject_type.value, subject_id)


async def apply_grant(
    uow: UnitOfWork,
    item: GrantItem,
    granted_by: str,
    now: datetime,
) -> Grant:
    """Make item the single active grant on its key.

    Identical terms leave the existing row untouched. Different terms disable
    the existing row and insert a new one.
    """
    await uow.grants.lock_key(item.key)
    existing = await uow.grants.get_active(item.key)
    if existing is not None:
        if existing.same_terms(item.scopes, item.inherit_to_children, item.expires_at):
            return existing
        await uow.grants.disable(existing.id, existing.version)

    grant = Grant(
        id=uuid4(),
        subject_type=item.subject_type,
        subject_id=item.subject_id,
        subject_name=item.subject_name,
        resource_id=item.resource_id,
        scopes=frozenset(item.scopes),
        inherit_to_children=item.inherit_to_children,
        enabled=True,
        granted_by=granted_by,
        granted_at=now,
        expires_at=item.expires_at,
    )
    return await uow.grants.create(grant)


class BatchGrantUseCase:
    """Apply many grants in one transaction: all succeed or none do."""

    def __init__(
        self,
        unit_of_work_factory: type,
        membership_resolver: SubjectMembershipResolver,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._membership = membership_resolver

    async def execute(self, items: list[GrantItem], granted_by: str) -> list[Grant]:
        """Grant every item. Returned grants follow the order of ``items``."""
        now = datetime.now(UTC)
        async with self._uow_factory() as uow:
            await validate_items(uow, self._membership, items)
            applied = {}
            for item in sorted(items, key=lambda i: i.key.sort_key()):
                applied[item.key] = await apply_grant(uow, item, granted_by, now)

        logger.info(
            "Batch grant by %s applied %d item(s) for %d subject(s)",
            granted_by,
            len(items),
            len({(i.subject_type, i.subject_id) for i in items}),
        )
        return [applied[item.key] for item in items]
