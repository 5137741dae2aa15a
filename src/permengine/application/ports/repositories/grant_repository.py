"""Grant repository port - the permission store."""

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from permengine.domain.entities import Grant, GrantKey
from permengine.domain.value_objects import SubjectType


class GrantRepository(Protocol):
    """Port for grant persistence.

    Rows are never deleted here: revoking disables a row, expiry is judged
    by readers.
    """

    async def get_by_id(self, grant_id: UUID) -> Grant | None: ...

    async def list_by_subject(
        self,
        subject_type: SubjectType,
        subject_id: str,
        include_disabled: bool = False,
    ) -> list[Grant]: ...

    async def list_by_subjects(
        self,
        subjects: Iterable[tuple[SubjectType, str]],
        resource_ids: Iterable[UUID] | None = None,
    ) -> list[Grant]: ...

    async def list_by_resource(self, resource_id: UUID) -> list[Grant]: ...

    async def get_active(self, key: GrantKey) -> Grant | None: ...

    async def lock_key(self, key: GrantKey) -> None: ...

    async def create(self, grant: Grant) -> Grant: ...

    async def disable(self, grant_id: UUID, expected_version: int) -> Grant: ...
