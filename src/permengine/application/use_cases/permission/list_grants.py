"""Raw grant listings - stored rows, before resolution."""

from uuid import UUID

from permengine.domain.entities import Grant
from permengine.domain.exceptions import NotFound
from permengine.domain.value_objects import SubjectType


class ListSubjectGrantsUseCase:
    """Grants held directly by one subject."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(
        self,
        subject_type: SubjectType,
        subject_id: str,
        include_revoked: bool = False,
    ) -> list[Grant]:
        async with self._uow_factory() as uow:
            return await uow.grants.list_by_subject(
                subject_type, subject_id, include_disabled=include_revoked
            )


class ListResourceGrantsUseCase:
    """Enabled grants attached to one resource."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(self, resource_id: UUID) -> list[Grant]:
        async with self._uow_factory() as uow:
            if await uow.resources.get_by_id(resource_id) is None:
                raise NotFound("Resource", resource_id)
            return await uow.grants.list_by_resource(resource_id)
