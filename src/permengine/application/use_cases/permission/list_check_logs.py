"""List permission check logs use case."""

from permengine.domain.entities import PermissionCheckLog
from permengine.domain.exceptions import ValidationError

MAX_LIMIT = 1000


class ListCheckLogsUseCase:
    """Most recent permission checks, newest first."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(self, limit: int = 100) -> list[PermissionCheckLog]:
        if limit < 1 or limit > MAX_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}")
        async with self._uow_factory() as uow:
            return await uow.check_logs.list_recent(limit)
