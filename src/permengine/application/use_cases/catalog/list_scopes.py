"""List scopes use case."""

from permengine.domain.entities import Scope


class ListScopesUseCase:
    """Scope registry ordered by sort_order then code."""

    def __init__(self, unit_of_work_factory: type) -> None:
        self._uow_factory = unit_of_work_factory

    async def execute(self) -> list[Scope]:
        async with self._uow_factory() as uow:
            scopes = await uow.scopes.list_all()
        return sorted(scopes, key=lambda s: (s.sort_order, s.code))
