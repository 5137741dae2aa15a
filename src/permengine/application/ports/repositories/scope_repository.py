"""Scope repository port."""

from typing import Protocol

from permengine.domain.entities import Scope


class ScopeRepository(Protocol):
    """Port for the scope registry."""

    async def list_all(self) -> list[Scope]: ...

    async def get_by_code(self, code: str) -> Scope | None: ...

    async def list_codes(self) -> set[str]: ...
