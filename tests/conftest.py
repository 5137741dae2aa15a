"""Pytest fixtures for PermEngine tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from permengine.domain.entities import (
    Grant,
    GrantKey,
    GroupMembership,
    OrganizationAncestor,
    PermissionCheckLog,
    Resource,
    Scope,
)
from permengine.domain.exceptions import (
    ConcurrentMutationConflict,
    MembershipResolutionFailure,
    NotFound,
)
from permengine.domain.value_objects import SubjectType

DEFAULT_SCOPES = ("read", "write", "delete", "admin", "all")


# --- Builders ---


def make_resource(
    code: str,
    parent: Resource | None = None,
    client_id: str = "console",
    sort_order: int = 0,
    enabled: bool = True,
    name: str | None = None,
) -> Resource:
    return Resource(
        id=uuid4(),
        client_id=client_id,
        code=code,
        name=name or code.title(),
        resource_type="menu",
        parent_id=parent.id if parent else None,
        sort_order=sort_order,
        enabled=enabled,
    )


def make_grant(
    subject_id: str,
    resource: Resource,
    scopes: Iterable[str],
    subject_type: SubjectType = SubjectType.USER,
    inherit_to_children: bool = False,
    enabled: bool = True,
    expires_at: datetime | None = None,
    subject_name: str | None = None,
) -> Grant:
    return Grant(
        id=uuid4(),
        subject_type=subject_type,
        subject_id=subject_id,
        subject_name=subject_name,
        resource_id=resource.id,
        scopes=frozenset(scopes),
        inherit_to_children=inherit_to_children,
        enabled=enabled,
        granted_by="tests",
        granted_at=datetime(2024, 1, 1, tzinfo=UTC),
        expires_at=expires_at,
    )


# --- Fake repositories ---


class FakeResourceRepository:
    """In-memory resource catalog."""

    def __init__(self) -> None:
        self._by_id: dict[UUID, Resource] = {}

    def add(self, *resources: Resource) -> None:
        for resource in resources:
            self._by_id[resource.id] = resource

    async def list_all(self, client_id: str | None = None) -> list[Resource]:
        return [
            r for r in self._by_id.values() if client_id is None or r.client_id == client_id
        ]

    async def get_by_id(self, resource_id: UUID) -> Resource | None:
        return self._by_id.get(resource_id)

    async def get_by_code(self, client_id: str, code: str) -> Resource | None:
        for r in self._by_id.values():
            if r.client_id == client_id and r.code == code:
                return r
        return None

    async def list_lineage(self, resource_id: UUID) -> list[Resource]:
        lineage: list[Resource] = []
        seen: set[UUID] = set()
        current = self._by_id.get(resource_id)
        while current is not None and current.id not in seen:
            seen.add(current.id)
            lineage.append(current)
            current = self._by_id.get(current.parent_id) if current.parent_id else None
        return lineage


class FakeScopeRepository:
    """In-memory scope registry."""

    def __init__(self, codes: Iterable[str] = DEFAULT_SCOPES) -> None:
        self._by_code: dict[str, Scope] = {}
        for i, code in enumerate(codes):
            self._by_code[code] = Scope(id=uuid4(), code=code, name=code.title(), sort_order=i)

    async def list_all(self) -> list[Scope]:
        return list(self._by_code.values())

    async def get_by_code(self, code: str) -> Scope | None:
        return self._by_code.get(code)

    async def list_codes(self) -> set[str]:
        return set(self._by_code)


class FakeGrantRepository:
    """In-memory grant store enforcing one active grant per key.

    ``fail_on_create`` makes the n-th create call (1-based) raise, to
    exercise rollback of partially applied batches.
    """

    def __init__(self) -> None:
        self._by_id: dict[UUID, Grant] = {}
        self.locked: list[GrantKey] = []
        self.fail_on_create: int | None = None
        self._creates = 0

    def add(self, *grants: Grant) -> None:
        for grant in grants:
            self._by_id[grant.id] = grant

    def all(self) -> list[Grant]:
        return list(self._by_id.values())

    def active(self) -> list[Grant]:
        return [g for g in self._by_id.values() if g.enabled]

    async def get_by_id(self, grant_id: UUID) -> Grant | None:
        return self._by_id.get(grant_id)

    async def list_by_subject(
        self,
        subject_type: SubjectType,
        subject_id: str,
        include_disabled: bool = False,
    ) -> list[Grant]:
        return [
            g
            for g in self._by_id.values()
            if g.subject_type == subject_type
            and g.subject_id == subject_id
            and (include_disabled or g.enabled)
        ]

    async def list_by_subjects(
        self,
        subjects: Iterable[tuple[SubjectType, str]],
        resource_ids: Iterable[UUID] | None = None,
    ) -> list[Grant]:
        wanted = set(subjects)
        resources = set(resource_ids) if resource_ids is not None else None
        return [
            g
            for g in self._by_id.values()
            if g.enabled
            and (g.subject_type, g.subject_id) in wanted
            and (resources is None or g.resource_id in resources)
        ]

    async def list_by_resource(self, resource_id: UUID) -> list[Grant]:
        return [g for g in self._by_id.values() if g.enabled and g.resource_id == resource_id]

    def _find_active(self, key: GrantKey) -> Grant | None:
        for g in self._by_id.values():
            if g.enabled and g.key == key:
                return g
        return None

    async def get_active(self, key: GrantKey) -> Grant | None:
        return self._find_active(key)

    async def lock_key(self, key: GrantKey) -> None:
        self.locked.append(key)

    async def create(self, grant: Grant) -> Grant:
        self._creates += 1
        if self.fail_on_create is not None and self._creates == self.fail_on_create:
            raise RuntimeError("simulated storage failure")
        if grant.enabled and self._find_active(grant.key) is not None:
            raise ConcurrentMutationConflict("Active grant already exists")
        self._by_id[grant.id] = grant
        return grant

    async def disable(self, grant_id: UUID, expected_version: int) -> Grant:
        grant = self._by_id.get(grant_id)
        if grant is None:
            raise NotFound("Grant", grant_id)
        if grant.version != expected_version:
            raise ConcurrentMutationConflict("stale version")
        disabled = replace(grant, enabled=False, version=grant.version + 1)
        self._by_id[grant_id] = disabled
        return disabled


class FakeCheckLogRepository:
    """In-memory check log; ``fail`` makes append raise."""

    def __init__(self) -> None:
        self.logs: list[PermissionCheckLog] = []
        self.fail = False

    async def append(self, log: PermissionCheckLog) -> None:
        if self.fail:
            raise RuntimeError("check log table unavailable")
        self.logs.append(log)

    async def list_recent(self, limit: int = 100) -> list[PermissionCheckLog]:
        return sorted(self.logs, key=lambda log: log.checked_at, reverse=True)[:limit]


class FakeMembershipResolver:
    """In-memory groups and organization chains.

    ``known`` lists existing subjects; None means every subject exists.
    """

    def __init__(self) -> None:
        self.groups: dict[str, list[GroupMembership]] = {}
        self.organizations: dict[str, list[OrganizationAncestor]] = {}
        self.known: set[tuple[SubjectType, str]] | None = None
        self.fail = False

    async def get_groups(self, user_id: str) -> list[GroupMembership]:
        if self.fail:
            raise MembershipResolutionFailure("directory unavailable")
        return self.groups.get(user_id, [])

    async def get_org_ancestors(self, user_id: str) -> list[OrganizationAncestor]:
        if self.fail:
            raise MembershipResolutionFailure("directory unavailable")
        return self.organizations.get(user_id, [])

    async def subject_exists(self, subject_type: SubjectType, subject_id: str) -> bool:
        if self.fail:
            raise MembershipResolutionFailure("directory unavailable")
        return self.known is None or (subject_type, subject_id) in self.known


# --- Fake UnitOfWork ---


class FakeUnitOfWork:
    """In-memory Unit of Work with fake repositories."""

    def __init__(self) -> None:
        self.resources = FakeResourceRepository()
        self.scopes = FakeScopeRepository()
        self.grants = FakeGrantRepository()
        self.check_logs = FakeCheckLogRepository()
        self.commits = 0
        self.rollbacks = 0

    def snapshot(self) -> tuple:
        return (dict(self.grants._by_id), list(self.check_logs.logs))

    def restore(self, state: tuple) -> None:
        grants, logs = state
        self.grants._by_id = dict(grants)
        self.check_logs.logs = list(logs)

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


def make_uow_factory(uow: FakeUnitOfWork):
    """Factory sharing one FakeUnitOfWork; state written inside a failed block is undone."""

    @asynccontextmanager
    async def _factory() -> AsyncIterator[FakeUnitOfWork]:
        state = uow.snapshot()
        try:
            yield uow
            await uow.commit()
        except BaseException:
            uow.restore(state)
            await uow.rollback()
            raise

    return _factory


# --- Fixtures ---


@pytest.fixture
def fake_uow() -> FakeUnitOfWork:
    """Fresh in-memory UnitOfWork for each test."""
    return FakeUnitOfWork()


@pytest.fixture
def uow_factory(fake_uow: FakeUnitOfWork):
    """Transactional factory over the test's FakeUnitOfWork."""
    return make_uow_factory(fake_uow)


@pytest.fixture
def membership() -> FakeMembershipResolver:
    return FakeMembershipResolver()
