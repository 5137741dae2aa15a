"""Unit tests for single permission checks."""

from datetime import UTC, datetime, timedelta

import pytest

from permengine.application.use_cases.catalog.resource_catalog import ResourceCatalog
from permengine.application.use_cases.permission.check_permission import CheckPermissionUseCase
from permengine.application.use_cases.permission.resolve_effective_permissions import (
    ResolveEffectivePermissionsUseCase,
)
from permengine.domain.entities import GroupMembership, OrganizationAncestor
from permengine.domain.exceptions import NotFound, ValidationError
from permengine.domain.value_objects import SubjectType
from permengine.domain.value_objects.scope_codes import grants_scope

from tests.conftest import DEFAULT_SCOPES, FakeScopeRepository, make_grant, make_resource

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def forest(fake_uow):
    root = make_resource("root")
    users = make_resource("users", parent=root)
    hidden = make_resource("hidden", parent=users, enabled=False)
    leaf = make_resource("leaf", parent=hidden)
    reports = make_resource("reports", parent=root)
    other = make_resource("other_root", client_id="billing")
    fake_uow.resources.add(root, users, hidden, leaf, reports, other)
    return {r.code: r for r in (root, users, hidden, leaf, reports, other)}


@pytest.fixture
def check(uow_factory, membership):
    return CheckPermissionUseCase(
        unit_of_work_factory=uow_factory,
        membership_resolver=membership,
        catalog=ResourceCatalog(uow_factory),
    )


@pytest.mark.asyncio
async def test_check_matches_resolution_everywhere(
    fake_uow, forest, membership, uow_factory, check
) -> None:
    """For every resource and scope the check agrees with full resolution."""
    membership.groups["u1"] = [GroupMembership("g1"), GroupMembership("g2", False)]
    membership.organizations["u1"] = [OrganizationAncestor("team", 0), OrganizationAncestor("corp", 1)]
    group, org = SubjectType.GROUP, SubjectType.ORGANIZATION
    fake_uow.grants.add(
        make_grant("u1", forest["users"], {"read"}, inherit_to_children=True),
        make_grant("u1", forest["reports"], {"all"}),
        make_grant("g1", forest["root"], {"write"}, group),
        make_grant("g1", forest["hidden"], {"delete"}, group, inherit_to_children=True),
        make_grant("g2", forest["root"], {"admin"}, group, inherit_to_children=True),
        make_grant("team", forest["reports"], {"delete"}, org),
        make_grant("corp", forest["root"], {"admin"}, org),
        make_grant("corp", forest["other_root"], {"read"}, org, inherit_to_children=True),
        make_grant("u1", forest["leaf"], {"write"}, expires_at=NOW - timedelta(hours=1)),
    )
    resolve = ResolveEffectivePermissionsUseCase(
        uow_factory, membership, ResourceCatalog(uow_factory)
    )
    resolved = (await resolve.execute("u1", at=NOW)).permissions

    for resource in forest.values():
        effective = resolved.get(resource.id)
        held = effective.scopes if effective else frozenset()
        for scope in DEFAULT_SCOPES:
            result = await check.execute("u1", scope, resource_id=resource.id, at=NOW)
            assert result.allowed == grants_scope(held, scope), (resource.code, scope)
            assert result.granted_scopes == held


@pytest.mark.asyncio
async def test_check_by_client_and_code(fake_uow, forest, check) -> None:
    fake_uow.grants.add(make_grant("u1", forest["root"], {"read"}, inherit_to_children=True))

    result = await check.execute("u1", "read", client_id="console", resource_code="leaf")

    assert result.allowed
    assert result.resource_id == forest["leaf"].id
    assert not (await check.execute("u1", "write", client_id="console", resource_code="leaf")).allowed


@pytest.mark.asyncio
async def test_all_wildcard_allows_any_scope(fake_uow, forest, check) -> None:
    fake_uow.grants.add(make_grant("u1", forest["reports"], {"all"}))

    result = await check.execute("u1", "delete", resource_id=forest["reports"].id)

    assert result.allowed
    assert result.granted_scopes == {"all"}


@pytest.mark.asyncio
async def test_unknown_scope_user_and_resource(forest, membership, check) -> None:
    """Unknown scope, user or resource raise NotFound."""
    membership.known = {(SubjectType.USER, "u1")}
    rid = forest["root"].id

    with pytest.raises(NotFound, match="Scope"):
        await check.execute("u1", "teleport", resource_id=rid)
    with pytest.raises(NotFound, match="User"):
        await check.execute("nobody", "read", resource_id=rid)
    with pytest.raises(NotFound, match="Resource"):
        await check.execute("u1", "read", client_id="console", resource_code="missing")
    with pytest.raises(ValidationError):
        await check.execute("u1", "read")


@pytest.mark.asyncio
async def test_check_appends_log(fake_uow, forest, check) -> None:
    """Each check leaves a log row, failed lookups included."""
    fake_uow.grants.add(make_grant("u1", forest["users"], {"read", "write"}))

    await check.execute(
        "u1", "READ", resource_id=forest["users"].id, ip_address="10.0.0.1", user_agent="pytest"
    )
    with pytest.raises(NotFound):
        await check.execute("u1", "teleport", resource_id=forest["users"].id)

    first, second = fake_uow.check_logs.logs
    assert first.allowed
    assert first.requested_scope == "READ"
    assert first.granted_scopes == "@read@write"
    assert first.resource_code == "users"
    assert first.client_id == "console"
    assert first.ip_address == "10.0.0.1"
    assert first.error_code is None
    assert not second.allowed
    assert second.error_code == "NotFound"


@pytest.mark.asyncio
async def test_log_failure_does_not_fail_check(fake_uow, forest, check, caplog) -> None:
    """A broken check log is logged and swallowed."""
    fake_uow.grants.add(make_grant("u1", forest["users"], {"read"}))
    fake_uow.check_logs.fail = True

    result = await check.execute("u1", "read", resource_id=forest["users"].id)

    assert result.allowed
    assert "Failed to append permission check log" in caplog.text


@pytest.mark.asyncio
async def test_check_logging_disabled(fake_uow, forest, uow_factory, membership) -> None:
    check = CheckPermissionUseCase(
        uow_factory, membership, ResourceCatalog(uow_factory), log_checks=False
    )

    await check.execute("u1", "read", resource_id=forest["users"].id)

    assert fake_uow.check_logs.logs == []


@pytest.mark.asyncio
async def test_check_degrades_when_membership_fails(fake_uow, forest, membership, check) -> None:
    """Group grants are ignored and the result is flagged incomplete."""
    membership.groups["u1"] = [GroupMembership("g1")]
    membership.fail = True
    fake_uow.grants.add(make_grant("g1", forest["users"], {"read"}, SubjectType.GROUP))

    result = await check.execute("u1", "read", resource_id=forest["users"].id)

    assert not result.allowed
    assert not result.complete


@pytest.mark.asyncio
async def test_group_grant_without_inheritance_stays_on_its_resource(
    fake_uow, forest, membership, check
) -> None:
    """A member of g1 holds g1's scope on reports but not on reports.export."""
    export = make_resource("reports.export", parent=forest["reports"])
    fake_uow.resources.add(export)
    membership.groups["u1"] = [GroupMembership("g1")]
    fake_uow.grants.add(make_grant("g1", forest["reports"], {"read"}, SubjectType.GROUP))

    on_reports = await check.execute("u1", "read", resource_id=forest["reports"].id)
    on_export = await check.execute(
        "u1", "read", client_id="console", resource_code="reports.export"
    )

    assert on_reports.allowed
    assert on_reports.sources[0].subject_id == "g1"
    assert not on_export.allowed
    assert on_export.granted_scopes == frozenset()


@pytest.mark.asyncio
async def test_check_matches_registered_scope_ignoring_case(fake_uow, forest, check) -> None:
    fake_uow.scopes = FakeScopeRepository((*DEFAULT_SCOPES, "Export"))
    fake_uow.grants.add(make_grant("u1", forest["users"], {"Export"}))

    result = await check.execute("u1", "export", resource_id=forest["users"].id)

    assert result.allowed
    assert result.scope == "Export"
