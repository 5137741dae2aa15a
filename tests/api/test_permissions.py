"""API tests for /v1/permissions."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

from permengine.domain.entities import GroupMembership
from permengine.domain.value_objects import SubjectType

from tests.conftest import make_grant


def test_resource_tree(client, forest) -> None:
    """GET /resources returns the nested forest."""
    result = client.simulate_get("/v1/permissions/resources", params={"client_id": "console"})
    assert result.status_code == 200
    (root,) = result.json["items"]
    assert root["code"] == "root"
    assert root["children"][0]["children"][0]["code"] == "user_edit"


def test_resource_detail_and_missing(client, forest) -> None:
    result = client.simulate_get(f"/v1/permissions/resources/{forest['user_edit'].id}")
    assert result.status_code == 200
    assert result.json["ancestor_ids"] == [str(forest["users"].id), str(forest["root"].id)]

    missing = client.simulate_get(f"/v1/permissions/resources/{uuid4()}")
    assert missing.status_code == 404
    assert missing.json["code"] == "NotFound"

    invalid = client.simulate_get("/v1/permissions/resources/not-a-uuid")
    assert invalid.status_code == 400


def test_scopes(client) -> None:
    result = client.simulate_get("/v1/permissions/scopes")
    assert result.status_code == 200
    assert [s["code"] for s in result.json["items"]][:2] == ["read", "write"]


def test_grant_accepts_legacy_scope_string(client, fake_uow, forest) -> None:
    """POST /grant takes '@a@b' scopes and answers with both forms."""
    result = client.simulate_post(
        "/v1/permissions/grant",
        json={
            "subject_type": "user",
            "subject_id": "u1",
            "subject_name": "Alice",
            "resource_id": str(forest["users"].id),
            "scopes": "@Write@read",
            "inherit_to_children": True,
        },
    )
    assert result.status_code == 201
    assert result.json["scopes"] == ["read", "write"]
    assert result.json["scope_string"] == "@read@write"
    assert result.json["granted_by"] == "admin-1"
    assert result.json["active"] is True
    assert len(fake_uow.grants.active()) == 1


def test_grant_errors(client, forest) -> None:
    """Missing fields are 400, unknown scopes 422 with the offending codes."""
    missing = client.simulate_post("/v1/permissions/grant", json={"subject_id": "u1"})
    assert missing.status_code == 400

    bad_type = client.simulate_post(
        "/v1/permissions/grant",
        json={
            "subject_type": "robot",
            "subject_id": "u1",
            "resource_id": str(forest["users"].id),
            "scopes": ["read"],
        },
    )
    assert bad_type.status_code == 400

    unknown = client.simulate_post(
        "/v1/permissions/grant",
        json={
            "subject_type": "User",
            "subject_id": "u1",
            "resource_id": str(forest["users"].id),
            "scopes": ["read", "export"],
        },
    )
    assert unknown.status_code == 422
    assert unknown.json["invalid_scopes"] == ["export"]


def test_batch_grant_then_effective(client, forest, membership) -> None:
    """Batch grant to a group shows up in a member's effective permissions."""
    membership.groups["u1"] = [GroupMembership("g1")]
    result = client.simulate_post(
        "/v1/permissions/batch-grant",
        json={
            "subject_type": "Group",
            "subject_id": "g1",
            "subject_name": "Editors",
            "resource_scopes": [
                {"resource_id": str(forest["users"].id), "scopes": ["read"]},
                {"resource_id": str(forest["root"].id), "scopes": "@write"},
            ],
        },
    )
    assert result.status_code == 201
    assert len(result.json["items"]) == 2

    effective = client.simulate_get("/v1/permissions/users/u1/effective")
    assert effective.status_code == 200
    assert effective.json["complete"] is True
    by_code = {p["resource_code"]: p for p in effective.json["permissions"]}
    assert by_code["users"]["scopes"] == ["read"]
    assert by_code["users"]["sources"] == [
        {"kind": "Group", "subject_id": "g1", "subject_name": "Editors"}
    ]


def test_effective_reports_degraded_membership(client, fake_uow, forest, membership) -> None:
    membership.fail = True
    fake_uow.grants.add(make_grant("u1", forest["root"], {"read"}))

    result = client.simulate_get("/v1/permissions/users/u1/effective")

    assert result.status_code == 200
    assert result.json["complete"] is False
    assert [p["resource_code"] for p in result.json["permissions"]] == ["root"]


def test_check(client, fake_uow, forest) -> None:
    fake_uow.grants.add(make_grant("u1", forest["root"], {"read"}, inherit_to_children=True))

    allowed = client.simulate_post(
        "/v1/permissions/check",
        json={"subject_id": "u1", "client_id": "console", "resource_code": "user_edit", "scope": "read"},
    )
    denied = client.simulate_post(
        "/v1/permissions/check",
        json={"subject_id": "u1", "resource_id": str(forest["users"].id), "scope": "write"},
    )
    unknown_scope = client.simulate_post(
        "/v1/permissions/check",
        json={"subject_id": "u1", "resource_id": str(forest["users"].id), "scope": "fly"},
    )

    assert allowed.status_code == 200
    assert allowed.json["allowed"] is True
    assert allowed.json["granted_scopes"] == ["read"]
    assert denied.json["allowed"] is False
    assert unknown_scope.status_code == 404

    logs = client.simulate_get("/v1/permissions/check-logs", params={"limit": "2"})
    assert logs.status_code == 200
    assert len(logs.json["items"]) == 2


def test_subject_grants_listing(client, fake_uow, forest) -> None:
    """Raw listings hide revoked rows unless asked."""
    active = make_grant("g1", forest["users"], {"read"}, SubjectType.GROUP)
    revoked = make_grant("g1", forest["root"], {"read"}, SubjectType.GROUP, enabled=False)
    fake_uow.grants.add(active, revoked)

    result = client.simulate_get("/v1/permissions/groups/g1")
    assert [g["id"] for g in result.json["items"]] == [str(active.id)]

    everything = client.simulate_get(
        "/v1/permissions/groups/g1", params={"include_revoked": "true"}
    )
    assert len(everything.json["items"]) == 2

    on_resource = client.simulate_get(f"/v1/permissions/resources/{forest['users'].id}/permissions")
    assert [g["subject_id"] for g in on_resource.json["items"]] == ["g1"]


def test_update_and_revoke(client, fake_uow, forest) -> None:
    grant = make_grant("u1", forest["users"], {"read"})
    fake_uow.grants.add(grant)

    stale = client.simulate_put(
        f"/v1/permissions/{grant.id}", json={"scopes": ["write"], "version": 5}
    )
    assert stale.status_code == 409
    assert stale.json["retryable"] is True

    updated = client.simulate_put(
        f"/v1/permissions/{grant.id}", json={"scopes": ["write"], "version": 1}
    )
    assert updated.status_code == 200
    assert updated.json["scopes"] == ["write"]

    revoked = client.simulate_delete(f"/v1/permissions/{updated.json['id']}")
    assert revoked.status_code == 200
    assert revoked.json["enabled"] is False
    assert fake_uow.grants.active() == []

    missing = client.simulate_delete(f"/v1/permissions/{uuid4()}")
    assert missing.status_code == 404


def test_batch_revoke(client, fake_uow, forest) -> None:
    a = make_grant("u1", forest["users"], {"read"})
    b = make_grant("u2", forest["users"], {"read"})
    fake_uow.grants.add(a, b)

    result = client.simulate_post(
        "/v1/permissions/batch-revoke", json={"grant_ids": [str(a.id), str(b.id), str(uuid4())]}
    )

    assert result.status_code == 200
    assert result.json == {"revoked_count": 2}


def test_inherit_flag_must_be_boolean(client, fake_uow, forest) -> None:
    """A string "false" is rejected instead of read as a truthy value."""
    grant = client.simulate_post(
        "/v1/permissions/grant",
        json={
            "subject_type": "user",
            "subject_id": "u1",
            "resource_id": str(forest["root"].id),
            "scopes": ["read"],
            "inherit_to_children": "false",
        },
    )
    batch = client.simulate_post(
        "/v1/permissions/batch-grant",
        json={
            "subject_type": "user",
            "subject_id": "u1",
            "resource_scopes": [{"resource_id": str(forest["root"].id), "scopes": ["read"]}],
            "inherit_to_children": 1,
        },
    )

    assert grant.status_code == 400
    assert batch.status_code == 400
    assert fake_uow.grants.all() == []

    existing = make_grant("u1", forest["users"], {"read"})
    fake_uow.grants.add(existing)
    update = client.simulate_put(
        f"/v1/permissions/{existing.id}",
        json={"scopes": ["write"], "inherit_to_children": "true"},
    )
    assert update.status_code == 400
    assert fake_uow.grants.active() == [existing]


def test_update_rejects_non_numeric_version(client, fake_uow, forest) -> None:
    grant = make_grant("u1", forest["users"], {"read"})
    fake_uow.grants.add(grant)

    result = client.simulate_put(
        f"/v1/permissions/{grant.id}", json={"scopes": ["write"], "version": "abc"}
    )

    assert result.status_code == 400
    assert result.json["code"] == "ValidationError"
    assert fake_uow.grants.active() == [grant]


def test_expired_grant_listed_but_not_effective(client, fake_uow, forest) -> None:
    """Expiry removes a grant from resolution, not from the raw listing."""
    expired = make_grant(
        "u1", forest["users"], {"read"}, expires_at=datetime.now(UTC) - timedelta(days=1)
    )
    fake_uow.grants.add(expired)

    listed = client.simulate_get("/v1/permissions/users/u1")
    effective = client.simulate_get("/v1/permissions/users/u1/effective")

    (row,) = listed.json["items"]
    assert row["id"] == str(expired.id)
    assert row["expired"] is True
    assert row["active"] is False
    assert effective.status_code == 200
    assert effective.json["permissions"] == []
