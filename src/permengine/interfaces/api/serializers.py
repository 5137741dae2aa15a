"""JSON shapes of API responses and parsing of request fields."""

from datetime import UTC, datetime
from uuid import UUID

from permengine.application.use_cases.permission.check_permission import PermissionCheckResult
from permengine.application.use_cases.permission.resolve_effective_permissions import (
    ResolvedPermissions,
)
from permengine.domain.entities import (
    EffectivePermission,
    Grant,
    PermissionCheckLog,
    PermissionSource,
    Resource,
    Scope,
)
from permengine.domain.exceptions import ValidationError
from permengine.domain.services.resource_tree import ResourceNode
from permengine.domain.value_objects import SubjectType
from permengine.domain.value_objects.scope_codes import decode_scopes, encode_legacy, encode_list


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def parse_uuid(value: object, field: str) -> UUID:
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}") from None


def parse_scopes(value: object) -> frozenset[str]:
    """Scopes as a JSON array or the legacy '@a@b' string."""
    if value is not None and not isinstance(value, (str, list)):
        raise ValidationError("scopes must be an array or an '@'-separated string")
    try:
        return decode_scopes(value)
    except TypeError as e:
        raise ValidationError(str(e)) from None


def parse_datetime(value: object, field: str) -> datetime | None:
    """ISO 8601 timestamp; naive values are taken as UTC."""
    if value in (None, ""):
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}") from None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def parse_bool(value: object, field: str) -> bool:
    """JSON true/false only; strings such as "false" are rejected."""
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be a boolean")
    return value


def parse_version(value: object) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Invalid version: {value}")
    return value


def parse_subject_type(value: object) -> SubjectType:
    for subject_type in SubjectType:
        if str(value).lower() == subject_type.value.lower():
            return subject_type
    raise ValidationError(f"Unknown subject type: {value}")


def resource_to_dict(resource: Resource) -> dict:
    return {
        "id": str(resource.id),
        "client_id": resource.client_id,
        "client_name": resource.client_name,
        "code": resource.code,
        "name": resource.name,
        "resource_type": resource.resource_type,
        "parent_id": str(resource.parent_id) if resource.parent_id else None,
        "sort_order": resource.sort_order,
        "enabled": resource.enabled,
        "description": resource.description,
        "uri": resource.uri,
    }


def node_to_dict(node: ResourceNode) -> dict:
    return {
        **resource_to_dict(node.resource),
        "children": [node_to_dict(child) for child in node.children],
    }


def scope_to_dict(scope: Scope) -> dict:
    return {
        "id": str(scope.id),
        "code": scope.code,
        "name": scope.name,
        "description": scope.description,
        "sort_order": scope.sort_order,
    }


def grant_to_dict(grant: Grant, at: datetime | None = None) -> dict:
    """Grant row; ``active`` and ``expired`` are evaluated at ``at`` (now by default)."""
    at = at or datetime.now(UTC)
    return {
        "id": str(grant.id),
        "subject_type": grant.subject_type.value,
        "subject_id": grant.subject_id,
        "subject_name": grant.subject_name,
        "resource_id": str(grant.resource_id),
        "scopes": encode_list(grant.scopes),
        "scope_string": encode_legacy(grant.scopes),
        "inherit_to_children": grant.inherit_to_children,
        "enabled": grant.enabled,
        "granted_by": grant.granted_by,
        "granted_at": _iso(grant.granted_at),
        "expires_at": _iso(grant.expires_at),
        "version": grant.version,
        "active": grant.is_active(at),
        "expired": grant.is_expired(at),
    }


def source_to_dict(source: PermissionSource) -> dict:
    return {
        "kind": source.kind.value,
        "subject_id": source.subject_id,
        "subject_name": source.subject_name,
    }


def effective_to_dict(permission: EffectivePermission) -> dict:
    return {
        "resource_id": str(permission.resource_id),
        "client_id": permission.client_id,
        "resource_code": permission.resource_code,
        "resource_name": permission.resource_name,
        "scopes": encode_list(permission.scopes),
        "scope_string": encode_legacy(permission.scopes),
        "sources": [source_to_dict(s) for s in permission.sources],
    }


def resolved_to_dict(resolved: ResolvedPermissions) -> dict:
    permissions = sorted(
        resolved.permissions.values(), key=lambda p: (p.client_id, p.resource_code)
    )
    return {
        "user_id": resolved.user_id,
        "complete": resolved.complete,
        "failure": resolved.failure,
        "permissions": [effective_to_dict(p) for p in permissions],
    }


def check_result_to_dict(result: PermissionCheckResult) -> dict:
    return {
        "allowed": result.allowed,
        "subject_id": result.subject_id,
        "resource_id": str(result.resource_id),
        "client_id": result.client_id,
        "resource_code": result.resource_code,
        "scope": result.scope,
        "granted_scopes": encode_list(result.granted_scopes),
        "scope_string": encode_legacy(result.granted_scopes),
        "sources": [source_to_dict(s) for s in result.sources],
        "complete": result.complete,
    }


def check_log_to_dict(log: PermissionCheckLog) -> dict:
    return {
        "id": str(log.id),
        "checked_at": _iso(log.checked_at),
        "client_id": log.client_id,
        "subject_id": log.subject_id,
        "resource_code": log.resource_code,
        "requested_scope": log.requested_scope,
        "granted_scopes": log.granted_scopes,
        "allowed": log.allowed,
        "latency_ms": log.latency_ms,
        "error_code": log.error_code,
        "ip_address": log.ip_address,
        "user_agent": log.user_agent,
    }
