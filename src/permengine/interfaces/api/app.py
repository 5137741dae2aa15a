"""Falcon ASGI application and route table."""

from dataclasses import dataclass

import falcon.asgi
from falcon.asgi import App

from permengine.domain.value_objects import SubjectType
from permengine.interfaces.api.errors import register_error_handlers
from permengine.interfaces.api.resources.catalog import (
    ResourceDetailResource,
    ResourceGrantsResource,
    ResourceTreeResource,
    ScopesResource,
)
from permengine.interfaces.api.resources.checks import CheckLogsResource, CheckResource
from permengine.interfaces.api.resources.health import HealthResource
from permengine.interfaces.api.resources.permissions import (
    BatchGrantResource,
    BatchRevokeResource,
    EffectivePermissionsResource,
    GrantResource,
    PermissionResource,
    SubjectGrantsResource,
)

_SUBJECT_PATHS = {
    SubjectType.USER: "users",
    SubjectType.GROUP: "groups",
    SubjectType.ORGANIZATION: "organizations",
    SubjectType.ROLE: "roles",
}


@dataclass
class ApiResources:
    """Every resource the API routes to."""

    health: HealthResource
    resource_tree: ResourceTreeResource
    resource_detail: ResourceDetailResource
    resource_grants: ResourceGrantsResource
    scopes: ScopesResource
    subject_grants: dict[SubjectType, SubjectGrantsResource]
    effective: EffectivePermissionsResource
    check: CheckResource
    check_logs: CheckLogsResource
    grant: GrantResource
    batch_grant: BatchGrantResource
    permission: PermissionResource
    batch_revoke: BatchRevokeResource


def create_app(resources: ApiResources, middleware: list | None = None) -> App:
    """Create Falcon ASGI app with routes and error handlers."""
    app = falcon.asgi.App(middleware=middleware or [])
    register_error_handlers(app)

    app.add_route("/v1/health", resources.health)
    app.add_route("/v1/health/ready", resources.health, suffix="ready")

    prefix = "/v1/permissions"
    app.add_route(f"{prefix}/resources", resources.resource_tree)
    app.add_route(f"{prefix}/resources/{{resource_id}}", resources.resource_detail)
    app.add_route(f"{prefix}/resources/{{resource_id}}/permissions", resources.resource_grants)
    app.add_route(f"{prefix}/scopes", resources.scopes)
    for subject_type, path in _SUBJECT_PATHS.items():
        app.add_route(f"{prefix}/{path}/{{subject_id}}", resources.subject_grants[subject_type])
    app.add_route(f"{prefix}/users/{{subject_id}}/effective", resources.effective)
    app.add_route(f"{prefix}/check", resources.check)
    app.add_route(f"{prefix}/check-logs", resources.check_logs)
    app.add_route(f"{prefix}/grant", resources.grant)
    app.add_route(f"{prefix}/batch-grant", resources.batch_grant)
    app.add_route(f"{prefix}/batch-revoke", resources.batch_revoke)
    app.add_route(f"{prefix}/{{grant_id}}", resources.permission)
    return app
