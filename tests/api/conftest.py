"""Fixtures for API tests."""

import pytest
from falcon.testing import TestClient

from permengine.application.use_cases.catalog.list_scopes import ListScopesUseCase
from permengine.application.use_cases.catalog.resource_catalog import ResourceCatalog
from permengine.application.use_cases.permission.batch_grant import BatchGrantUseCase
from permengine.application.use_cases.permission.batch_revoke import BatchRevokeUseCase
from permengine.application.use_cases.permission.check_permission import CheckPermissionUseCase
from permengine.application.use_cases.permission.grant_permission import GrantPermissionUseCase
from permengine.application.use_cases.permission.list_check_logs import ListCheckLogsUseCase
from permengine.application.use_cases.permission.list_grants import (
    ListResourceGrantsUseCase,
    ListSubjectGrantsUseCase,
)
from permengine.application.use_cases.permission.resolve_effective_permissions import (
    ResolveEffectivePermissionsUseCase,
)
from permengine.application.use_cases.permission.revoke_permission import RevokePermissionUseCase
from permengine.application.use_cases.permission.update_permission import UpdatePermissionUseCase
from permengine.domain.value_objects import SubjectType
from permengine.interfaces.api.app import ApiResources, create_app
from permengine.interfaces.api.middleware.auth import RequestUser
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

from tests.conftest import make_resource


class AuthBypassMiddleware:
    """Middleware that sets context.user for testing."""

    async def process_request(self, req, resp):
        req.context.user = RequestUser(user_id="admin-1")


@pytest.fixture
def forest(fake_uow):
    """console: root -> users -> user_edit."""
    root = make_resource("root")
    users = make_resource("users", parent=root)
    user_edit = make_resource("user_edit", parent=users)
    fake_uow.resources.add(root, users, user_edit)
    return {r.code: r for r in (root, users, user_edit)}


@pytest.fixture
def app(uow_factory, membership):
    """Falcon ASGI app wired to in-memory fakes."""
    catalog = ResourceCatalog(uow_factory)
    batch_grant = BatchGrantUseCase(uow_factory, membership)
    list_subject_grants = ListSubjectGrantsUseCase(uow_factory)
    resources = ApiResources(
        health=HealthResource(),
        resource_tree=ResourceTreeResource(catalog),
        resource_detail=ResourceDetailResource(catalog),
        resource_grants=ResourceGrantsResource(ListResourceGrantsUseCase(uow_factory)),
        scopes=ScopesResource(ListScopesUseCase(uow_factory)),
        subject_grants={
            t: SubjectGrantsResource(t, list_subject_grants) for t in SubjectType
        },
        effective=EffectivePermissionsResource(
            ResolveEffectivePermissionsUseCase(uow_factory, membership, catalog)
        ),
        check=CheckResource(CheckPermissionUseCase(uow_factory, membership, catalog)),
        check_logs=CheckLogsResource(ListCheckLogsUseCase(uow_factory)),
        grant=GrantResource(GrantPermissionUseCase(batch_grant)),
        batch_grant=BatchGrantResource(batch_grant),
        permission=PermissionResource(
            UpdatePermissionUseCase(uow_factory, membership),
            RevokePermissionUseCase(uow_factory),
        ),
        batch_revoke=BatchRevokeResource(BatchRevokeUseCase(uow_factory)),
    )
    return create_app(resources, middleware=[AuthBypassMiddleware()])


@pytest.fixture
def client(app):
    """Falcon ASGI test client."""
    return TestClient(app)
