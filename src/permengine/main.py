"""Application entry point and composition root."""

import logging

import falcon.asgi

from permengine import __version__
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
from permengine.config import get_settings
from permengine.domain.value_objects import SubjectType
from permengine.infrastructure.auth.keycloak_provider import KeycloakProvider
from permengine.infrastructure.membership.postgres_membership_resolver import (
    PostgresMembershipResolver,
)
from permengine.infrastructure.persistence.postgres.connection import create_pool
from permengine.infrastructure.persistence.postgres.unit_of_work import create_uow_factory
from permengine.interfaces.api.app import ApiResources, create_app
from permengine.interfaces.api.middleware.auth import AuthMiddleware
from permengine.interfaces.api.middleware.cors import CORSMiddleware
from permengine.interfaces.api.middleware.pool_lifespan import PoolLifespanMiddleware
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
from permengine.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_permengine_app() -> falcon.asgi.App:
    """Composition root - build Falcon app with all dependencies."""
    settings = get_settings()
    configure_logging(settings.log_level)

    pool = create_pool(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    uow_factory = create_uow_factory(pool)
    membership_resolver = PostgresMembershipResolver(pool)

    keycloak = (
        KeycloakProvider(
            server_url=settings.keycloak_url,
            realm=settings.keycloak_realm,
            client_id=settings.keycloak_client_id,
            client_secret=settings.keycloak_client_secret,
        )
        if settings.keycloak_client_secret
        else None
    )
    if keycloak is None:
        logger.warning("Keycloak client secret not set, bearer tokens will be rejected")

    catalog = ResourceCatalog(uow_factory)
    resolve = ResolveEffectivePermissionsUseCase(
        unit_of_work_factory=uow_factory,
        membership_resolver=membership_resolver,
        catalog=catalog,
        membership_timeout=settings.membership_timeout_seconds,
    )
    check = CheckPermissionUseCase(
        unit_of_work_factory=uow_factory,
        membership_resolver=membership_resolver,
        catalog=catalog,
        membership_timeout=settings.membership_timeout_seconds,
        log_checks=settings.check_log_enabled,
    )
    batch_grant = BatchGrantUseCase(
        unit_of_work_factory=uow_factory,
        membership_resolver=membership_resolver,
    )
    update_permission = UpdatePermissionUseCase(
        unit_of_work_factory=uow_factory,
        membership_resolver=membership_resolver,
    )
    list_subject_grants = ListSubjectGrantsUseCase(uow_factory)

    resources = ApiResources(
        health=HealthResource(pool),
        resource_tree=ResourceTreeResource(catalog),
        resource_detail=ResourceDetailResource(catalog),
        resource_grants=ResourceGrantsResource(ListResourceGrantsUseCase(uow_factory)),
        scopes=ScopesResource(ListScopesUseCase(uow_factory)),
        subject_grants={
            subject_type: SubjectGrantsResource(subject_type, list_subject_grants)
            for subject_type in SubjectType
        },
        effective=EffectivePermissionsResource(resolve),
        check=CheckResource(check),
        check_logs=CheckLogsResource(ListCheckLogsUseCase(uow_factory)),
        grant=GrantResource(GrantPermissionUseCase(batch_grant)),
        batch_grant=BatchGrantResource(batch_grant),
        permission=PermissionResource(update_permission, RevokePermissionUseCase(uow_factory)),
        batch_revoke=BatchRevokeResource(BatchRevokeUseCase(uow_factory)),
    )

    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app = create_app(
        resources,
        middleware=[
            CORSMiddleware(cors_origins),
            PoolLifespanMiddleware(pool),
            AuthMiddleware(keycloak, allow_anonymous=settings.allow_anonymous),
        ],
    )
    logger.info("PermEngine v%s configured (%s)", __version__, settings.environment)
    return app


def main() -> None:
    """CLI entry point - run the API under uvicorn."""
    import uvicorn

    uvicorn.run(
        "permengine.main:create_permengine_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
    )
