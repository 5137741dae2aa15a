"""Check permission use case - single subject/resource/scope decision."""

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID, uuid4

from permengine.application.ports import SubjectMembershipResolver
from permengine.application.use_cases.catalog.resource_catalog import ResourceCatalog
from permengine.application.use_cases.permission.resolve_effective_permissions import (
    group_by_subject,
)
from permengine.application.use_cases.permission.subject_sources import (
    resolve_grant_sources,
)
from permengine.domain.entities import PermissionCheckLog, PermissionSource
from permengine.domain.exceptions import MembershipResolutionFailure, NotFound, PermEngineError
from permengine.domain.services.permission_merge import (
    contributing,
    scopes_on_resource,
    subject_keys,
)
from permengine.domain.value_objects import SubjectType
from permengine.domain.value_objects.scope_codes import (
    canonicalize,
    encode_legacy,
    grants_scope,
)

logger = logging.getLogger(__name__)


@dataclass
class PermissionCheckResult:
    """Outcome of one permission check."""

    subject_id: str
    resource_id: UUID
    client_id: str
    resource_code: str
    scope: str
    allowed: bool
    granted_scopes: frozenset[str]
    sources: tuple[PermissionSource, ...] = ()
    complete: bool = True


class CheckPermissionUseCase:
    """Does a user hold a scope on a resource?

    Only grants on the resource and its ancestors are read, instead of
    resolving every resource. Answers match ResolveEffectivePermissionsUseCase.
    Every check appends a PermissionCheckLog; failing to write it never fails
    the check.
    """

    def __init__(
        self,
        unit_of_work_factory: type,
        membership_resolver: SubjectMembershipResolver,
        catalog: ResourceCatalog,
        membership_timeout: float | None = 5.0,
        log_checks: bool = True,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._membership = membership_resolver
        self._catalog = catalog
        self._membership_timeout = membership_timeout
        self._log_checks = log_checks

    async def execute(
        self,
        subject_id: str,
        scope: str,
        resource_id: UUID | None = None,
        client_id: str | None = None,
        resource_code: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        at: datetime | None = None,
    ) -> PermissionCheckResult:
        """Check subject_id's scope on a resource given by id or by (client_id, resource_code)."""
        started = time.perf_counter()
        scope_code = scope.strip()
        log = PermissionCheckLog(
            id=uuid4(),
            checked_at=datetime.now(UTC),
            client_id=client_id or "",
            subject_id=subject_id,
            resource_code=resource_code or (str(resource_id) if resource_id else ""),
            requested_scope=scope_code,
            granted_scopes="",
            allowed=False,
            latency_ms=0,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        try:
            result = await self._check(
                subject_id, scope_code, resource_id, client_id, resource_code, at
            )
        except PermEngineError as e:
            log.error_code = type(e).__name__
            await self._append_log(log, started)
            raise

        log.client_id = result.client_id
        log.resource_code = result.resource_code
        log.granted_scopes = encode_legacy(result.granted_scopes)
        log.allowed = result.allowed
        await self._append_log(log, started)

        logger.info(
            "Permission check subject=%s resource=%s/%s scope=%s allowed=%s",
            subject_id,
            result.client_id,
            result.resource_code,
            scope_code,
            result.allowed,
        )
        return result

    async def _check(
        self,
        subject_id: str,
        scope_code: str,
        resource_id: UUID | None,
        client_id: str | None,
        resource_code: str | None,
        at: datetime | None,
    ) -> PermissionCheckResult:
        at = at or datetime.now(UTC)
        resource = await self._catalog.find(resource_id, client_id, resource_code)

        async with self._uow_factory() as uow:
            registered = await uow.scopes.list_codes()
        known_codes, _ = canonicalize({scope_code}, registered)
        if not known_codes:
            raise NotFound("Scope", scope_code)
        (scope_code,) = known_codes

        try:
            known = await self._membership.subject_exists(SubjectType.USER, subject_id)
        except MembershipResolutionFailure:
            known = True
        if not known:
            raise NotFound("User", subject_id)

        sources, failure = await resolve_grant_sources(
            self._membership, subject_id, self._membership_timeout
        )
        lineage = await self._catalog.lineage(resource.id)

        async with self._uow_factory() as uow:
            grants = await uow.grants.list_by_subjects(
                subject_keys(sources), lineage.ancestors(resource.id)
            )

        pairs = contributing(sources, group_by_subject(grants), at)
        granted, provenance = scopes_on_resource(pairs, lineage, resource.id)
        return PermissionCheckResult(
            subject_id=subject_id,
            resource_id=resource.id,
            client_id=resource.client_id,
            resource_code=resource.code,
            scope=scope_code,
            allowed=grants_scope(granted, scope_code),
            granted_scopes=granted,
            sources=provenance,
            complete=failure is None,
        )

    async def _append_log(self, log: PermissionCheckLog, started: float) -> None:
        if not self._log_checks:
            return
        log.latency_ms = int((time.perf_counter() - started) * 1000)
        try:
            async with self._uow_factory() as uow:
                await uow.check_logs.append(log)
        except Exception:
            logger.exception("Failed to append permission check log for subject %s", log.subject_id)
