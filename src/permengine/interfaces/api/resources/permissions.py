"""Permission grant API resources."""

import falcon.asgi

from permengine.application.dto.grant_dto import GrantItem
from permengine.application.use_cases.permission.batch_grant import BatchGrantUseCase
from permengine.application.use_cases.permission.batch_revoke import BatchRevokeUseCase
from permengine.application.use_cases.permission.grant_permission import GrantPermissionUseCase
from permengine.application.use_cases.permission.list_grants import ListSubjectGrantsUseCase
from permengine.application.use_cases.permission.resolve_effective_permissions import (
    ResolveEffectivePermissionsUseCase,
)
from permengine.application.use_cases.permission.revoke_permission import RevokePermissionUseCase
from permengine.application.use_cases.permission.update_permission import UpdatePermissionUseCase
from permengine.domain.value_objects import SubjectType
from permengine.interfaces.api.serializers import (
    grant_to_dict,
    parse_bool,
    parse_datetime,
    parse_scopes,
    parse_subject_type,
    parse_uuid,
    parse_version,
    resolved_to_dict,
)

SYSTEM_ACTOR = "system"


def _granted_by(user) -> str:
    return SYSTEM_ACTOR if user.is_anonymous else user.user_id


class SubjectGrantsResource:
    """GET /v1/permissions/{users|groups|organizations|roles}/{subject_id} - stored grants."""

    def __init__(
        self,
        subject_type: SubjectType,
        list_subject_grants: ListSubjectGrantsUseCase,
    ) -> None:
        self._subject_type = subject_type
        self._list = list_subject_grants

    async def on_get(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        subject_id: str,
    ) -> None:
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        include_revoked = req.get_param_as_bool("include_revoked") or False
        grants = await self._list.execute(
            self._subject_type, subject_id, include_revoked=include_revoked
        )
        resp.media = {
            "subject_type": self._subject_type.value,
            "subject_id": subject_id,
            "items": [grant_to_dict(g) for g in grants],
        }
        resp.status = falcon.HTTP_200


class EffectivePermissionsResource:
    """GET /v1/permissions/users/{subject_id}/effective - resolved scopes with provenance."""

    def __init__(self, resolve: ResolveEffectivePermissionsUseCase) -> None:
        self._resolve = resolve

    async def on_get(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        subject_id: str,
    ) -> None:
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        client_id = req.get_param("client_id") or None
        resolved = await self._resolve.execute(subject_id, client_id=client_id)
        resp.media = resolved_to_dict(resolved)
        resp.status = falcon.HTTP_200


class GrantResource:
    """POST /v1/permissions/grant - grant scopes on one resource."""

    def __init__(self, grant_permission: GrantPermissionUseCase) -> None:
        self._grant = grant_permission

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        try:
            body = await req.get_media()
            item = GrantItem(
                subject_type=parse_subject_type(body["subject_type"]),
                subject_id=str(body["subject_id"]),
                subject_name=body.get("subject_name"),
                resource_id=parse_uuid(body["resource_id"], "resource_id"),
                scopes=parse_scopes(body["scopes"]),
                inherit_to_children=parse_bool(
                    body.get("inherit_to_children", False), "inherit_to_children"
                ),
                expires_at=parse_datetime(body.get("expires_at"), "expires_at"),
            )
        except (KeyError, TypeError) as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": f"Missing or invalid field: {e}"}
            return

        grant = await self._grant.execute(item, _granted_by(user))
        resp.media = grant_to_dict(grant)
        resp.status = falcon.HTTP_201


class BatchGrantResource:
    """POST /v1/permissions/batch-grant - grant one subject scopes on many resources, atomically."""

    def __init__(self, batch_grant: BatchGrantUseCase) -> None:
        self._batch_grant = batch_grant

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        try:
            body = await req.get_media()
            subject_type = parse_subject_type(body["subject_type"])
            subject_id = str(body["subject_id"])
            subject_name = body.get("subject_name")
            inherit = parse_bool(body.get("inherit_to_children", False), "inherit_to_children")
            expires_at = parse_datetime(body.get("expires_at"), "expires_at")
            items = [
                GrantItem(
                    subject_type=subject_type,
                    subject_id=subject_id,
                    subject_name=subject_name,
                    resource_id=parse_uuid(entry["resource_id"], "resource_id"),
                    scopes=parse_scopes(entry["scopes"]),
                    inherit_to_children=inherit,
                    expires_at=expires_at,
                )
                for entry in body["resource_scopes"]
            ]
        except (KeyError, TypeError) as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": f"Missing or invalid field: {e}"}
            return

        grants = await self._batch_grant.execute(items, _granted_by(user))
        resp.media = {"items": [grant_to_dict(g) for g in grants]}
        resp.status = falcon.HTTP_201


class PermissionResource:
    """PUT/DELETE /v1/permissions/{grant_id} - change or revoke one grant."""

    def __init__(
        self,
        update_permission: UpdatePermissionUseCase,
        revoke_permission: RevokePermissionUseCase,
    ) -> None:
        self._update = update_permission
        self._revoke = revoke_permission

    async def on_put(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        grant_id: str,
    ) -> None:
        """Replace scopes, inheritance or expiry. The response carries the new grant id."""
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        gid = parse_uuid(grant_id, "grant_id")
        try:
            body = await req.get_media()
            scopes = parse_scopes(body["scopes"])
            inherit = body.get("inherit_to_children")
            if inherit is not None:
                inherit = parse_bool(inherit, "inherit_to_children")
            expires_at = parse_datetime(body.get("expires_at"), "expires_at")
            version = parse_version(body.get("version"))
        except (KeyError, TypeError) as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": f"Missing or invalid field: {e}"}
            return

        grant = await self._update.execute(
            gid,
            scopes,
            _granted_by(user),
            inherit_to_children=inherit,
            expires_at=expires_at,
            expected_version=version,
        )
        resp.media = grant_to_dict(grant)
        resp.status = falcon.HTTP_200

    async def on_delete(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        grant_id: str,
    ) -> None:
        """Revoke (disable) a grant. ?version= guards against concurrent changes."""
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        grant = await self._revoke.execute(
            parse_uuid(grant_id, "grant_id"),
            expected_version=req.get_param_as_int("version"),
        )
        resp.media = grant_to_dict(grant)
        resp.status = falcon.HTTP_200


class BatchRevokeResource:
    """POST /v1/permissions/batch-revoke - revoke many grants atomically."""

    def __init__(self, batch_revoke: BatchRevokeUseCase) -> None:
        self._batch_revoke = batch_revoke

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        try:
            body = await req.get_media()
            grant_ids = [parse_uuid(g, "grant_id") for g in body["grant_ids"]]
        except (KeyError, TypeError) as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": f"Missing or invalid field: {e}"}
            return

        revoked = await self._batch_revoke.execute(grant_ids)
        resp.media = {"revoked_count": revoked}
        resp.status = falcon.HTTP_200
