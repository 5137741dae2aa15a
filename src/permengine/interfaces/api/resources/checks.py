"""Permission check API resources."""

import falcon.asgi

from permengine.application.use_cases.permission.check_permission import CheckPermissionUseCase
from permengine.application.use_cases.permission.list_check_logs import ListCheckLogsUseCase
from permengine.interfaces.api.serializers import (
    check_log_to_dict,
    check_result_to_dict,
    parse_uuid,
)


class CheckResource:
    """POST /v1/permissions/check - does a subject hold a scope on a resource."""

    def __init__(self, check_permission: CheckPermissionUseCase) -> None:
        self._check = check_permission

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        try:
            body = await req.get_media()
            subject_id = str(body["subject_id"])
            scope = str(body["scope"])
            resource_id = body.get("resource_id")
        except (KeyError, TypeError) as e:
            resp.status = falcon.HTTP_400
            resp.media = {"error": f"Missing or invalid field: {e}"}
            return

        result = await self._check.execute(
            subject_id,
            scope,
            resource_id=parse_uuid(resource_id, "resource_id") if resource_id else None,
            client_id=body.get("client_id"),
            resource_code=body.get("resource_code"),
            ip_address=req.remote_addr,
            user_agent=req.user_agent,
        )
        resp.media = check_result_to_dict(result)
        resp.status = falcon.HTTP_200


class CheckLogsResource:
    """GET /v1/permissions/check-logs - most recent permission checks."""

    def __init__(self, list_check_logs: ListCheckLogsUseCase) -> None:
        self._list = list_check_logs

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        logs = await self._list.execute(req.get_param_as_int("limit") or 100)
        resp.media = {"items": [check_log_to_dict(log) for log in logs]}
        resp.status = falcon.HTTP_200
