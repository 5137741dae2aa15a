"""Resource catalog and scope registry API resources."""

import falcon.asgi

from permengine.application.use_cases.catalog.list_scopes import ListScopesUseCase
from permengine.application.use_cases.catalog.resource_catalog import ResourceCatalog
from permengine.application.use_cases.permission.list_grants import ListResourceGrantsUseCase
from permengine.interfaces.api.serializers import (
    grant_to_dict,
    node_to_dict,
    parse_uuid,
    resource_to_dict,
    scope_to_dict,
)


class ResourceTreeResource:
    """GET /v1/permissions/resources - enabled resource forest, optionally for one client."""

    def __init__(self, catalog: ResourceCatalog) -> None:
        self._catalog = catalog

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        client_id = req.get_param("client_id") or None
        nodes = await self._catalog.get_tree(client_id)
        resp.media = {"items": [node_to_dict(n) for n in nodes]}
        resp.status = falcon.HTTP_200


class ResourceDetailResource:
    """GET /v1/permissions/resources/{resource_id} - one resource with its ancestors."""

    def __init__(self, catalog: ResourceCatalog) -> None:
        self._catalog = catalog

    async def on_get(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        resource_id: str,
    ) -> None:
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        rid = parse_uuid(resource_id, "resource_id")
        resource = await self._catalog.find(rid)
        ancestors = await self._catalog.get_ancestors(rid)
        resp.media = {
            **resource_to_dict(resource),
            "ancestor_ids": [str(a) for a in ancestors[1:]],
        }
        resp.status = falcon.HTTP_200


class ResourceGrantsResource:
    """GET /v1/permissions/resources/{resource_id}/permissions - enabled grants on a resource."""

    def __init__(self, list_resource_grants: ListResourceGrantsUseCase) -> None:
        self._list = list_resource_grants

    async def on_get(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        resource_id: str,
    ) -> None:
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        grants = await self._list.execute(parse_uuid(resource_id, "resource_id"))
        resp.media = {"items": [grant_to_dict(g) for g in grants]}
        resp.status = falcon.HTTP_200


class ScopesResource:
    """GET /v1/permissions/scopes - scope registry."""

    def __init__(self, list_scopes: ListScopesUseCase) -> None:
        self._list = list_scopes

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        user = getattr(req.context, "user", None)
        if not user:
            resp.status = falcon.HTTP_401
            resp.media = {"error": "Unauthorized"}
            return

        scopes = await self._list.execute()
        resp.media = {"items": [scope_to_dict(s) for s in scopes]}
        resp.status = falcon.HTTP_200
