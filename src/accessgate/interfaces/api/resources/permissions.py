"""Permission catalog API resources."""

import falcon
import falcon.asgi

from accessgate.application.dto.permission_filter import PermissionFilter
from accessgate.application.services.direct_grant_store import DirectGrantStore
from accessgate.application.services.permission_catalog import PermissionCatalog
from accessgate.domain.exceptions import NotFound
from accessgate.interfaces.api import admin_permissions
from accessgate.interfaces.api.resources.serializers import (
    parse_uuid,
    patch_from_body,
    permission_to_dict,
)


class PermissionsResource:
    """GET/POST /v1/permissions - list and create permissions."""

    required_permissions = {
        "GET": admin_permissions.PERMISSION_READ,
        "POST": admin_permissions.PERMISSION_MANAGE,
    }

    def __init__(self, catalog: PermissionCatalog) -> None:
        self._catalog = catalog

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """List permissions. Query: module, resource, action, is_system, page, limit."""
        filters = PermissionFilter(
            module=req.get_param("module"),
            resource=req.get_param("resource"),
            action=req.get_param("action"),
            is_system=req.get_param_as_bool("is_system"),
        )
        page = req.get_param_as_int("page", min_value=1)
        limit = req.get_param_as_int("limit", min_value=1, max_value=500)
        items = await self._catalog.list_all(filters, page=page, limit=limit)
        total = await self._catalog.count(filters)
        resp.media = {"items": [permission_to_dict(p) for p in items], "total": total}
        resp.status = falcon.HTTP_200

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """Create permission."""
        body = await req.get_media()
        try:
            permission = await self._catalog.create(
                code=body["code"],
                name=body["name"],
                module=body["module"],
                resource=body["resource"],
                action=body["action"],
                is_system=bool(body.get("is_system", False)),
                metadata=body.get("metadata"),
                description=body.get("description"),
            )
        except KeyError as e:
            raise falcon.HTTPBadRequest(
                title="Bad Request", description=f"Missing required field: {e}"
            ) from None
        resp.media = permission_to_dict(permission)
        resp.status = falcon.HTTP_201


class PermissionResource:
    """GET/PATCH/DELETE /v1/permissions/{permission_id}."""

    required_permissions = {
        "GET": admin_permissions.PERMISSION_READ,
        "PATCH": admin_permissions.PERMISSION_MANAGE,
        "DELETE": admin_permissions.PERMISSION_MANAGE,
    }

    def __init__(self, catalog: PermissionCatalog) -> None:
        self._catalog = catalog

    async def on_get(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, permission_id: str
    ) -> None:
        pid = parse_uuid(permission_id, "permission ID")
        permission = await self._catalog.find_by_id(pid)
        if not permission:
            raise NotFound("Permission", pid)
        resp.media = permission_to_dict(permission)
        resp.status = falcon.HTTP_200

    async def on_patch(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, permission_id: str
    ) -> None:
        """Update name, description or metadata. Other fields are rejected."""
        pid = parse_uuid(permission_id, "permission ID")
        body = dict(await req.get_media())
        patches = {
            key: patch_from_body(body, key) for key in ("name", "description", "metadata")
        }
        other = {k: v for k, v in body.items() if k not in patches}
        permission = await self._catalog.update(pid, **patches, **other)
        resp.media = permission_to_dict(permission)
        resp.status = falcon.HTTP_200

    async def on_delete(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, permission_id: str
    ) -> None:
        await self._catalog.delete(parse_uuid(permission_id, "permission ID"))
        resp.status = falcon.HTTP_204


class PermissionUsersResource:
    """GET /v1/permissions/{permission_id}/users - users holding a direct grant."""

    required_permissions = {"GET": admin_permissions.DIRECT_PERMISSION_READ}

    def __init__(self, catalog: PermissionCatalog, store: DirectGrantStore) -> None:
        self._catalog = catalog
        self._store = store

    async def on_get(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, permission_id: str
    ) -> None:
        pid = parse_uuid(permission_id, "permission ID")
        if not await self._catalog.find_by_id(pid):
            raise NotFound("Permission", pid)
        users = await self._store.list_users_by_permission_id(pid)
        resp.media = {"items": users, "total": len(users)}
        resp.status = falcon.HTTP_200
