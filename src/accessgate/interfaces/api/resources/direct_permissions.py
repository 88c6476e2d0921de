"""Direct grant API resources."""

import falcon
import falcon.asgi

from accessgate.application.services.direct_grant_store import DirectGrantStore
from accessgate.domain.value_objects import GrantEffect
from accessgate.interfaces.api import admin_permissions
from accessgate.interfaces.api.resources.serializers import (
    grant_to_dict,
    parse_datetime,
    parse_uuid,
    patch_from_body,
    require_user,
)

_MUTABLE_GRANT_FIELDS = ("effect", "conditions", "expires_at")


def _parse_effect(value: object) -> GrantEffect:
    try:
        return GrantEffect(value)
    except ValueError:
        raise falcon.HTTPBadRequest(
            title="Bad Request", description="effect must be 'allow' or 'deny'"
        ) from None


class UserDirectPermissionsResource:
    """GET/POST /v1/users/{user_id}/direct-permissions."""

    required_permissions = {
        "GET": admin_permissions.DIRECT_PERMISSION_READ,
        "POST": admin_permissions.DIRECT_PERMISSION_MANAGE,
    }

    def __init__(self, store: DirectGrantStore) -> None:
        self._store = store

    async def on_get(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, user_id: str
    ) -> None:
        """List grants of user. Query: include_expired, effect."""
        include_expired = req.get_param_as_bool("include_expired", default=False)
        effect_param = req.get_param("effect")
        effect = _parse_effect(effect_param) if effect_param else None
        grants = await self._store.list_by_user_id(
            user_id, include_expired=include_expired, effect=effect
        )
        resp.media = {"items": [grant_to_dict(g) for g in grants], "total": len(grants)}
        resp.status = falcon.HTTP_200

    async def on_post(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, user_id: str
    ) -> None:
        """Grant a permission directly. Body: permission_id, effect, conditions, expires_at."""
        actor = require_user(req)
        body = await req.get_media()
        if "permission_id" not in body:
            raise falcon.HTTPBadRequest(
                title="Bad Request", description="permission_id is required"
            )
        grant = await self._store.grant(
            user_id=user_id,
            permission_id=parse_uuid(str(body["permission_id"]), "permission ID"),
            effect=_parse_effect(body.get("effect", GrantEffect.ALLOW.value)),
            conditions=body.get("conditions"),
            expires_at=parse_datetime(body.get("expires_at"), "expires_at"),
            granted_by=actor.user_id,
        )
        resp.media = grant_to_dict(grant)
        resp.status = falcon.HTTP_201


class UserDirectPermissionResource:
    """DELETE /v1/users/{user_id}/direct-permissions/{permission_id} - revoke."""

    required_permissions = {"DELETE": admin_permissions.DIRECT_PERMISSION_MANAGE}

    def __init__(self, store: DirectGrantStore) -> None:
        self._store = store

    async def on_delete(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        user_id: str,
        permission_id: str,
    ) -> None:
        await self._store.revoke(user_id, parse_uuid(permission_id, "permission ID"))
        resp.status = falcon.HTTP_204


class DirectPermissionResource:
    """PATCH /v1/direct-permissions/{grant_id}."""

    required_permissions = {"PATCH": admin_permissions.DIRECT_PERMISSION_MANAGE}

    def __init__(self, store: DirectGrantStore) -> None:
        self._store = store

    async def on_patch(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, grant_id: str
    ) -> None:
        gid = parse_uuid(grant_id, "grant ID")
        body = dict(await req.get_media())
        patches = {
            "effect": patch_from_body(body, "effect", _parse_effect),
            "conditions": patch_from_body(body, "conditions"),
            "expires_at": patch_from_body(
                body, "expires_at", lambda v: parse_datetime(v, "expires_at")
            ),
        }
        other = {k: v for k, v in body.items() if k not in _MUTABLE_GRANT_FIELDS}
        grant = await self._store.update(gid, **patches, **other)
        resp.media = grant_to_dict(grant)
        resp.status = falcon.HTTP_200
