"""JSON shapes for API responses and request parsing helpers."""

from datetime import datetime
from uuid import UUID

import falcon

from accessgate.domain.entities import DirectGrant, Permission
from accessgate.domain.value_objects import CLEAR, UNCHANGED, Patch, SetTo


def permission_to_dict(p: Permission) -> dict:
    return {
        "id": str(p.id),
        "code": p.code,
        "name": p.name,
        "description": p.description,
        "module": p.module,
        "resource": p.resource,
        "action": p.action,
        "is_system": p.is_system,
        "metadata": dict(p.metadata),
        "created_at": p.created_at.isoformat(),
    }


def grant_to_dict(g: DirectGrant) -> dict:
    return {
        "id": str(g.id),
        "user_id": g.user_id,
        "permission_id": str(g.permission_id),
        "effect": g.effect.value,
        "conditions": dict(g.conditions) if g.conditions is not None else None,
        "expires_at": g.expires_at.isoformat() if g.expires_at else None,
        "granted_by": g.granted_by,
        "created_at": g.created_at.isoformat(),
    }


def parse_uuid(value: str, name: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise falcon.HTTPBadRequest(title="Bad Request", description=f"Invalid {name}") from None


def parse_datetime(value: object, name: str) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise falcon.HTTPBadRequest(
            title="Bad Request", description=f"Invalid {name}: expected ISO 8601"
        ) from None


def patch_from_body(body: dict, key: str, convert=None) -> Patch:
    """Absent key -> UNCHANGED, null -> CLEAR, anything else -> SetTo(value)."""
    if key not in body:
        return UNCHANGED
    value = body[key]
    if value is None:
        return CLEAR
    return SetTo(convert(value) if convert else value)


def require_user(req) -> object:
    user = getattr(req.context, "user", None)
    if not user:
        raise falcon.HTTPUnauthorized(title="Unauthorized")
    return user
