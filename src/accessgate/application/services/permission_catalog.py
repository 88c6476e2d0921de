"""Permission catalog - canonical registry of permissions."""

import logging
from collections.abc import Mapping
from dataclasses import replace
from datetime import UTC, datetime
from types import MappingProxyType
from uuid import UUID, uuid4

from accessgate.application.dto.permission_filter import PermissionFilter
from accessgate.application.ports import UnitOfWorkFactory
from accessgate.domain.entities import IMMUTABLE_PERMISSION_FIELDS, Permission
from accessgate.domain.exceptions import (
    DuplicateCode,
    Forbidden,
    ImmutableFieldError,
    NotFound,
    PermissionInUse,
    ValidationError,
)
from accessgate.domain.value_objects import (
    UNCHANGED,
    Clear,
    Patch,
    PermissionCode,
    apply_patch,
)

logger = logging.getLogger(__name__)


def _check_metadata(metadata: Mapping[str, object] | None) -> Mapping[str, object]:
    if metadata is None:
        return MappingProxyType({})
    if not isinstance(metadata, Mapping) or not all(isinstance(k, str) for k in metadata):
        raise ValidationError("Permission metadata must be a mapping with string keys")
    return MappingProxyType(dict(metadata))


def _reject_extra_fields(extra: Mapping[str, object]) -> None:
    if not extra:
        return
    immutable = [k for k in extra if k in IMMUTABLE_PERMISSION_FIELDS]
    if immutable:
        raise ImmutableFieldError("Permission", immutable)
    raise ValidationError(f"Unknown permission fields: {', '.join(sorted(extra))}")


class PermissionCatalog:
    """Create, update, delete and query permissions.

    ``code``, ``module``, ``resource``, ``action`` and ``is_system`` are fixed
    at creation. Updates that try to change them raise ImmutableFieldError.
    """

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = unit_of_work_factory

    async def create(
        self,
        code: str,
        name: str,
        module: str,
        resource: str,
        action: str,
        is_system: bool = False,
        metadata: Mapping[str, object] | None = None,
        description: str | None = None,
    ) -> Permission:
        """Register a new permission. Raises DuplicateCode if the code exists."""
        parsed = PermissionCode.parse(code)
        if (parsed.module, parsed.resource, parsed.action) != (module, resource, action):
            raise ValidationError(
                f"Permission code {code!r} does not match {module}:{resource}:{action}"
            )
        if not name or not name.strip():
            raise ValidationError("Permission name is required")

        permission = Permission(
            id=uuid4(),
            code=parsed.value,
            name=name,
            module=module,
            resource=resource,
            action=action,
            created_at=datetime.now(UTC),
            is_system=is_system,
            description=description,
            metadata=_check_metadata(metadata),
        )
        async with self._uow_factory() as uow:
            if await uow.permissions.get_by_code(permission.code):
                raise DuplicateCode(f"Permission code already exists: {permission.code}")
            await uow.permissions.create(permission)

        logger.info("Created permission %s (%s)", permission.code, permission.id)
        return permission

    async def update(
        self,
        permission_id: UUID,
        *,
        name: Patch = UNCHANGED,
        description: Patch = UNCHANGED,
        metadata: Patch = UNCHANGED,
        **other: object,
    ) -> Permission:
        """Change descriptive fields of a permission."""
        _reject_extra_fields(other)
        if isinstance(name, Clear):
            raise ValidationError("Permission name cannot be cleared")

        async with self._uow_factory() as uow:
            current = await uow.permissions.get_by_id(permission_id)
            if not current:
                raise NotFound("Permission", permission_id)

            new_name = apply_patch(name, current.name)
            if not new_name or not new_name.strip():
                raise ValidationError("Permission name is required")
            updated = replace(
                current,
                name=new_name,
                description=apply_patch(description, current.description),
                metadata=_check_metadata(apply_patch(metadata, current.metadata, {})),
            )
            await uow.permissions.update(updated)

        logger.info("Updated permission %s", updated.code)
        return updated

    async def delete(self, permission_id: UUID) -> None:
        """Delete a non-system permission that no direct grant references."""
        async with self._uow_factory() as uow:
            permission = await uow.permissions.get_by_id(permission_id)
            if not permission:
                raise NotFound("Permission", permission_id)
            if permission.is_system:
                raise Forbidden(f"System permission cannot be deleted: {permission.code}")
            references = await uow.direct_grants.count_by_permission(permission_id)
            if references:
                raise PermissionInUse(
                    f"Permission {permission.code} is referenced by {references} direct grant(s)"
                )
            await uow.permissions.delete(permission_id)

        logger.info("Deleted permission %s", permission.code)

    async def find_by_id(self, permission_id: UUID) -> Permission | None:
        async with self._uow_factory() as uow:
            return await uow.permissions.get_by_id(permission_id)

    async def find_by_code(self, code: str) -> Permission | None:
        async with self._uow_factory() as uow:
            return await uow.permissions.get_by_code(code)

    async def find_many_by_ids(self, permission_ids: list[UUID]) -> list[Permission]:
        if not permission_ids:
            return []
        async with self._uow_factory() as uow:
            return await uow.permissions.list_by_ids(list(permission_ids))

    async def find_many_by_codes(self, codes: list[str]) -> list[Permission]:
        if not codes:
            return []
        async with self._uow_factory() as uow:
            return await uow.permissions.list_by_codes(list(codes))

    async def list_all(
        self,
        filters: PermissionFilter | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> list[Permission]:
        """List permissions ordered by module, resource, action. ``page`` is 1-based."""
        if page is not None and page < 1:
            raise ValidationError("page must be >= 1")
        if limit is not None and limit < 1:
            raise ValidationError("limit must be >= 1")
        offset = (page - 1) * limit if page and limit else 0
        async with self._uow_factory() as uow:
            return await uow.permissions.list_filtered(
                filters=filters, offset=offset, limit=limit
            )

    async def list_by_module(self, module: str) -> list[Permission]:
        return await self.list_all(PermissionFilter(module=module))

    async def list_by_resource(self, resource: str) -> list[Permission]:
        return await self.list_all(PermissionFilter(resource=resource))

    async def list_system(self) -> list[Permission]:
        return await self.list_all(PermissionFilter(is_system=True))

    async def exists(self, code: str) -> bool:
        return await self.find_by_code(code) is not None

    async def count(self, filters: PermissionFilter | None = None) -> int:
        async with self._uow_factory() as uow:
            return await uow.permissions.count(filters)
