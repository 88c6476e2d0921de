"""PostgreSQL permission repository implementation."""

from types import MappingProxyType
from uuid import UUID

from psycopg import AsyncConnection
from psycopg.errors import ForeignKeyViolation, UniqueViolation
from psycopg.types.json import Jsonb

from accessgate.application.dto.permission_filter import PermissionFilter
from accessgate.domain.entities import Permission
from accessgate.domain.exceptions import DuplicateCode, PermissionInUse

_COLUMNS = (
    "id, code, name, description, module, resource, action, is_system, metadata, created_at"
)


def row_to_permission(r: tuple) -> Permission:
    return Permission(
        id=r[0],
        code=r[1],
        name=r[2],
        description=r[3],
        module=r[4],
        resource=r[5],
        action=r[6],
        is_system=r[7],
        metadata=MappingProxyType(dict(r[8] or {})),
        created_at=r[9],
    )


def _build_filter_conditions(filters: PermissionFilter | None) -> tuple[list[str], list]:
    """Build WHERE conditions for a catalog filter. Returns (conditions, params)."""
    if filters is None:
        return [], []
    conditions: list[str] = []
    params: list = []
    for column, value in (
        ("module", filters.module),
        ("resource", filters.resource),
        ("action", filters.action),
        ("is_system", filters.is_system),
    ):
        if value is None:
            continue
        conditions.append(f"{column} = %s")
        params.append(value)
    return conditions, params


class PostgresPermissionRepository:
    """Permission repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, permission_id: UUID) -> Permission | None:
        """Get permission by id."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission WHERE id = %s",
            (permission_id,),
        )
        r = await cur.fetchone()
        return row_to_permission(r) if r else None

    async def get_by_code(self, code: str) -> Permission | None:
        """Get permission by code."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission WHERE code = %s",
            (code,),
        )
        r = await cur.fetchone()
        return row_to_permission(r) if r else None

    async def list_by_ids(self, permission_ids: list[UUID]) -> list[Permission]:
        """List permissions with the given ids."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission WHERE id = ANY(%s) "
            "ORDER BY module, resource, action",
            (permission_ids,),
        )
        return [row_to_permission(r) for r in await cur.fetchall()]

    async def list_by_codes(self, codes: list[str]) -> list[Permission]:
        """List permissions with the given codes."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM permission WHERE code = ANY(%s) "
            "ORDER BY module, resource, action",
            (codes,),
        )
        return [row_to_permission(r) for r in await cur.fetchall()]

    async def list_filtered(
        self,
        *,
        filters: PermissionFilter | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Permission]:
        """List permissions matching filters, ordered by module, resource, action."""
        conditions, params = _build_filter_conditions(filters)
        sql = f"SELECT {_COLUMNS} FROM permission"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY module, resource, action"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(limit)
        if offset:
            sql += " OFFSET %s"
            params.append(offset)
        cur = await self._conn.execute(sql, params)
        return [row_to_permission(r) for r in await cur.fetchall()]

    async def count(self, filters: PermissionFilter | None = None) -> int:
        """Count permissions matching filters."""
        conditions, params = _build_filter_conditions(filters)
        sql = "SELECT count(*) FROM permission"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        cur = await self._conn.execute(sql, params)
        r = await cur.fetchone()
        return r[0]

    async def create(self, permission: Permission) -> Permission:
        """Create permission."""
        try:
            await self._conn.execute(
                f"INSERT INTO permission ({_COLUMNS}) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
                (
                    permission.id,
                    permission.code,
                    permission.name,
                    permission.description,
                    permission.module,
                    permission.resource,
                    permission.action,
                    permission.is_system,
                    Jsonb(dict(permission.metadata)),
                    permission.created_at,
                ),
            )
        except UniqueViolation as exc:
            raise DuplicateCode(f"Permission code already exists: {permission.code}") from exc
        return permission

    async def update(self, permission: Permission) -> None:
        """Update descriptive fields of a permission."""
        await self._conn.execute(
            "UPDATE permission SET name=%s, description=%s, metadata=%s WHERE id=%s",
            (
                permission.name,
                permission.description,
                Jsonb(dict(permission.metadata)),
                permission.id,
            ),
        )

    async def delete(self, permission_id: UUID) -> None:
        """Delete permission. Raises PermissionInUse if grants still reference it."""
        try:
            await self._conn.execute(
                "DELETE FROM permission WHERE id = %s",
                (permission_id,),
            )
        except ForeignKeyViolation as exc:
            raise PermissionInUse(
                f"Permission {permission_id} is referenced by direct grants"
            ) from exc
