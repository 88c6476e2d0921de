"""PostgreSQL direct grant repository implementation."""

from datetime import datetime
from uuid import UUID

from psycopg import AsyncConnection
from psycopg.errors import ForeignKeyViolation, UniqueViolation
from psycopg.types.json import Jsonb

from accessgate.domain.entities import DirectGrant, GrantedPermission
from accessgate.domain.exceptions import Conflict, NotFound
from accessgate.domain.value_objects import GrantEffect, normalize_conditions
from accessgate.infrastructure.persistence.postgres.permission_repository import (
    row_to_permission,
)

_COLUMNS = (
    "id, user_id, permission_id, effect, conditions, expires_at, granted_by, created_at"
)
_JOINED_COLUMNS = (
    "g.id, g.user_id, g.permission_id, g.effect, g.conditions, g.expires_at, "
    "g.granted_by, g.created_at, "
    "p.id, p.code, p.name, p.description, p.module, p.resource, p.action, "
    "p.is_system, p.metadata, p.created_at"
)


def _row_to_grant(r: tuple) -> DirectGrant:
    return DirectGrant(
        id=r[0],
        user_id=r[1],
        permission_id=r[2],
        effect=GrantEffect(r[3]),
        conditions=normalize_conditions(r[4]),
        expires_at=r[5],
        granted_by=r[6],
        created_at=r[7],
    )


def _grant_params(grant: DirectGrant) -> tuple:
    return (
        grant.id,
        grant.user_id,
        grant.permission_id,
        grant.effect.value,
        Jsonb(dict(grant.conditions)) if grant.conditions is not None else None,
        grant.expires_at,
        grant.granted_by,
        grant.created_at,
    )


def _active_clause(active_at: datetime | None, params: list, alias: str = "") -> str:
    """SQL fragment excluding rows expired at ``active_at`` (empty if None)."""
    if active_at is None:
        return ""
    params.append(active_at)
    return f" AND ({alias}expires_at IS NULL OR {alias}expires_at > %s)"


class PostgresDirectGrantRepository:
    """Direct grant repository implementation.

    Relies on the unique index on (user_id, permission_id) to serialise
    concurrent grants for the same pair.
    """

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_by_id(self, grant_id: UUID) -> DirectGrant | None:
        """Get grant by id, expired or not."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM user_direct_permission WHERE id = %s",
            (grant_id,),
        )
        r = await cur.fetchone()
        return _row_to_grant(r) if r else None

    async def get_for_pair(self, user_id: str, permission_id: UUID) -> DirectGrant | None:
        """Get the grant of user on permission, expired or not."""
        cur = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM user_direct_permission "
            "WHERE user_id = %s AND permission_id = %s",
            (user_id, permission_id),
        )
        r = await cur.fetchone()
        return _row_to_grant(r) if r else None

    async def list_by_user(
        self,
        user_id: str,
        *,
        active_at: datetime | None = None,
        effect: GrantEffect | None = None,
    ) -> list[DirectGrant]:
        """List grants of user."""
        params: list = [user_id]
        sql = f"SELECT {_COLUMNS} FROM user_direct_permission WHERE user_id = %s"
        if effect is not None:
            sql += " AND effect = %s"
            params.append(GrantEffect(effect).value)
        sql += _active_clause(active_at, params)
        sql += " ORDER BY created_at"
        cur = await self._conn.execute(sql, params)
        return [_row_to_grant(r) for r in await cur.fetchall()]

    async def list_by_permission(
        self, permission_id: UUID, *, active_at: datetime | None = None
    ) -> list[DirectGrant]:
        """List grants on permission."""
        params: list = [permission_id]
        sql = f"SELECT {_COLUMNS} FROM user_direct_permission WHERE permission_id = %s"
        sql += _active_clause(active_at, params)
        sql += " ORDER BY created_at"
        cur = await self._conn.execute(sql, params)
        return [_row_to_grant(r) for r in await cur.fetchall()]

    async def list_with_permissions_by_user(
        self,
        user_id: str,
        *,
        active_at: datetime | None = None,
        effect: GrantEffect | None = None,
    ) -> list[GrantedPermission]:
        """List grants of user joined with their permissions."""
        params: list = [user_id]
        sql = (
            f"SELECT {_JOINED_COLUMNS} FROM user_direct_permission g "
            "JOIN permission p ON p.id = g.permission_id WHERE g.user_id = %s"
        )
        if effect is not None:
            sql += " AND g.effect = %s"
            params.append(GrantEffect(effect).value)
        sql += _active_clause(active_at, params, alias="g.")
        sql += " ORDER BY p.module, p.resource, p.action"
        cur = await self._conn.execute(sql, params)
        return [
            GrantedPermission(permission=row_to_permission(r[8:]), grant=_row_to_grant(r[:8]))
            for r in await cur.fetchall()
        ]

    async def list_user_ids_by_permission(
        self, permission_id: UUID, *, active_at: datetime | None = None
    ) -> list[str]:
        """Distinct user ids holding a grant on permission."""
        params: list = [permission_id]
        sql = "SELECT DISTINCT user_id FROM user_direct_permission WHERE permission_id = %s"
        sql += _active_clause(active_at, params)
        sql += " ORDER BY user_id"
        cur = await self._conn.execute(sql, params)
        return [r[0] for r in await cur.fetchall()]

    async def create(self, grant: DirectGrant) -> DirectGrant:
        """Create grant. Raises Conflict if the pair is taken."""
        try:
            await self._conn.execute(
                f"INSERT INTO user_direct_permission ({_COLUMNS}) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s)",
                _grant_params(grant),
            )
        except UniqueViolation as exc:
            raise Conflict(
                f"User {grant.user_id} already has a direct grant "
                f"for permission {grant.permission_id}"
            ) from exc
        except ForeignKeyViolation as exc:
            raise NotFound("Permission", grant.permission_id) from exc
        return grant

    async def create_many(self, grants: list[DirectGrant]) -> int:
        """Insert grants, skipping pairs that already exist. Returns rows inserted."""
        async with self._conn.cursor() as cur:
            try:
                await cur.executemany(
                    f"INSERT INTO user_direct_permission ({_COLUMNS}) "
                    "VALUES (%s, %s, %s, %s, %s, %s, %s, %s) "
                    "ON CONFLICT (user_id, permission_id) DO NOTHING",
                    [_grant_params(g) for g in grants],
                )
            except ForeignKeyViolation as exc:
                missing = sorted({str(g.permission_id) for g in grants})
                raise NotFound("Permission", ", ".join(missing)) from exc
            return max(cur.rowcount, 0)

    async def update(self, grant: DirectGrant) -> None:
        """Update mutable fields of a grant."""
        await self._conn.execute(
            "UPDATE user_direct_permission SET effect=%s, conditions=%s, expires_at=%s "
            "WHERE id=%s",
            (
                grant.effect.value,
                Jsonb(dict(grant.conditions)) if grant.conditions is not None else None,
                grant.expires_at,
                grant.id,
            ),
        )

    async def delete(self, grant_id: UUID) -> None:
        """Delete grant by id."""
        await self._conn.execute(
            "DELETE FROM user_direct_permission WHERE id = %s",
            (grant_id,),
        )

    async def delete_for_pair(self, user_id: str, permission_id: UUID) -> None:
        """Delete grant of user on permission."""
        await self._conn.execute(
            "DELETE FROM user_direct_permission WHERE user_id = %s AND permission_id = %s",
            (user_id, permission_id),
        )

    async def delete_by_user(self, user_id: str) -> None:
        """Delete all grants of user."""
        await self._conn.execute(
            "DELETE FROM user_direct_permission WHERE user_id = %s",
            (user_id,),
        )

    async def delete_by_permission(self, permission_id: UUID) -> None:
        """Delete all grants on permission."""
        await self._conn.execute(
            "DELETE FROM user_direct_permission WHERE permission_id = %s",
            (permission_id,),
        )

    async def delete_expired(self, now: datetime) -> int:
        """Delete grants expired at ``now``. Returns rows deleted."""
        cur = await self._conn.execute(
            "DELETE FROM user_direct_permission WHERE expires_at <= %s",
            (now,),
        )
        return cur.rowcount

    async def count_by_user(self, user_id: str) -> int:
        cur = await self._conn.execute(
            "SELECT count(*) FROM user_direct_permission WHERE user_id = %s",
            (user_id,),
        )
        r = await cur.fetchone()
        return r[0]

    async def count_by_permission(self, permission_id: UUID) -> int:
        cur = await self._conn.execute(
            "SELECT count(*) FROM user_direct_permission WHERE permission_id = %s",
            (permission_id,),
        )
        r = await cur.fetchone()
        return r[0]

    async def count_users_by_permission(self, permission_id: UUID) -> int:
        cur = await self._conn.execute(
            "SELECT count(DISTINCT user_id) FROM user_direct_permission WHERE permission_id = %s",
            (permission_id,),
        )
        r = await cur.fetchone()
        return r[0]
