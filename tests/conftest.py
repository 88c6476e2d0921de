"""Pytest fixtures for AccessGate tests."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from accessgate.application.dto.permission_filter import PermissionFilter
from accessgate.application.services.condition_evaluator import ConditionEvaluator
from accessgate.application.services.direct_grant_store import DirectGrantStore
from accessgate.application.services.permission_catalog import PermissionCatalog
from accessgate.application.services.resolver import EffectivePermissionResolver
from accessgate.domain.entities import DirectGrant, GrantedPermission, Permission
from accessgate.domain.exceptions import Conflict, DuplicateCode, InfrastructureError
from accessgate.domain.value_objects import GrantEffect
from accessgate.infrastructure.roles.static_source import StaticRoleGrantSource


# --- Fake repositories ---


class FakePermissionRepository:
    """In-memory permission repository."""

    def __init__(self) -> None:
        self._by_id: dict[UUID, Permission] = {}

    def _matching(self, filters: PermissionFilter | None) -> list[Permission]:
        items = list(self._by_id.values())
        if filters is not None:
            for attr in ("module", "resource", "action", "is_system"):
                value = getattr(filters, attr)
                if value is not None:
                    items = [p for p in items if getattr(p, attr) == value]
        items.sort(key=lambda p: (p.module, p.resource, p.action))
        return items

    async def get_by_id(self, permission_id: UUID) -> Permission | None:
        return self._by_id.get(permission_id)

    async def get_by_code(self, code: str) -> Permission | None:
        return next((p for p in self._by_id.values() if p.code == code), None)

    async def list_by_ids(self, permission_ids: list[UUID]) -> list[Permission]:
        return [p for p in self._matching(None) if p.id in set(permission_ids)]

    async def list_by_codes(self, codes: list[str]) -> list[Permission]:
        return [p for p in self._matching(None) if p.code in set(codes)]

    async def list_filtered(
        self,
        *,
        filters: PermissionFilter | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Permission]:
        items = self._matching(filters)[offset:]
        return items[:limit] if limit is not None else items

    async def count(self, filters: PermissionFilter | None = None) -> int:
        return len(self._matching(filters))

    async def create(self, permission: Permission) -> Permission:
        if await self.get_by_code(permission.code):
            raise DuplicateCode(f"Permission code already exists: {permission.code}")
        self._by_id[permission.id] = permission
        return permission

    async def update(self, permission: Permission) -> None:
        self._by_id[permission.id] = permission

    async def delete(self, permission_id: UUID) -> None:
        self._by_id.pop(permission_id, None)

    def add(self, permission: Permission) -> None:
        self._by_id[permission.id] = permission


class FakeDirectGrantRepository:
    """In-memory direct grant repository; one row per (user_id, permission_id).

    ``create`` enforces pair uniqueness atomically, like the database constraint.
    """

    def __init__(self, permissions: FakePermissionRepository) -> None:
        self._by_id: dict[UUID, DirectGrant] = {}
        self._permissions = permissions
        self.create_calls = 0

    def _select(
        self,
        *,
        user_id: str | None = None,
        permission_id: UUID | None = None,
        active_at: datetime | None = None,
        effect: GrantEffect | None = None,
    ) -> list[DirectGrant]:
        items = list(self._by_id.values())
        if user_id is not None:
            items = [g for g in items if g.user_id == user_id]
        if permission_id is not None:
            items = [g for g in items if g.permission_id == permission_id]
        if active_at is not None:
            items = [g for g in items if g.is_active(active_at)]
        if effect is not None:
            items = [g for g in items if g.effect == effect]
        items.sort(key=lambda g: g.created_at)
        return items

    async def get_by_id(self, grant_id: UUID) -> DirectGrant | None:
        return self._by_id.get(grant_id)

    async def get_for_pair(self, user_id: str, permission_id: UUID) -> DirectGrant | None:
        found = self._select(user_id=user_id, permission_id=permission_id)
        # Yield so concurrent callers can interleave between lookup and insert.
        await asyncio.sleep(0)
        return found[0] if found else None

    async def list_by_user(self, user_id, *, active_at=None, effect=None) -> list[DirectGrant]:
        return self._select(user_id=user_id, active_at=active_at, effect=effect)

    async def list_by_permission(self, permission_id, *, active_at=None) -> list[DirectGrant]:
        return self._select(permission_id=permission_id, active_at=active_at)

    async def list_with_permissions_by_user(
        self, user_id, *, active_at=None, effect=None
    ) -> list[GrantedPermission]:
        joined = [
            GrantedPermission(permission=self._permissions._by_id[g.permission_id], grant=g)
            for g in self._select(user_id=user_id, active_at=active_at, effect=effect)
            if g.permission_id in self._permissions._by_id
        ]
        joined.sort(key=lambda gp: (gp.permission.module, gp.permission.resource, gp.permission.action))
        return joined

    async def list_user_ids_by_permission(self, permission_id, *, active_at=None) -> list[str]:
        return sorted({g.user_id for g in self._select(permission_id=permission_id, active_at=active_at)})

    async def create(self, grant: DirectGrant) -> DirectGrant:
        self.create_calls += 1
        if self._select(user_id=grant.user_id, permission_id=grant.permission_id):
            raise Conflict(
                f"User {grant.user_id} already has a direct grant for permission {grant.permission_id}"
            )
        self._by_id[grant.id] = grant
        return grant

    async def create_many(self, grants: list[DirectGrant]) -> int:
        created = 0
        for grant in grants:
            if not self._select(user_id=grant.user_id, permission_id=grant.permission_id):
                self._by_id[grant.id] = grant
                created += 1
        return created

    async def update(self, grant: DirectGrant) -> None:
        self._by_id[grant.id] = grant

    async def delete(self, grant_id: UUID) -> None:
        self._by_id.pop(grant_id, None)

    async def delete_for_pair(self, user_id: str, permission_id: UUID) -> None:
        for g in self._select(user_id=user_id, permission_id=permission_id):
            del self._by_id[g.id]

    async def delete_by_user(self, user_id: str) -> None:
        for g in self._select(user_id=user_id):
            del self._by_id[g.id]

    async def delete_by_permission(self, permission_id: UUID) -> None:
        for g in self._select(permission_id=permission_id):
            del self._by_id[g.id]

    async def delete_expired(self, now: datetime) -> int:
        expired = [g for g in self._by_id.values() if g.is_expired(now)]
        for g in expired:
            del self._by_id[g.id]
        return len(expired)

    async def count_by_user(self, user_id: str) -> int:
        return len(self._select(user_id=user_id))

    async def count_by_permission(self, permission_id: UUID) -> int:
        return len(self._select(permission_id=permission_id))

    async def count_users_by_permission(self, permission_id: UUID) -> int:
        return len({g.user_id for g in self._select(permission_id=permission_id)})

    def add(self, grant: DirectGrant) -> None:
        self._by_id[grant.id] = grant


class FakeUnitOfWork:
    """In-memory Unit of Work."""

    def __init__(self) -> None:
        self.permissions = FakePermissionRepository()
        self.direct_grants = FakeDirectGrantRepository(self.permissions)
        self.committed = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        pass


class RecordingAuditSink:
    """Keeps every recorded decision in memory."""

    def __init__(self) -> None:
        self.entries = []

    async def record(self, entry) -> None:
        self.entries.append(entry)


def make_uow_factory(uow: FakeUnitOfWork):
    """UoW factory yielding the same in-memory UoW every time."""

    @asynccontextmanager
    async def _factory():
        yield uow

    return _factory


def failing_uow_factory():
    """UoW factory whose store is unreachable."""

    @asynccontextmanager
    async def _factory():
        raise InfrastructureError("Database unavailable: connection refused")
        yield

    return _factory


def make_permission(code: str, *, is_system: bool = False, name: str | None = None) -> Permission:
    module, resource, action = code.split(":")
    return Permission(
        id=uuid4(),
        code=code,
        name=name or code,
        module=module,
        resource=resource,
        action=action,
        created_at=datetime.now(UTC),
        is_system=is_system,
    )


def make_grant(
    user_id: str,
    permission: Permission,
    effect: GrantEffect = GrantEffect.ALLOW,
    *,
    conditions: dict | None = None,
    expires_in: timedelta | None = None,
) -> DirectGrant:
    now = datetime.now(UTC)
    return DirectGrant(
        id=uuid4(),
        user_id=user_id,
        permission_id=permission.id,
        effect=effect,
        created_at=now,
        conditions=conditions,
        expires_at=now + expires_in if expires_in is not None else None,
    )


# --- Fixtures ---


@pytest.fixture
def uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture
def uow_factory(uow: FakeUnitOfWork):
    return make_uow_factory(uow)


@pytest.fixture
def catalog(uow_factory) -> PermissionCatalog:
    return PermissionCatalog(uow_factory)


@pytest.fixture
def store(uow_factory) -> DirectGrantStore:
    return DirectGrantStore(uow_factory)


@pytest.fixture
def role_source() -> StaticRoleGrantSource:
    return StaticRoleGrantSource()


@pytest.fixture
def resolver(catalog, store, role_source) -> EffectivePermissionResolver:
    return EffectivePermissionResolver(catalog, store, role_source, ConditionEvaluator())
