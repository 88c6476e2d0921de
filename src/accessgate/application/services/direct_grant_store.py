"""Direct grant store - per-user allow/deny overrides."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

from accessgate.application.dto.grant_request import GrantRequest
from accessgate.application.ports import UnitOfWorkFactory
from accessgate.domain.entities import (
    IMMUTABLE_GRANT_FIELDS,
    DirectGrant,
    GrantedPermission,
    Permission,
)
from accessgate.domain.exceptions import (
    Conflict,
    ImmutableFieldError,
    NotFound,
    ValidationError,
)
from accessgate.domain.value_objects import (
    UNCHANGED,
    Clear,
    GrantEffect,
    Patch,
    SetTo,
    apply_patch,
    normalize_conditions,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


def _check_effect(effect: object) -> GrantEffect:
    try:
        return GrantEffect(effect)
    except ValueError as exc:
        raise ValidationError(f"Invalid grant effect: {effect!r}") from exc


def _check_expires_at(expires_at: datetime | None) -> datetime | None:
    if expires_at is not None and expires_at.tzinfo is None:
        raise ValidationError("expires_at must be timezone-aware")
    return expires_at


class DirectGrantStore:
    """Grant, update, revoke and query direct grants.

    At most one active grant exists per (user_id, permission_id). A second
    ``grant`` for the same pair raises Conflict instead of overwriting, so a
    DENY is never silently turned into an ALLOW. Expired grants stay
    readable by id until ``revoke_expired`` deletes them, but are never
    returned by the active listings.
    """

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = unit_of_work_factory

    async def grant(
        self,
        user_id: str,
        permission_id: UUID,
        effect: GrantEffect = GrantEffect.ALLOW,
        conditions: Mapping[str, object] | None = None,
        expires_at: datetime | None = None,
        granted_by: str | None = None,
    ) -> DirectGrant:
        """Create a direct grant. Raises Conflict if an active one exists."""
        if not user_id:
            raise ValidationError("user_id is required")
        now = _now()
        grant = DirectGrant(
            id=uuid4(),
            user_id=user_id,
            permission_id=permission_id,
            effect=_check_effect(effect),
            created_at=now,
            conditions=normalize_conditions(conditions),
            expires_at=_check_expires_at(expires_at),
            granted_by=granted_by,
        )

        async with self._uow_factory() as uow:
            if not await uow.permissions.get_by_id(permission_id):
                raise NotFound("Permission", permission_id)

            existing = await uow.direct_grants.get_for_pair(user_id, permission_id)
            if existing:
                if existing.is_active(now):
                    raise Conflict(
                        f"User {user_id} already has a direct grant for permission {permission_id}"
                    )
                # Expired but not yet swept: replace it in the same transaction.
                await uow.direct_grants.delete(existing.id)

            await uow.direct_grants.create(grant)

        logger.info(
            "Granted %s on permission %s to user %s (grant %s)",
            grant.effect,
            permission_id,
            user_id,
            grant.id,
        )
        return grant

    async def grant_many(self, requests: Iterable[GrantRequest]) -> int:
        """Bulk grant. Duplicates and unknown permissions are skipped.

        The whole batch is rejected if any request lacks a user_id.

        Returns the number of grants created.
        """
        now = _now()
        seen: set[tuple[str, UUID]] = set()
        candidates: list[DirectGrant] = []
        for req in requests:
            if not req.user_id:
                raise ValidationError("user_id is required")
            pair = (req.user_id, req.permission_id)
            if pair in seen:
                continue
            seen.add(pair)
            candidates.append(
                DirectGrant(
                    id=uuid4(),
                    user_id=req.user_id,
                    permission_id=req.permission_id,
                    effect=_check_effect(req.effect),
                    created_at=now,
                    conditions=normalize_conditions(req.conditions),
                    expires_at=_check_expires_at(req.expires_at),
                    granted_by=req.granted_by,
                )
            )
        if not candidates:
            return 0

        async with self._uow_factory() as uow:
            known = await uow.permissions.list_by_ids(
                list({g.permission_id for g in candidates})
            )
            known_ids = {p.id for p in known}
            to_insert: list[DirectGrant] = []
            for grant in candidates:
                if grant.permission_id not in known_ids:
                    logger.warning(
                        "Skipping grant for unknown permission %s", grant.permission_id
                    )
                    continue
                existing = await uow.direct_grants.get_for_pair(
                    grant.user_id, grant.permission_id
                )
                if existing:
                    if existing.is_active(now):
                        continue
                    await uow.direct_grants.delete(existing.id)
                to_insert.append(grant)
            created = await uow.direct_grants.create_many(to_insert) if to_insert else 0

        logger.info("Bulk granted %d of %d direct grant(s)", created, len(candidates))
        return created

    async def update(
        self,
        grant_id: UUID,
        *,
        effect: Patch = UNCHANGED,
        conditions: Patch = UNCHANGED,
        expires_at: Patch = UNCHANGED,
        **other: object,
    ) -> DirectGrant:
        """Change effect, conditions or expiry of a grant."""
        if other:
            immutable = [k for k in other if k in IMMUTABLE_GRANT_FIELDS]
            if immutable:
                raise ImmutableFieldError("DirectGrant", immutable)
            raise ValidationError(f"Unknown direct grant fields: {', '.join(sorted(other))}")
        if isinstance(effect, Clear):
            raise ValidationError("Grant effect cannot be cleared")
        if isinstance(conditions, SetTo):
            conditions = SetTo(normalize_conditions(conditions.value))
        if isinstance(expires_at, SetTo):
            expires_at = SetTo(_check_expires_at(expires_at.value))

        async with self._uow_factory() as uow:
            current = await uow.direct_grants.get_by_id(grant_id)
            if not current:
                raise NotFound("DirectGrant", grant_id)
            updated = replace(
                current,
                effect=_check_effect(apply_patch(effect, current.effect)),
                conditions=apply_patch(conditions, current.conditions),
                expires_at=apply_patch(expires_at, current.expires_at),
            )
            await uow.direct_grants.update(updated)

        logger.info("Updated direct grant %s", grant_id)
        return updated

    async def revoke(self, user_id: str, permission_id: UUID) -> None:
        """Remove the grant for the pair. No-op if there is none."""
        async with self._uow_factory() as uow:
            await uow.direct_grants.delete_for_pair(user_id, permission_id)
        logger.info("Revoked direct grant on permission %s from user %s", permission_id, user_id)

    async def revoke_all_from_user(self, user_id: str) -> None:
        async with self._uow_factory() as uow:
            await uow.direct_grants.delete_by_user(user_id)
        logger.info("Revoked all direct grants from user %s", user_id)

    async def revoke_permission_from_all_users(self, permission_id: UUID) -> None:
        async with self._uow_factory() as uow:
            await uow.direct_grants.delete_by_permission(permission_id)
        logger.info("Revoked permission %s from all users", permission_id)

    async def revoke_expired(self) -> int:
        """Delete every grant whose expires_at is at or before now."""
        async with self._uow_factory() as uow:
            removed = await uow.direct_grants.delete_expired(_now())
        if removed:
            logger.info("Removed %d expired direct grant(s)", removed)
        return removed

    async def find_by_id(self, grant_id: UUID) -> DirectGrant | None:
        async with self._uow_factory() as uow:
            return await uow.direct_grants.get_by_id(grant_id)

    async def find_by_user_and_permission(
        self, user_id: str, permission_id: UUID
    ) -> DirectGrant | None:
        async with self._uow_factory() as uow:
            return await uow.direct_grants.get_for_pair(user_id, permission_id)

    async def list_by_user_id(
        self,
        user_id: str,
        *,
        include_expired: bool = False,
        effect: GrantEffect | None = None,
    ) -> list[DirectGrant]:
        async with self._uow_factory() as uow:
            return await uow.direct_grants.list_by_user(
                user_id,
                active_at=None if include_expired else _now(),
                effect=effect,
            )

    async def list_active_by_user_id(self, user_id: str) -> list[DirectGrant]:
        return await self.list_by_user_id(user_id, include_expired=False)

    async def list_by_permission_id(self, permission_id: UUID) -> list[DirectGrant]:
        """Active grants for a permission."""
        async with self._uow_factory() as uow:
            return await uow.direct_grants.list_by_permission(permission_id, active_at=_now())

    async def list_user_permissions_with_effects(self, user_id: str) -> list[GrantedPermission]:
        """Active grants of a user joined with their permissions."""
        async with self._uow_factory() as uow:
            return await uow.direct_grants.list_with_permissions_by_user(
                user_id, active_at=_now()
            )

    async def list_permissions_by_user_id(
        self,
        user_id: str,
        *,
        include_expired: bool = False,
        effect: GrantEffect | None = None,
    ) -> list[Permission]:
        async with self._uow_factory() as uow:
            granted = await uow.direct_grants.list_with_permissions_by_user(
                user_id,
                active_at=None if include_expired else _now(),
                effect=effect,
            )
        return [g.permission for g in granted]

    async def list_users_by_permission_id(self, permission_id: UUID) -> list[str]:
        """Distinct users holding an active grant for the permission."""
        async with self._uow_factory() as uow:
            return await uow.direct_grants.list_user_ids_by_permission(
                permission_id, active_at=_now()
            )

    async def exists(self, user_id: str, permission_id: UUID) -> bool:
        """True if any grant row (active or not yet swept) exists for the pair."""
        return await self.find_by_user_and_permission(user_id, permission_id) is not None

    async def count_by_user_id(self, user_id: str) -> int:
        async with self._uow_factory() as uow:
            return await uow.direct_grants.count_by_user(user_id)

    async def count_by_permission_id(self, permission_id: UUID) -> int:
        async with self._uow_factory() as uow:
            return await uow.direct_grants.count_by_permission(permission_id)

    async def count_users_with_permission(self, permission_id: UUID) -> int:
        async with self._uow_factory() as uow:
            return await uow.direct_grants.count_users_by_permission(permission_id)
