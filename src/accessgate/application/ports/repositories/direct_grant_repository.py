"""Direct grant repository port."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from accessgate.domain.entities import DirectGrant, GrantedPermission
from accessgate.domain.value_objects import GrantEffect


class DirectGrantRepository(Protocol):
    """Port for direct grant persistence.

    ``active_at`` excludes grants expired at that instant; None returns
    every stored row. ``create`` raises Conflict when the
    (user_id, permission_id) pair is already taken.
    """

    async def get_by_id(self, grant_id: UUID) -> DirectGrant | None: ...

    async def get_for_pair(self, user_id: str, permission_id: UUID) -> DirectGrant | None: ...

    async def list_by_user(
        self,
        user_id: str,
        *,
        active_at: datetime | None = None,
        effect: GrantEffect | None = None,
    ) -> list[DirectGrant]: ...

    async def list_by_permission(
        self, permission_id: UUID, *, active_at: datetime | None = None
    ) -> list[DirectGrant]: ...

    async def list_with_permissions_by_user(
        self,
        user_id: str,
        *,
        active_at: datetime | None = None,
        effect: GrantEffect | None = None,
    ) -> list[GrantedPermission]: ...

    async def list_user_ids_by_permission(
        self, permission_id: UUID, *, active_at: datetime | None = None
    ) -> list[str]: ...

    async def create(self, grant: DirectGrant) -> DirectGrant: ...

    async def create_many(self, grants: list[DirectGrant]) -> int: ...

    async def update(self, grant: DirectGrant) -> None: ...

    async def delete(self, grant_id: UUID) -> None: ...

    async def delete_for_pair(self, user_id: str, permission_id: UUID) -> None: ...

    async def delete_by_user(self, user_id: str) -> None: ...

    async def delete_by_permission(self, permission_id: UUID) -> None: ...

    async def delete_expired(self, now: datetime) -> int: ...

    async def count_by_user(self, user_id: str) -> int: ...

    async def count_by_permission(self, permission_id: UUID) -> int: ...

    async def count_users_by_permission(self, permission_id: UUID) -> int: ...
