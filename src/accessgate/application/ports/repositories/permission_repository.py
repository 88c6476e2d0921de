"""Permission repository port."""

from typing import Protocol
from uuid import UUID

from accessgate.application.dto.permission_filter import PermissionFilter
from accessgate.domain.entities import Permission


class PermissionRepository(Protocol):
    """Port for permission catalog persistence."""

    async def get_by_id(self, permission_id: UUID) -> Permission | None: ...

    async def get_by_code(self, code: str) -> Permission | None: ...

    async def list_by_ids(self, permission_ids: list[UUID]) -> list[Permission]: ...

    async def list_by_codes(self, codes: list[str]) -> list[Permission]: ...

    async def list_filtered(
        self,
        *,
        filters: PermissionFilter | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Permission]: ...

    async def count(self, filters: PermissionFilter | None = None) -> int: ...

    async def create(self, permission: Permission) -> Permission: ...

    async def update(self, permission: Permission) -> None: ...

    async def delete(self, permission_id: UUID) -> None: ...
