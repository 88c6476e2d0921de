"""Repository ports."""

from accessgate.application.ports.repositories.direct_grant_repository import (
    DirectGrantRepository,
)
from accessgate.application.ports.repositories.permission_repository import (
    PermissionRepository,
)

__all__ = [
    "DirectGrantRepository",
    "PermissionRepository",
]
