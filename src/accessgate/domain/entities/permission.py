"""Permission entity - a named, addressable capability."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from uuid import UUID

from accessgate.domain.value_objects import PermissionCode

# Fields fixed at creation; the catalog rejects attempts to change them.
IMMUTABLE_PERMISSION_FIELDS = frozenset(
    {"id", "code", "module", "resource", "action", "is_system", "created_at"}
)


@dataclass(frozen=True)
class Permission:
    """Permission - code is module:resource:action, unique across the catalog."""

    id: UUID
    code: str
    name: str
    module: str
    resource: str
    action: str
    created_at: datetime
    is_system: bool = False
    description: str | None = None
    metadata: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def permission_code(self) -> PermissionCode:
        return PermissionCode(module=self.module, resource=self.resource, action=self.action)
