"""Catalog listing filter."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PermissionFilter:
    """Optional equality filters for listing and counting permissions."""

    module: str | None = None
    resource: str | None = None
    action: str | None = None
    is_system: bool | None = None
