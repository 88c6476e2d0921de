"""Role grant source port - permissions implied by role membership."""

from typing import Protocol


class RoleGrantSource(Protocol):
    """Port for the RBAC subsystem that resolves a user's role permissions.

    Returned codes are ``module:resource:action``; segments may be ``*``.
    """

    async def role_permissions(self, user_id: str) -> set[str]: ...
