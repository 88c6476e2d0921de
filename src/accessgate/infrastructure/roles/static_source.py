"""Role grant source backed by a fixed mapping."""

from collections.abc import Iterable, Mapping


class StaticRoleGrantSource:
    """Resolves role permissions from a user -> codes mapping.

    Used when role membership is resolved outside this service and handed
    over at startup, and as a test double.
    """

    def __init__(self, grants: Mapping[str, Iterable[str]] | None = None) -> None:
        self._grants: dict[str, set[str]] = {
            user_id: set(codes) for user_id, codes in (grants or {}).items()
        }

    async def role_permissions(self, user_id: str) -> set[str]:
        return set(self._grants.get(user_id, ()))

    def set_user_permissions(self, user_id: str, codes: Iterable[str]) -> None:
        self._grants[user_id] = set(codes)
