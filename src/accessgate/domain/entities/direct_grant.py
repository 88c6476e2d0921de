"""Direct grant entity - per-user allow/deny override."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from accessgate.domain.value_objects import Conditions, GrantEffect

IMMUTABLE_GRANT_FIELDS = frozenset(
    {"id", "user_id", "permission_id", "granted_by", "created_at"}
)


@dataclass(frozen=True)
class DirectGrant:
    """Direct grant - user has an explicit effect on one permission.

    ``conditions=None`` means unconditional, ``expires_at=None`` means the
    grant never expires.
    """

    id: UUID
    user_id: str
    permission_id: UUID
    effect: GrantEffect
    created_at: datetime
    conditions: Conditions | None = None
    expires_at: datetime | None = None
    granted_by: str | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def is_active(self, now: datetime) -> bool:
        return not self.is_expired(now)
