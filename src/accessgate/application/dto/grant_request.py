"""Direct grant DTOs."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from accessgate.domain.value_objects import GrantEffect


@dataclass
class GrantRequest:
    """Input for one direct grant (single or batch)."""

    user_id: str
    permission_id: UUID
    effect: GrantEffect = GrantEffect.ALLOW
    conditions: Mapping[str, object] | None = None
    expires_at: datetime | None = None
    granted_by: str | None = None
