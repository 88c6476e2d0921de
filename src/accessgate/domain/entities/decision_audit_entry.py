"""Audit record of one authorization decision."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from accessgate.domain.value_objects import DecisionReason


@dataclass(frozen=True)
class DecisionAuditEntry:
    """Who asked for what, the outcome, and where the request came from."""

    user_id: str
    permission_code: str
    allowed: bool
    reason: DecisionReason
    decided_at: datetime
    matched_grant_id: UUID | None = None
    endpoint: str | None = None
    method: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
