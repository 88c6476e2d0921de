"""Decision audit sink port - receives one entry per authorization decision."""

from typing import Protocol

from accessgate.domain.entities import DecisionAuditEntry


class DecisionAuditSink(Protocol):
    """Records authorization decisions."""

    async def record(self, entry: DecisionAuditEntry) -> None:
        """Store one audit entry."""
        ...
