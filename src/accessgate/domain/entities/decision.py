"""Authorization decision - resolver output, never persisted."""

from dataclasses import dataclass

from accessgate.domain.entities.direct_grant import DirectGrant
from accessgate.domain.value_objects import DecisionReason


@dataclass(frozen=True)
class Decision:
    """Allow/deny outcome with the reason and the direct grant that decided it.

    ``reason`` and ``matched_grant`` are for internal audit only and must not
    be shown to the denied caller.
    """

    allowed: bool
    reason: DecisionReason
    matched_grant: DirectGrant | None = None

    @classmethod
    def deny(cls) -> "Decision":
        return cls(allowed=False, reason=DecisionReason.NO_GRANT)
