"""Domain entities."""

from accessgate.domain.entities.decision import Decision
from accessgate.domain.entities.decision_audit_entry import DecisionAuditEntry
from accessgate.domain.entities.direct_grant import IMMUTABLE_GRANT_FIELDS, DirectGrant
from accessgate.domain.entities.granted_permission import GrantedPermission
from accessgate.domain.entities.permission import IMMUTABLE_PERMISSION_FIELDS, Permission

__all__ = [
    "IMMUTABLE_GRANT_FIELDS",
    "IMMUTABLE_PERMISSION_FIELDS",
    "Decision",
    "DecisionAuditEntry",
    "DirectGrant",
    "GrantedPermission",
    "Permission",
]
