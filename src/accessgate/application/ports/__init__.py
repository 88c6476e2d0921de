"""Application ports - interfaces for external adapters."""

from accessgate.application.ports.decision_audit_sink import DecisionAuditSink
from accessgate.application.ports.role_grant_source import RoleGrantSource
from accessgate.application.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "DecisionAuditSink",
    "RoleGrantSource",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
