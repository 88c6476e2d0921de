"""Decision audit sink writing to the application log."""

import logging

from accessgate.domain.entities import DecisionAuditEntry

logger = logging.getLogger(__name__)


class LoggingDecisionAuditSink:
    """Logs every decision at INFO."""

    async def record(self, entry: DecisionAuditEntry) -> None:
        logger.info(
            "Authorization %s: user=%s code=%s reason=%s grant=%s endpoint=%s %s ip=%s",
            "allowed" if entry.allowed else "denied",
            entry.user_id,
            entry.permission_code,
            entry.reason,
            entry.matched_grant_id,
            entry.method,
            entry.endpoint,
            entry.ip_address,
        )
