"""PostgreSQL decision audit sink."""

from uuid import uuid4

from psycopg_pool import AsyncConnectionPool

from accessgate.domain.entities import DecisionAuditEntry


class PostgresDecisionAuditSink:
    """Appends decisions to ``permission_audit_log``.

    Uses its own pooled connection so audit rows commit independently of
    the request's unit of work.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def record(self, entry: DecisionAuditEntry) -> None:
        async with self._pool.connection() as conn:
            await conn.execute(
                "INSERT INTO permission_audit_log "
                "(id, user_id, permission_code, allowed, reason, matched_grant_id, "
                "endpoint, method, ip_address, user_agent, created_at) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)",
                (
                    uuid4(),
                    entry.user_id,
                    entry.permission_code,
                    entry.allowed,
                    entry.reason.value,
                    entry.matched_grant_id,
                    entry.endpoint,
                    entry.method,
                    entry.ip_address,
                    entry.user_agent,
                    entry.decided_at,
                ),
            )
