"""Effective permission resolver - the single authorization decision point."""

import asyncio
import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime

from accessgate.application.dto.request_info import RequestInfo
from accessgate.application.ports import DecisionAuditSink, RoleGrantSource
from accessgate.application.services.condition_evaluator import ConditionEvaluator
from accessgate.application.services.direct_grant_store import DirectGrantStore
from accessgate.application.services.permission_catalog import PermissionCatalog
from accessgate.domain.entities import Decision, DecisionAuditEntry, GrantedPermission
from accessgate.domain.exceptions import InfrastructureError, ValidationError
from accessgate.domain.value_objects import DecisionReason, GrantEffect, PermissionCode

logger = logging.getLogger(__name__)


def _role_grants_cover(role_codes: Iterable[str], code: PermissionCode) -> bool:
    for raw in role_codes:
        try:
            pattern = PermissionCode.parse(raw, allow_wildcard=True)
        except ValidationError:
            logger.warning("Ignoring malformed role permission code %r", raw)
            continue
        if pattern.covers(code):
            return True
    return False


class EffectivePermissionResolver:
    """Merges role grants and direct grants into one allow/deny decision.

    Precedence, independent of grant source or age:

    1. unknown permission code -> deny (NO_GRANT)
    2. a matching direct DENY -> deny (DIRECT_DENY)
    3. a matching direct ALLOW -> allow (DIRECT_ALLOW)
    4. a role grant covering the code -> allow (ROLE_ALLOW)
    5. otherwise -> deny (NO_GRANT)

    Store failures and timeouts surface as InfrastructureError. With
    ``fail_closed_on_error`` they are turned into a NO_GRANT deny instead.

    Every decision from ``decide`` is handed to ``audit_sink``. A failing
    sink is logged and never changes the decision.
    """

    def __init__(
        self,
        catalog: PermissionCatalog,
        direct_grants: DirectGrantStore,
        role_source: RoleGrantSource,
        evaluator: ConditionEvaluator,
        *,
        fail_closed_on_error: bool = False,
        timeout: float | None = None,
        audit_sink: DecisionAuditSink | None = None,
    ) -> None:
        self._catalog = catalog
        self._direct_grants = direct_grants
        self._role_source = role_source
        self._evaluator = evaluator
        self._fail_closed_on_error = fail_closed_on_error
        self._timeout = timeout
        self._audit_sink = audit_sink

    async def decide(
        self,
        user_id: str,
        permission_code: str,
        context: Mapping[str, object] | None = None,
        *,
        timeout: float | None = None,
        request: RequestInfo | None = None,
    ) -> Decision:
        """Decide whether ``user_id`` may use ``permission_code`` in ``context``."""
        context = context or {}
        limit = timeout if timeout is not None else self._timeout
        try:
            async with asyncio.timeout(limit):
                decision = await self._resolve(user_id, permission_code, context)
        except TimeoutError as exc:
            decision = self._on_infrastructure_error(
                user_id,
                permission_code,
                InfrastructureError(f"Authorization check timed out after {limit}s"),
                exc,
            )
        except InfrastructureError as exc:
            decision = self._on_infrastructure_error(user_id, permission_code, exc, exc)

        logger.debug(
            "Decision for user %s on %s: allowed=%s reason=%s grant=%s",
            user_id,
            permission_code,
            decision.allowed,
            decision.reason,
            decision.matched_grant.id if decision.matched_grant else None,
        )
        await self._audit(user_id, permission_code, decision, request)
        return decision

    async def has_permission(
        self,
        user_id: str,
        permission_code: str,
        context: Mapping[str, object] | None = None,
    ) -> bool:
        return (await self.decide(user_id, permission_code, context)).allowed

    async def has_any_permission(
        self,
        user_id: str,
        permission_codes: Iterable[str],
        context: Mapping[str, object] | None = None,
    ) -> bool:
        for code in permission_codes:
            if await self.has_permission(user_id, code, context):
                return True
        return False

    async def has_all_permissions(
        self,
        user_id: str,
        permission_codes: Iterable[str],
        context: Mapping[str, object] | None = None,
    ) -> bool:
        codes = list(permission_codes)
        if not codes:
            return False
        for code in codes:
            if not await self.has_permission(user_id, code, context):
                return False
        return True

    async def effective_permission_codes(
        self,
        user_id: str,
        context: Mapping[str, object] | None = None,
    ) -> list[str]:
        """Sorted catalog codes the user is allowed in ``context``."""
        context = context or {}
        role_codes = await self._role_source.role_permissions(user_id)
        direct = await self._direct_grants.list_user_permissions_with_effects(user_id)

        candidates: set[str] = {g.permission.code for g in direct}
        concrete = [c for c in role_codes if PermissionCode.is_valid(c)]
        candidates.update(p.code for p in await self._catalog.find_many_by_codes(concrete))
        patterns = [
            c
            for c in role_codes
            if PermissionCode.is_valid(c, allow_wildcard=True) and not PermissionCode.is_valid(c)
        ]
        if patterns:
            for permission in await self._catalog.list_all():
                if _role_grants_cover(patterns, permission.permission_code):
                    candidates.add(permission.code)

        allowed: list[str] = []
        for code in sorted(candidates):
            decision = self._decide_from(
                PermissionCode.parse(code),
                [g for g in direct if g.permission.code == code],
                role_codes,
                context,
            )
            if decision.allowed:
                allowed.append(code)
        return allowed

    async def _resolve(
        self,
        user_id: str,
        permission_code: str,
        context: Mapping[str, object],
    ) -> Decision:
        try:
            code = PermissionCode.parse(permission_code)
        except ValidationError:
            return Decision.deny()

        permission = await self._catalog.find_by_code(code.value)
        if not permission:
            return Decision.deny()

        granted = await self._direct_grants.list_user_permissions_with_effects(user_id)
        direct = [g for g in granted if g.permission.code == permission.code]
        decision = self._decide_from(code, direct, None, context)
        if decision.reason is not DecisionReason.NO_GRANT:
            return decision

        role_codes = await self._role_source.role_permissions(user_id)
        return self._decide_from(code, [], role_codes, context)

    def _decide_from(
        self,
        code: PermissionCode,
        direct: list[GrantedPermission],
        role_codes: Iterable[str] | None,
        context: Mapping[str, object],
    ) -> Decision:
        matching = [g.grant for g in direct if self._evaluator.matches(g.conditions, context)]
        for grant in matching:
            if grant.effect is GrantEffect.DENY:
                return Decision(allowed=False, reason=DecisionReason.DIRECT_DENY, matched_grant=grant)
        for grant in matching:
            if grant.effect is GrantEffect.ALLOW:
                return Decision(allowed=True, reason=DecisionReason.DIRECT_ALLOW, matched_grant=grant)
        if role_codes and _role_grants_cover(role_codes, code):
            return Decision(allowed=True, reason=DecisionReason.ROLE_ALLOW)
        return Decision.deny()

    def _on_infrastructure_error(
        self,
        user_id: str,
        permission_code: str,
        error: InfrastructureError,
        cause: BaseException,
    ) -> Decision:
        if not self._fail_closed_on_error:
            if error is cause:
                raise error
            raise error from cause
        logger.warning(
            "Denying %s for user %s: authorization store unavailable (%s)",
            permission_code,
            user_id,
            error,
        )
        return Decision.deny()

    async def _audit(
        self,
        user_id: str,
        permission_code: str,
        decision: Decision,
        request: RequestInfo | None,
    ) -> None:
        if self._audit_sink is None:
            return
        request = request or RequestInfo()
        entry = DecisionAuditEntry(
            user_id=user_id,
            permission_code=permission_code,
            allowed=decision.allowed,
            reason=decision.reason,
            decided_at=datetime.now(UTC),
            matched_grant_id=decision.matched_grant.id if decision.matched_grant else None,
            endpoint=request.endpoint,
            method=request.method,
            ip_address=request.ip_address,
            user_agent=request.user_agent,
        )
        try:
            await self._audit_sink.record(entry)
        except Exception:
            logger.exception(
                "Failed to record audit entry for user %s on %s", user_id, permission_code
            )
