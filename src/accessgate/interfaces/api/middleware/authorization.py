"""Authorization middleware - asks the resolver before protected responders run."""

import logging

import falcon
import falcon.asgi

from accessgate.application.dto.request_info import RequestInfo
from accessgate.application.services.resolver import EffectivePermissionResolver

logger = logging.getLogger(__name__)


def build_context(req: falcon.asgi.Request, params: dict) -> dict[str, object]:
    """Request context for condition matching: route params plus principal."""
    context: dict[str, object] = {k: v for k, v in params.items() if isinstance(v, str)}
    user = getattr(req.context, "user", None)
    if user is not None:
        context["actor_id"] = user.user_id
        if user.tenant_id is not None:
            context["tenant_id"] = user.tenant_id
    return context


class AuthorizationMiddleware:
    """Checks ``resource.required_permissions[method]`` for every request.

    Denials are reported with a generic 403; the decision reason only goes
    to the log.
    """

    def __init__(self, resolver: EffectivePermissionResolver) -> None:
        self._resolver = resolver

    async def process_resource(
        self,
        req: falcon.asgi.Request,
        resp: falcon.asgi.Response,
        resource: object,
        params: dict,
    ) -> None:
        required = getattr(resource, "required_permissions", {}).get(req.method)
        if not required:
            return

        user = getattr(req.context, "user", None)
        if not user:
            raise falcon.HTTPUnauthorized(title="Unauthorized")

        decision = await self._resolver.decide(
            user.user_id,
            required,
            build_context(req, params),
            request=RequestInfo(
                endpoint=req.path,
                method=req.method,
                ip_address=req.remote_addr,
                user_agent=req.get_header("User-Agent"),
            ),
        )
        if not decision.allowed:
            logger.info(
                "Denied %s %s for user %s (%s: %s)",
                req.method,
                req.path,
                user.user_id,
                required,
                decision.reason,
            )
            raise falcon.HTTPForbidden(title="Forbidden", description="Not authorized")
