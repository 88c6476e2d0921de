"""Health check endpoints."""

import falcon.asgi

from accessgate.application.services.permission_catalog import PermissionCatalog
from accessgate.domain.exceptions import InfrastructureError


class HealthResource:
    """Health and readiness endpoints."""

    def __init__(self, catalog: PermissionCatalog | None = None) -> None:
        self._catalog = catalog

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """GET /v1/health - liveness."""
        resp.media = {"status": "ok"}
        resp.status = falcon.HTTP_200

    async def on_get_ready(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """GET /v1/health/ready - readiness (permission store reachable)."""
        if self._catalog:
            try:
                await self._catalog.count()
            except InfrastructureError:
                resp.media = {"status": "unavailable"}
                resp.status = falcon.HTTP_503
                return
        resp.media = {"status": "ready"}
        resp.status = falcon.HTTP_200
