"""Application entry point and composition root."""

import logging

import falcon.asgi

from accessgate import __version__
from accessgate.application.ports import DecisionAuditSink, RoleGrantSource
from accessgate.application.services.condition_evaluator import ConditionEvaluator
from accessgate.application.services.direct_grant_store import DirectGrantStore
from accessgate.application.services.permission_catalog import PermissionCatalog
from accessgate.application.services.resolver import EffectivePermissionResolver
from accessgate.config import get_settings
from accessgate.infrastructure.audit.logging_sink import LoggingDecisionAuditSink
from accessgate.infrastructure.auth.keycloak_provider import KeycloakProvider
from accessgate.infrastructure.persistence.postgres.audit_sink import PostgresDecisionAuditSink
from accessgate.infrastructure.persistence.postgres.connection import create_pool
from accessgate.infrastructure.persistence.postgres.unit_of_work import (
    create_uow_factory,
)
from accessgate.infrastructure.roles.cached_source import CachedRoleGrantSource
from accessgate.infrastructure.roles.static_source import StaticRoleGrantSource
from accessgate.infrastructure.scheduling.expiry_reaper import ExpiryReaper
from accessgate.interfaces.api.errors import register_error_handlers
from accessgate.interfaces.api.middleware.auth import AuthMiddleware
from accessgate.interfaces.api.middleware.authorization import AuthorizationMiddleware
from accessgate.interfaces.api.middleware.lifespan import LifespanMiddleware
from accessgate.interfaces.api.resources.direct_permissions import (
    DirectPermissionResource,
    UserDirectPermissionResource,
    UserDirectPermissionsResource,
)
from accessgate.interfaces.api.resources.health import HealthResource
from accessgate.interfaces.api.resources.permissions import (
    PermissionResource,
    PermissionsResource,
    PermissionUsersResource,
)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_audit_sink(backend: str, pool) -> DecisionAuditSink | None:
    if backend == "postgres":
        return PostgresDecisionAuditSink(pool)
    if backend == "log":
        return LoggingDecisionAuditSink()
    return None


def main() -> None:
    """CLI entry point."""
    print(f"AccessGate v{__version__}")


def create_accessgate_app(role_source: RoleGrantSource | None = None) -> falcon.asgi.App:
    """Composition root - build Falcon app with all dependencies.

    ``role_source`` is the adapter to the role system; without one, users
    only get what their direct grants allow.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    pool = create_pool(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        timeout=settings.db_timeout_seconds,
    )
    uow_factory = create_uow_factory(pool)

    keycloak = (
        KeycloakProvider(
            server_url=settings.keycloak_url,
            realm=settings.keycloak_realm,
            client_id=settings.keycloak_client_id,
            client_secret=settings.keycloak_client_secret,
            tenant_claim=settings.keycloak_tenant_claim,
        )
        if settings.keycloak_client_secret
        else None
    )

    catalog = PermissionCatalog(uow_factory)
    store = DirectGrantStore(uow_factory)
    roles = CachedRoleGrantSource(
        role_source or StaticRoleGrantSource(),
        ttl_seconds=settings.role_cache_ttl_seconds,
        max_size=settings.role_cache_max_size,
    )
    resolver = EffectivePermissionResolver(
        catalog,
        store,
        roles,
        ConditionEvaluator(),
        fail_closed_on_error=settings.resolver_fail_closed,
        timeout=settings.resolver_timeout_seconds,
        audit_sink=create_audit_sink(settings.decision_audit_backend, pool),
    )
    reaper = ExpiryReaper(store, interval_seconds=settings.reaper_interval_seconds)

    app = falcon.asgi.App(
        middleware=[
            LifespanMiddleware(pool, reaper),
            AuthMiddleware(keycloak),
            AuthorizationMiddleware(resolver),
        ],
    )
    register_error_handlers(app)

    health_resource = HealthResource(catalog)
    app.add_route("/v1/health", health_resource)
    app.add_route("/v1/health/ready", health_resource, suffix="ready")
    app.add_route("/v1/permissions", PermissionsResource(catalog))
    app.add_route("/v1/permissions/{permission_id}", PermissionResource(catalog))
    app.add_route(
        "/v1/permissions/{permission_id}/users",
        PermissionUsersResource(catalog, store),
    )
    app.add_route(
        "/v1/users/{user_id}/direct-permissions",
        UserDirectPermissionsResource(store),
    )
    app.add_route(
        "/v1/users/{user_id}/direct-permissions/{permission_id}",
        UserDirectPermissionResource(store),
    )
    app.add_route("/v1/direct-permissions/{grant_id}", DirectPermissionResource(store))
    return app


def run_server() -> None:
    """Run uvicorn server."""
    import uvicorn

    uvicorn.run(create_accessgate_app(), host="0.0.0.0", port=8000)
