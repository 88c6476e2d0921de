"""Fixtures for API tests."""

import falcon.asgi
import pytest

from accessgate.application.services.condition_evaluator import ConditionEvaluator
from accessgate.application.services.direct_grant_store import DirectGrantStore
from accessgate.application.services.permission_catalog import PermissionCatalog
from accessgate.application.services.resolver import EffectivePermissionResolver
from accessgate.infrastructure.roles.static_source import StaticRoleGrantSource
from accessgate.interfaces.api import admin_permissions
from accessgate.interfaces.api.errors import register_error_handlers
from accessgate.interfaces.api.middleware.auth import RequestUser
from accessgate.interfaces.api.middleware.authorization import AuthorizationMiddleware
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

from tests.conftest import (
    FakeUnitOfWork,
    RecordingAuditSink,
    make_permission,
    make_uow_factory,
)

ADMIN = "admin-1"


class AuthBypassMiddleware:
    """Sets context.user from the X-Test-User header (default: admin)."""

    async def process_request(self, req, resp):
        req.context.user = RequestUser(user_id=req.get_header("X-Test-User") or ADMIN)


@pytest.fixture
def api_uow():
    """UoW seeded with the admin API permissions."""
    uow = FakeUnitOfWork()
    for code in admin_permissions.ALL:
        uow.permissions.add(make_permission(code, is_system=True))
    return uow


@pytest.fixture
def roles():
    return StaticRoleGrantSource({ADMIN: admin_permissions.ALL})


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def app(api_uow, roles, audit_sink):
    """Falcon ASGI app with API resources for testing."""
    uow_factory = make_uow_factory(api_uow)
    catalog = PermissionCatalog(uow_factory)
    store = DirectGrantStore(uow_factory)
    resolver = EffectivePermissionResolver(
        catalog, store, roles, ConditionEvaluator(), audit_sink=audit_sink
    )

    app = falcon.asgi.App(
        middleware=[AuthBypassMiddleware(), AuthorizationMiddleware(resolver)]
    )
    register_error_handlers(app)
    health = HealthResource(catalog)
    app.add_route("/v1/health", health)
    app.add_route("/v1/health/ready", health, suffix="ready")
    app.add_route("/v1/permissions", PermissionsResource(catalog))
    app.add_route("/v1/permissions/{permission_id}", PermissionResource(catalog))
    app.add_route("/v1/permissions/{permission_id}/users", PermissionUsersResource(catalog, store))
    app.add_route("/v1/users/{user_id}/direct-permissions", UserDirectPermissionsResource(store))
    app.add_route(
        "/v1/users/{user_id}/direct-permissions/{permission_id}",
        UserDirectPermissionResource(store),
    )
    app.add_route("/v1/direct-permissions/{grant_id}", DirectPermissionResource(store))
    return app


@pytest.fixture
def client(app):
    """Falcon ASGI test client."""
    from falcon.testing import TestClient
    return TestClient(app)
