"""Map domain exceptions to HTTP responses."""

import logging

import falcon
import falcon.asgi

from accessgate.domain.exceptions import (
    AccessGateError,
    Conflict,
    DuplicateCode,
    Forbidden,
    ImmutableFieldError,
    InfrastructureError,
    NotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Order matters: PermissionInUse is both Conflict and Forbidden and maps to 409.
_STATUS_BY_ERROR: list[tuple[type[AccessGateError], str]] = [
    (NotFound, falcon.HTTP_404),
    (DuplicateCode, falcon.HTTP_409),
    (Conflict, falcon.HTTP_409),
    (Forbidden, falcon.HTTP_403),
    (ImmutableFieldError, falcon.HTTP_400),
    (ValidationError, falcon.HTTP_400),
    (InfrastructureError, falcon.HTTP_503),
]


async def handle_domain_error(
    req: falcon.asgi.Request,
    resp: falcon.asgi.Response,
    ex: AccessGateError,
    params: dict,
) -> None:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(ex, error_type):
            break
    else:
        status = falcon.HTTP_500
    if isinstance(ex, InfrastructureError):
        logger.error("Store unavailable on %s %s: %s", req.method, req.path, ex)
        message = "Service unavailable"
    else:
        message = str(ex)
    resp.status = status
    resp.media = {"error": message}


async def handle_unexpected_error(
    req: falcon.asgi.Request,
    resp: falcon.asgi.Response,
    ex: Exception,
    params: dict,
) -> None:
    logger.exception("Unhandled error on %s %s", req.method, req.path)
    resp.status = falcon.HTTP_500
    resp.media = {"title": "500 Internal Server Error"}


def register_error_handlers(app: falcon.asgi.App) -> None:
    """Install domain and fallback handlers (HTTPError keeps Falcon's own handling)."""
    app.add_error_handler(Exception, handle_unexpected_error)
    app.add_error_handler(AccessGateError, handle_domain_error)
