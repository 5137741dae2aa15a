"""Error handlers mapping domain exceptions to HTTP responses."""

import logging

import falcon
import falcon.asgi

from permengine.domain.exceptions import (
    ConcurrentMutationConflict,
    InvalidScope,
    MembershipResolutionFailure,
    NotFound,
    PermEngineError,
    ResourceTreeError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (NotFound, falcon.HTTP_404),
    (InvalidScope, falcon.HTTP_422),
    (ValidationError, falcon.HTTP_400),
    (ConcurrentMutationConflict, falcon.HTTP_409),
    (MembershipResolutionFailure, falcon.HTTP_503),
    (ResourceTreeError, falcon.HTTP_500),
)


def status_for(ex: PermEngineError) -> str:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(ex, error_type):
            return status
    return falcon.HTTP_500


async def handle_domain_error(
    req: falcon.asgi.Request, resp: falcon.asgi.Response, ex: PermEngineError, params
) -> None:
    status = status_for(ex)
    body: dict = {"error": str(ex), "code": type(ex).__name__}
    if isinstance(ex, InvalidScope):
        body["invalid_scopes"] = ex.codes
    if isinstance(ex, ConcurrentMutationConflict):
        body["retryable"] = ex.retryable
    if status == falcon.HTTP_500:
        logger.error("%s %s failed: %s", req.method, req.path, ex)
    resp.status = status
    resp.media = body


async def handle_unexpected_error(
    req: falcon.asgi.Request, resp: falcon.asgi.Response, ex: Exception, params
) -> None:
    logger.exception("Unhandled error on %s %s", req.method, req.path)
    resp.status = falcon.HTTP_500
    resp.media = {"error": "Internal server error"}


def register_error_handlers(app: falcon.asgi.App) -> None:
    """Install handlers; falcon picks the most specific one for each exception."""
    app.add_error_handler(Exception, handle_unexpected_error)
    app.add_error_handler(PermEngineError, handle_domain_error)
