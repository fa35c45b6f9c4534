"""
Service-level exceptions and their HTTP rendering.

Services raise subclasses of ``ServiceError`` (itself a ``ValueError``)
and never build HTTP responses.  The handlers registered by
``setup_exception_handlers`` turn these exceptions into a uniform
``{"data": null, "error": {...}}`` body so that every client sees the
same error envelope regardless of which endpoint failed.
"""

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(ValueError):
    """Base class for expected failures raised by services."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "bad_request"


class ValidationFailedError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_failed"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class PermissionDeniedError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


def error_body(code: str, message: str) -> dict:
    return {"data": None, "error": {"code": code, "message": message}}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Render a ``ServiceError`` with its own status code."""
    logger.info(
        "%s %s failed with %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc,
    )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, str(exc)))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request body, path and query validation failures as a 422 envelope."""
    problems = [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()]
    logger.info("%s %s rejected: %s", request.method, request.url.path, problems)
    body = error_body("validation_failed", "; ".join(p["msg"] for p in problems) or "Invalid request")
    body["error"]["details"] = problems
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=body)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log an unhandled exception with request context and return a 500.

    The response carries an ``error_id`` so that a reported failure can
    be matched with the log record.
    """
    error_id = id(exc)
    logger.error(
        "Unhandled exception [%s] in %s %s: %s",
        error_id,
        request.method,
        request.url.path,
        exc,
        exc_info=True,
        extra={
            "error_id": error_id,
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )
    body = error_body("internal_error", "Internal server error")
    body["error"]["error_id"] = error_id
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the FastAPI application."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered")
