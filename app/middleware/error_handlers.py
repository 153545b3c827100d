"""
Error handlers
Translate raised errors into the uniform JSON error envelope:
{"success": false, "message": ..., "errors"?: [...]}
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import AppError, ValidationFailed

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "validation": 400,
    "uniqueness": 409,
    "database": 500,
    "connection": 503,
}


def _include_stack(request: Request) -> bool:
    context = getattr(request.app.state, "context", None)
    return context is not None and not context.settings.is_production


def error_response(exc: Exception, include_stack: bool = False) -> JSONResponse:
    """Build the error envelope for any exception, keyed by its kind"""
    kind = getattr(exc, "kind", "unclassified")
    status_code = STATUS_BY_KIND.get(kind)
    if status_code is None:
        status_code = getattr(exc, "status_code", None) or 500

    if kind == "validation":
        content = {"success": False, "message": str(exc), "errors": exc.errors}
    elif kind == "uniqueness":
        content = {
            "success": False,
            "message": str(exc),
            "errors": [{"field": exc.field, "message": str(exc)}],
        }
    elif kind == "database":
        content = {"success": False, "message": "Database error", "error": str(exc)}
    elif kind == "connection":
        content = {"success": False, "message": "Database connection error", "error": str(exc)}
    else:
        content = {"success": False, "message": str(exc) or "Internal server error"}
        if include_stack:
            content["stack"] = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )

    return JSONResponse(status_code=status_code, content=content)


def _log(request: Request, exc: Exception, status_code: int):
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    else:
        logger.warning("%s %s rejected (%s): %s", request.method, request.url.path, status_code, exc)


async def app_error_handler(request: Request, exc: AppError):
    response = error_response(exc, _include_stack(request))
    _log(request, exc, response.status_code)
    return response


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed body or wrong field types are reported like validator errors"""
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(location) or "body", "message": error.get("msg", "")})
    return await app_error_handler(request, ValidationFailed(errors))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # A known path with an unrouted method matches no route either
    if exc.status_code in (404, 405):
        _log(request, exc, 404)
        return JSONResponse(
            status_code=404,
            content={"success": False, "message": "Route not found", "path": request.url.path},
        )
    _log(request, exc, exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    response = error_response(exc, _include_stack(request))
    _log(request, exc, response.status_code)
    return response


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
