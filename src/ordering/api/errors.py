"""Map failures to JSON error responses.

Every error body has the same shape: ``{"kind", "message", "details"?}``.
Tracebacks are logged server-side and never returned.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.errors import StorefrontError

logger = structlog.get_logger(__name__)


def error_response(status_code: int, kind: str, message: str, details=None) -> JSONResponse:
    content = {"kind": kind, "message": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log("Request failed", path=request.url.path, kind=exc.kind, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.warning("Request failed validation", path=request.url.path, errors=exc.messages)
    return error_response(400, "ValidationError", "Invalid data", dict(exc.messages))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"location": [str(part) for part in error.get("loc", ())], "message": error.get("msg")}
        for error in exc.errors()
    ]
    logger.warning("Request body rejected", path=request.url.path, errors=errors)
    return error_response(400, "ValidationError", "Invalid request body", {"errors": errors})


async def object_not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    logger.warning("Record not found", path=request.url.path)
    return error_response(404, "NotFound", "Record not found")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    return error_response(500, "Unclassified", "Server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, object_not_found_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
