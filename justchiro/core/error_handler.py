"""
Error handling and sanitization

- Domain errors (ChiroBaseError) -> their own status and kind
- Path/query parsing errors -> ValidationFailed with field violations
- Anything unhandled -> logged with traceback, generic 500 to the client
"""
import logging
import traceback
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from justchiro.core.config import settings
from justchiro.core.exceptions import ChiroBaseError, StorageFailure, ValidationFailed

logger = logging.getLogger(__name__)

HTTP_KINDS = {
    400: "BadRequest",
    401: "AuthenticationError",
    403: "InsufficientPrivilege",
    404: "NotFound",
    405: "MethodNotAllowed",
    413: "PayloadTooLarge",
}


def error_response(error: ChiroBaseError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "error": error.to_dict()},
    )


async def chiro_error_handler(request: Request, exc: ChiroBaseError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    violations = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("path", "query", "body")]
        violations.append({
            "field": ".".join(loc) or "request",
            "message": err.get("msg", "Invalid value"),
        })
    return error_response(ValidationFailed(violations))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and request.url.path.startswith("/api/"):
        message = "API endpoint not found"
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": {
                "kind": HTTP_KINDS.get(exc.status_code, "HTTPError"),
                "code": f"HTTP_{exc.status_code}",
                "message": message,
            },
        },
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ChiroBaseError, chiro_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)


class ErrorSanitizationMiddleware(BaseHTTPMiddleware):
    """
    Catch unhandled exceptions and return a sanitized envelope.

    - In production: generic message, full details logged under an error id
    - In development: exception text and type included
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            error_id = uuid.uuid4().hex[:12]
            logger.error(
                f"Unhandled exception [{error_id}]: {type(e).__name__}: {str(e)}\n"
                f"Path: {request.url.path}\n"
                f"Method: {request.method}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            error = StorageFailure(details={"error_id": error_id})
            if settings.DEBUG:
                error.message = str(e)
                error.details["type"] = type(e).__name__
            return error_response(error)
