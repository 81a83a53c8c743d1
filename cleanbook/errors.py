"""API error taxonomy and the handlers that render it as the JSON envelope."""

from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cleanbook.config import get_settings

logger = structlog.get_logger(__name__)


class ApiError(Exception):
    """An error with an HTTP status and a user-facing message.

    Extra keyword arguments are merged into the response body next to
    ``error`` (e.g. ``requiresVerification=True``).
    """

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, status_code: int = None, **extra: Any):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_body(self) -> dict:
        body = {"success": False, "error": self.message}
        body.update(self.extra)
        return body


class BadRequestError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized", **extra: Any):
        super().__init__(message, **extra)


class ForbiddenError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


# =============================================================================
# Exception Handlers
# =============================================================================

async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with clear, field-specific messages."""
    errors = []
    for error in exc.errors():
        loc = [str(x) for x in error["loc"] if x not in ("body", "query", "path")]
        errors.append({
            "field": ".".join(loc),
            "message": error["msg"],
            "type": error["type"],
        })

    first = errors[0] if errors else {"field": "", "message": "Invalid request"}
    message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": message, "errors": errors},
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
    )
    body = {"success": False, "error": "Internal server error"}
    if get_settings().DEBUG:
        body["detail"] = str(exc)
        body["type"] = type(exc).__name__
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
