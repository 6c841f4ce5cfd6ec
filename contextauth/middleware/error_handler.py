"""
Global error handler untuk ContextAuth API.
Mengubah semua exception menjadi response dengan format konsisten:

    {"error": {"message", "type", "timestamp", "request_id", "details"}}
"""

from typing import Callable, Optional, Dict, Any
import logging
import traceback
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from contextauth.core.config import settings
from contextauth.core.constants import ResponseMessage
from contextauth.core.exceptions import ContextAuthException

logger = logging.getLogger("contextauth.error")


def create_error_response(
    request: Request,
    status_code: int,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    error_type: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    stack_trace: Optional[str] = None
) -> JSONResponse:
    """
    Create standardized error response.

    Args:
        request: Request object
        status_code: HTTP status code
        message: Error message
        details: Additional error details
        error_type: Type of error
        headers: Extra response headers
        stack_trace: Stack trace (only in debug mode)

    Returns:
        JSON error response
    """
    error_response = {
        "error": {
            "message": message,
            "type": error_type or "Error",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": getattr(request.state, "request_id", None)
        }
    }

    if details:
        error_response["error"]["details"] = details

    if settings.DEBUG and stack_trace:
        error_response["debug"] = {
            "path": request.url.path,
            "method": request.method,
            "stack_trace": stack_trace.split("\n")
        }

    response_headers = {"Cache-Control": "no-store"}
    if headers:
        response_headers.update(headers)

    return JSONResponse(status_code=status_code, content=error_response, headers=response_headers)


def log_error(request: Request, error: Exception, status_code: int) -> None:
    log_entry = {
        "request_id": getattr(request.state, "request_id", "unknown"),
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if status_code >= 500:
        logger.error(log_entry, exc_info=error)
    else:
        logger.warning(log_entry)


async def context_auth_exception_handler(request: Request, exc: ContextAuthException) -> JSONResponse:
    """Handle ContextAuthException."""
    log_error(request, exc, exc.status_code)
    return create_error_response(
        request=request,
        status_code=exc.status_code,
        message=exc.message,
        details=exc.details,
        error_type=type(exc).__name__
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTPException (termasuk 429 dari rate limiter)."""
    log_error(request, exc, exc.status_code)
    return create_error_response(
        request=request,
        status_code=exc.status_code,
        message=str(exc.detail),
        error_type="HTTPException",
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors (422)."""
    errors = [
        {
            "field": " -> ".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        }
        for error in exc.errors()
    ]
    log_error(request, exc, 422)
    return create_error_response(
        request=request,
        status_code=422,
        message="Validation failed",
        details={"validation_errors": errors},
        error_type="ValidationError"
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Pasang semua exception handler ke aplikasi."""
    app.add_exception_handler(ContextAuthException, context_auth_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Catch-all untuk exception yang lolos dari exception handler.
    Detail internal disembunyikan kecuali mode debug.
    """

    def __init__(self, app: ASGIApp, debug: Optional[bool] = None):
        super().__init__(app)
        self.debug = debug if debug is not None else settings.DEBUG

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            log_error(request, exc, 500)
            return create_error_response(
                request=request,
                status_code=500,
                message=str(exc) if self.debug else ResponseMessage.SERVER_ERROR,
                error_type="InternalServerError",
                stack_trace=traceback.format_exc() if self.debug else None
            )
