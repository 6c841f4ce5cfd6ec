"""
Middleware package untuk ContextAuth API.
Berisi middleware untuk security headers, logging, dan error handling.
"""

from contextauth.middleware.security import SecurityHeadersMiddleware
from contextauth.middleware.logging import LoggingMiddleware
from contextauth.middleware.error_handler import ErrorHandlerMiddleware, register_exception_handlers

__all__ = [
    "SecurityHeadersMiddleware",
    "LoggingMiddleware",
    "ErrorHandlerMiddleware",
    "register_exception_handlers"
]
