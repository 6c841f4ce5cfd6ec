"""
Security headers middleware untuk ContextAuth API.
Menambahkan security headers ke semua response.
"""

from typing import Callable, Optional, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware untuk menambahkan security headers ke semua response.

    Headers yang ditambahkan:
    - X-Content-Type-Options: nosniff
    - X-Frame-Options: DENY
    - Referrer-Policy
    - Strict-Transport-Security (untuk HTTPS)
    - Content-Security-Policy (API hanya mengembalikan JSON)
    """

    def __init__(
        self,
        app: ASGIApp,
        enable_hsts: bool = True,
        custom_headers: Optional[Dict[str, str]] = None
    ):
        """
        Initialize security headers middleware.

        Args:
            app: FastAPI/Starlette application
            enable_hsts: Enable Strict-Transport-Security header
            custom_headers: Additional custom headers
        """
        super().__init__(app)
        self.enable_hsts = enable_hsts
        self.custom_headers = custom_headers or {}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        headers = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Referrer-Policy": "strict-origin-when-cross-origin",
            "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
            "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
        }

        if self.enable_hsts and request.url.scheme == "https":
            headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        headers.update(self.custom_headers)

        for header, value in headers.items():
            response.headers[header] = value

        for header in ("Server", "X-Powered-By"):
            if header in response.headers:
                del response.headers[header]

        # Header dari rate limiter dependency
        rate_limit_headers = getattr(request.state, "rate_limit_headers", None)
        if rate_limit_headers:
            for header, value in rate_limit_headers.items():
                response.headers[header] = value

        return response
