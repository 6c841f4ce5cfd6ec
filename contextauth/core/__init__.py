"""
Core module untuk ContextAuth API.
Berisi komponen inti aplikasi seperti konfigurasi, keamanan, exceptions, dan konstanta.
"""

from contextauth.core.config import settings
from contextauth.core.exceptions import (
    ContextAuthException,
    AuthenticationError,
    AuthorizationError,
    ValidationError,
    NotFoundError,
    ConflictError,
    TokenError,
    StorageError
)

__all__ = [
    "settings",
    "ContextAuthException",
    "AuthenticationError",
    "AuthorizationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "TokenError",
    "StorageError"
]
