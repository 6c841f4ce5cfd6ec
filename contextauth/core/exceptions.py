"""
Custom exceptions untuk ContextAuth API.
Semua custom exceptions harus inherit dari base exceptions ini.
"""

from typing import Optional, Dict, Any

from contextauth.core.constants import ResponseMessage


class ContextAuthException(Exception):
    """Base exception untuk semua custom exceptions di ContextAuth API."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Error message
            status_code: HTTP status code
            details: Additional error details
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(ContextAuthException):
    """Exception untuk error autentikasi."""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=401, details=details)


class AuthorizationError(ContextAuthException):
    """Exception untuk error otorisasi."""

    def __init__(self, message: str = "Permission denied", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=403, details=details)


class ValidationError(ContextAuthException):
    """Exception untuk error validasi data."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=422, details=details)


class NotFoundError(ContextAuthException):
    """Exception untuk resource tidak ditemukan."""

    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=404, details=details)


class ConflictError(ContextAuthException):
    """Exception untuk konflik data (misal: duplicate entry)."""

    def __init__(self, message: str = "Resource conflict", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=409, details=details)


class TokenError(ContextAuthException):
    """Exception untuk error terkait session token."""

    def __init__(self, message: str = "Invalid token", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=401, details=details)


class BadRequestError(ContextAuthException):
    """Exception untuk request yang tidak bisa diproses pada state saat ini."""

    def __init__(self, message: str = "Bad request", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class InvalidCredentialsException(AuthenticationError):
    """Exception untuk kredensial yang tidak valid."""

    def __init__(self, message: str = ResponseMessage.INVALID_CREDENTIALS):
        super().__init__(message)


class InvalidTokenException(ContextAuthException):
    """
    Exception untuk kode verifikasi / reset token yang salah atau expired.
    Sengaja tidak membedakan antara kode salah dan kode expired.
    """

    def __init__(self, message: str = ResponseMessage.INVALID_CODE):
        super().__init__(message, status_code=400)


class BotDetectedException(AuthorizationError):
    """Exception untuk captcha yang gagal diverifikasi."""

    def __init__(self, message: str = ResponseMessage.BOT_DETECTED):
        super().__init__(message, details={"captcha": False})


class LoginBlockedException(AuthorizationError):
    """Exception untuk login yang diblokir oleh decision policy."""

    def __init__(self, risk_score: int, message: str = ResponseMessage.LOGIN_BLOCKED):
        self.risk_score = risk_score
        super().__init__(message, details={"blocked": True})


class WeakPasswordException(ValidationError):
    """Exception untuk password yang lemah."""

    def __init__(self, message: str = "Password does not meet requirements", errors: Optional[list] = None):
        details = {"password_errors": errors} if errors else None
        super().__init__(message, details=details)


class StorageError(ContextAuthException):
    """
    Exception untuk kegagalan baca/tulis identity store.
    Pesan ke client selalu generic.
    """

    def __init__(self, message: str = ResponseMessage.SERVER_ERROR, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=500, details=details)
