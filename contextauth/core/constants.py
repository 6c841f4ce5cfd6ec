"""
Konstanta yang digunakan di seluruh aplikasi ContextAuth API.
"""

from enum import Enum


class TokenPurpose(str, Enum):
    """Tujuan token. Setiap purpose punya satu slot di record user."""
    EMAIL_VERIFICATION = "EMAIL_VERIFICATION"
    TWO_FACTOR_AUTH = "TWO_FACTOR_AUTH"
    DEVICE_RESET = "DEVICE_RESET"
    PASSWORD_RESET = "PASSWORD_RESET"


# Purposes yang memakai kode numerik pendek (dikirim via email, diketik user)
NUMERIC_TOKEN_PURPOSES = frozenset({
    TokenPurpose.EMAIL_VERIFICATION,
    TokenPurpose.TWO_FACTOR_AUTH,
})

# Purposes yang bisa dipakai di endpoint reset password
RESET_TOKEN_PURPOSES = (
    TokenPurpose.DEVICE_RESET,
    TokenPurpose.PASSWORD_RESET,
)


class TokenStatus(str, Enum):
    """Hasil validasi token."""
    FRESH = "FRESH"
    EXPIRED = "EXPIRED"
    NOT_FOUND = "NOT_FOUND"


class RiskSignal(str, Enum):
    """Sinyal anomali yang dievaluasi oleh risk scorer."""
    DEVICE_UNKNOWN = "DEVICE_UNKNOWN"
    IP_UNKNOWN = "IP_UNKNOWN"
    LOCATION_ANOMALY = "LOCATION_ANOMALY"
    HOUR_ANOMALY = "HOUR_ANOMALY"
    TYPING_ANOMALY = "TYPING_ANOMALY"


class LocationTier(str, Enum):
    """Tier jarak untuk anomali lokasi."""
    REGIONAL = "REGIONAL"
    DISTANT = "DISTANT"


class LoginDecision(str, Enum):
    """Hasil decision policy untuk satu login attempt."""
    ALLOWED = "ALLOWED"
    TWO_FACTOR_PENDING = "TWO_FACTOR_PENDING"
    BLOCKED = "BLOCKED"


class AuditAction(str, Enum):
    """Aksi-aksi yang di-log dalam audit trail."""
    ACCOUNT_CREATED = "ACCOUNT_CREATED"
    ACCOUNT_VERIFIED = "ACCOUNT_VERIFIED"

    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGIN_BLOCKED = "LOGIN_BLOCKED"

    NEW_DEVICE_DETECTED = "NEW_DEVICE_DETECTED"
    TWO_FACTOR_REQUIRED = "TWO_FACTOR_REQUIRED"
    TWO_FACTOR_VERIFIED = "TWO_FACTOR_VERIFIED"
    TWO_FACTOR_FAILED = "TWO_FACTOR_FAILED"

    PASSWORD_RESET_REQUESTED = "PASSWORD_RESET_REQUESTED"
    PASSWORD_RESET_COMPLETED = "PASSWORD_RESET_COMPLETED"
    RISK_SCORE_RESET = "RISK_SCORE_RESET"


# Response Messages
class ResponseMessage:
    """Pesan response standar."""
    # Success messages
    SIGNUP_SUCCESS = "User created successfully"
    LOGIN_SUCCESS = "Logged in successfully"
    LOGOUT_SUCCESS = "Logged out successfully"
    EMAIL_VERIFIED = "Email verified successfully"
    VERIFICATION_RESENT = "Verification code resent successfully"
    PASSWORD_RESET_REQUESTED = "If the account exists, a password reset link has been sent to your email"
    PASSWORD_RESET_SUCCESS = "Password reset successfully"
    TWO_FACTOR_REQUIRED = "Two-factor authentication required"
    TWO_FACTOR_SUCCESS = "Two-factor authentication completed successfully"
    RISK_SCORE_RESET = "Risk score reset to 0."

    # Error messages
    INVALID_CREDENTIALS = "Invalid email or password"
    BOT_DETECTED = "Bot detected"
    CAPTCHA_REQUIRED = "Captcha is required"
    LOGIN_BLOCKED = (
        "Suspicious activity detected, login blocked for your security. "
        "Check your email for details."
    )
    INVALID_CODE = "Invalid or expired verification code"
    INVALID_RESET_TOKEN = "Invalid or expired reset token"
    USER_NOT_FOUND = "User not found"
    USER_ALREADY_EXISTS = "User already exists"
    USER_ALREADY_VERIFIED = "User already verified"
    RISK_SCORE_ALREADY_ZERO = "Risk score is already 0."
    NOT_AUTHENTICATED = "Not authenticated"
    SERVER_ERROR = "Server error"


# Default Values
class DefaultValue:
    """Nilai default untuk berbagai setting."""
    UNKNOWN_LOCATION = "Unknown"
    RATE_LIMIT_NAMESPACE_LOGIN = "login"
    RATE_LIMIT_NAMESPACE_TWO_FACTOR = "two_factor"
