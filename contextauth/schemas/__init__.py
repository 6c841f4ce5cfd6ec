"""
Schemas module untuk ContextAuth API.
Berisi semua Pydantic schemas untuk request/response validation.
"""

from contextauth.schemas.context import ContextPayload, LocationPayload
from contextauth.schemas.user import UserResponse, UserRiskProfile
from contextauth.schemas.auth import (
    SignupRequest,
    LoginRequest,
    LoginResponse,
    TwoFactorVerifyRequest,
    EmailVerificationRequest,
    ResendVerificationRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest
)
from contextauth.schemas.response import (
    MessageResponse,
    UserMessageResponse,
    CheckAuthResponse,
    ErrorResponse,
    HealthCheckResponse
)

__all__ = [
    "ContextPayload",
    "LocationPayload",
    "UserResponse",
    "UserRiskProfile",
    "SignupRequest",
    "LoginRequest",
    "LoginResponse",
    "TwoFactorVerifyRequest",
    "EmailVerificationRequest",
    "ResendVerificationRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "MessageResponse",
    "UserMessageResponse",
    "CheckAuthResponse",
    "ErrorResponse",
    "HealthCheckResponse"
]
