"""
Authentication schemas untuk ContextAuth API.
Menangani validasi untuk signup, login kontekstual, 2FA, dan reset password.
"""

from typing import Optional, Annotated

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from contextauth.schemas.context import ContextPayload
from contextauth.schemas.user import UserResponse


class _EmailMixin(BaseModel):
    email: EmailStr = Field(..., description="User email address")

    @field_validator("email")
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class SignupRequest(_EmailMixin):
    """
    Signup request schema.
    """
    password: Annotated[str, Field(min_length=1)] = Field(..., description="User password")
    name: Annotated[str, Field(min_length=1, max_length=100)] = Field(..., description="Display name")
    context: ContextPayload = Field(..., description="Context signup")
    captcha: Optional[str] = Field(None, description="Captcha response token")

    @field_validator("name")
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class LoginRequest(_EmailMixin):
    """
    Login request schema.
    Context wajib ada; login tanpa context ditolak sebelum ada perubahan state.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "user@example.com",
                "password": "SecurePass123",
                "context": {
                    "ip": "1.2.3.4",
                    "device": "chrome-macos-abc",
                    "location": {"latitude": -6.2088, "longitude": 106.8456},
                    "typingSpeed": 5.2,
                    "loginHour": 14
                },
                "captcha": "03AGdBq24..."
            }
        }
    )

    password: Annotated[str, Field(min_length=1)] = Field(..., description="User password")
    context: ContextPayload = Field(..., description="Context login attempt")
    captcha: Optional[str] = Field(None, description="Captcha response token")


class LoginResponse(BaseModel):
    """
    Login response schema.
    user hanya diisi jika session diterbitkan.
    """
    success: bool = Field(True, description="Request berhasil")
    message: str = Field(..., description="Response message")
    require_2fa: bool = Field(False, description="Login menunggu kode 2FA")
    user: Optional[UserResponse] = Field(None, description="User yang login")


class TwoFactorVerifyRequest(_EmailMixin):
    """
    2FA verification request schema.
    """
    code: Annotated[str, Field(min_length=1, max_length=10)] = Field(
        ...,
        validation_alias=AliasChoices("code", "verificationCode"),
        description="Kode 2FA dari email"
    )


class EmailVerificationRequest(_EmailMixin):
    """
    Email verification request schema.
    """
    code: Annotated[str, Field(min_length=1, max_length=10)] = Field(
        ...,
        validation_alias=AliasChoices("code", "verificationCode"),
        description="Kode verifikasi dari email"
    )


class ResendVerificationRequest(_EmailMixin):
    """Resend verification request schema."""


class ForgotPasswordRequest(_EmailMixin):
    """Forgot password request schema."""


class ResetPasswordRequest(BaseModel):
    """
    Reset password request schema.
    Token diambil dari path.
    """
    password: Annotated[str, Field(min_length=1)] = Field(..., description="Password baru")
